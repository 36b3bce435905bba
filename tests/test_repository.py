import asyncio

import pytest

from cityprogress.db import MigrationManager, Repository, save_key
from cityprogress.services import ProgressionEngine

from .conftest import make_catalog


@pytest.fixture
def repository(tmp_path):
    db_path = tmp_path / "cityprogress.db"
    asyncio.run(MigrationManager(db_path).initialize())
    return Repository(db_path)


def test_save_key():
    assert save_key(1234) == "progression:1234"


def test_get_set_delete(repository):
    async def scenario():
        assert await repository.get("missing") is None
        await repository.set("greeting", "hello")
        await repository.set("greeting", "hi")
        value = await repository.get("greeting")
        deleted = await repository.delete("greeting")
        deleted_again = await repository.delete("greeting")
        return value, deleted, deleted_again

    assert asyncio.run(scenario()) == ("hi", True, False)


def test_migrations_are_idempotent(tmp_path):
    db_path = tmp_path / "cityprogress.db"

    async def scenario():
        first = await MigrationManager(db_path).initialize()
        second = await MigrationManager(db_path).initialize()
        assert first == second == MigrationManager(db_path).latest_version == 1
        repository = Repository(db_path)
        await repository.set("key", "value")
        return await repository.get("key")

    assert asyncio.run(scenario()) == "value"


def test_save_state_round_trip(repository):
    engine = ProgressionEngine(make_catalog())
    engine.new_game()
    engine.add_exp(400)
    engine.add_building_to_region("health_harbor")
    state = engine.export_state()

    async def scenario():
        await repository.store_save_state(42, state)
        return await repository.load_save_state(42), await repository.load_save_state(7)

    loaded, missing = asyncio.run(scenario())
    assert loaded == state
    assert missing is None


def test_corrupt_save_is_ignored(repository):
    async def scenario():
        await repository.set(save_key(42), '{"level": 3}')
        return await repository.load_save_state(42)

    assert asyncio.run(scenario()) is None


def test_delete_save_state(repository):
    engine = ProgressionEngine(make_catalog())
    engine.new_game()

    async def scenario():
        await repository.store_save_state(42, engine.export_state())
        deleted = await repository.delete_save_state(42)
        return deleted, await repository.load_save_state(42)

    assert asyncio.run(scenario()) == (True, None)
