"""
Schema migrations for the save store
Author: BrandjuhNL
"""

import aiosqlite
import logging
from pathlib import Path
from typing import Sequence, Tuple

log = logging.getLogger("red.cityprogress.migrations")

# (version, summary, statements), applied in ascending order
MIGRATIONS: Sequence[Tuple[int, str, Tuple[str, ...]]] = (
    (
        1,
        "key/value table for progression blobs",
        (
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """,
        ),
    ),
)


class MigrationManager:
    """Brings the SQLite file up to the latest schema version."""

    def __init__(self, db_path: Path):
        self.db_path = db_path

    @property
    def latest_version(self) -> int:
        return max(version for version, _, _ in MIGRATIONS)

    async def initialize(self) -> int:
        """Create the version table and apply pending migrations. Returns the schema version."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "CREATE TABLE IF NOT EXISTS schema_version ("
                "version INTEGER PRIMARY KEY, "
                "applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
            )
            version = await self._current_version(db)

            pending = [migration for migration in MIGRATIONS if migration[0] > version]
            if not pending:
                log.info(f"Save store schema at version {version}, nothing to migrate")
                return version

            for target, summary, statements in pending:
                log.info(f"Applying save store migration v{target}: {summary}")
                for statement in statements:
                    await db.execute(statement)
                await db.execute("INSERT INTO schema_version (version) VALUES (?)", (target,))
                await db.commit()
                version = target

            return version

    @staticmethod
    async def _current_version(db: aiosqlite.Connection) -> int:
        async with db.execute("SELECT COALESCE(MAX(version), 0) FROM schema_version") as cursor:
            row = await cursor.fetchone()
        return row[0]
