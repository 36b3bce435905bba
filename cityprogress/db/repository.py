"""
Repository pattern for save blob storage
Author: BrandjuhNL
"""

import aiosqlite
import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional

from ..models import SaveState, SaveStateError

log = logging.getLogger("red.cityprogress.repository")

SAVE_KEY_PREFIX = "progression"


def save_key(user_id: int) -> str:
    """Store key for a player's progression blob."""
    return f"{SAVE_KEY_PREFIX}:{user_id}"


class Repository:
    """String key/value store with per-key locking."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._locks: Dict[str, asyncio.Lock] = {}  # key -> lock

    def _get_lock(self, key: str) -> asyncio.Lock:
        """Get or create a lock for a specific key."""
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    async def get(self, key: str) -> Optional[str]:
        """Read a stored value, or None when the key is absent."""
        async with self._get_lock(key):
            async with aiosqlite.connect(self.db_path) as db:
                async with db.execute(
                    "SELECT value FROM kv_store WHERE key = ?",
                    (key,)
                ) as cursor:
                    row = await cursor.fetchone()
                    return row[0] if row else None

    async def set(self, key: str, value: str):
        """Write a value, replacing any previous one."""
        async with self._get_lock(key):
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    """
                    INSERT INTO kv_store (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (key, value)
                )
                await db.commit()

    async def delete(self, key: str) -> bool:
        """Remove a key. Returns True if something was deleted."""
        async with self._get_lock(key):
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                await db.commit()
                return cursor.rowcount > 0

    async def load_save_state(self, user_id: int) -> Optional[SaveState]:
        """Load and validate a player's save; corrupt blobs are logged and ignored."""
        payload = await self.get(save_key(user_id))
        if payload is None:
            return None

        try:
            return SaveState.from_json(payload)
        except SaveStateError as exc:
            log.error(f"Discarding corrupt save for user {user_id}: {exc}")
            return None

    async def store_save_state(self, user_id: int, state: SaveState):
        """Overwrite a player's save."""
        await self.set(save_key(user_id), state.to_json())
        log.debug(f"Saved progression for user {user_id} (level {state.level})")

    async def delete_save_state(self, user_id: int) -> bool:
        deleted = await self.delete(save_key(user_id))
        if deleted:
            log.info(f"Deleted progression for user {user_id}")
        return deleted
