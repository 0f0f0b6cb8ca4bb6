"""SQLite-backed system configuration table."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import aiosqlite

from hazard_engine.exceptions import StoreError
from hazard_engine.storage.migrations import initialize_config_db


class SQLiteConfigStore:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        await initialize_config_db(self._db_path)

    async def get_config(self, keys: Sequence[str]) -> dict[str, Any]:
        if not keys:
            return {}
        placeholders = ",".join("?" for _ in keys)
        try:
            async with aiosqlite.connect(self._db_path) as db:
                async with db.execute(
                    f"SELECT id, value FROM system_configurations WHERE id IN ({placeholders})",
                    list(keys),
                ) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"Config store error: {e}") from e
        return {row[0]: json.loads(row[1]) for row in rows}

    async def set_config(self, key: str, value: Any) -> None:
        try:
            async with aiosqlite.connect(self._db_path) as db:
                await db.execute(
                    "INSERT OR REPLACE INTO system_configurations (id, value, updated_at) "
                    "VALUES (?, ?, ?)",
                    (key, json.dumps(value), datetime.now(timezone.utc).isoformat()),
                )
                await db.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Config store error: {e}") from e
