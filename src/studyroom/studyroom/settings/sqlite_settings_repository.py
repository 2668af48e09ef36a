from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Dict, Mapping, Optional

from ..common.datetime_utils import format_datetime
from ..database.sqlite_base import fetchall, fetchone
from .repository import SettingsRepository


class SQLiteSettingsRepository(SettingsRepository):
    def __init__(self, cur: sqlite3.Cursor):
        self._cur = cur

    def get(self, key: str) -> Optional[str]:
        self._cur.execute("SELECT value FROM settings WHERE key=?", (key,))
        r = fetchone(self._cur)
        return r["value"] if r else None

    def get_all(self) -> Dict[str, Optional[str]]:
        self._cur.execute("SELECT key, value FROM settings ORDER BY key")
        return {r["key"]: r["value"] for r in fetchall(self._cur)}

    def upsert_many(self, values: Mapping[str, str], *, now: datetime) -> int:
        stamp = format_datetime(now)
        for key, value in values.items():
            self._cur.execute(
                """
                INSERT INTO settings(key, value, updated_at) VALUES(?,?,?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """,
                (key, None if value is None else str(value), stamp),
            )
        return len(values)

    def insert_default(self, key: str, value: str, description: Optional[str] = None) -> bool:
        self._cur.execute(
            "INSERT OR IGNORE INTO settings(key, value, description) VALUES(?,?,?)",
            (key, str(value), description),
        )
        return self._cur.rowcount > 0
