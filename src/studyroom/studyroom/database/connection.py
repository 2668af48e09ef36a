from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DBConfig:
    path: Path
    timeout: float = 30.0


class DatabaseConnection:
    """Connection factory for the ledger store file.

    Note: We create short-lived connections per operation so the Flask request
    threads, the scheduler thread pool and the bridge never share a handle.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def path(self) -> Path:
        return Path(self._config.path)

    def connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # isolation_level=None: transactions are opened explicitly with BEGIN.
        conn = sqlite3.connect(
            str(self.path),
            timeout=float(self._config.timeout),
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute(f"PRAGMA busy_timeout = {int(self._config.timeout * 1000)}")
        return conn
