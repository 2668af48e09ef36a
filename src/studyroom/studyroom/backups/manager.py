from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from ..core.constants import DEFAULT_BACKUP_RETENTION
from ..core.exceptions import BackupIOError, ValidationError
from ..database.connection import DatabaseConnection

logger = logging.getLogger(__name__)

_STAMP_FORMAT = "%Y%m%d_%H%M%S_%f"


@dataclass(frozen=True)
class BackupInfo:
    path: Path
    size_bytes: int
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "file": self.path.name,
            "path": str(self.path),
            "size_bytes": self.size_bytes,
            "created_at": self.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        }


@dataclass(frozen=True)
class BackupResult:
    backup: BackupInfo
    pruned: List[str]

    def to_dict(self) -> dict:
        return {**self.backup.to_dict(), "pruned": list(self.pruned)}


class BackupManager:
    """Point-in-time snapshots of the live store with count-based retention.

    Files are named ``<stem>-backup-<YYYYmmdd_HHMMSS_ffffff>.db`` so that the
    lexical order of names is their creation order.
    """

    def __init__(
        self,
        conn_factory: DatabaseConnection,
        backup_dir: Path,
        *,
        retention: int = DEFAULT_BACKUP_RETENTION,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if int(retention) < 1:
            raise ValidationError("Backup retention must keep at least one file")
        self._conn_factory = conn_factory
        self._backup_dir = Path(backup_dir)
        self._retention = int(retention)
        self._clock = clock

    @property
    def backup_dir(self) -> Path:
        return self._backup_dir

    @property
    def retention(self) -> int:
        return self._retention

    def _prefix(self) -> str:
        return f"{self._conn_factory.path.stem}-backup-"

    def _new_path(self) -> Path:
        base = f"{self._prefix()}{self._clock().strftime(_STAMP_FORMAT)}"
        path = self._backup_dir / f"{base}.db"
        n = 1
        while path.exists():
            path = self._backup_dir / f"{base}_{n:03d}.db"
            n += 1
        return path

    def create_backup(self, *, retention: Optional[int] = None) -> BackupResult:
        try:
            self._backup_dir.mkdir(parents=True, exist_ok=True)
            path = self._new_path()
            src = self._conn_factory.connect()
            try:
                dest = sqlite3.connect(str(path))
                try:
                    src.backup(dest)
                finally:
                    dest.close()
            finally:
                src.close()
        except (OSError, sqlite3.Error) as e:
            logger.error("Backup into %s failed: %s", self._backup_dir, e)
            raise BackupIOError(f"Backup failed: {e}") from e

        logger.info("Database backup created: %s", path)
        pruned = self.prune(keep=retention or self._retention)
        return BackupResult(backup=self._info(path), pruned=pruned)

    def prune(self, *, keep: Optional[int] = None) -> List[str]:
        keep = max(1, int(keep or self._retention))
        removed: List[str] = []
        for old in self._backup_files()[keep:]:
            try:
                old.unlink()
            except OSError as e:
                logger.warning("Could not delete old backup %s: %s", old, e)
                continue
            removed.append(old.name)
            logger.info("Deleted old backup: %s", old.name)
        return removed

    def list_backups(self) -> List[BackupInfo]:
        return [self._info(p) for p in self._backup_files()]

    def _backup_files(self) -> List[Path]:
        """Backups newest first."""

        if not self._backup_dir.is_dir():
            return []
        files = [p for p in self._backup_dir.glob(f"{self._prefix()}*.db") if p.is_file()]
        return sorted(files, key=lambda p: p.name, reverse=True)

    def _info(self, path: Path) -> BackupInfo:
        stat = path.stat()
        stamp = path.stem[len(self._prefix()):][: len("YYYYmmdd_HHMMSS_ffffff")]
        try:
            created = datetime.strptime(stamp, _STAMP_FORMAT)
        except ValueError:
            created = datetime.fromtimestamp(stat.st_mtime)
        return BackupInfo(path=path, size_bytes=stat.st_size, created_at=created)
