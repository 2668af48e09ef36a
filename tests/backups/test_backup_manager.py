from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta

import pytest

from src.studyroom.studyroom.backups.manager import BackupManager
from src.studyroom.studyroom.core.exceptions import BackupIOError, ValidationError


class StepClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


def test_backup_is_a_consistent_copy(container, enroll, tmp_path):
    member = enroll("Snapshot Sam")
    manager = BackupManager(container.conn, tmp_path / "snapshots", retention=5)

    result = manager.create_backup()

    assert result.backup.path.exists()
    assert result.backup.path.name.startswith("studyroom-backup-")
    conn = sqlite3.connect(str(result.backup.path))
    try:
        row = conn.execute("SELECT name FROM members WHERE id=?", (member.member_id,)).fetchone()
    finally:
        conn.close()
    assert row == ("Snapshot Sam",)


def test_retention_keeps_newest_n(container, tmp_path):
    retention = 3
    manager = BackupManager(
        container.conn, tmp_path / "snapshots", retention=retention, clock=StepClock(datetime(2024, 1, 1))
    )

    created = [manager.create_backup().backup.path.name for _ in range(retention + 2)]

    remaining = [b.path.name for b in manager.list_backups()]
    assert remaining == list(reversed(created[-retention:]))
    assert len(remaining) == retention


def test_backups_in_the_same_instant_do_not_overwrite(container, tmp_path):
    manager = BackupManager(container.conn, tmp_path / "snapshots", retention=5, clock=lambda: datetime(2024, 1, 1))

    a = manager.create_backup().backup.path
    b = manager.create_backup().backup.path

    assert a != b
    assert len(manager.list_backups()) == 2


def test_retention_orders_many_same_instant_backups_by_creation(container, tmp_path):
    manager = BackupManager(container.conn, tmp_path / "snapshots", retention=3, clock=lambda: datetime(2024, 1, 1))

    created = [manager.create_backup().backup.path.name for _ in range(12)]

    assert created[-1].endswith("_011.db")
    assert [b.path.name for b in manager.list_backups()] == list(reversed(created[-3:]))


def test_prune_skips_files_it_cannot_delete(container, tmp_path, monkeypatch):
    manager = BackupManager(
        container.conn, tmp_path / "snapshots", retention=5, clock=StepClock(datetime(2024, 1, 1))
    )
    for _ in range(3):
        manager.create_backup()
    oldest = manager.list_backups()[-1].path

    original_unlink = type(oldest).unlink

    def flaky_unlink(self, *args, **kwargs):
        if self == oldest:
            raise PermissionError("locked")
        return original_unlink(self, *args, **kwargs)

    monkeypatch.setattr(type(oldest), "unlink", flaky_unlink)
    removed = manager.prune(keep=1)

    assert oldest.exists()
    assert len(removed) == 1


def test_snapshot_failure_raises_backup_io_error(container, tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    manager = BackupManager(container.conn, blocker / "backups")

    with pytest.raises(BackupIOError):
        manager.create_backup()


def test_retention_must_be_positive(container, tmp_path):
    with pytest.raises(ValidationError):
        BackupManager(container.conn, tmp_path, retention=0)
