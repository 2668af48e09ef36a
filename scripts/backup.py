"""Backup database.

Takes one consistent snapshot of the SQLite file with the online backup API
and prunes old snapshots down to BACKUP_RETENTION (or --keep).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.studyroom.studyroom.container import build_container
from src.studyroom.studyroom.core.exceptions import BackupIOError
from src.studyroom.studyroom.main import configure_logging, load_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Snapshot the study room database")
    parser.add_argument("--keep", type=int, default=None, help="number of backups to keep")
    parser.add_argument("--list", action="store_true", help="list existing backups and exit")
    args = parser.parse_args()

    settings = load_settings()
    configure_logging(settings.log_level)
    backups = build_container(settings).backup_manager

    if args.list:
        for info in backups.list_backups():
            print(f"{info.created_at:%Y-%m-%d %H:%M:%S}  {info.size_bytes:>10}  {info.path.name}")
        return

    try:
        result = backups.create_backup(retention=args.keep)
    except BackupIOError as e:
        raise SystemExit(f"Backup failed: {e}")
    print(f"OK: Backup created: {result.backup.path}")
    for name in result.pruned:
        print(f"   pruned {name}")


if __name__ == "__main__":
    main()
