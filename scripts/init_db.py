from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.studyroom.studyroom.container import build_container
from src.studyroom.studyroom.database.bootstrap import list_tables
from src.studyroom.studyroom.main import configure_logging, load_settings, prepare_database


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    container = build_container(settings)

    prepare_database(container)
    print(f"OK: Applied schema.sql -> {container.conn.path} (tables={len(list_tables(container.conn))})")


if __name__ == "__main__":
    main()
