"""Run the maintenance jobs without the HTTP server."""

from __future__ import annotations

import signal
import sys
import threading
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.studyroom.studyroom.container import build_container
from src.studyroom.studyroom.main import configure_logging, load_settings, prepare_database


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    container = build_container(settings)
    if settings.auto_init_db:
        prepare_database(container)

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    scheduler = container.scheduler_service
    scheduler.start()
    try:
        stop.wait()
    finally:
        scheduler.stop()


if __name__ == "__main__":
    main()
