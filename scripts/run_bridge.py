"""Serve only the biometric event bridge on BRIDGE_PORT (localhost)."""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.studyroom.studyroom.container import build_container
from src.studyroom.studyroom.main import configure_logging, create_bridge_app, load_settings


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    app = create_bridge_app(build_container(settings))
    app.run(host="127.0.0.1", port=settings.bridge_port)


if __name__ == "__main__":
    main()
