from __future__ import annotations

import atexit
import importlib
import logging
import os
from datetime import datetime
from typing import Callable, Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .app_settings import AppSettings
from .common.datetime_utils import now_local
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables, seed_defaults
from .notifications.sender import NotificationSender
from .scheduler.tickers import Ticker

from .attendance.controller import register as register_attendance
from .bridge.controller import register as register_bridge
from .dashboard.controller import register as register_dashboard
from .members.controller import register as register_members
from .notifications.controller import register as register_notifications
from .payments.controller import register as register_payments
from .plans.controller import register as register_plans
from .scheduler.controller import register as register_scheduler
from .settings.controller import register as register_settings

logger = logging.getLogger(__name__)


def load_settings() -> AppSettings:
    load_dotenv(override=False)
    settings_module = get_settings_module()
    return AppSettings.from_module(importlib.import_module(settings_module))


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def prepare_database(container: Container) -> None:
    apply_schema(container.conn)
    seed_defaults(container.conn, overrides=container.settings.settings_seed())
    logger.info("Database ready at %s (tables=%d)", container.conn.path, len(list_tables(container.conn)))


def _should_start_scheduler(settings: AppSettings) -> bool:
    if not settings.scheduler_enabled:
        return False
    # Under the debug reloader only the child process runs the jobs.
    if settings.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        return False
    return True


def create_app(
    settings: Optional[AppSettings] = None,
    *,
    clock: Callable[[], datetime] = now_local,
    sender: Optional[NotificationSender] = None,
    ticker_factory: Optional[Callable[[], Ticker]] = None,
) -> Flask:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config["DEBUG"] = settings.debug
    app.config["TESTING"] = settings.testing

    container = build_container(settings, clock=clock, sender=sender, ticker_factory=ticker_factory)
    if settings.auto_init_db:
        prepare_database(container)
    app.extensions["studyroom"] = container

    register_plans(app, container)
    register_members(app, container)
    register_payments(app, container)
    register_attendance(app, container)
    register_notifications(app, container)
    register_settings(app, container)
    register_dashboard(app, container)
    register_scheduler(app, container)
    register_bridge(app, container)

    if _should_start_scheduler(settings):
        container.scheduler_service.start()
        atexit.register(container.scheduler_service.stop)

    return app


def create_bridge_app(container: Container) -> Flask:
    """A Flask app serving only the biometric bridge routes, for a dedicated port."""

    app = Flask(f"{__name__}.bridge")
    app.extensions["studyroom"] = container
    register_bridge(app, container)
    return app


def get_container(app: Flask) -> Container:
    return app.extensions["studyroom"]
