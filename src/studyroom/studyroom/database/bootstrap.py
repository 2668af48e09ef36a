from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple

from ..core.constants import (
    DEFAULT_BACKUP_RETENTION,
    DEFAULT_NOTIFICATION_RETENTION_DAYS,
    DEFAULT_REMINDER_LEAD_DAYS,
    DEFAULT_TOTAL_SEATS,
    SETTING_AUTO_BACKUP,
    SETTING_BACKUP_RETENTION,
    SETTING_LIBRARY_NAME,
    SETTING_NOTIFICATION_DAYS,
    SETTING_NOTIFICATION_RETENTION_DAYS,
    SETTING_TOTAL_SEATS,
)
from ..plans.sqlite_plan_repository import SQLitePlanRepository
from ..settings.sqlite_settings_repository import SQLiteSettingsRepository
from .connection import DatabaseConnection
from .sqlite_base import db_cursor, fetchall

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().with_name("schema.sql")

DEFAULT_PLANS: Sequence[Tuple[str, int, float, str]] = (
    ("Monthly", 30, 1000, "Monthly membership plan"),
    ("Quarterly", 90, 2700, "Quarterly membership plan with 10% discount"),
    ("Half Yearly", 180, 5000, "Half yearly plan with 17% discount"),
    ("Annual", 365, 9000, "Annual plan with 25% discount"),
)

DEFAULT_SETTINGS: Mapping[str, Tuple[str, str]] = {
    SETTING_LIBRARY_NAME: ("Study Room Library", "Name of the library"),
    SETTING_NOTIFICATION_DAYS: (str(DEFAULT_REMINDER_LEAD_DAYS), "Days before expiry to send notifications"),
    SETTING_TOTAL_SEATS: (str(DEFAULT_TOTAL_SEATS), "Number of seats available"),
    SETTING_AUTO_BACKUP: ("1", "Enable automatic database backup"),
    SETTING_BACKUP_RETENTION: (str(DEFAULT_BACKUP_RETENTION), "Number of backups to keep"),
    SETTING_NOTIFICATION_RETENTION_DAYS: (
        str(DEFAULT_NOTIFICATION_RETENTION_DAYS),
        "Days to keep notification history",
    ),
}


def apply_schema(conn_factory: DatabaseConnection, *, schema_path: Optional[Path] = None) -> None:
    sql = Path(schema_path or SCHEMA_PATH).read_text(encoding="utf-8")
    conn = conn_factory.connect()
    try:
        conn.execute("PRAGMA journal_mode = WAL")
        conn.executescript(sql)
    finally:
        conn.close()


def seed_defaults(conn_factory: DatabaseConnection, *, overrides: Optional[Mapping[str, str]] = None) -> None:
    """Insert default plans (empty table only) and any missing settings.

    ``overrides`` come from the environment config and only fill keys the
    settings table does not have yet.
    """

    overrides = overrides or {}
    with db_cursor(conn_factory, immediate=True) as (_, cur):
        plans = SQLitePlanRepository(cur)
        if plans.count() == 0:
            for name, duration_days, price, description in DEFAULT_PLANS:
                plans.create(name=name, duration_days=duration_days, price=price, description=description)
            logger.info("Seeded %d default membership plans", len(DEFAULT_PLANS))

        settings = SQLiteSettingsRepository(cur)
        for key, (value, description) in DEFAULT_SETTINGS.items():
            settings.insert_default(key, str(overrides.get(key, value)), description)


def list_tables(conn_factory: DatabaseConnection) -> list[str]:
    with db_cursor(conn_factory) as (_, cur):
        cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name")
        return [r["name"] for r in fetchall(cur)]
