from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Dict, Optional

from .core.constants import (
    DEFAULT_BACKUP_RETENTION,
    DEFAULT_NOTIFICATION_RETENTION_DAYS,
    DEFAULT_RECENT_EVENTS,
    DEFAULT_REMINDER_LEAD_DAYS,
    SETTING_BACKUP_RETENTION,
    SETTING_NOTIFICATION_DAYS,
    SETTING_NOTIFICATION_RETENTION_DAYS,
)
from .notifications.sender import SMTPConfig


@dataclass(frozen=True)
class AppSettings:
    """Process configuration, read once at start-up from a settings module."""

    db_path: Path
    backup_dir: Path
    secret_key: str = "dev-secret-key"
    backup_retention: int = DEFAULT_BACKUP_RETENTION
    bridge_token: Optional[str] = None
    bridge_port: int = 5006
    reminder_lead_days: int = DEFAULT_REMINDER_LEAD_DAYS
    notification_retention_days: int = DEFAULT_NOTIFICATION_RETENTION_DAYS
    recent_events: int = DEFAULT_RECENT_EVENTS
    scheduler_enabled: bool = False
    scheduler_timezone: Optional[str] = None
    job_schedules: Dict[str, str] = field(default_factory=dict)
    smtp: Optional[SMTPConfig] = None
    debug: bool = False
    testing: bool = False
    auto_init_db: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_module(cls, settings: ModuleType) -> "AppSettings":
        smtp_host = getattr(settings, "SMTP_HOST", None)
        smtp = None
        if smtp_host:
            smtp = SMTPConfig(
                host=smtp_host,
                port=int(getattr(settings, "SMTP_PORT", 587)),
                username=getattr(settings, "SMTP_USER", None),
                password=getattr(settings, "SMTP_PASSWORD", None),
                sender=getattr(settings, "SMTP_FROM", None),
                use_tls=bool(getattr(settings, "SMTP_USE_TLS", True)),
            )
        return cls(
            db_path=Path(getattr(settings, "DB_PATH")),
            backup_dir=Path(getattr(settings, "BACKUP_DIR")),
            secret_key=str(getattr(settings, "SECRET_KEY", "dev-secret-key")),
            backup_retention=int(getattr(settings, "BACKUP_RETENTION", DEFAULT_BACKUP_RETENTION)),
            bridge_token=getattr(settings, "BRIDGE_TOKEN", None) or None,
            bridge_port=int(getattr(settings, "BRIDGE_PORT", 5006)),
            reminder_lead_days=int(getattr(settings, "REMINDER_LEAD_DAYS", DEFAULT_REMINDER_LEAD_DAYS)),
            notification_retention_days=int(
                getattr(settings, "NOTIFICATION_RETENTION_DAYS", DEFAULT_NOTIFICATION_RETENTION_DAYS)
            ),
            recent_events=int(getattr(settings, "RECENT_EVENTS", DEFAULT_RECENT_EVENTS)),
            scheduler_enabled=bool(getattr(settings, "SCHEDULER_ENABLED", False)),
            scheduler_timezone=getattr(settings, "SCHEDULER_TIMEZONE", None) or None,
            job_schedules=dict(getattr(settings, "JOB_SCHEDULES", {}) or {}),
            smtp=smtp,
            debug=bool(getattr(settings, "DEBUG", False)),
            testing=bool(getattr(settings, "TESTING", False)),
            auto_init_db=bool(getattr(settings, "AUTO_INIT_DB", True)),
            log_level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        )

    def settings_seed(self) -> Dict[str, str]:
        """Values that fill the settings table where it has none yet."""

        return {
            SETTING_NOTIFICATION_DAYS: str(self.reminder_lead_days),
            SETTING_BACKUP_RETENTION: str(self.backup_retention),
            SETTING_NOTIFICATION_RETENTION_DAYS: str(self.notification_retention_days),
        }
