from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional

from ..backups.manager import BackupManager
from ..core.constants import SETTING_AUTO_BACKUP, SETTING_BACKUP_RETENTION
from ..members.service import MembershipService
from ..notifications.service import NotificationService
from ..settings.service import SettingsService

JOB_EXPIRY_SWEEP = "expiry_sweep"
JOB_EXPIRY_REMINDERS = "expiry_reminders"
JOB_NOTIFICATION_CLEANUP = "notification_cleanup"
JOB_BACKUP = "backup"

DEFAULT_SCHEDULES = {
    JOB_EXPIRY_SWEEP: "0 * * * *",
    JOB_EXPIRY_REMINDERS: "0 9 * * *",
    JOB_NOTIFICATION_CLEANUP: "0 1 * * 0",
    JOB_BACKUP: "0 2 * * *",
}


@dataclass(frozen=True)
class Job:
    """A named maintenance task on a cron schedule.

    ``enabled`` is consulted on scheduled fires only; manual runs always execute.
    """

    name: str
    schedule: str
    description: str
    action: Callable[[], Any]
    enabled: Optional[Callable[[], bool]] = None

    def is_enabled(self) -> bool:
        return self.enabled() if self.enabled else True


def build_maintenance_jobs(
    *,
    membership: MembershipService,
    notifications: NotificationService,
    backups: BackupManager,
    settings: SettingsService,
    schedules: Optional[Mapping[str, str]] = None,
) -> List[Job]:
    cron = {**DEFAULT_SCHEDULES, **(schedules or {})}
    return [
        Job(
            name=JOB_EXPIRY_SWEEP,
            schedule=cron[JOB_EXPIRY_SWEEP],
            description="Mark active members past their end date as expired",
            action=lambda: {"expired": membership.expire_overdue()},
        ),
        Job(
            name=JOB_EXPIRY_REMINDERS,
            schedule=cron[JOB_EXPIRY_REMINDERS],
            description="Send expiry reminder notifications to members",
            action=lambda: notifications.dispatch_expiry_reminders().to_dict(),
        ),
        Job(
            name=JOB_NOTIFICATION_CLEANUP,
            schedule=cron[JOB_NOTIFICATION_CLEANUP],
            description="Remove notifications past the retention window",
            action=lambda: {"deleted": notifications.cleanup_old()},
        ),
        Job(
            name=JOB_BACKUP,
            schedule=cron[JOB_BACKUP],
            description="Snapshot the database and prune old backups",
            action=lambda: backups.create_backup(
                retention=settings.get_int(SETTING_BACKUP_RETENTION, backups.retention)
            ).to_dict(),
            enabled=lambda: settings.get_bool(SETTING_AUTO_BACKUP, True),
        ),
    ]
