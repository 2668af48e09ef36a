from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .app_settings import AppSettings
from .attendance.service import AttendanceService
from .backups.manager import BackupManager
from .bridge.service import BiometricEventHandler
from .common.datetime_utils import now_local
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .database.store import SQLiteLedgerStore
from .members.service import MembershipService
from .notifications.sender import LoggingNotificationSender, NotificationSender, SMTPNotificationSender
from .notifications.service import NotificationService
from .payments.receipts import ReceiptNumberGenerator
from .payments.service import PaymentService
from .plans.service import PlanService
from .scheduler.jobs import build_maintenance_jobs
from .scheduler.service import SchedulerService
from .scheduler.tickers import APSchedulerTicker, Ticker
from .settings.service import SettingsService


@dataclass(frozen=True)
class Container:
    settings: AppSettings
    conn: DatabaseConnection
    store: SQLiteLedgerStore

    plan_service: PlanService
    membership_service: MembershipService
    payment_service: PaymentService
    attendance_service: AttendanceService
    notification_service: NotificationService
    settings_service: SettingsService
    dashboard_service: DashboardService
    backup_manager: BackupManager
    scheduler_service: SchedulerService
    bridge_handler: BiometricEventHandler


def build_container(
    settings: AppSettings,
    *,
    clock: Callable[[], datetime] = now_local,
    sender: Optional[NotificationSender] = None,
    ticker_factory: Optional[Callable[[], Ticker]] = None,
) -> Container:
    conn = DatabaseConnection(DBConfig(path=settings.db_path))
    store = SQLiteLedgerStore(conn)
    receipts = ReceiptNumberGenerator()

    if sender is None:
        sender = SMTPNotificationSender(settings.smtp) if settings.smtp else LoggingNotificationSender()
    if ticker_factory is None:
        timezone = settings.scheduler_timezone

        def ticker_factory() -> Ticker:
            return APSchedulerTicker(timezone=timezone)

    plan_service = PlanService(store)
    membership_service = MembershipService(store, receipts=receipts, clock=clock)
    payment_service = PaymentService(store, receipts=receipts, clock=clock)
    attendance_service = AttendanceService(store, clock=clock)
    notification_service = NotificationService(
        store,
        sender=sender,
        clock=clock,
        lead_days=settings.reminder_lead_days,
        retention_days=settings.notification_retention_days,
    )
    settings_service = SettingsService(store, clock=clock)
    dashboard_service = DashboardService(store, clock=clock)
    backup_manager = BackupManager(conn, settings.backup_dir, retention=settings.backup_retention)
    scheduler_service = SchedulerService(
        build_maintenance_jobs(
            membership=membership_service,
            notifications=notification_service,
            backups=backup_manager,
            settings=settings_service,
            schedules=settings.job_schedules,
        ),
        ticker_factory=ticker_factory,
        clock=clock,
    )
    bridge_handler = BiometricEventHandler(
        attendance_service,
        membership_service,
        token=settings.bridge_token,
        clock=clock,
        recent_limit=settings.recent_events,
    )

    return Container(
        settings=settings,
        conn=conn,
        store=store,
        plan_service=plan_service,
        membership_service=membership_service,
        payment_service=payment_service,
        attendance_service=attendance_service,
        notification_service=notification_service,
        settings_service=settings_service,
        dashboard_service=dashboard_service,
        backup_manager=backup_manager,
        scheduler_service=scheduler_service,
        bridge_handler=bridge_handler,
    )
