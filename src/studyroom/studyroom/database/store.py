from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import ContextManager, Iterator, Protocol

from ..attendance.repository import AttendanceRepository
from ..attendance.sqlite_attendance_repository import SQLiteAttendanceRepository
from ..dashboard.repository import SummaryRepository
from ..dashboard.sqlite_summary_repository import SQLiteSummaryRepository
from ..members.repository import MemberRepository
from ..members.sqlite_member_repository import SQLiteMemberRepository
from ..notifications.repository import NotificationRepository
from ..notifications.sqlite_notification_repository import SQLiteNotificationRepository
from ..payments.repository import PaymentRepository
from ..payments.sqlite_payment_repository import SQLitePaymentRepository
from ..plans.repository import PlanRepository
from ..plans.sqlite_plan_repository import SQLitePlanRepository
from ..settings.repository import SettingsRepository
from ..settings.sqlite_settings_repository import SQLiteSettingsRepository
from .connection import DatabaseConnection
from .sqlite_base import db_cursor


@dataclass(frozen=True)
class Ledger:
    """Repositories bound to one open transaction."""

    plans: PlanRepository
    members: MemberRepository
    payments: PaymentRepository
    attendance: AttendanceRepository
    notifications: NotificationRepository
    settings: SettingsRepository
    summary: SummaryRepository


class LedgerStore(Protocol):
    def transaction(self) -> ContextManager[Ledger]:
        """Write transaction: commits on success, rolls everything back on error."""

        raise NotImplementedError

    def read(self) -> ContextManager[Ledger]:
        raise NotImplementedError


class SQLiteLedgerStore:
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @property
    def conn_factory(self) -> DatabaseConnection:
        return self._conn_factory

    @property
    def path(self) -> Path:
        return self._conn_factory.path

    @contextmanager
    def transaction(self) -> Iterator[Ledger]:
        with db_cursor(self._conn_factory, immediate=True) as (_, cur):
            yield self._bind(cur)

    @contextmanager
    def read(self) -> Iterator[Ledger]:
        with db_cursor(self._conn_factory) as (_, cur):
            yield self._bind(cur)

    @staticmethod
    def _bind(cur) -> Ledger:
        return Ledger(
            plans=SQLitePlanRepository(cur),
            members=SQLiteMemberRepository(cur),
            payments=SQLitePaymentRepository(cur),
            attendance=SQLiteAttendanceRepository(cur),
            notifications=SQLiteNotificationRepository(cur),
            settings=SQLiteSettingsRepository(cur),
            summary=SQLiteSummaryRepository(cur),
        )
