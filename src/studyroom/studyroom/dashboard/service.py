from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Optional, Sequence, Tuple

from ..common.datetime_utils import now_local
from ..core.exceptions import ValidationError
from ..database.store import LedgerStore
from .model import AttendanceReportRow, DailySummary, PaymentReportRow


class DashboardService:
    def __init__(self, store: LedgerStore, *, clock: Callable[[], datetime] = now_local):
        self._store = store
        self._clock = clock

    def daily_summary(self, day: Optional[date] = None) -> DailySummary:
        day = day or self._clock().date()
        with self._store.read() as ledger:
            return ledger.summary.daily_summary(day)

    def _report_range(self, date_from: Optional[date], date_to: Optional[date]) -> Tuple[date, date]:
        # Either bound defaults to today.
        today = self._clock().date()
        date_from = date_from or today
        date_to = date_to or today
        if date_from > date_to:
            raise ValidationError("date_from must not be after date_to")
        return date_from, date_to

    def attendance_report(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> Sequence[AttendanceReportRow]:
        """Visit count with first and last visit per active member, busiest first."""
        date_from, date_to = self._report_range(date_from, date_to)
        with self._store.read() as ledger:
            return ledger.summary.attendance_report(date_from=date_from, date_to=date_to)

    def payment_report(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None
    ) -> Sequence[PaymentReportRow]:
        """Daily totals per payment mode, newest day first."""
        date_from, date_to = self._report_range(date_from, date_to)
        with self._store.read() as ledger:
            return ledger.summary.payment_report(date_from=date_from, date_to=date_to)
