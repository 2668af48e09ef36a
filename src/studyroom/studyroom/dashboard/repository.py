from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import AttendanceReportRow, DailySummary, PaymentReportRow


class SummaryRepository(Protocol):
    def daily_summary(self, day: date) -> DailySummary:
        raise NotImplementedError

    def attendance_report(self, *, date_from: date, date_to: date) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError

    def payment_report(self, *, date_from: date, date_to: date) -> Sequence[PaymentReportRow]:
        raise NotImplementedError
