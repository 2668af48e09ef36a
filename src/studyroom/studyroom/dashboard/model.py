from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import List, Optional


@dataclass(frozen=True)
class DailySummary:
    day: date
    attendance_count: int
    payment_count: int
    payment_total: float
    month_payment_total: float
    new_members: int
    active_members: int
    expiring_tomorrow: int

    def to_dict(self) -> dict:
        data = asdict(self)
        data["day"] = self.day.isoformat()
        return data


@dataclass(frozen=True)
class AttendanceReportRow:
    """Visits per active member over a date range; members with no visits report zero."""

    member_id: int
    member_name: str
    phone: Optional[str]
    visit_count: int
    first_visit: Optional[str]
    last_visit: Optional[str]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PaymentReportRow:
    payment_date: date
    mode: str
    transaction_count: int
    total_amount: float
    members: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["payment_date"] = self.payment_date.isoformat()
        return data
