from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceSource


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one visit. ``check_out`` is None while the session is open."""

    session_id: int
    member_id: int
    check_in: datetime
    check_out: Optional[datetime]
    source: AttendanceSource

    @property
    def is_open(self) -> bool:
        return self.check_out is None

    def to_dict(self) -> dict:
        return {
            "id": self.session_id,
            "member_id": self.member_id,
            "check_in": self.check_in.strftime("%Y-%m-%d %H:%M:%S"),
            "check_out": self.check_out.strftime("%Y-%m-%d %H:%M:%S") if self.check_out else None,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class AttendanceRow:
    """Read-model for attendance lists (joined with member display fields)."""

    session_id: int
    member_id: int
    member_name: str
    phone: Optional[str]
    check_in: datetime
    check_out: Optional[datetime]
    source: AttendanceSource

    def to_dict(self) -> dict:
        return {
            "id": self.session_id,
            "member_id": self.member_id,
            "member_name": self.member_name,
            "phone": self.phone,
            "check_in": self.check_in.strftime("%Y-%m-%d %H:%M:%S"),
            "check_out": self.check_out.strftime("%Y-%m-%d %H:%M:%S") if self.check_out else None,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class AttendanceQuery:
    on_date: Optional[date] = None
    member_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
