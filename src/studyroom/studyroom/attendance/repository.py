from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceSource
from .model import AttendanceQuery, AttendanceRow, AttendanceSession


class AttendanceRepository(Protocol):
    def get_open_session(self, member_id: int, day: date) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def create_checkin(self, *, member_id: int, check_in: datetime, source: AttendanceSource) -> int:
        raise NotImplementedError

    def close_session(self, *, session_id: int, check_out: datetime) -> bool:
        """Set check_out once; returns False if the session was already closed."""

        raise NotImplementedError

    def find(self, query: AttendanceQuery) -> Sequence[AttendanceRow]:
        raise NotImplementedError
