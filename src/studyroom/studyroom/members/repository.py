from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import MemberStatus
from .model import Member, MemberFilter, NewMember

# Columns an operator may edit directly. Status, plan and dates only move
# through enroll/renew/suspend/reactivate and the expiry sweep.
EDITABLE_FIELDS = ("name", "email", "phone", "birth_date", "city", "address", "seat_no")


class MemberRepository(Protocol):
    def get_by_id(self, member_id: int) -> Optional[Member]:
        raise NotImplementedError

    def get_by_qr_code(self, qr_code: str) -> Optional[Member]:
        raise NotImplementedError

    def find(self, criteria: MemberFilter) -> Sequence[Member]:
        raise NotImplementedError

    def create(self, *, member: NewMember, plan_id: int, end_date: date, now: datetime) -> int:
        raise NotImplementedError

    def set_qr_code(self, *, member_id: int, qr_code: str) -> bool:
        raise NotImplementedError

    def update_fields(self, *, member_id: int, fields: Mapping[str, object], now: datetime) -> bool:
        raise NotImplementedError

    def apply_renewal(self, *, member_id: int, plan_id: int, end_date: date, now: datetime) -> bool:
        """Extend the window and activate; never applies to suspended members."""

        raise NotImplementedError

    def set_status(self, *, member_id: int, status: MemberStatus, from_status: MemberStatus, now: datetime) -> bool:
        raise NotImplementedError

    def expire_overdue(self, *, today: date, now: datetime) -> int:
        raise NotImplementedError

    def set_biometric_ref(self, *, member_id: int, biometric_ref: Optional[str], now: datetime) -> bool:
        raise NotImplementedError

    def active_seat_holder(self, seat_no: str) -> Optional[Member]:
        raise NotImplementedError

    def active_seat_numbers(self) -> Sequence[str]:
        raise NotImplementedError

    def list_expiring(self, *, start: date, end: date) -> Sequence[Member]:
        raise NotImplementedError
