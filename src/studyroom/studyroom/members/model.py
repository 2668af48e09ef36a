from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import MemberStatus


@dataclass(frozen=True)
class Member:
    """Domain entity: a member and their current membership window."""

    member_id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    seat_no: Optional[str]
    plan_id: Optional[int]
    join_date: date
    end_date: date
    status: MemberStatus
    birth_date: Optional[date] = None
    city: Optional[str] = None
    address: Optional[str] = None
    biometric_ref: Optional[str] = None
    qr_code: Optional[str] = None
    plan_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.member_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "seat_no": self.seat_no,
            "plan_id": self.plan_id,
            "plan_name": self.plan_name,
            "join_date": self.join_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "status": self.status.value,
            "birth_date": self.birth_date.isoformat() if self.birth_date else None,
            "city": self.city,
            "address": self.address,
            "biometric_enrolled": bool(self.biometric_ref),
            "qr_code": self.qr_code,
        }


@dataclass(frozen=True)
class MemberFilter:
    """Structured member search, translated to a parameterized query."""

    status: Optional[MemberStatus] = None
    search: Optional[str] = None
    plan_id: Optional[int] = None
    limit: Optional[int] = None


@dataclass(frozen=True)
class NewMember:
    name: str
    email: Optional[str]
    phone: Optional[str]
    seat_no: Optional[str]
    join_date: date
    birth_date: Optional[date] = None
    city: Optional[str] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class SeatUtilization:
    total_seats: int
    occupied: int
    available: int
    utilization_percent: int
    next_available: Optional[int]

    def to_dict(self) -> dict:
        return {
            "total_seats": self.total_seats,
            "occupied": self.occupied,
            "available": self.available,
            "utilization_percent": self.utilization_percent,
            "next_available": self.next_available,
        }


@dataclass(frozen=True)
class EnrollmentResult:
    member: Member
    payment_id: Optional[int] = None
    receipt_number: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "member": self.member.to_dict(),
            "payment_id": self.payment_id,
            "receipt_number": self.receipt_number,
        }


@dataclass(frozen=True)
class RenewalResult:
    member_id: int
    plan_id: int
    previous_end_date: date
    new_end_date: date
    payment_id: int
    receipt_number: str
    amount: float

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "plan_id": self.plan_id,
            "previous_end_date": self.previous_end_date.isoformat(),
            "new_end_date": self.new_end_date.isoformat(),
            "payment_id": self.payment_id,
            "receipt_number": self.receipt_number,
            "amount": self.amount,
        }
