from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import PaymentMode


@dataclass(frozen=True)
class Payment:
    """Ledger entry. Never updated or deleted once written."""

    payment_id: int
    member_id: int
    amount: float
    mode: PaymentMode
    receipt_number: str
    paid_at: datetime
    plan_id: Optional[int] = None
    note: Optional[str] = None
    created_by: Optional[int] = None
    member_name: Optional[str] = None
    plan_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.payment_id,
            "member_id": self.member_id,
            "member_name": self.member_name,
            "amount": self.amount,
            "mode": self.mode.value,
            "plan_id": self.plan_id,
            "plan_name": self.plan_name,
            "note": self.note,
            "receipt_number": self.receipt_number,
            "paid_at": self.paid_at.strftime("%Y-%m-%d %H:%M:%S"),
            "created_by": self.created_by,
        }


@dataclass(frozen=True)
class PaymentDraft:
    """Payment details supplied by the caller (renewal or ad-hoc fee)."""

    mode: PaymentMode = PaymentMode.CASH
    amount: Optional[float] = None
    note: Optional[str] = None
    receipt_number: Optional[str] = None
    actor_id: Optional[int] = None


@dataclass(frozen=True)
class PaymentFilter:
    member_id: Optional[int] = None
    search: Optional[str] = None
    mode: Optional[PaymentMode] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    plan_id: Optional[int] = None
