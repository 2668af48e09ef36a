from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import PaymentMode
from .model import Payment, PaymentFilter


class PaymentRepository(Protocol):
    """Append-only: there is deliberately no update or delete."""

    def insert(
        self,
        *,
        member_id: int,
        amount: float,
        mode: PaymentMode,
        receipt_number: str,
        paid_at: datetime,
        plan_id: Optional[int] = None,
        note: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, payment_id: int) -> Optional[Payment]:
        raise NotImplementedError

    def find(self, criteria: PaymentFilter) -> Sequence[Payment]:
        raise NotImplementedError

    def count_for_member(self, member_id: int) -> int:
        raise NotImplementedError
