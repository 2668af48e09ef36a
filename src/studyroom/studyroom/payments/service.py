from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Mapping, Optional, Sequence

from ..common.datetime_utils import coerce_date, now_local
from ..common.validators import optional_int, optional_text, require_amount, require_choice, require_positive_int
from ..core.enums import PaymentMode
from ..core.exceptions import NotFoundError, ValidationError
from ..database.store import Ledger, LedgerStore
from .model import Payment, PaymentDraft, PaymentFilter
from .receipts import ReceiptNumberGenerator

logger = logging.getLogger(__name__)


def parse_payment_draft(data: Optional[Mapping[str, object]]) -> PaymentDraft:
    """Build a PaymentDraft from request data (snake_case or camelCase keys)."""

    data = data or {}
    amount = data.get("amount")
    return PaymentDraft(
        mode=require_choice(data.get("mode") or PaymentMode.CASH.value, PaymentMode, "Payment mode"),
        amount=require_amount(amount) if amount not in (None, "") else None,
        note=optional_text(data.get("note")),
        receipt_number=optional_text(data.get("receipt_number", data.get("receiptNumber"))),
        actor_id=optional_int(data.get("actor_id", data.get("actorId")), "actor_id"),
    )


def insert_payment(
    ledger: Ledger,
    receipts: ReceiptNumberGenerator,
    *,
    member_id: int,
    amount: float,
    draft: PaymentDraft,
    now: datetime,
    plan_id: Optional[int] = None,
    default_note: Optional[str] = None,
) -> tuple[int, str]:
    """Append one ledger row inside the caller's transaction."""

    receipt_number = draft.receipt_number or receipts.next()
    payment_id = ledger.payments.insert(
        member_id=member_id,
        amount=amount,
        mode=draft.mode,
        receipt_number=receipt_number,
        paid_at=now,
        plan_id=plan_id,
        note=draft.note or default_note,
        created_by=draft.actor_id,
    )
    return payment_id, receipt_number


class PaymentService:
    def __init__(
        self,
        store: LedgerStore,
        *,
        receipts: Optional[ReceiptNumberGenerator] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._store = store
        self._receipts = receipts or ReceiptNumberGenerator()
        self._clock = clock

    def record_payment(self, member_id: int, draft: PaymentDraft, *, now: Optional[datetime] = None) -> Payment:
        """Ad-hoc fee or deposit. Never touches the member's end date or status."""

        if draft.amount is None:
            raise ValidationError("Amount is required")
        now = now or self._clock()
        member_id = require_positive_int(member_id, "Member")

        with self._store.transaction() as ledger:
            if not ledger.members.get_by_id(member_id):
                raise NotFoundError("Member not found")
            payment_id, receipt_number = insert_payment(
                ledger,
                self._receipts,
                member_id=member_id,
                amount=draft.amount,
                draft=draft,
                now=now,
            )
            payment = ledger.payments.get_by_id(payment_id)

        logger.info("Recorded payment %s (%s) for member %s", receipt_number, draft.mode.value, member_id)
        return payment

    def list_payments(self, criteria: Optional[PaymentFilter] = None) -> Sequence[Payment]:
        with self._store.read() as ledger:
            return ledger.payments.find(criteria or PaymentFilter())

    def history_for_member(self, member_id: int) -> Sequence[Payment]:
        member_id = require_positive_int(member_id, "Member")
        return self.list_payments(PaymentFilter(member_id=member_id))

    @staticmethod
    def parse_filter(args: Mapping[str, object]) -> PaymentFilter:
        mode = args.get("mode")
        return PaymentFilter(
            member_id=optional_int(args.get("member_id", args.get("memberId")), "member_id"),
            search=optional_text(args.get("search")),
            mode=require_choice(mode, PaymentMode, "Payment mode") if mode else None,
            date_from=coerce_date(args.get("date_from", args.get("dateFrom")), "date_from"),
            date_to=coerce_date(args.get("date_to", args.get("dateTo")), "date_to"),
            plan_id=optional_int(args.get("plan_id", args.get("planId")), "plan_id"),
        )
