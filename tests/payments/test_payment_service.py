from __future__ import annotations

from datetime import date

import pytest

from src.studyroom.studyroom.core.enums import PaymentMode
from src.studyroom.studyroom.core.exceptions import NotFoundError, ValidationError
from src.studyroom.studyroom.payments.model import PaymentDraft, PaymentFilter
from src.studyroom.studyroom.payments.receipts import ReceiptNumberGenerator
from src.studyroom.studyroom.payments.service import PaymentService, parse_payment_draft


def test_receipt_numbers_strictly_increase_within_same_millisecond():
    gen = ReceiptNumberGenerator(clock_ms=lambda: 1700000000000)

    numbers = [gen.next() for _ in range(3)]

    assert numbers == ["RCP-1700000000000", "RCP-1700000000001", "RCP-1700000000002"]


def test_parse_payment_draft_accepts_camel_case():
    draft = parse_payment_draft({"mode": "upi", "amount": "150.5", "receiptNumber": "R-1", "actorId": "3"})

    assert draft == PaymentDraft(mode=PaymentMode.UPI, amount=150.5, receipt_number="R-1", actor_id=3)


def test_parse_payment_draft_rejects_unknown_mode_and_negative_amount():
    with pytest.raises(ValidationError):
        parse_payment_draft({"mode": "barter"})
    with pytest.raises(ValidationError):
        parse_payment_draft({"amount": -1})


def test_record_payment_requires_amount_and_member(container, enroll):
    member = enroll()
    with pytest.raises(ValidationError):
        container.payment_service.record_payment(member.member_id, PaymentDraft())
    with pytest.raises(NotFoundError):
        container.payment_service.record_payment(999, PaymentDraft(amount=10))


def test_payments_are_append_only_and_filterable(container, enroll, clock):
    a = enroll("Anita")
    b = enroll("Bilal")
    svc = container.payment_service
    svc.record_payment(a.member_id, PaymentDraft(mode=PaymentMode.CASH, amount=100))
    clock.set(2024, 1, 5, 12, 0, 0)
    svc.record_payment(b.member_id, PaymentDraft(mode=PaymentMode.CARD, amount=200))

    assert len(svc.list_payments()) == 2
    assert [p.member_name for p in svc.list_payments(PaymentFilter(mode=PaymentMode.CARD))] == ["Bilal"]
    assert [p.amount for p in svc.list_payments(PaymentFilter(date_from=date(2024, 1, 2)))] == [200]
    assert [p.member_name for p in svc.list_payments(PaymentFilter(search="Anit"))] == ["Anita"]
    assert not hasattr(svc, "delete_payment")


def test_parse_filter():
    criteria = PaymentService.parse_filter({"memberId": "4", "mode": "cash", "date_from": "2024-01-01"})

    assert criteria == PaymentFilter(member_id=4, mode=PaymentMode.CASH, date_from=date(2024, 1, 1))
