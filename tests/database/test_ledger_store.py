from __future__ import annotations

from datetime import datetime

import pytest

from src.studyroom.studyroom.core.enums import AttendanceSource
from src.studyroom.studyroom.core.exceptions import ConflictError, ValidationError
from src.studyroom.studyroom.database.bootstrap import apply_schema, list_tables, seed_defaults


def test_schema_and_seed_are_idempotent(container):
    apply_schema(container.conn)
    container.settings_service.update({"notification_days": "4"})
    seed_defaults(container.conn, overrides={"notification_days": "12"})

    assert {"members", "payments", "attendance", "notifications", "settings", "membership_plans"} <= set(
        list_tables(container.conn)
    )
    assert len(container.plan_service.list_plans()) == 4
    assert container.settings_service.get_int("notification_days", 0) == 4


def test_open_session_index_backs_up_the_service_check(container, enroll):
    member = enroll()
    at = datetime(2024, 1, 1, 9, 0, 0)

    with container.store.transaction() as ledger:
        ledger.attendance.create_checkin(member_id=member.member_id, check_in=at, source=AttendanceSource.MANUAL)

    with pytest.raises(ConflictError, match="Already checked in today"):
        with container.store.transaction() as ledger:
            ledger.attendance.create_checkin(
                member_id=member.member_id, check_in=at.replace(hour=10), source=AttendanceSource.CARD
            )


def test_transaction_rolls_back_every_write_on_error(container, enroll):
    member = enroll()

    with pytest.raises(RuntimeError):
        with container.store.transaction() as ledger:
            ledger.members.update_fields(member_id=member.member_id, fields={"city": "Goa"}, now=datetime(2024, 1, 1))
            raise RuntimeError("abort")

    assert container.membership_service.get_member(member.member_id).city is None


def test_check_constraint_becomes_validation_error(container):
    with pytest.raises(ValidationError):
        with container.store.transaction() as ledger:
            ledger.plans.create(name="Broken", duration_days=0, price=10, description=None)


def test_referenced_plan_cannot_be_deleted(container, enroll, monthly_plan_id):
    enroll()

    with pytest.raises(ConflictError, match="in use"):
        container.plan_service.delete_plan(monthly_plan_id)
