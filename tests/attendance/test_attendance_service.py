from __future__ import annotations

from datetime import date

import pytest

from src.studyroom.studyroom.attendance.model import AttendanceQuery
from src.studyroom.studyroom.core.enums import AttendanceSource
from src.studyroom.studyroom.core.exceptions import ConflictError, NotFoundError, ValidationError


def test_second_checkin_same_day_conflicts(container, enroll, clock):
    member = enroll()
    container.attendance_service.check_in(member.member_id)
    clock.advance(minutes=5)

    with pytest.raises(ConflictError, match="Already checked in today"):
        container.attendance_service.check_in(member.member_id)

    assert len(container.attendance_service.list_by_member(member.member_id)) == 1


def test_checkout_then_checkin_again_opens_new_session(container, enroll, clock):
    member = enroll()
    svc = container.attendance_service

    svc.check_in(member.member_id)
    clock.advance(hours=2)
    closed = svc.check_out(member.member_id)
    clock.advance(hours=1)
    reopened = svc.check_in(member.member_id, AttendanceSource.CARD)

    assert closed.check_out is not None
    assert reopened.session_id != closed.session_id
    rows = svc.list_by_date(date(2024, 1, 1))
    assert len(rows) == 2
    assert sum(1 for r in rows if r.check_out is None) == 1


def test_checkout_without_open_session(container, enroll):
    member = enroll()

    with pytest.raises(NotFoundError, match="No active check-in found for today"):
        container.attendance_service.check_out(member.member_id)


def test_checkout_sets_check_out_once(container, enroll, clock):
    member = enroll()
    svc = container.attendance_service
    svc.check_in(member.member_id)
    clock.advance(hours=1)
    first = svc.check_out(member.member_id)
    clock.advance(hours=1)

    with pytest.raises(NotFoundError):
        svc.check_out(member.member_id)
    assert svc.list_by_member(member.member_id)[0].check_out == first.check_out


def test_session_from_previous_day_does_not_block_checkin(container, enroll, clock):
    member = enroll()
    container.attendance_service.check_in(member.member_id)
    clock.set(2024, 1, 2, 9, 0, 0)

    session = container.attendance_service.check_in(member.member_id)

    assert session.check_in.date() == date(2024, 1, 2)


def test_checkin_unknown_member_or_source(container, enroll):
    member = enroll()
    with pytest.raises(NotFoundError):
        container.attendance_service.check_in(999)
    with pytest.raises(ValidationError):
        container.attendance_service.check_in(member.member_id, "telepathy")


def test_checkin_by_qr_code(container, enroll):
    member = enroll()

    session = container.attendance_service.check_in_by_qr(member.qr_code)

    assert session.member_id == member.member_id
    assert session.source == AttendanceSource.QR


def test_today_and_member_projections(container, enroll, clock):
    a = enroll("Anita")
    b = enroll("Bilal")
    svc = container.attendance_service
    svc.check_in(a.member_id)
    svc.check_in(b.member_id)
    clock.set(2024, 1, 2, 10, 0, 0)
    svc.check_in(a.member_id)

    today = svc.today()
    assert [r.member_name for r in today] == ["Anita"]
    assert today[0].phone == a.phone
    assert len(svc.list_by_member(a.member_id)) == 2
    assert len(svc.find(AttendanceQuery(date_from=date(2024, 1, 1), date_to=date(2024, 1, 1)))) == 2


def test_parse_query_rejects_bad_dates(container):
    with pytest.raises(ValidationError):
        container.attendance_service.parse_query({"date": "01/02/2024"})


def test_member_qr_png(container, enroll):
    member = enroll()

    png = container.attendance_service.member_qr_png(member.member_id)

    assert png.startswith(b"\x89PNG")
