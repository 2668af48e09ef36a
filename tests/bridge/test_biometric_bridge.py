from __future__ import annotations

import pytest

from src.studyroom.studyroom.bridge.model import BiometricEvent
from src.studyroom.studyroom.core.enums import AttendanceSource, BiometricEventType
from src.studyroom.studyroom.core.exceptions import ValidationError
from src.studyroom.studyroom.main import get_container

AUTH = {"Authorization": "Bearer secret-token"}


@pytest.fixture
def member(app):
    container = get_container(app)
    plan_id = container.plan_service.list_plans()[0].plan_id
    return container.membership_service.enroll({"name": "Finger Print", "phone": "1"}, plan_id).member


def _verification(member_id, success=True):
    return {"eventType": "VERIFICATION", "memberId": member_id, "success": success, "deviceId": "dev-1"}


def test_wrong_token_is_rejected_and_creates_nothing(app, client, member):
    resp = client.post(
        "/biometric-event", json=_verification(member.member_id), headers={"Authorization": "Bearer wrong"}
    )

    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Unauthorized"}
    assert get_container(app).attendance_service.list_by_member(member.member_id) == []


def test_missing_token_is_rejected_before_parsing(client):
    resp = client.post("/biometric-event", data="{not json", content_type="application/json")

    assert resp.status_code == 401


def test_malformed_json(client):
    resp = client.post("/biometric-event", data="{not json", content_type="application/json", headers=AUTH)

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid JSON"}


def test_missing_required_fields(client):
    resp = client.post("/biometric-event", json={"memberId": 1}, headers=AUTH)

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid event"}


def test_verification_checks_member_in(app, client, member):
    resp = client.post("/biometric-event", json=_verification(member.member_id), headers=AUTH)

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "result": "checked_in"}
    rows = get_container(app).attendance_service.list_by_member(member.member_id)
    assert len(rows) == 1
    assert rows[0].source == AttendanceSource.BIOMETRIC


def test_duplicate_event_is_reported_and_creates_no_second_session(app, client, member):
    client.post("/biometric-event", json=_verification(member.member_id), headers=AUTH)
    resp = client.post("/biometric-event", json=_verification(member.member_id), headers=AUTH)

    assert resp.status_code == 200
    assert resp.get_json()["result"] == "duplicate"
    assert len(get_container(app).attendance_service.list_by_member(member.member_id)) == 1


def test_failed_verification_is_only_logged(app, client, member):
    resp = client.post("/biometric-event", json=_verification(member.member_id, success=False), headers=AUTH)

    assert resp.get_json()["result"] == "logged"
    assert get_container(app).attendance_service.list_by_member(member.member_id) == []


def test_unknown_member_is_ignored(client):
    resp = client.post("/biometric-event", json=_verification(4242), headers=AUTH)

    assert resp.status_code == 200
    assert resp.get_json()["result"] == "ignored"


def test_enrollment_stores_biometric_ref(app, client, member):
    event = {"eventType": "ENROLLMENT", "memberId": member.member_id, "success": True, "templateId": "tpl-9"}

    resp = client.post("/biometric-event", json=event, headers=AUTH)

    assert resp.get_json()["result"] == "enrolled"
    updated = get_container(app).membership_service.get_member(member.member_id)
    assert updated.biometric_ref == "tpl-9"


def test_listeners_and_recent_buffer(app, client, member):
    seen = []
    get_container(app).bridge_handler.add_listener(seen.append)

    def broken_listener(_event):
        raise RuntimeError("listener bug")

    get_container(app).bridge_handler.add_listener(broken_listener)
    client.post("/biometric-event", json=_verification(member.member_id), headers=AUTH)
    client.post("/biometric-event", json=_verification(member.member_id), headers=AUTH)

    assert [e.result for e in seen] == ["checked_in", "duplicate"]
    resp = client.get("/biometric-events/recent", headers=AUTH)
    assert resp.status_code == 200
    assert [e["result"] for e in resp.get_json()["data"]] == ["duplicate", "checked_in"]
    assert client.get("/biometric-events/recent").status_code == 401


def test_event_parsing():
    event = BiometricEvent.parse({"eventType": "verification", "memberId": "12", "success": True})

    assert event.event_type == BiometricEventType.VERIFICATION
    assert event.member_id == 12
    for bad in (
        [],
        {"eventType": "PING", "success": True},
        {"eventType": "ENROLLMENT", "success": "yes"},
        {"eventType": "VERIFICATION", "success": True, "memberId": 0},
    ):
        with pytest.raises(ValidationError):
            BiometricEvent.parse(bad)
