from __future__ import annotations


def _enroll(client, **overrides):
    plans = client.get("/api/plans").get_json()["data"]
    body = {"name": "Api Member", "phone": "9000000000", "plan_id": plans[0]["id"], "seat_no": "5"}
    body.update(overrides)
    return client.post("/api/members", json=body)


def test_enroll_and_fetch_member(client):
    resp = _enroll(client, payment={"mode": "cash"})

    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["success"] is True
    member = payload["data"]["member"]
    assert member["end_date"] == "2024-01-31"
    assert payload["data"]["receipt_number"].startswith("RCP-")

    fetched = client.get(f"/api/members/{member['id']}").get_json()["data"]
    assert fetched["seat_no"] == "5"


def test_error_kinds_map_to_http_status(client):
    assert client.get("/api/members/999").status_code == 404
    assert _enroll(client, name="").status_code == 400

    _enroll(client)
    conflict = _enroll(client, name="Second")
    assert conflict.status_code == 409
    assert conflict.get_json()["error"] == "conflict"


def test_renew_and_payments_routes(client, clock):
    member = _enroll(client).get_json()["data"]["member"]
    clock.set(2024, 1, 20, 10, 0, 0)

    resp = client.post(f"/api/members/{member['id']}/renew", json={"plan_id": member["plan_id"], "mode": "upi"})

    assert resp.status_code == 200
    assert resp.get_json()["data"]["new_end_date"] == "2024-03-01"
    payments = client.get(f"/api/payments?member_id={member['id']}").get_json()["data"]
    assert [p["mode"] for p in payments] == ["upi"]


def test_suspended_member_cannot_renew(client):
    member = _enroll(client).get_json()["data"]["member"]
    client.post(f"/api/members/{member['id']}/suspend")

    resp = client.post(f"/api/members/{member['id']}/renew", json={"plan_id": member["plan_id"]})

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "state"


def test_attendance_routes(client):
    member = _enroll(client).get_json()["data"]["member"]

    assert client.post("/api/attendance/checkin", json={"member_id": member["id"]}).status_code == 200
    assert client.post("/api/attendance/checkin", json={"member_id": member["id"]}).status_code == 409
    today = client.get("/api/attendance/today").get_json()["data"]
    assert [r["member_name"] for r in today] == ["Api Member"]
    assert client.post("/api/attendance/checkout", json={"member_id": member["id"]}).status_code == 200
    assert client.post("/api/attendance/checkout", json={"member_id": member["id"]}).status_code == 404
    by_date = client.get("/api/attendance?date=2024-01-01").get_json()["data"]
    assert len(by_date) == 1


def test_plan_in_use_cannot_be_deleted(client):
    member = _enroll(client).get_json()["data"]["member"]

    resp = client.delete(f"/api/plans/{member['plan_id']}")

    assert resp.status_code == 409


def test_member_qr_image(client):
    member = _enroll(client).get_json()["data"]["member"]

    resp = client.get(f"/api/members/{member['id']}/qr")

    assert resp.status_code == 200
    assert resp.mimetype == "image/png"


def test_seats_settings_dashboard_and_scheduler(client):
    _enroll(client)

    seats = client.get("/api/members/seats").get_json()["data"]
    assert seats["occupied"] == 1
    assert client.get("/api/members/next-seat").get_json()["data"] == {"seat_no": 1}

    client.put("/api/settings", json={"general.totalSeats": "10"})
    assert client.get("/api/settings").get_json()["data"]["general.totalSeats"] == "10"

    summary = client.get("/api/dashboard/summary").get_json()["data"]
    assert summary["new_members"] == 1

    status = client.get("/api/scheduler/status").get_json()["data"]
    assert status["is_running"] is False
    assert {j["name"] for j in status["jobs"]} == {"expiry_sweep", "expiry_reminders", "notification_cleanup", "backup"}
    assert client.post("/api/scheduler/jobs/unknown/run").status_code == 404
    assert client.post("/api/scheduler/backup").status_code == 200
    assert len(client.get("/api/backups").get_json()["data"]) == 1


def test_report_routes(client):
    member = _enroll(client, payment={"mode": "upi"}).get_json()["data"]["member"]
    client.post("/api/attendance/checkin", json={"member_id": member["id"]})

    attendance = client.get("/api/reports/attendance?date_from=2024-01-01&date_to=2024-01-31").get_json()["data"]
    assert [(r["member_name"], r["visit_count"]) for r in attendance] == [("Api Member", 1)]

    payments = client.get("/api/reports/payments?dateFrom=2024-01-01&dateTo=2024-01-01").get_json()["data"]
    assert [(p["payment_date"], p["mode"], p["transaction_count"]) for p in payments] == [("2024-01-01", "upi", 1)]

    assert client.get("/api/reports/payments?date_from=2024-01-02&date_to=2024-01-01").status_code == 400
    assert client.get("/api/reports/attendance?date_from=yesterday").status_code == 400


def test_non_numeric_ids_are_client_errors(client):
    resp = client.post("/api/attendance/checkin", json={"member_id": "abc"})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation"
    assert client.post("/api/payments", json={"member_id": "x", "amount": 5}).status_code == 400
