from __future__ import annotations

import io

from flask import Flask, request, send_file

from ..common.http import json_body, respond, to_dicts
from ..container import Container
from ..core.result import run_operation
from ..payments.service import parse_payment_draft


def register(app: Flask, container: Container) -> None:
    members = container.membership_service
    payments = container.payment_service
    attendance = container.attendance_service

    @app.route("/api/members", methods=["GET"], endpoint="api_members_list")
    def api_members_list():
        args = request.args
        return respond(
            run_operation("list_members", lambda: to_dicts(members.list_members(members.parse_filter(args))))
        )

    @app.route("/api/members", methods=["POST"], endpoint="api_members_enroll")
    def api_members_enroll():
        data = json_body()

        def enroll():
            payment = data.get("payment")
            draft = parse_payment_draft(payment) if isinstance(payment, dict) else None
            member_data = data.get("member") if isinstance(data.get("member"), dict) else data
            return members.enroll(member_data, data.get("plan_id", data.get("planId")), payment=draft).to_dict()

        return respond(run_operation("enroll", enroll, message="Member enrolled"))

    @app.route("/api/members/<int:member_id>", methods=["GET"], endpoint="api_members_get")
    def api_members_get(member_id: int):
        return respond(run_operation("get_member", lambda: members.get_member(member_id).to_dict()))

    @app.route("/api/members/<int:member_id>", methods=["PUT"], endpoint="api_members_update")
    def api_members_update(member_id: int):
        data = json_body()
        return respond(
            run_operation(
                "update_member", lambda: members.update_member(member_id, data).to_dict(), message="Member updated"
            )
        )

    @app.route("/api/members/<int:member_id>/renew", methods=["POST"], endpoint="api_members_renew")
    def api_members_renew(member_id: int):
        data = json_body()

        def renew():
            draft = parse_payment_draft(data)
            return members.renew(member_id, data.get("plan_id", data.get("planId")), draft).to_dict()

        return respond(run_operation("renew", renew, message="Membership renewed"))

    @app.route("/api/members/<int:member_id>/suspend", methods=["POST"], endpoint="api_members_suspend")
    def api_members_suspend(member_id: int):
        return respond(
            run_operation("suspend", lambda: members.suspend(member_id).to_dict(), message="Membership suspended")
        )

    @app.route("/api/members/<int:member_id>/reactivate", methods=["POST"], endpoint="api_members_reactivate")
    def api_members_reactivate(member_id: int):
        return respond(
            run_operation(
                "reactivate", lambda: members.reactivate(member_id).to_dict(), message="Membership reactivated"
            )
        )

    @app.route("/api/members/<int:member_id>/payments", methods=["GET"], endpoint="api_members_payments")
    def api_members_payments(member_id: int):
        return respond(
            run_operation("payment_history", lambda: to_dicts(payments.history_for_member(member_id)))
        )

    @app.route("/api/members/<int:member_id>/qr", methods=["GET"], endpoint="api_members_qr")
    def api_members_qr(member_id: int):
        result = run_operation("member_qr", lambda: attendance.member_qr_png(member_id))
        if not result.success:
            return respond(result)
        return send_file(io.BytesIO(result.data), mimetype="image/png")

    @app.route("/api/members/next-seat", methods=["GET"], endpoint="api_members_next_seat")
    def api_members_next_seat():
        return respond(run_operation("next_seat", lambda: {"seat_no": members.next_seat_number()}))

    @app.route("/api/members/seats", methods=["GET"], endpoint="api_members_seats")
    def api_members_seats():
        return respond(run_operation("seat_utilization", lambda: members.seat_utilization().to_dict()))
