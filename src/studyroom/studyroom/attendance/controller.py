from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, respond, to_dicts
from ..common.validators import require_positive_int
from ..container import Container
from ..core.enums import AttendanceSource
from ..core.result import run_operation


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service

    def _member_id(data: dict) -> int:
        return require_positive_int(data.get("member_id", data.get("memberId")), "member_id")

    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="api_attendance_checkin")
    def api_attendance_checkin():
        data = json_body()
        return respond(
            run_operation(
                "check_in",
                lambda: attendance.check_in(_member_id(data), data.get("source") or AttendanceSource.MANUAL).to_dict(),
                message="Checked in",
            )
        )

    @app.route("/api/attendance/checkout", methods=["POST"], endpoint="api_attendance_checkout")
    def api_attendance_checkout():
        data = json_body()
        return respond(
            run_operation("check_out", lambda: attendance.check_out(_member_id(data)).to_dict(), message="Checked out")
        )

    @app.route("/api/attendance/qr-checkin", methods=["POST"], endpoint="api_attendance_qr_checkin")
    def api_attendance_qr_checkin():
        data = json_body()
        return respond(
            run_operation(
                "check_in_by_qr",
                lambda: attendance.check_in_by_qr(data.get("qr_code") or data.get("code")).to_dict(),
                message="Checked in",
            )
        )

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance_list")
    def api_attendance_list():
        args = request.args
        return respond(run_operation("list_attendance", lambda: to_dicts(attendance.find(attendance.parse_query(args)))))

    @app.route("/api/attendance/today", methods=["GET"], endpoint="api_attendance_today")
    def api_attendance_today():
        return respond(run_operation("today_attendance", lambda: to_dicts(attendance.today())))
