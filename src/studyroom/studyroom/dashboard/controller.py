from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import coerce_date
from ..common.http import respond, to_dicts
from ..container import Container
from ..core.result import run_operation


def _date_range():
    args = request.args
    return (
        coerce_date(args.get("date_from", args.get("dateFrom")), "date_from"),
        coerce_date(args.get("date_to", args.get("dateTo")), "date_to"),
    )


def register(app: Flask, container: Container) -> None:
    dashboard = container.dashboard_service

    @app.route("/api/dashboard/summary", methods=["GET"], endpoint="api_dashboard_summary")
    def api_dashboard_summary():
        raw_day = request.args.get("date")
        return respond(
            run_operation(
                "daily_summary", lambda: dashboard.daily_summary(coerce_date(raw_day, "date")).to_dict()
            )
        )

    @app.route("/api/reports/attendance", methods=["GET"], endpoint="api_report_attendance")
    def api_report_attendance():
        return respond(run_operation("attendance_report", lambda: to_dicts(dashboard.attendance_report(*_date_range()))))

    @app.route("/api/reports/payments", methods=["GET"], endpoint="api_report_payments")
    def api_report_payments():
        return respond(run_operation("payment_report", lambda: to_dicts(dashboard.payment_report(*_date_range()))))
