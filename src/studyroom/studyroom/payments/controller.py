from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, respond, to_dicts
from ..common.validators import require_positive_int
from ..container import Container
from ..core.result import run_operation
from .service import parse_payment_draft


def register(app: Flask, container: Container) -> None:
    payments = container.payment_service

    @app.route("/api/payments", methods=["GET"], endpoint="api_payments_list")
    def api_payments_list():
        args = request.args
        return respond(
            run_operation("list_payments", lambda: to_dicts(payments.list_payments(payments.parse_filter(args))))
        )

    @app.route("/api/payments", methods=["POST"], endpoint="api_payments_record")
    def api_payments_record():
        data = json_body()

        def record():
            member_id = require_positive_int(data.get("member_id", data.get("memberId")), "member_id")
            return payments.record_payment(member_id, parse_payment_draft(data)).to_dict()

        return respond(run_operation("record_payment", record, message="Payment recorded"))
