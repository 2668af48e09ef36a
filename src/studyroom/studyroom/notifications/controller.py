from __future__ import annotations

from flask import Flask, request

from ..common.http import respond, to_dicts
from ..common.validators import optional_int, require_choice
from ..container import Container
from ..core.enums import NotificationStatus
from ..core.result import run_operation


def register(app: Flask, container: Container) -> None:
    notifications = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="api_notifications_list")
    def api_notifications_list():
        args = request.args

        def list_recent():
            status = args.get("status")
            return to_dicts(
                notifications.list_recent(
                    member_id=optional_int(args.get("member_id"), "member_id"),
                    status=require_choice(status, NotificationStatus, "Status") if status else None,
                    limit=optional_int(args.get("limit"), "limit") or 100,
                )
            )

        return respond(run_operation("list_notifications", list_recent))
