from __future__ import annotations

import json
import logging

from flask import Flask, jsonify, request

from ..common.validators import optional_int
from ..container import Container
from ..core.exceptions import DomainError, Unauthorized, ValidationError
from .model import BiometricEvent

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    handler = container.bridge_handler

    @app.route("/biometric-event", methods=["POST"], endpoint="biometric_event")
    def biometric_event():
        try:
            handler.authorize(request.headers.get("Authorization"))
        except Unauthorized:
            logger.warning("Rejected biometric event from %s: bad token", request.remote_addr)
            return jsonify({"error": "Unauthorized"}), 401

        try:
            data = json.loads(request.get_data(as_text=True) or "")
        except ValueError:
            return jsonify({"error": "Invalid JSON"}), 400
        try:
            event = BiometricEvent.parse(data)
        except ValidationError:
            return jsonify({"error": "Invalid event"}), 400

        try:
            processed = handler.handle(event)
        except DomainError as e:
            logger.error("Biometric event could not be processed: %s", e)
            return jsonify({"error": str(e)}), 500
        except Exception:
            logger.exception("Biometric event could not be processed")
            return jsonify({"error": "Internal error"}), 500
        return jsonify({"success": True, "result": processed.result}), 200

    @app.route("/biometric-events/recent", methods=["GET"], endpoint="biometric_events_recent")
    def biometric_events_recent():
        try:
            handler.authorize(request.headers.get("Authorization"))
        except Unauthorized:
            return jsonify({"error": "Unauthorized"}), 401
        try:
            limit = optional_int(request.args.get("limit"), "limit")
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e), "error": e.kind}), 400
        return jsonify({"success": True, "data": [e.to_dict() for e in handler.recent(limit)]}), 200
