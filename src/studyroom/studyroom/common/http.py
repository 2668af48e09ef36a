from __future__ import annotations

from flask import jsonify, request

from ..core.result import OperationResult


def respond(result: OperationResult):
    return jsonify(result.to_dict()), result.http_status


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def to_dicts(items) -> list:
    return [item.to_dict() for item in items]
