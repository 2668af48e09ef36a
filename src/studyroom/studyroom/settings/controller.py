from __future__ import annotations

from flask import Flask

from ..common.http import json_body, respond
from ..container import Container
from ..core.result import run_operation


def register(app: Flask, container: Container) -> None:
    settings = container.settings_service

    @app.route("/api/settings", methods=["GET"], endpoint="api_settings_get")
    def api_settings_get():
        return respond(run_operation("get_settings", settings.get_all))

    @app.route("/api/settings", methods=["PUT", "POST"], endpoint="api_settings_update")
    def api_settings_update():
        data = json_body()
        return respond(run_operation("update_settings", lambda: settings.update(data), message="Settings saved"))
