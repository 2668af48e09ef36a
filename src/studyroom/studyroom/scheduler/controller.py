from __future__ import annotations

from flask import Flask

from ..common.http import respond, to_dicts
from ..container import Container
from ..core.result import run_operation


def register(app: Flask, container: Container) -> None:
    scheduler = container.scheduler_service
    backups = container.backup_manager

    @app.route("/api/scheduler/status", methods=["GET"], endpoint="api_scheduler_status")
    def api_scheduler_status():
        return respond(run_operation("scheduler_status", scheduler.get_status))

    @app.route("/api/scheduler/backup", methods=["POST"], endpoint="api_scheduler_backup")
    def api_scheduler_backup():
        return respond(run_operation("trigger_backup", scheduler.trigger_backup, message="Backup created"))

    @app.route("/api/scheduler/reminders", methods=["POST"], endpoint="api_scheduler_reminders")
    def api_scheduler_reminders():
        return respond(
            run_operation("trigger_expiry_reminders", scheduler.trigger_expiry_reminders, message="Reminders processed")
        )

    @app.route("/api/scheduler/jobs/<name>/run", methods=["POST"], endpoint="api_scheduler_run_job")
    def api_scheduler_run_job(name: str):
        return respond(run_operation("run_job", lambda: scheduler.run_job(name), message=f"Job {name} finished"))

    @app.route("/api/backups", methods=["GET"], endpoint="api_backups_list")
    def api_backups_list():
        return respond(run_operation("list_backups", lambda: to_dicts(backups.list_backups())))
