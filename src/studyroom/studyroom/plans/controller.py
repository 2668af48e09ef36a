from __future__ import annotations

from flask import Flask

from ..common.http import json_body, respond, to_dicts
from ..container import Container
from ..core.result import run_operation


def register(app: Flask, container: Container) -> None:
    plans = container.plan_service

    @app.route("/api/plans", methods=["GET"], endpoint="api_plans_list")
    def api_plans_list():
        return respond(run_operation("list_plans", lambda: to_dicts(plans.list_plans())))

    @app.route("/api/plans", methods=["POST"], endpoint="api_plans_create")
    def api_plans_create():
        data = json_body()
        return respond(run_operation("add_plan", lambda: plans.add_plan(data).to_dict(), message="Plan created"))

    @app.route("/api/plans/<int:plan_id>", methods=["GET"], endpoint="api_plans_get")
    def api_plans_get(plan_id: int):
        return respond(run_operation("get_plan", lambda: plans.get_plan(plan_id).to_dict()))

    @app.route("/api/plans/<int:plan_id>", methods=["PUT"], endpoint="api_plans_update")
    def api_plans_update(plan_id: int):
        data = json_body()
        return respond(
            run_operation("update_plan", lambda: plans.update_plan(plan_id, data).to_dict(), message="Plan updated")
        )

    @app.route("/api/plans/<int:plan_id>", methods=["DELETE"], endpoint="api_plans_delete")
    def api_plans_delete(plan_id: int):
        return respond(run_operation("delete_plan", lambda: plans.delete_plan(plan_id), message="Plan deleted"))
