from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import iso_or_none
from ..common.validators import parse_int_arg
from ..core.constants import DEFAULT_RECENT_TASKS
from ..core.enums import Role
from ..container import Container
from ..users.guards import current_user
from .model import DeliveryTask


def task_json(t: DeliveryTask) -> dict:
    loc = t.pickup_location
    return {
        "id": t.task_id,
        "title": t.title,
        "assigned_to": t.assigned_to,
        "customer_user_id": t.customer_user_id,
        "pickup_address": t.pickup_address,
        "drop_address": t.drop_address,
        "pickup_lat": str(loc.lat) if loc else None,
        "pickup_lng": str(loc.lng) if loc else None,
        "scheduled_at": iso_or_none(t.scheduled_at),
        "notes": t.notes,
        "status": t.status.value,
        "created_by": t.created_by,
        "created_at": iso_or_none(t.created_at),
        "updated_at": iso_or_none(t.updated_at),
    }


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    delivery = container.delivery_service

    @app.route("/api/delivery", methods=["POST"], endpoint="delivery_assign")
    @guards.roles_required(Role.MANAGER)
    def assign():
        task = delivery.assign(current=current_user(), data=request.get_json(silent=True) or {})
        return jsonify({"success": True, "task": task_json(task)}), 201

    @app.route("/api/delivery", methods=["GET"], endpoint="delivery_recent")
    @guards.roles_required(Role.MANAGER)
    def recent():
        tasks = delivery.list_recent(
            current=current_user(),
            limit=parse_int_arg(request.args.get("limit"), "limit", default=DEFAULT_RECENT_TASKS),
            status=request.args.get("status"),
        )
        return jsonify({"success": True, "tasks": [task_json(t) for t in tasks], "count": len(tasks)})

    @app.route("/api/delivery/my", methods=["GET"], endpoint="delivery_my")
    @guards.roles_required(Role.STAFF, Role.ACCOUNTANT, Role.MANAGER)
    def my_tasks():
        staff_id = request.args.get("staff_id")
        tasks = delivery.list_for_assignee(
            current=current_user(),
            staff_user_id=parse_int_arg(staff_id, "staff_id", default=0) if staff_id else None,
        )
        return jsonify({"success": True, "tasks": [task_json(t) for t in tasks], "count": len(tasks)})

    @app.route("/api/delivery/<int:task_id>", methods=["GET"], endpoint="delivery_get")
    @guards.login_required
    def get_task(task_id: int):
        return jsonify({"success": True, "task": task_json(delivery.get(current=current_user(), task_id=task_id))})

    @app.route("/api/delivery/<int:task_id>/status", methods=["PUT"], endpoint="delivery_status")
    @guards.login_required
    def update_status(task_id: int):
        data = request.get_json(silent=True) or {}
        task = delivery.advance_status(current=current_user(), task_id=task_id, status=data.get("status"))
        return jsonify({"success": True, "task": task_json(task)})
