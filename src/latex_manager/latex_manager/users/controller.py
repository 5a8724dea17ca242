from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import iso_or_none
from ..core.enums import Role
from ..container import Container
from .guards import current_user
from .model import StaffSummary, User


def user_json(user: User) -> dict:
    return {
        "id": user.user_id,
        "name": user.full_name,
        "email": user.email,
        "role": user.role.value,
        "staff_id": user.staff_id,
        "phone": user.phone,
        "rfid_uid": user.rfid_uid,
        "is_active": user.is_active,
        "created_at": iso_or_none(user.created_at),
    }


def staff_json(staff: StaffSummary) -> dict:
    return {
        "id": staff.user_id,
        "name": staff.full_name,
        "email": staff.email,
        "role": staff.role.value,
        "staff_id": staff.staff_id,
        "phone": staff.phone,
    }


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = request.get_json(silent=True) or {}
        result = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        u = result.user
        return jsonify(
            {
                "success": True,
                "token": result.token,
                "user": {"id": u.user_id, "name": u.full_name, "role": u.role.value},
            }
        )

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def register_customer():
        data = request.get_json(silent=True) or {}
        user = container.user_service.register_customer(
            full_name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            phone=data.get("phone"),
        )
        return jsonify({"success": True, "user": user_json(user)}), 201

    @app.route("/api/users/me", methods=["GET"], endpoint="users_me")
    @guards.login_required
    def me():
        return jsonify({"success": True, "user": user_json(current_user())})

    @app.route("/api/users/all-staff", methods=["GET"], endpoint="users_all_staff")
    @guards.roles_required(Role.MANAGER, Role.ACCOUNTANT)
    def all_staff():
        staff = container.user_service.list_all_staff()
        return jsonify({"success": True, "staff": [staff_json(s) for s in staff], "count": len(staff)})

    @app.route("/api/users", methods=["POST"], endpoint="users_create")
    @guards.roles_required(Role.MANAGER)
    def create_user():
        data = request.get_json(silent=True) or {}
        user = container.user_service.create_account(
            current=current_user(),
            full_name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            role=data.get("role", ""),
            staff_id=data.get("staff_id"),
            phone=data.get("phone"),
        )
        return jsonify({"success": True, "user": user_json(user)}), 201

    @app.route("/api/users/<int:user_id>/rfid", methods=["PUT"], endpoint="users_assign_rfid")
    @guards.roles_required(Role.MANAGER)
    def assign_rfid(user_id: int):
        data = request.get_json(silent=True) or {}
        user = container.user_service.assign_rfid(user_id=user_id, rfid_uid=data.get("rfid_uid"))
        return jsonify({"success": True, "user": user_json(user)})
