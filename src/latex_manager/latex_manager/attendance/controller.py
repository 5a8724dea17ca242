from __future__ import annotations

import hmac

from flask import Flask, jsonify, request

from ..common.datetime_utils import iso_or_none, parse_iso_date, parse_iso_datetime
from ..common.validators import page_args
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import PunchType, Role
from ..core.exceptions import AuthenticationError, ValidationError
from ..container import Container
from ..users.controller import staff_json
from ..users.guards import current_user
from .model import AttendanceRecord, AttendanceRow


def record_json(r: AttendanceRecord | None) -> dict | None:
    if r is None:
        return None
    return {
        "id": r.attendance_id,
        "staff_id": r.user_id,
        "date": r.work_date.isoformat(),
        "check_in": iso_or_none(r.check_in_time),
        "check_out": iso_or_none(r.check_out_time),
        "status": r.status.value,
        "source": r.source.value,
        "location": r.location,
        "notes": r.notes,
        "marked_by": r.marked_by,
    }


def _row_json(row: AttendanceRow) -> dict:
    out = record_json(row.record)
    out["staff"] = staff_json(row.staff)
    return out


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    attendance = container.attendance_service

    def _require_device_key() -> None:
        expected = container.rfid_device_key
        supplied = request.headers.get("X-Device-Key", "")
        if not expected or not hmac.compare_digest(supplied.encode(), expected.encode()):
            raise AuthenticationError("Unknown RFID device")

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @guards.roles_required(Role.STAFF, Role.ACCOUNTANT, Role.MANAGER)
    def mark():
        data = request.get_json(silent=True) or {}
        record = attendance.mark_own(
            current=current_user(),
            punch=data.get("type"),
            location=data.get("location"),
            notes=data.get("notes"),
        )
        message = "Checked out" if record.check_out_time else "Checked in"
        return jsonify({"success": True, "message": message, "attendance": record_json(record)})

    @app.route("/api/attendance/rfid", methods=["POST"], endpoint="attendance_rfid")
    def rfid():
        _require_device_key()
        data = request.get_json(silent=True) or {}
        result = attendance.rfid_scan(uid=data.get("uid"), reader_date=data.get("date"), reader_time=data.get("time"))
        label = "Check-in" if result.action == PunchType.CHECK_IN else "Check-out"
        return jsonify(
            {
                "success": True,
                "message": f"{label} successful",
                "action": result.action.value,
                "user": {"name": result.user.full_name, "staff_id": result.user.staff_id, "email": result.user.email},
                "attendance": record_json(result.record),
            }
        )

    @app.route("/api/attendance/admin/mark", methods=["POST"], endpoint="attendance_admin_mark")
    @guards.roles_required(Role.MANAGER, Role.ACCOUNTANT)
    def admin_mark():
        data = request.get_json(silent=True) or {}
        try:
            staff_user_id = int(data.get("staff_id"))
        except (TypeError, ValueError):
            raise ValidationError("Staff ID and type are required")

        timestamp = data.get("timestamp")
        record = attendance.mark_for_staff(
            current=current_user(),
            staff_user_id=staff_user_id,
            punch=data.get("type"),
            location=data.get("location"),
            notes=data.get("notes"),
            now=parse_iso_datetime(timestamp) if timestamp else None,
        )
        return jsonify({"success": True, "attendance": record_json(record)})

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @guards.login_required
    def today():
        return jsonify({"success": True, "attendance": record_json(attendance.today(current=current_user()))})

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @guards.login_required
    def history():
        limit, offset = page_args(request.args.get("page"), request.args.get("limit"), default_limit=DEFAULT_HISTORY_LIMIT)
        from_s = request.args.get("fromDate")
        to_s = request.args.get("toDate")
        page = attendance.history(
            current=current_user(),
            start_date=parse_iso_date(from_s) if from_s else None,
            end_date=parse_iso_date(to_s) if to_s else None,
            limit=limit,
            offset=offset,
        )
        return jsonify(
            {
                "success": True,
                "attendance": [record_json(r) for r in page.items],
                "total": page.total,
                "page": page.offset // page.limit + 1,
                "limit": page.limit,
            }
        )

    @app.route("/api/attendance/today-all", methods=["GET"], endpoint="attendance_today_all")
    @guards.roles_required(Role.MANAGER, Role.ACCOUNTANT)
    def today_all():
        date_s = request.args.get("date")
        daily = attendance.today_all(
            current=current_user(),
            work_date=parse_iso_date(date_s) if date_s else None,
            source=request.args.get("source"),
        )
        return jsonify(
            {
                "success": True,
                "date": daily.work_date.isoformat(),
                "attendance": [_row_json(r) for r in daily.rows],
                "absent": [staff_json(s) for s in daily.absent],
                "count": len(daily.rows),
            }
        )
