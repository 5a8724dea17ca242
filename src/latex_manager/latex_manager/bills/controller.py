from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import iso_or_none
from ..common.validators import page_args
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import Role
from ..container import Container
from ..users.guards import current_user
from .model import Bill, BillPage


def bill_json(b: Bill) -> dict:
    return {
        "id": b.bill_id,
        "bill_number": b.bill_number,
        "customer_name": b.customer_name,
        "customer_phone": b.customer_phone,
        "customer_user_id": b.customer_user_id,
        "sample_id": b.sample_id,
        "lab_staff": b.lab_staff,
        "drc_percent": str(b.drc_percent),
        "barrel_count": b.barrel_count,
        "latex_volume": str(b.latex_volume),
        "latex_weight": str(b.latex_weight),
        "dry_rubber": str(b.dry_rubber),
        "market_rate": str(b.market_rate),
        "per_kg_rate": str(b.per_kg_rate),
        "total_amount": str(b.total_amount),
        "per_barrel_amount": str(b.per_barrel_amount),
        "status": b.status.value,
        "created_by": b.created_by,
        "created_at": iso_or_none(b.created_at),
        "verified_by": b.verified_by,
        "verified_at": iso_or_none(b.verified_at),
        "accountant_notes": b.accountant_notes,
        "manager_notes": b.manager_notes,
        "rejection_reason": b.rejection_reason,
    }


def _page_json(page: BillPage) -> dict:
    return {
        "success": True,
        "bills": [bill_json(b) for b in page.items],
        "total": page.total,
        "page": page.offset // page.limit + 1,
        "limit": page.limit,
    }


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    bills = container.bill_service

    def _paging() -> tuple[int, int]:
        return page_args(request.args.get("page"), request.args.get("limit"), default_limit=DEFAULT_PAGE_SIZE)

    @app.route("/api/bills", methods=["POST"], endpoint="bills_create")
    @guards.roles_required(Role.ACCOUNTANT)
    def create_bill():
        bill = bills.create_bill(current=current_user(), data=request.get_json(silent=True) or {})
        return jsonify({"success": True, "message": "Bill created successfully", "bill": bill_json(bill)}), 201

    @app.route("/api/bills/accountant", methods=["GET"], endpoint="bills_accountant")
    @guards.roles_required(Role.ACCOUNTANT)
    def accountant_bills():
        limit, offset = _paging()
        page = bills.list_for_accountant(
            current=current_user(), status=request.args.get("status"), limit=limit, offset=offset
        )
        return jsonify(_page_json(page))

    @app.route("/api/bills/manager/pending", methods=["GET"], endpoint="bills_manager_pending")
    @guards.roles_required(Role.MANAGER)
    def manager_pending():
        limit, offset = _paging()
        return jsonify(_page_json(bills.list_pending(limit=limit, offset=offset)))

    @app.route("/api/bills/manager/all", methods=["GET"], endpoint="bills_manager_all")
    @guards.roles_required(Role.MANAGER)
    def manager_all():
        limit, offset = _paging()
        return jsonify(_page_json(bills.list_all(status=request.args.get("status"), limit=limit, offset=offset)))

    @app.route("/api/bills/<int:bill_id>/verify", methods=["PUT"], endpoint="bills_verify")
    @guards.roles_required(Role.MANAGER)
    def verify_bill(bill_id: int):
        data = request.get_json(silent=True) or {}
        bill = bills.verify_bill(current=current_user(), bill_id=bill_id, manager_notes=data.get("manager_notes"))
        return jsonify({"success": True, "message": "Bill verified successfully", "bill": bill_json(bill)})

    @app.route("/api/bills/<int:bill_id>/reject", methods=["PUT"], endpoint="bills_reject")
    @guards.roles_required(Role.MANAGER)
    def reject_bill(bill_id: int):
        data = request.get_json(silent=True) or {}
        bill = bills.reject_bill(
            current=current_user(), bill_id=bill_id, rejection_reason=data.get("rejection_reason", "")
        )
        return jsonify({"success": True, "message": "Bill rejected", "bill": bill_json(bill)})

    @app.route("/api/bills/user/my-bills", methods=["GET"], endpoint="bills_my")
    @guards.roles_required(Role.CUSTOMER)
    def my_bills():
        limit, offset = _paging()
        return jsonify(_page_json(bills.list_for_customer(current=current_user(), limit=limit, offset=offset)))

    @app.route("/api/bills/<int:bill_id>", methods=["GET"], endpoint="bills_get")
    @guards.login_required
    def get_bill(bill_id: int):
        return jsonify({"success": True, "bill": bill_json(bills.get_bill(current=current_user(), bill_id=bill_id))})
