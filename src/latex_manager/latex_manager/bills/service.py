from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_non_empty, require_positive_amount, require_positive_int
from ..core.constants import BILL_NUMBER_ATTEMPTS, DEFAULT_PAGE_SIZE
from ..core.enums import BillStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .calculator import AMOUNT_LIMITS, CENT, HUNDRED, MAX_BARREL_COUNT, MAX_MEASUREMENT, compute_bill_amounts
from .model import Bill, BillPage, NewBill
from .numbering import month_prefix, next_bill_number
from .repository import BillRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TotalMismatch:
    bill_id: int
    bill_number: str
    field: str
    stored: str
    expected: str


class BillService:
    def __init__(self, bills: BillRepository, users: UserRepository):
        self._bills = bills
        self._users = users

    def _parse_status(self, value: Optional[str]) -> Optional[BillStatus]:
        if not value or value == "all":
            return None
        try:
            return BillStatus(value)
        except ValueError:
            raise ValidationError(f"Unknown bill status {value!r}")

    def _build_new_bill(self, data: Mapping[str, Any], *, created_by: int) -> NewBill:
        customer_name = require_non_empty(data.get("customer_name"), "Customer name")
        drc_percent = require_positive_amount(data.get("drc_percent"), "DRC percent", places=CENT, max_value=HUNDRED)
        barrel_count = require_positive_int(data.get("barrel_count"), "Barrel count")
        latex_volume = require_positive_amount(
            data.get("latex_volume"), "Latex volume", places=CENT, max_value=MAX_MEASUREMENT
        )
        market_rate = require_positive_amount(
            data.get("market_rate"), "Market rate", places=CENT, max_value=MAX_MEASUREMENT
        )

        if barrel_count > MAX_BARREL_COUNT:
            raise ValidationError(f"Barrel count cannot exceed {MAX_BARREL_COUNT}")

        customer_user_id = data.get("customer_user_id")
        if customer_user_id not in (None, ""):
            try:
                customer_user_id = int(customer_user_id)
            except (TypeError, ValueError):
                raise ValidationError("Customer user id must be an integer")
            customer = self._users.get_by_id(customer_user_id)
            if not customer or customer.role != Role.CUSTOMER:
                raise ValidationError("Customer account does not exist")
        else:
            customer_user_id = None

        amounts = compute_bill_amounts(
            latex_volume=latex_volume,
            drc_percent=drc_percent,
            market_rate=market_rate,
            barrel_count=barrel_count,
        )
        for field, limit in AMOUNT_LIMITS.items():
            if getattr(amounts, field) > limit:
                raise ValidationError(f"Bill is too large: {field.replace('_', ' ')} would exceed {limit}")

        return NewBill(
            customer_name=customer_name,
            customer_phone=optional_text(data.get("customer_phone")),
            customer_user_id=customer_user_id,
            sample_id=optional_text(data.get("sample_id")),
            lab_staff=optional_text(data.get("lab_staff")),
            drc_percent=amounts.drc_percent,
            barrel_count=barrel_count,
            latex_volume=amounts.latex_volume,
            latex_weight=amounts.latex_weight,
            dry_rubber=amounts.dry_rubber,
            market_rate=amounts.market_rate,
            per_kg_rate=amounts.per_kg_rate,
            total_amount=amounts.total_amount,
            per_barrel_amount=amounts.per_barrel_amount,
            created_by=created_by,
            accountant_notes=optional_text(data.get("accountant_notes")),
        )

    def create_bill(self, *, current: User, data: Mapping[str, Any], now: datetime | None = None) -> Bill:
        if current.role != Role.ACCOUNTANT:
            raise AuthorizationError("Only accountants can create bills")

        now = now or now_local()
        new_bill = self._build_new_bill(data, created_by=current.user_id)

        # The unique key on bill_number settles races; retry with the next sequence.
        for _ in range(BILL_NUMBER_ATTEMPTS):
            number = next_bill_number(now, self._bills.last_number_with_prefix(month_prefix(now)))
            try:
                bill_id = self._bills.create(new_bill, bill_number=number, created_at=now)
            except ConflictError:
                logger.warning("Bill number %s taken concurrently, retrying", number)
                continue
            logger.info("Bill %s created by %s: total %s", number, current.user_id, new_bill.total_amount)
            return self._bills.get_by_id(bill_id)

        raise ConflictError("Could not allocate a bill number, please retry")

    def _decide(
        self,
        *,
        current: User,
        bill_id: int,
        status: BillStatus,
        now: datetime | None,
        manager_notes: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> Bill:
        if current.role != Role.MANAGER:
            raise AuthorizationError("Only managers can verify bills")

        bill = self._bills.get_by_id(int(bill_id))
        if not bill:
            raise NotFoundError("Bill not found")
        if bill.status != BillStatus.PENDING:
            raise ConflictError(f"Bill is already {bill.status.value}")

        decided = self._bills.decide(
            bill_id=bill.bill_id,
            status=status,
            decided_by=current.user_id,
            decided_at=now or now_local(),
            manager_notes=optional_text(manager_notes),
            rejection_reason=rejection_reason,
        )
        if not decided:
            raise ConflictError("Bill was decided by someone else")

        logger.info("Bill %s %s by manager %s", bill.bill_number, status.value, current.user_id)
        return self._bills.get_by_id(bill.bill_id)

    def verify_bill(self, *, current: User, bill_id: int, manager_notes: Optional[str] = None, now: datetime | None = None) -> Bill:
        return self._decide(
            current=current,
            bill_id=bill_id,
            status=BillStatus.VERIFIED,
            now=now,
            manager_notes=manager_notes,
        )

    def reject_bill(self, *, current: User, bill_id: int, rejection_reason: str, now: datetime | None = None) -> Bill:
        if current.role != Role.MANAGER:
            raise AuthorizationError("Only managers can reject bills")
        reason = require_non_empty(rejection_reason, "Rejection reason")
        return self._decide(
            current=current,
            bill_id=bill_id,
            status=BillStatus.REJECTED,
            now=now,
            rejection_reason=reason,
        )

    def list_for_customer(self, *, current: User, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> BillPage:
        return self._bills.list_bills(customer_user_id=current.user_id, limit=limit, offset=offset)

    def list_for_accountant(
        self, *, current: User, status: Optional[str] = None, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0
    ) -> BillPage:
        return self._bills.list_bills(
            created_by=current.user_id,
            status=self._parse_status(status),
            limit=limit,
            offset=offset,
        )

    def list_pending(self, *, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> BillPage:
        return self._bills.list_bills(status=BillStatus.PENDING, limit=limit, offset=offset)

    def list_all(self, *, status: Optional[str] = None, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0) -> BillPage:
        return self._bills.list_bills(status=self._parse_status(status), limit=limit, offset=offset)

    def get_bill(self, *, current: User, bill_id: int) -> Bill:
        bill = self._bills.get_by_id(int(bill_id))
        if not bill:
            raise NotFoundError("Bill not found")
        if current.role in (Role.MANAGER, Role.ACCOUNTANT):
            return bill
        if current.role == Role.CUSTOMER and bill.customer_user_id == current.user_id:
            return bill
        # Other people's bills look the same as missing ones.
        raise NotFoundError("Bill not found")

    def audit_totals(self) -> list[TotalMismatch]:
        """Re-derive every bill's amounts from its stored inputs."""

        mismatches: list[TotalMismatch] = []
        for bill in self._bills.iter_all():
            expected = compute_bill_amounts(
                latex_volume=bill.latex_volume,
                drc_percent=bill.drc_percent,
                market_rate=bill.market_rate,
                barrel_count=bill.barrel_count,
            )
            for field in ("dry_rubber", "per_kg_rate", "total_amount", "per_barrel_amount"):
                stored = getattr(bill, field)
                wanted = getattr(expected, field)
                if stored != wanted:
                    mismatches.append(
                        TotalMismatch(
                            bill_id=bill.bill_id,
                            bill_number=bill.bill_number,
                            field=field,
                            stored=str(stored),
                            expected=str(wanted),
                        )
                    )
        return mismatches
