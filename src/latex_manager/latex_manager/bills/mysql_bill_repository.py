from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import BillStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Bill, BillPage, NewBill
from .repository import BillRepository

_BILL_COLUMNS = """
    bill_id, bill_number, customer_name, customer_phone, customer_user_id, sample_id, lab_staff,
    drc_percent, barrel_count, latex_volume, latex_weight, dry_rubber, market_rate, per_kg_rate,
    total_amount, per_barrel_amount, status, created_by, created_at, verified_by, verified_at,
    accountant_notes, manager_notes, rejection_reason
"""


def _dec(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _to_bill(r: dict) -> Bill:
    return Bill(
        bill_id=int(r["bill_id"]),
        bill_number=r["bill_number"],
        customer_name=r["customer_name"],
        customer_phone=r.get("customer_phone"),
        customer_user_id=r.get("customer_user_id"),
        sample_id=r.get("sample_id"),
        lab_staff=r.get("lab_staff"),
        drc_percent=_dec(r["drc_percent"]),
        barrel_count=int(r["barrel_count"]),
        latex_volume=_dec(r["latex_volume"]),
        latex_weight=_dec(r["latex_weight"]),
        dry_rubber=_dec(r["dry_rubber"]),
        market_rate=_dec(r["market_rate"]),
        per_kg_rate=_dec(r["per_kg_rate"]),
        total_amount=_dec(r["total_amount"]),
        per_barrel_amount=_dec(r["per_barrel_amount"]),
        status=BillStatus(r["status"]),
        created_by=int(r["created_by"]),
        created_at=r["created_at"],
        verified_by=r.get("verified_by"),
        verified_at=r.get("verified_at"),
        accountant_notes=r.get("accountant_notes"),
        manager_notes=r.get("manager_notes"),
        rejection_reason=r.get("rejection_reason"),
    )


class MySQLBillRepository(BillRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, bill_id: int) -> Optional[Bill]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_BILL_COLUMNS} FROM bills WHERE bill_id=%s", (int(bill_id),))
            r = fetchone(cur)
            return _to_bill(r) if r else None

    def last_number_with_prefix(self, prefix: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT bill_number FROM bills WHERE bill_number LIKE %s ORDER BY bill_number DESC LIMIT 1",
                (prefix + "%",),
            )
            r = fetchone(cur)
            return r["bill_number"] if r else None

    def create(self, bill: NewBill, *, bill_number: str, created_at: datetime) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO bills(
                        bill_number, customer_name, customer_phone, customer_user_id, sample_id, lab_staff,
                        drc_percent, barrel_count, latex_volume, latex_weight, dry_rubber, market_rate,
                        per_kg_rate, total_amount, per_barrel_amount, status, created_by, created_at,
                        accountant_notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        bill_number,
                        bill.customer_name,
                        bill.customer_phone,
                        bill.customer_user_id,
                        bill.sample_id,
                        bill.lab_staff,
                        bill.drc_percent,
                        bill.barrel_count,
                        bill.latex_volume,
                        bill.latex_weight,
                        bill.dry_rubber,
                        bill.market_rate,
                        bill.per_kg_rate,
                        bill.total_amount,
                        bill.per_barrel_amount,
                        BillStatus.PENDING.value,
                        bill.created_by,
                        created_at,
                        bill.accountant_notes,
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e, key="uq_bills_bill_number"):
                raise ConflictError(f"Bill number {bill_number} is already taken")
            raise

    def decide(
        self,
        *,
        bill_id: int,
        status: BillStatus,
        decided_by: int,
        decided_at: datetime,
        manager_notes: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE bills
                SET status=%s, verified_by=%s, verified_at=%s,
                    manager_notes=COALESCE(%s, manager_notes), rejection_reason=%s
                WHERE bill_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(decided_by),
                    decided_at,
                    manager_notes,
                    rejection_reason,
                    int(bill_id),
                    BillStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def list_bills(
        self,
        *,
        customer_user_id: Optional[int] = None,
        created_by: Optional[int] = None,
        status: Optional[BillStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> BillPage:
        clauses: list[str] = []
        params: list[object] = []

        if customer_user_id is not None:
            clauses.append("customer_user_id=%s")
            params.append(int(customer_user_id))
        if created_by is not None:
            clauses.append("created_by=%s")
            params.append(int(created_by))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = ("WHERE " + " AND ".join(clauses)) if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM bills {where}", tuple(params))
            total = int(fetchone(cur)["n"])

            cur.execute(
                f"""
                SELECT {_BILL_COLUMNS}
                FROM bills
                {where}
                ORDER BY created_at DESC, bill_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(limit), int(offset)),
            )
            items = [_to_bill(r) for r in fetchall(cur)]

        return BillPage(items=items, total=total, limit=int(limit), offset=int(offset))

    def iter_all(self) -> Sequence[Bill]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_BILL_COLUMNS} FROM bills ORDER BY bill_id ASC")
            return [_to_bill(r) for r in fetchall(cur)]
