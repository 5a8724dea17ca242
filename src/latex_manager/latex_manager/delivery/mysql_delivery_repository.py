from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import DeliveryTask, GeoPoint, NewDeliveryTask
from .repository import DeliveryTaskRepository

_TASK_COLUMNS = """
    task_id, title, assigned_to, customer_user_id, pickup_address, drop_address,
    pickup_lat, pickup_lng, scheduled_at, notes, status, created_by, created_at, updated_at
"""


def _to_task(r: dict) -> DeliveryTask:
    location = None
    if r.get("pickup_lat") is not None and r.get("pickup_lng") is not None:
        location = GeoPoint(lat=Decimal(str(r["pickup_lat"])), lng=Decimal(str(r["pickup_lng"])))

    return DeliveryTask(
        task_id=int(r["task_id"]),
        title=r["title"],
        assigned_to=int(r["assigned_to"]),
        customer_user_id=int(r["customer_user_id"]),
        pickup_address=r["pickup_address"],
        drop_address=r["drop_address"],
        status=TaskStatus(r["status"]),
        created_by=int(r["created_by"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        pickup_location=location,
        scheduled_at=r.get("scheduled_at"),
        notes=r.get("notes"),
    )


class MySQLDeliveryTaskRepository(DeliveryTaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, task_id: int) -> Optional[DeliveryTask]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TASK_COLUMNS} FROM delivery_tasks WHERE task_id=%s", (int(task_id),))
            r = fetchone(cur)
            return _to_task(r) if r else None

    def create(self, task: NewDeliveryTask, *, created_at: datetime) -> int:
        loc = task.pickup_location
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO delivery_tasks(
                    title, assigned_to, customer_user_id, pickup_address, drop_address,
                    pickup_lat, pickup_lng, scheduled_at, notes, status, created_by, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    task.title,
                    task.assigned_to,
                    task.customer_user_id,
                    task.pickup_address,
                    task.drop_address,
                    loc.lat if loc else None,
                    loc.lng if loc else None,
                    task.scheduled_at,
                    task.notes,
                    TaskStatus.ASSIGNED.value,
                    task.created_by,
                    created_at,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def update_status(
        self,
        *,
        task_id: int,
        expected: TaskStatus,
        status: TaskStatus,
        updated_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE delivery_tasks SET status=%s, updated_at=%s WHERE task_id=%s AND status=%s",
                (status.value, updated_at, int(task_id), expected.value),
            )
            return cur.rowcount > 0

    def list_tasks(
        self,
        *,
        assigned_to: Optional[int] = None,
        status: Optional[TaskStatus] = None,
        limit: int = 50,
    ) -> Sequence[DeliveryTask]:
        clauses: list[str] = []
        params: list[object] = []
        if assigned_to is not None:
            clauses.append("assigned_to=%s")
            params.append(int(assigned_to))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        where = ("WHERE " + " AND ".join(clauses)) if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TASK_COLUMNS}
                FROM delivery_tasks
                {where}
                ORDER BY created_at DESC, task_id DESC
                LIMIT %s
                """,
                tuple(params) + (int(limit),),
            )
            return [_to_task(r) for r in fetchall(cur)]
