from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_datetime
from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_RECENT_TASKS, MAX_RECENT_TASKS
from ..core.enums import Role, TaskStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import DeliveryTask, GeoPoint, NewDeliveryTask, can_transition
from .repository import DeliveryTaskRepository

logger = logging.getLogger(__name__)


def parse_task_status(value: Optional[str]) -> Optional[TaskStatus]:
    if not value or value == "all":
        return None
    try:
        return TaskStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown task status {value!r}")


def _coordinate(value: Any, field_name: str, bound: int) -> Decimal:
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not number.is_finite() or abs(number) > bound:
        raise ValidationError(f"{field_name} must be between -{bound} and {bound}")
    return number


def parse_pickup_location(lat: Any, lng: Any) -> Optional[GeoPoint]:
    has_lat = lat not in (None, "")
    has_lng = lng not in (None, "")
    if not has_lat and not has_lng:
        return None
    if has_lat != has_lng:
        raise ValidationError("Latitude and longitude must be given together")
    return GeoPoint(lat=_coordinate(lat, "Latitude", 90), lng=_coordinate(lng, "Longitude", 180))


class DeliveryService:
    def __init__(self, tasks: DeliveryTaskRepository, users: UserRepository):
        self._tasks = tasks
        self._users = users

    def _resolve_id(self, value: Any, field_name: str) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field_name} is required")

    def assign(self, *, current: User, data: Mapping[str, Any], now: datetime | None = None) -> DeliveryTask:
        if current.role != Role.MANAGER:
            raise AuthorizationError("Only managers can assign delivery tasks")

        title = require_non_empty(data.get("title"), "Title")
        pickup_address = require_non_empty(data.get("pickup_address"), "Pickup address")
        drop_address = require_non_empty(data.get("drop_address"), "Drop address")

        assigned_to = self._resolve_id(data.get("assigned_to"), "Assignee")
        assignee = self._users.get_by_id(assigned_to)
        if not assignee or not assignee.is_active or not assignee.is_staff:
            raise ValidationError("Assignee must be an active staff member")

        customer_user_id = self._resolve_id(data.get("customer_user_id"), "Customer")
        if not self._users.get_by_id(customer_user_id):
            raise ValidationError("Customer account does not exist")

        scheduled = data.get("scheduled_at")
        task = NewDeliveryTask(
            title=title,
            assigned_to=assignee.user_id,
            customer_user_id=customer_user_id,
            pickup_address=pickup_address,
            drop_address=drop_address,
            created_by=current.user_id,
            pickup_location=parse_pickup_location(data.get("pickup_lat"), data.get("pickup_lng")),
            scheduled_at=parse_iso_datetime(scheduled) if scheduled else None,
            notes=optional_text(data.get("notes")),
        )

        task_id = self._tasks.create(task, created_at=now or now_local())
        logger.info("Delivery task %s assigned to %s by %s", task_id, assignee.user_id, current.user_id)
        return self._tasks.get_by_id(task_id)

    def list_for_assignee(self, *, current: User, staff_user_id: Optional[int] = None) -> Sequence[DeliveryTask]:
        target = current.user_id
        if staff_user_id is not None and staff_user_id != current.user_id:
            if current.role != Role.MANAGER:
                raise AuthorizationError("Only managers can view another staff member's tasks")
            target = int(staff_user_id)
        return self._tasks.list_tasks(assigned_to=target, limit=MAX_RECENT_TASKS)

    def list_recent(
        self, *, current: User, limit: int = DEFAULT_RECENT_TASKS, status: Optional[str] = None
    ) -> Sequence[DeliveryTask]:
        if current.role != Role.MANAGER:
            raise AuthorizationError("Only managers can view all delivery tasks")
        limit = min(max(int(limit), 1), MAX_RECENT_TASKS)
        return self._tasks.list_tasks(status=parse_task_status(status), limit=limit)

    def get(self, *, current: User, task_id: int) -> DeliveryTask:
        task = self._tasks.get_by_id(int(task_id))
        if not task:
            raise NotFoundError("Delivery task not found")
        if current.role == Role.MANAGER or task.assigned_to == current.user_id:
            return task
        raise NotFoundError("Delivery task not found")

    def advance_status(
        self, *, current: User, task_id: int, status: Optional[str], now: datetime | None = None
    ) -> DeliveryTask:
        target = parse_task_status(status)
        if target is None:
            raise ValidationError("Status is required")

        task = self.get(current=current, task_id=task_id)
        if not can_transition(task.status, target):
            raise ConflictError(f"Cannot move task from {task.status.value} to {target.value}")

        moved = self._tasks.update_status(
            task_id=task.task_id,
            expected=task.status,
            status=target,
            updated_at=now or now_local(),
        )
        if not moved:
            raise ConflictError("Task status changed concurrently, reload and retry")

        logger.info("Delivery task %s: %s -> %s by %s", task.task_id, task.status.value, target.value, current.user_id)
        return self._tasks.get_by_id(task.task_id)
