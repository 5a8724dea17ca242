from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import TaskStatus


@dataclass(frozen=True)
class GeoPoint:
    lat: Decimal
    lng: Decimal


@dataclass(frozen=True)
class DeliveryTask:
    """Domain entity: a pickup/drop job assigned to one staff member."""

    task_id: int
    title: str
    assigned_to: int
    customer_user_id: int
    pickup_address: str
    drop_address: str
    status: TaskStatus
    created_by: int
    created_at: datetime
    updated_at: datetime
    pickup_location: Optional[GeoPoint] = None
    scheduled_at: Optional[datetime] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class NewDeliveryTask:
    title: str
    assigned_to: int
    customer_user_id: int
    pickup_address: str
    drop_address: str
    created_by: int
    pickup_location: Optional[GeoPoint] = None
    scheduled_at: Optional[datetime] = None
    notes: Optional[str] = None


# Forward-only; cancellation allowed from any non-terminal state.
ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.ASSIGNED: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]
