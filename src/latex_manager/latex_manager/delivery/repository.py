from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import TaskStatus
from .model import DeliveryTask, NewDeliveryTask


class DeliveryTaskRepository(Protocol):
    def get_by_id(self, task_id: int) -> Optional[DeliveryTask]:
        raise NotImplementedError

    def create(self, task: NewDeliveryTask, *, created_at: datetime) -> int:
        raise NotImplementedError

    def update_status(
        self,
        *,
        task_id: int,
        expected: TaskStatus,
        status: TaskStatus,
        updated_at: datetime,
    ) -> bool:
        """Compare-and-set on status. False when the task moved on meanwhile."""

        raise NotImplementedError

    def list_tasks(
        self,
        *,
        assigned_to: Optional[int] = None,
        status: Optional[TaskStatus] = None,
        limit: int = 50,
    ) -> Sequence[DeliveryTask]:
        """Newest first."""

        raise NotImplementedError
