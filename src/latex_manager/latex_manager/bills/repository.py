from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import BillStatus
from .model import Bill, BillPage, NewBill


class BillRepository(Protocol):
    def get_by_id(self, bill_id: int) -> Optional[Bill]:
        raise NotImplementedError

    def last_number_with_prefix(self, prefix: str) -> Optional[str]:
        raise NotImplementedError

    def create(self, bill: NewBill, *, bill_number: str, created_at: datetime) -> int:
        """Insert; raises ConflictError when bill_number is already taken."""

        raise NotImplementedError

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
        """Move a *pending* bill to `status`. False when it was no longer pending."""

        raise NotImplementedError

    def list_bills(
        self,
        *,
        customer_user_id: Optional[int] = None,
        created_by: Optional[int] = None,
        status: Optional[BillStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> BillPage:
        """Newest first."""

        raise NotImplementedError

    def iter_all(self) -> Sequence[Bill]:
        raise NotImplementedError
