from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import BillStatus


@dataclass(frozen=True)
class Bill:
    """Domain entity: a latex purchase bill computed from a lab sample."""

    bill_id: int
    bill_number: str
    customer_name: str
    customer_phone: Optional[str]
    customer_user_id: Optional[int]
    sample_id: Optional[str]
    lab_staff: Optional[str]
    drc_percent: Decimal
    barrel_count: int
    latex_volume: Decimal
    latex_weight: Decimal
    dry_rubber: Decimal
    market_rate: Decimal
    per_kg_rate: Decimal
    total_amount: Decimal
    per_barrel_amount: Decimal
    status: BillStatus
    created_by: int
    created_at: datetime
    verified_by: Optional[int] = None
    verified_at: Optional[datetime] = None
    accountant_notes: Optional[str] = None
    manager_notes: Optional[str] = None
    rejection_reason: Optional[str] = None


@dataclass(frozen=True)
class NewBill:
    """Validated input plus derived amounts, ready to insert."""

    customer_name: str
    customer_phone: Optional[str]
    customer_user_id: Optional[int]
    sample_id: Optional[str]
    lab_staff: Optional[str]
    drc_percent: Decimal
    barrel_count: int
    latex_volume: Decimal
    latex_weight: Decimal
    dry_rubber: Decimal
    market_rate: Decimal
    per_kg_rate: Decimal
    total_amount: Decimal
    per_barrel_amount: Decimal
    created_by: int
    accountant_notes: Optional[str] = None


@dataclass(frozen=True)
class BillPage:
    items: list[Bill]
    total: int
    limit: int
    offset: int
