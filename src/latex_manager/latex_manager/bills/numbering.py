from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.constants import BILL_NUMBER_PREFIX


def month_prefix(now: datetime) -> str:
    """`BILL-YYYYMM-`; the sequence restarts every month."""
    return f"{BILL_NUMBER_PREFIX}-{now:%Y%m}-"


def next_bill_number(now: datetime, last_number: Optional[str]) -> str:
    prefix = month_prefix(now)
    sequence = 1
    if last_number and last_number.startswith(prefix):
        tail = last_number[len(prefix):]
        if tail.isdigit():
            sequence = int(tail) + 1
    return f"{prefix}{sequence:04d}"
