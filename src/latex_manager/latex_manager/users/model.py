from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role, STAFF_ROLES


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object; no DB access lives here.
    """

    user_id: int
    full_name: str
    email: str
    password_hash: str
    role: Role
    staff_id: Optional[str] = None
    phone: Optional[str] = None
    rfid_uid: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


@dataclass(frozen=True)
class StaffSummary:
    """Display fields joined onto attendance rows and staff listings."""

    user_id: int
    full_name: str
    email: str
    role: Role
    staff_id: Optional[str] = None
    phone: Optional[str] = None
