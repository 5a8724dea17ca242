from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ACCOUNTANT = "accountant"
    MANAGER = "manager"
    STAFF = "staff"
    CUSTOMER = "customer"


STAFF_ROLES = frozenset({Role.STAFF, Role.ACCOUNTANT, Role.MANAGER})


class BillStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"


class AttendanceSource(str, Enum):
    """Where a check-in/out came from (replaces free-text location matching)."""

    MANUAL = "manual"
    RFID = "rfid"
    ADMIN = "admin"


class PunchType(str, Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"


class TaskStatus(str, Enum):
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
