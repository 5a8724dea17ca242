from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceSource, AttendanceStatus, PunchType
from ..users.model import StaffSummary, User


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one staff member's attendance for one work date."""

    attendance_id: int
    user_id: int
    work_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime]
    status: AttendanceStatus
    source: AttendanceSource
    location: Optional[str] = None
    notes: Optional[str] = None
    marked_by: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None


@dataclass(frozen=True)
class AttendanceRow:
    """Read-model: a record resolved with the staff member's display fields."""

    record: AttendanceRecord
    staff: StaffSummary


@dataclass(frozen=True)
class DailyAttendance:
    work_date: date
    rows: list[AttendanceRow]
    absent: list[StaffSummary] = field(default_factory=list)


@dataclass(frozen=True)
class ScanResult:
    action: PunchType
    user: User
    record: AttendanceRecord


@dataclass(frozen=True)
class HistoryPage:
    items: list[AttendanceRecord]
    total: int
    limit: int
    offset: int
