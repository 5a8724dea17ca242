from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceSource, AttendanceStatus
from .model import AttendanceRecord, AttendanceRow, HistoryPage


class AttendanceRepository(Protocol):
    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in_time: datetime,
        status: AttendanceStatus,
        source: AttendanceSource,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        marked_by: Optional[int] = None,
    ) -> int:
        """Insert the day's record.

        Must raise ConflictError when (user_id, work_date) already exists; this is
        what rejects a concurrent second check-in.
        """

        raise NotImplementedError

    def close_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        notes: Optional[str] = None,
        marked_by: Optional[int] = None,
    ) -> bool:
        """Set check_out_time only if still open. False when already closed."""

        raise NotImplementedError

    def list_history(
        self,
        *,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> HistoryPage:
        raise NotImplementedError

    def list_for_date(self, work_date: date, *, source: Optional[AttendanceSource] = None) -> Sequence[AttendanceRow]:
        raise NotImplementedError
