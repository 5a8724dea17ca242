from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class CheckInPolicy:
    """Decides the status of a check-in: late once the grace period after workday start has passed."""

    workday_start: time
    grace_minutes: int = 0

    def status_for(self, check_in_time: datetime) -> AttendanceStatus:
        start = datetime.combine(check_in_time.date(), self.workday_start)
        if check_in_time <= start + timedelta(minutes=int(self.grace_minutes)):
            return AttendanceStatus.PRESENT
        return AttendanceStatus.LATE
