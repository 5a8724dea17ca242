from __future__ import annotations

from datetime import datetime, time

from src.latex_manager.latex_manager.attendance.policy import CheckInPolicy
from src.latex_manager.latex_manager.core.enums import AttendanceStatus


def test_grace_period_boundary():
    policy = CheckInPolicy(workday_start=time(9, 0), grace_minutes=15)

    assert policy.status_for(datetime(2026, 3, 2, 8, 0)) == AttendanceStatus.PRESENT
    assert policy.status_for(datetime(2026, 3, 2, 9, 15)) == AttendanceStatus.PRESENT
    assert policy.status_for(datetime(2026, 3, 2, 9, 15, 1)) == AttendanceStatus.LATE


def test_no_grace_means_late_right_after_start():
    policy = CheckInPolicy(workday_start=time(9, 0))

    assert policy.status_for(datetime(2026, 3, 2, 9, 0)) == AttendanceStatus.PRESENT
    assert policy.status_for(datetime(2026, 3, 2, 9, 0, 1)) == AttendanceStatus.LATE
