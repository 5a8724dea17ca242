from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import now_local, parse_reader_timestamp
from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceSource, PunchType, Role, STAFF_ROLES
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import AttendanceRecord, DailyAttendance, HistoryPage, ScanResult
from .policy import CheckInPolicy
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

DEFAULT_LOCATIONS = {
    AttendanceSource.MANUAL: "Office",
    AttendanceSource.RFID: "RFID Scanner",
    AttendanceSource.ADMIN: "Office",
}

SUPERVISOR_ROLES = (Role.MANAGER, Role.ACCOUNTANT)


def parse_punch_type(value: Optional[str]) -> PunchType:
    try:
        return PunchType(value)
    except ValueError:
        raise ValidationError("Type must be check_in or check_out")


def parse_source(value: Optional[str]) -> Optional[AttendanceSource]:
    if not value:
        return None
    try:
        return AttendanceSource(value.strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown attendance source {value!r}")


class AttendanceService:
    def __init__(self, attendance: AttendanceRepository, users: UserRepository, *, policy: CheckInPolicy):
        self._attendance = attendance
        self._users = users
        self._policy = policy

    def _staff_member(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user or not user.is_active:
            raise NotFoundError("Staff member not found")
        if not user.is_staff:
            raise ValidationError("Attendance is only recorded for staff accounts")
        return user

    def check_in(
        self,
        user_id: int,
        *,
        source: AttendanceSource,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        marked_by: Optional[int] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()
        user = self._staff_member(user_id)

        if self._attendance.get_for_user_and_date(user.user_id, today):
            raise ConflictError("Already checked in today")

        # A concurrent check-in that slips past the read above is rejected by the
        # repository's unique key and surfaces as the same ConflictError.
        attendance_id = self._attendance.create_checkin(
            user_id=user.user_id,
            work_date=today,
            check_in_time=now,
            status=self._policy.status_for(now),
            source=source,
            location=optional_text(location) or DEFAULT_LOCATIONS[source],
            notes=optional_text(notes),
            marked_by=marked_by,
        )
        logger.info("Check-in %s for user %s via %s", attendance_id, user.user_id, source.value)
        return self._attendance.get_for_user_and_date(user.user_id, today)

    def check_out(
        self,
        user_id: int,
        *,
        notes: Optional[str] = None,
        marked_by: Optional[int] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()
        user = self._staff_member(user_id)

        record = self._attendance.get_for_user_and_date(user.user_id, today)
        if not record:
            raise NotFoundError("No check-in found for today")
        if not record.is_open:
            raise NotFoundError("No open check-in for today, already checked out")
        if now < record.check_in_time:
            raise ValidationError("Check-out cannot be earlier than check-in")

        if not self._attendance.close_checkout(
            attendance_id=record.attendance_id,
            check_out_time=now,
            notes=optional_text(notes),
            marked_by=marked_by,
        ):
            raise NotFoundError("No open check-in for today, already checked out")

        logger.info("Check-out %s for user %s", record.attendance_id, user.user_id)
        return self._attendance.get_for_user_and_date(user.user_id, today)

    def mark_own(
        self,
        *,
        current: User,
        punch: str,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        if current.role not in STAFF_ROLES:
            raise AuthorizationError("Only staff accounts record attendance")
        if parse_punch_type(punch) == PunchType.CHECK_IN:
            return self.check_in(current.user_id, source=AttendanceSource.MANUAL, location=location, notes=notes, now=now)
        return self.check_out(current.user_id, notes=notes, now=now)

    def mark_for_staff(
        self,
        *,
        current: User,
        staff_user_id: int,
        punch: str,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        if current.role not in SUPERVISOR_ROLES:
            raise AuthorizationError("Only managers and accountants can mark attendance for others")
        if parse_punch_type(punch) == PunchType.CHECK_IN:
            return self.check_in(
                staff_user_id,
                source=AttendanceSource.ADMIN,
                location=location,
                notes=notes,
                marked_by=current.user_id,
                now=now,
            )
        return self.check_out(staff_user_id, notes=notes, marked_by=current.user_id, now=now)

    def rfid_scan(
        self,
        *,
        uid: Optional[str],
        reader_date: Optional[str] = None,
        reader_time: Optional[str] = None,
        now: datetime | None = None,
    ) -> ScanResult:
        """First scan of the day checks in, the second checks out, a third is rejected."""

        uid = require_non_empty(uid, "UID").upper()
        user = self._users.get_by_rfid_uid(uid)
        if not user:
            logger.warning("RFID scan from unregistered card %s", uid)
            raise NotFoundError(f"RFID card not registered: {uid}")

        if reader_date and reader_time:
            timestamp = parse_reader_timestamp(reader_date, reader_time)
        else:
            timestamp = now or now_local()

        record = self._attendance.get_for_user_and_date(user.user_id, timestamp.date())
        if record is None:
            record = self.check_in(
                user.user_id,
                source=AttendanceSource.RFID,
                notes="Auto-marked via RFID",
                now=timestamp,
            )
            return ScanResult(action=PunchType.CHECK_IN, user=user, record=record)
        if record.is_open:
            record = self.check_out(user.user_id, now=timestamp)
            return ScanResult(action=PunchType.CHECK_OUT, user=user, record=record)

        logger.warning("RFID scan for user %s after check-out on %s", user.user_id, record.work_date)
        raise ConflictError("Already checked in and out today")

    def today(self, *, current: User, today: date | None = None) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_user_and_date(current.user_id, today or now_local().date())

    def history(
        self,
        *,
        current: User,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> HistoryPage:
        if start_date and end_date and start_date > end_date:
            raise ValidationError("fromDate must not be after toDate")
        return self._attendance.list_history(
            user_id=current.user_id,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
        )

    def today_all(
        self,
        *,
        current: User,
        work_date: date | None = None,
        source: Optional[str] = None,
    ) -> DailyAttendance:
        if current.role not in SUPERVISOR_ROLES:
            raise AuthorizationError("Not authorized. Manager or accountant required.")

        work_date = work_date or now_local().date()
        source_e = parse_source(source)
        rows = list(self._attendance.list_for_date(work_date, source=source_e))

        # A source filter narrows to matching punches; absence only makes sense unfiltered.
        absent = []
        if source_e is None:
            seen = {row.record.user_id for row in rows}
            absent = [s for s in self._users.list_by_roles(STAFF_ROLES) if s.user_id not in seen]

        return DailyAttendance(work_date=work_date, rows=rows, absent=absent)
