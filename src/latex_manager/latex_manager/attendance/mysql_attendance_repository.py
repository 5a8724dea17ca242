from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import AttendanceSource, AttendanceStatus, Role
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from ..users.model import StaffSummary
from .model import AttendanceRecord, AttendanceRow, HistoryPage
from .repository import AttendanceRepository

_RECORD_COLUMNS = (
    "ar.attendance_id, ar.user_id, ar.work_date, ar.check_in_time, ar.check_out_time, "
    "ar.status, ar.source, ar.location, ar.notes, ar.marked_by"
)


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        check_in_time=r["check_in_time"],
        check_out_time=r.get("check_out_time"),
        status=AttendanceStatus(r["status"]),
        source=AttendanceSource(r["source"]),
        location=r.get("location"),
        notes=r.get("notes"),
        marked_by=r.get("marked_by"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records ar
                WHERE ar.user_id=%s AND ar.work_date=%s
                """,
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, work_date, check_in_time, status, source, location, notes, marked_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (int(user_id), work_date, check_in_time, status.value, source.value, location, notes, marked_by),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e, key="uq_attendance_user_date"):
                raise ConflictError("Already checked in today")
            raise

    def close_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        notes: Optional[str] = None,
        marked_by: Optional[int] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s,
                    notes=COALESCE(%s, notes),
                    marked_by=COALESCE(%s, marked_by)
                WHERE attendance_id=%s AND check_out_time IS NULL
                """,
                (check_out_time, notes, marked_by, int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_history(
        self,
        *,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> HistoryPage:
        clauses = ["ar.user_id=%s"]
        params: list[object] = [int(user_id)]
        if start_date is not None:
            clauses.append("ar.work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("ar.work_date <= %s")
            params.append(end_date)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM attendance_records ar WHERE {where}", tuple(params))
            total = int(fetchone(cur)["n"])

            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance_records ar
                WHERE {where}
                ORDER BY ar.work_date DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params) + (int(limit), int(offset)),
            )
            items = [_to_record(r) for r in fetchall(cur)]

        return HistoryPage(items=items, total=total, limit=int(limit), offset=int(offset))

    def list_for_date(self, work_date: date, *, source: Optional[AttendanceSource] = None) -> Sequence[AttendanceRow]:
        clauses = ["ar.work_date=%s"]
        params: list[object] = [work_date]
        if source is not None:
            clauses.append("ar.source=%s")
            params.append(source.value)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS},
                       u.full_name, u.email, u.role, u.staff_id, u.phone
                FROM attendance_records ar
                JOIN users u ON u.user_id = ar.user_id
                WHERE {where}
                ORDER BY ar.check_in_time DESC
                """,
                tuple(params),
            )
            return [
                AttendanceRow(
                    record=_to_record(r),
                    staff=StaffSummary(
                        user_id=int(r["user_id"]),
                        full_name=r["full_name"],
                        email=r["email"],
                        role=Role(r["role"]),
                        staff_id=r.get("staff_id"),
                        phone=r.get("phone"),
                    ),
                )
                for r in fetchall(cur)
            ]
