from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.policy import CheckInPolicy
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .auth.tokens import TokenService
from .bills.mysql_bill_repository import MySQLBillRepository
from .bills.repository import BillRepository
from .bills.service import BillService
from .common.datetime_utils import parse_hhmm
from .core.constants import DEFAULT_LATE_GRACE_MINUTES, DEFAULT_TOKEN_MAX_AGE_SECONDS, DEFAULT_WORKDAY_START
from .database.connection import DBConfig, DatabaseConnection
from .delivery.mysql_delivery_repository import MySQLDeliveryTaskRepository
from .delivery.repository import DeliveryTaskRepository
from .delivery.service import DeliveryService
from .users.guards import Guards
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    bills_repo: BillRepository
    attendance_repo: AttendanceRepository
    delivery_repo: DeliveryTaskRepository

    token_service: TokenService
    auth_service: AuthService
    user_service: UserService
    bill_service: BillService
    attendance_service: AttendanceService
    delivery_service: DeliveryService
    guards: Guards

    rfid_device_key: str = ""
    conn: Optional[DatabaseConnection] = None


def wire_services(
    *,
    users_repo: UserRepository,
    bills_repo: BillRepository,
    attendance_repo: AttendanceRepository,
    delivery_repo: DeliveryTaskRepository,
    secret_key: str,
    token_max_age_seconds: int = DEFAULT_TOKEN_MAX_AGE_SECONDS,
    policy: CheckInPolicy | None = None,
    rfid_device_key: str = "",
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build the service graph on top of whatever repositories are given."""

    token_service = TokenService(secret_key, max_age_seconds=token_max_age_seconds)
    auth_service = AuthService(users_repo, token_service)
    policy = policy or CheckInPolicy(
        workday_start=parse_hhmm(DEFAULT_WORKDAY_START),
        grace_minutes=DEFAULT_LATE_GRACE_MINUTES,
    )

    return Container(
        users_repo=users_repo,
        bills_repo=bills_repo,
        attendance_repo=attendance_repo,
        delivery_repo=delivery_repo,
        token_service=token_service,
        auth_service=auth_service,
        user_service=UserService(users_repo),
        bill_service=BillService(bills_repo, users_repo),
        attendance_service=AttendanceService(attendance_repo, users_repo, policy=policy),
        delivery_service=DeliveryService(delivery_repo, users_repo),
        guards=Guards(auth_service),
        rfid_device_key=rfid_device_key,
        conn=conn,
    )


def build_container(*, settings: Any) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(getattr(settings, "DB_CONFIG")))

    policy = CheckInPolicy(
        workday_start=parse_hhmm(getattr(settings, "WORKDAY_START", DEFAULT_WORKDAY_START)),
        grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
    )

    return wire_services(
        users_repo=MySQLUserRepository(conn),
        bills_repo=MySQLBillRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        delivery_repo=MySQLDeliveryTaskRepository(conn),
        secret_key=getattr(settings, "SECRET_KEY"),
        token_max_age_seconds=int(getattr(settings, "TOKEN_MAX_AGE_SECONDS", DEFAULT_TOKEN_MAX_AGE_SECONDS)),
        policy=policy,
        rfid_device_key=getattr(settings, "RFID_DEVICE_KEY", ""),
        conn=conn,
    )
