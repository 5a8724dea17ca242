from __future__ import annotations

from typing import Iterable, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import Role
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import StaffSummary, User
from .repository import UserRepository

_USER_COLUMNS = "user_id, full_name, email, password_hash, role, staff_id, phone, rfid_uid, is_active, created_at"


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        staff_id=row.get("staff_id"),
        phone=row.get("phone"),
        rfid_uid=row.get("rfid_uid"),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE {where}=%s", (value,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id", int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email", email)

    def get_by_rfid_uid(self, rfid_uid: str) -> Optional[User]:
        return self._get_one("rfid_uid", rfid_uid)

    def create_user(
        self,
        *,
        full_name: str,
        email: str,
        password_hash: str,
        role: Role,
        staff_id: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO users(full_name, email, password_hash, role, staff_id, phone, is_active)
                    VALUES(%s,%s,%s,%s,%s,%s,1)
                    """,
                    (full_name, email, password_hash, role.value, staff_id, phone),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e, key="uq_users_email"):
                raise ConflictError("Email is already registered")
            if is_duplicate_key(e, key="uq_users_staff_id"):
                raise ConflictError("Staff ID is already in use")
            raise

    def set_rfid_uid(self, user_id: int, rfid_uid: Optional[str]) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("UPDATE users SET rfid_uid=%s WHERE user_id=%s", (rfid_uid, int(user_id)))
                return cur.rowcount > 0
        except IntegrityError as e:
            if is_duplicate_key(e, key="uq_users_rfid_uid"):
                raise ConflictError("RFID card is already assigned to another user")
            raise

    def list_by_roles(self, roles: Iterable[Role], *, active_only: bool = True) -> Sequence[StaffSummary]:
        role_values = [Role(r).value for r in roles]
        if not role_values:
            return []

        placeholders = ",".join(["%s"] * len(role_values))
        where = f"role IN ({placeholders})"
        if active_only:
            where += " AND is_active=1"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT user_id, full_name, email, role, staff_id, phone
                FROM users
                WHERE {where}
                ORDER BY full_name ASC
                """,
                tuple(role_values),
            )
            return [
                StaffSummary(
                    user_id=int(r["user_id"]),
                    full_name=r["full_name"],
                    email=r["email"],
                    role=Role(r["role"]),
                    staff_id=r.get("staff_id"),
                    phone=r.get("phone"),
                )
                for r in fetchall(cur)
            ]
