from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..auth.tokens import TokenService
from ..common.validators import (
    optional_staff_id,
    optional_text,
    require_email,
    require_min_length,
    require_non_empty,
)
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role, STAFF_ROLES
from ..core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from .model import StaffSummary, User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


class AuthService:
    """Use case: authenticate users and resolve bearer tokens."""

    def __init__(self, users: UserRepository, tokens: TokenService):
        self._users = users
        self._tokens = tokens

    def authenticate(self, email: str, password: str) -> LoginResult:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        logger.info("User %s logged in as %s", user.user_id, user.role.value)
        return LoginResult(token=self._tokens.issue(user_id=user.user_id, role=user.role), user=user)

    def resolve_token(self, token: str) -> User:
        claims = self._tokens.verify(token)
        user = self._users.get_by_id(claims.user_id)
        if not user or not user.is_active:
            raise AuthenticationError("Not authorized, user not found")
        if user.role != claims.role:
            raise AuthenticationError("Token no longer valid, please log in again")
        return user


class UserService:
    """Use case: manage accounts, the staff directory and RFID cards."""

    ALL_STAFF_ROLES = (Role.STAFF, Role.ACCOUNTANT)

    def __init__(self, users: UserRepository):
        self._users = users

    def _create(
        self,
        *,
        full_name: str,
        email: str,
        password: str,
        role: Role,
        staff_id: Optional[str],
        phone: Optional[str],
    ) -> User:
        full_name = require_non_empty(full_name, "Full name")
        email = require_email(email)
        require_min_length(password or "", "Password", MIN_PASSWORD_LENGTH)
        staff_id = optional_staff_id(staff_id)
        phone = optional_text(phone)

        if self._users.get_by_email(email):
            raise ConflictError("Email is already registered")

        user_id = self._users.create_user(
            full_name=full_name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            staff_id=staff_id,
            phone=phone,
        )
        logger.info("Created %s account %s (%s)", role.value, user_id, email)
        return self._users.get_by_id(user_id)

    def register_customer(self, *, full_name: str, email: str, password: str, phone: Optional[str] = None) -> User:
        return self._create(
            full_name=full_name,
            email=email,
            password=password,
            role=Role.CUSTOMER,
            staff_id=None,
            phone=phone,
        )

    def create_account(
        self,
        *,
        current: User,
        full_name: str,
        email: str,
        password: str,
        role: str,
        staff_id: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> User:
        if current.role != Role.MANAGER:
            raise AuthorizationError("Only managers can create staff accounts")

        try:
            role_e = Role(role)
        except ValueError:
            raise ValidationError("Unknown role")
        if role_e not in STAFF_ROLES:
            raise ValidationError("Customers register themselves")
        if not optional_text(staff_id):
            raise ValidationError("Staff ID is required for staff accounts")

        return self._create(
            full_name=full_name,
            email=email,
            password=password,
            role=role_e,
            staff_id=staff_id,
            phone=phone,
        )

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_all_staff(self) -> Sequence[StaffSummary]:
        return self._users.list_by_roles(self.ALL_STAFF_ROLES)

    def assign_rfid(self, *, user_id: int, rfid_uid: Optional[str]) -> User:
        """Attach (or clear, with an empty UID) a badge to a user.

        UIDs are stored upper-case so reader output matches regardless of case.
        """

        user = self.get(user_id)
        uid = optional_text(rfid_uid)
        uid = uid.upper() if uid else None

        if uid:
            holder = self._users.get_by_rfid_uid(uid)
            if holder and holder.user_id != user.user_id:
                raise ConflictError("RFID card is already assigned to another user")

        self._users.set_rfid_uid(user.user_id, uid)
        logger.info("RFID for user %s set to %s", user.user_id, uid or "<none>")
        return self.get(user.user_id)

    def assign_rfid_by_email(self, *, email: str, rfid_uid: str) -> User:
        user = self._users.get_by_email(require_email(email))
        if not user:
            raise NotFoundError(f"No user with email {email}")
        return self.assign_rfid(user_id=user.user_id, rfid_uid=require_non_empty(rfid_uid, "RFID UID"))
