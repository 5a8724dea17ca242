from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import StaffSummary, User


class UserRepository(Protocol):
    """Repository interface for User.

    Services depend on this Protocol, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_rfid_uid(self, rfid_uid: str) -> Optional[User]:
        raise NotImplementedError

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
        """Insert a user; raises ConflictError when email or staff_id is taken."""

        raise NotImplementedError

    def set_rfid_uid(self, user_id: int, rfid_uid: Optional[str]) -> bool:
        """Raises ConflictError when the UID already belongs to another user."""

        raise NotImplementedError

    def list_by_roles(self, roles: Iterable[Role], *, active_only: bool = True) -> Sequence[StaffSummary]:
        raise NotImplementedError
