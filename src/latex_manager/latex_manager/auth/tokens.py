from __future__ import annotations

from dataclasses import dataclass

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..core.enums import Role
from ..core.exceptions import AuthenticationError


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: Role


class TokenService:
    """Issues and checks signed, timestamped bearer tokens."""

    SALT = "latex-manager-auth"

    def __init__(self, secret_key: str, *, max_age_seconds: int):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._serializer = URLSafeTimedSerializer(secret_key, salt=self.SALT)
        self._max_age = int(max_age_seconds)

    def issue(self, *, user_id: int, role: Role) -> str:
        return self._serializer.dumps({"uid": int(user_id), "role": Role(role).value})

    def verify(self, token: str) -> TokenClaims:
        if not token or not token.strip():
            raise AuthenticationError("Not authorized, no token")
        try:
            payload = self._serializer.loads(token.strip(), max_age=self._max_age)
        except SignatureExpired:
            raise AuthenticationError("Token expired")
        except BadSignature:
            raise AuthenticationError("Invalid token")

        try:
            return TokenClaims(user_id=int(payload["uid"]), role=Role(payload["role"]))
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Invalid token")
