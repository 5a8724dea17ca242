from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Callable

from flask import g, request

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from .model import User
from .service import AuthService


def current_user() -> User:
    return g.current_user


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Not authorized, no token")
    return token.strip()


@dataclass(frozen=True)
class Guards:
    """Route decorators bound to one app's AuthService."""

    auth_service: AuthService

    def login_required(self, view: Callable) -> Callable:
        @wraps(view)
        def wrapper(*args, **kwargs):
            g.current_user = self.auth_service.resolve_token(_bearer_token())
            return view(*args, **kwargs)

        return wrapper

    def roles_required(self, *roles: Role) -> Callable[[Callable], Callable]:
        allowed = frozenset(roles)

        def decorator(view: Callable) -> Callable:
            @wraps(view)
            def wrapper(*args, **kwargs):
                user = self.auth_service.resolve_token(_bearer_token())
                if user.role not in allowed:
                    names = ", ".join(sorted(r.value for r in allowed))
                    raise AuthorizationError(f"Not authorized. Required roles: {names}")
                g.current_user = user
                return view(*args, **kwargs)

            return wrapper

        return decorator
