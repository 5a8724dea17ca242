from __future__ import annotations

import pytest
from itsdangerous import URLSafeTimedSerializer

from src.latex_manager.latex_manager.auth.tokens import TokenService
from src.latex_manager.latex_manager.core.enums import Role
from src.latex_manager.latex_manager.core.exceptions import AuthenticationError


def test_token_round_trip_carries_claims():
    tokens = TokenService("k1", max_age_seconds=60)

    claims = tokens.verify(tokens.issue(user_id=7, role=Role.ACCOUNTANT))

    assert claims.user_id == 7
    assert claims.role == Role.ACCOUNTANT


def test_token_signed_with_other_key_is_invalid():
    token = TokenService("k1", max_age_seconds=60).issue(user_id=7, role=Role.STAFF)

    with pytest.raises(AuthenticationError):
        TokenService("k2", max_age_seconds=60).verify(token)


def test_expired_token_is_invalid():
    token = TokenService("k1", max_age_seconds=60).issue(user_id=7, role=Role.STAFF)

    # Any elapsed time exceeds a negative max age.
    with pytest.raises(AuthenticationError):
        TokenService("k1", max_age_seconds=-1).verify(token)


@pytest.mark.parametrize("token", ["", "   ", "garbage", "a.b.c"])
def test_malformed_tokens_are_invalid(token):
    with pytest.raises(AuthenticationError):
        TokenService("k1", max_age_seconds=60).verify(token)


def test_payload_without_claims_is_invalid():
    forged = URLSafeTimedSerializer("k1", salt=TokenService.SALT).dumps({"uid": "seven"})

    with pytest.raises(AuthenticationError):
        TokenService("k1", max_age_seconds=60).verify(forged)
