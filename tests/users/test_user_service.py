from __future__ import annotations

import pytest

from src.latex_manager.latex_manager.auth.tokens import TokenService
from src.latex_manager.latex_manager.core.enums import Role
from src.latex_manager.latex_manager.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.latex_manager.latex_manager.users.service import AuthService, UserService


@pytest.fixture
def tokens():
    return TokenService("test-secret", max_age_seconds=3600)


@pytest.fixture
def auth(users_repo, tokens):
    return AuthService(users_repo, tokens)


@pytest.fixture
def users(users_repo):
    return UserService(users_repo)


def test_login_issues_token_for_user(auth, people):
    result = auth.authenticate(" Staff@Latex.local ", "secret123")

    assert result.user.user_id == people["staff"].user_id
    assert auth.resolve_token(result.token).user_id == people["staff"].user_id


@pytest.mark.parametrize("email,password", [("staff@latex.local", "wrong"), ("nobody@latex.local", "secret123"), ("", "")])
def test_login_rejects_bad_credentials(auth, people, email, password):
    with pytest.raises(AuthenticationError):
        auth.authenticate(email, password)


def test_inactive_users_cannot_log_in_or_use_tokens(auth, users_repo, tokens):
    gone = users_repo.add(full_name="Gone", email="gone@latex.local", role=Role.STAFF, staff_id="STF099", is_active=False)

    with pytest.raises(AuthenticationError):
        auth.authenticate("gone@latex.local", "secret123")
    with pytest.raises(AuthenticationError):
        auth.resolve_token(tokens.issue(user_id=gone.user_id, role=Role.STAFF))


def test_token_with_stale_role_is_refused(auth, tokens, people):
    token = tokens.issue(user_id=people["staff"].user_id, role=Role.MANAGER)
    with pytest.raises(AuthenticationError):
        auth.resolve_token(token)


def test_register_customer(users):
    user = users.register_customer(full_name="New Buyer", email="Buyer@Example.com", password="hunter22", phone="0911")

    assert user.role == Role.CUSTOMER
    assert user.email == "buyer@example.com"
    assert user.password_hash != "hunter22"

    with pytest.raises(ConflictError):
        users.register_customer(full_name="Again", email="buyer@example.com", password="hunter22")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"full_name": "", "email": "a@b.co", "password": "hunter22"},
        {"full_name": "A", "email": "not-an-email", "password": "hunter22"},
        {"full_name": "A", "email": "a@b.co", "password": "123"},
    ],
)
def test_register_validates_input(users, kwargs):
    with pytest.raises(ValidationError):
        users.register_customer(**kwargs)


def test_manager_creates_staff_accounts(users, people):
    user = users.create_account(
        current=people["manager"],
        full_name="Lan Lab",
        email="lan@latex.local",
        password="hunter22",
        role="staff",
        staff_id="stf002",
    )
    assert user.role == Role.STAFF
    assert user.staff_id == "STF002"

    with pytest.raises(AuthorizationError):
        users.create_account(
            current=people["accountant"], full_name="X", email="x@latex.local", password="hunter22", role="staff", staff_id="STF003"
        )
    with pytest.raises(ValidationError):
        users.create_account(
            current=people["manager"], full_name="X", email="x@latex.local", password="hunter22", role="customer", staff_id="STF003"
        )
    with pytest.raises(ValidationError):
        users.create_account(current=people["manager"], full_name="X", email="x@latex.local", password="hunter22", role="staff")
    with pytest.raises(ConflictError):
        users.create_account(
            current=people["manager"], full_name="X", email="x@latex.local", password="hunter22", role="staff", staff_id="STF002"
        )


def test_all_staff_sorted_by_name(users, people):
    staff = users.list_all_staff()
    assert [s.full_name for s in staff] == ["An Accountant", "Son Staff"]


def test_assign_rfid(users, people):
    customer = people["customer"]

    assert users.assign_rfid(user_id=customer.user_id, rfid_uid=" ab12cd ").rfid_uid == "AB12CD"
    assert users.assign_rfid(user_id=customer.user_id, rfid_uid="").rfid_uid is None

    with pytest.raises(ConflictError):
        users.assign_rfid(user_id=customer.user_id, rfid_uid="04a1b2c3")
    with pytest.raises(NotFoundError):
        users.assign_rfid(user_id=999, rfid_uid="FFFF")

    staff = users.assign_rfid_by_email(email="STAFF@latex.local", rfid_uid="99887766")
    assert staff.rfid_uid == "99887766"
    with pytest.raises(NotFoundError):
        users.assign_rfid_by_email(email="nobody@latex.local", rfid_uid="1234")
