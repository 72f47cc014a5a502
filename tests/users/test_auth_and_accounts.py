from datetime import datetime, timedelta, timezone

import jwt
import pytest

from src.workforce_portal.workforce_portal.core.enums import Role
from src.workforce_portal.workforce_portal.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ValidationError,
)
from src.workforce_portal.workforce_portal.users.model import AdminProfile, ClientProfile
from src.workforce_portal.workforce_portal.users.tokens import TokenCodec


def test_token_roundtrip_keeps_subject(tokens):
    token = tokens.issue(user_id=5, role=Role.CLIENT)
    assert tokens.user_id_of(token) == 5
    assert tokens.decode(token)["role"] == "client"


def test_expired_token(tokens):
    token = tokens.issue(user_id=5, role=Role.CLIENT, now=datetime.now(timezone.utc) - timedelta(hours=2))
    with pytest.raises(AuthenticationError) as e:
        tokens.decode(token)
    assert e.value.code == "TokenExpired"


def test_token_signed_with_other_secret_is_invalid(tokens):
    forged = TokenCodec("someone-else").issue(user_id=1, role=Role.ADMIN)
    with pytest.raises(AuthenticationError) as e:
        tokens.decode(forged)
    assert e.value.code == "InvalidToken"


def test_token_without_subject_is_invalid(tokens):
    token = jwt.encode({"role": "admin"}, "test-jwt-secret", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        tokens.user_id_of(token)


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        TokenCodec("")


def test_login_is_case_insensitive_on_email(container, alice):
    result = container.auth_service.authenticate("  ALICE@example.com ", "alice123")
    assert result.principal == alice
    assert container.auth_service.resolve_principal(result.token).user_id == alice.user_id


def test_login_with_wrong_password(container):
    with pytest.raises(AuthenticationError) as e:
        container.auth_service.authenticate("alice@example.com", "nope")
    assert e.value.code == "InvalidCredentials"


def test_login_requires_both_fields(container):
    with pytest.raises(ValidationError):
        container.auth_service.authenticate("alice@example.com", "")


def test_token_of_deleted_user_is_rejected(container, users, admin, bob, tokens):
    token = tokens.issue(user_id=bob.user_id, role=bob.role)
    container.user_service.delete_user(principal=admin, user_id=bob.user_id)
    with pytest.raises(AuthenticationError) as e:
        container.auth_service.resolve_principal(token)
    assert e.value.code == "UserGone"


def test_create_client_account(container, admin):
    user = container.user_service.create_account(
        principal=admin,
        name="Carol",
        email="Carol@Example.com",
        password="secret1",
        role=Role.CLIENT,
        company="Acme",
    )
    assert user.email == "carol@example.com"
    assert user.profile == ClientProfile(company="Acme")
    assert user.password_hash != "secret1"


def test_create_admin_account_checks_permissions(container, admin):
    user = container.user_service.create_account(
        principal=admin,
        name="Dan",
        email="dan@example.com",
        password="secret1",
        role=Role.ADMIN,
        permissions=["read", "manage_attendance"],
    )
    assert user.profile == AdminProfile(permissions=("read", "manage_attendance"))

    with pytest.raises(ValidationError):
        container.user_service.create_account(
            principal=admin,
            name="Eve",
            email="eve@example.com",
            password="secret1",
            role=Role.ADMIN,
            permissions=["root"],
        )


def test_duplicate_email_conflicts(container, admin):
    with pytest.raises(ConflictError) as e:
        container.user_service.create_account(
            principal=admin, name="Alice 2", email="alice@example.com", password="secret1", role=Role.CLIENT
        )
    assert e.value.code == "DuplicateEmail"


def test_short_password_is_rejected(container, admin):
    with pytest.raises(ValidationError):
        container.user_service.create_account(
            principal=admin, name="Fay", email="fay@example.com", password="123", role=Role.CLIENT
        )


def test_client_cannot_create_accounts(container, alice):
    with pytest.raises(AuthorizationError):
        container.user_service.create_account(
            principal=alice, name="Gus", email="gus@example.com", password="secret1", role=Role.CLIENT
        )


def test_admins_and_self_cannot_be_deleted(container, admin):
    with pytest.raises(ValidationError):
        container.user_service.delete_user(principal=admin, user_id=admin.user_id)


def test_list_users_by_department(container):
    assert [u.name for u in container.user_service.list_users(department="Sales")] == ["Bob"]
