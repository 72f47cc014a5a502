from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..access.scoping import require_admin, require_role
from ..common.validators import optional_text, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..tasks.repository import TaskRepository
from .model import ADMIN_PERMISSIONS, AdminProfile, ClientProfile, NewUser, Principal, Profile, User, UserChanges
from .repository import UserRepository
from .tokens import TokenCodec

logger = logging.getLogger(__name__)

# compared against when the email is unknown, so both paths hash once
_DUMMY_HASH = generate_password_hash("workforce-portal-dummy-password")


def _password_matches(user: Optional[User], password: str) -> bool:
    try:
        if user is None:
            check_password_hash(_DUMMY_HASH, password)
            return False
        return check_password_hash(user.password_hash, password)
    except (TypeError, ValueError):
        # placeholder or corrupted hashes
        return False


def _normalize_email(email: Any) -> str:
    email = require_non_empty(email, "Email").lower()
    if "@" not in email:
        raise ValidationError("Email is not valid")
    return email


def _admin_profile(permissions: Optional[Sequence[str]], current: Optional[Profile] = None) -> AdminProfile:
    if permissions is None:
        return current if isinstance(current, AdminProfile) else AdminProfile()
    perms = tuple(permissions) or ("read",)
    unknown = [p for p in perms if p not in ADMIN_PERMISSIONS]
    if unknown:
        raise ValidationError(f"Unknown permissions: {', '.join(unknown)}")
    return AdminProfile(permissions=perms)


def _client_profile(company: Any, contact_number: Any, current: Optional[Profile] = None) -> ClientProfile:
    base = current if isinstance(current, ClientProfile) else ClientProfile()
    return ClientProfile(
        company=optional_text(company) if company is not None else base.company,
        contact_number=optional_text(contact_number) if contact_number is not None else base.contact_number,
    )


@dataclass(frozen=True)
class LoginResult:
    """What the login endpoint hands back to the caller."""

    token: str
    principal: Principal


class AuthService:
    """Use case: authenticate users and resolve bearer tokens to principals."""

    def __init__(self, users: UserRepository, tokens: TokenCodec):
        self._users = users
        self._tokens = tokens

    def authenticate(self, email: str, password: str) -> LoginResult:
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationError("Please provide email and password")

        user = self._users.get_by_email(email)
        if not _password_matches(user, password):
            logger.warning("Rejected login for %s", email)
            raise AuthenticationError("Incorrect email or password", code="InvalidCredentials")

        principal = Principal.from_user(user)
        token = self._tokens.issue(user_id=user.user_id, role=user.role)
        logger.info("User %s logged in as %s", user.user_id, user.role.value)
        return LoginResult(token=token, principal=principal)

    def change_password(self, *, principal: Principal, current_password: Any, new_password: Any) -> LoginResult:
        """Replace the caller's password and hand back a fresh token."""

        if not isinstance(current_password, str) or not current_password:
            raise ValidationError("Current password is required")
        if not isinstance(new_password, str):
            raise ValidationError("New password is required")
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)

        user = self._users.get_by_id(principal.user_id)
        if not user:
            raise AuthenticationError("The user belonging to this token no longer exists", code="UserGone")
        if not _password_matches(user, current_password):
            logger.warning("Rejected password change for user %s", user.user_id)
            raise ValidationError("Your current password is wrong", code="WrongPassword")

        if not self._users.update_password(user_id=user.user_id, password_hash=generate_password_hash(new_password)):
            raise AuthenticationError("The user belonging to this token no longer exists", code="UserGone")

        logger.info("User %s changed password", user.user_id)
        token = self._tokens.issue(user_id=user.user_id, role=user.role)
        return LoginResult(token=token, principal=Principal.from_user(user))

    def resolve_principal(self, token: str) -> Principal:
        try:
            user_id = self._tokens.user_id_of(token)
        except AuthenticationError as e:
            logger.warning("Rejected token: %s", e.code)
            raise

        user = self._users.get_by_id(user_id)
        if not user:
            logger.warning("Token for deleted user %s", user_id)
            raise AuthenticationError("The user belonging to this token no longer exists", code="UserGone")
        return Principal.from_user(user)

    @staticmethod
    def require_role(principal: Principal, allowed_roles: Iterable[Role]) -> None:
        require_role(principal, allowed_roles)


class UserService:
    """Use case: manage portal accounts (admin) and the caller's own profile."""

    def __init__(self, users: UserRepository, tasks: TaskRepository):
        self._users = users
        self._tasks = tasks

    def create_account(
        self,
        *,
        principal: Principal,
        name: str,
        email: str,
        password: str,
        role: Role,
        department: Optional[str] = None,
        mobile: Optional[str] = None,
        permissions: Optional[Sequence[str]] = None,
        company: Optional[str] = None,
        contact_number: Optional[str] = None,
    ) -> User:
        require_admin(principal)

        name = require_non_empty(name, "Name")
        email = _normalize_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if role == Role.ADMIN:
            profile: Profile = _admin_profile(permissions or ("read",))
        else:
            profile = _client_profile(company, contact_number)

        if self._users.get_by_email(email):
            raise ConflictError("Email already in use", code="DuplicateEmail")

        user_id = self._users.create_user(
            NewUser(
                name=name,
                email=email,
                password_hash=generate_password_hash(password),
                role=role,
                department=optional_text(department),
                mobile=optional_text(mobile),
                profile=profile,
            )
        )
        # lost the race against a concurrent insert of the same email
        if user_id is None:
            raise ConflictError("Email already in use", code="DuplicateEmail")

        logger.info("Admin %s created %s account %s", principal.user_id, role.value, user_id)
        return self.get_user(user_id)

    def update_account(
        self,
        *,
        principal: Principal,
        user_id: int,
        name: Any = None,
        email: Any = None,
        role: Optional[Role] = None,
        department: Any = None,
        mobile: Any = None,
        permissions: Optional[Sequence[str]] = None,
        company: Any = None,
        contact_number: Any = None,
    ) -> User:
        """Admin edit of any account; a role change swaps the profile kind."""

        require_admin(principal)
        current = self.get_user(user_id)

        if role is not None and role != current.role and current.user_id == principal.user_id:
            raise ValidationError("You cannot change your own role")

        new_role = role or current.role
        if new_role == Role.ADMIN:
            profile: Optional[Profile] = _admin_profile(permissions, current.profile)
        else:
            profile = _client_profile(company, contact_number, current.profile)

        changes = UserChanges(
            name=require_non_empty(name, "Name") if name is not None else None,
            email=self._available_email(email, current) if email is not None else None,
            role=role if role != current.role else None,
            department=optional_text(department) if department is not None else None,
            mobile=optional_text(mobile) if mobile is not None else None,
            profile=profile if profile != current.profile else None,
        )
        if changes.empty:
            return current

        if not self._users.update_account(user_id=current.user_id, changes=changes):
            raise NotFoundError("No user found with that ID")
        logger.info("Admin %s updated user %s", principal.user_id, current.user_id)
        return self.get_user(current.user_id)

    def update_profile(
        self,
        *,
        principal: Principal,
        name: Any = None,
        email: Any = None,
        mobile: Any = None,
        company: Any = None,
        contact_number: Any = None,
    ) -> User:
        """Self-service edit; role, department and permissions stay with the admin."""

        current = self.get_user(principal.user_id)
        profile = current.profile
        if current.role == Role.CLIENT:
            profile = _client_profile(company, contact_number, current.profile)

        changes = UserChanges(
            name=require_non_empty(name, "Name") if name is not None else None,
            email=self._available_email(email, current) if email is not None else None,
            mobile=optional_text(mobile) if mobile is not None else None,
            profile=profile if profile != current.profile else None,
        )
        if changes.empty:
            return current

        if not self._users.update_account(user_id=current.user_id, changes=changes):
            raise NotFoundError("No user found with that ID")
        logger.info("User %s updated own profile", current.user_id)
        return self.get_user(current.user_id)

    def _available_email(self, email: Any, current: User) -> str:
        email = _normalize_email(email)
        other = self._users.get_by_email(email)
        if other and other.user_id != current.user_id:
            raise ConflictError("Email already in use", code="DuplicateEmail")
        return email

    def list_users(self, *, department: Optional[str] = None) -> Sequence[User]:
        return self._users.list_all(department=optional_text(department))

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("No user found with that ID")
        return user

    def delete_user(self, *, principal: Principal, user_id: int) -> None:
        require_admin(principal)

        if int(user_id) == principal.user_id:
            raise ValidationError("You cannot delete your own account")

        user = self.get_user(user_id)
        if user.role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be deleted")

        # a task must keep at least one assignee
        sole = self._tasks.count_sole_assignments(user_id=user.user_id)
        if sole:
            raise ConflictError(f"User is the only assignee of {sole} task(s); reassign them first", code="UserInUse")

        if not self._users.delete_by_id(user_id):
            raise NotFoundError("No user found with that ID")
        logger.info("Admin %s deleted user %s", principal.user_id, user_id)
