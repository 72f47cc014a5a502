from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import NewUser, User, UserChanges


class UserRepository(Protocol):
    """Repository interface for User.

    Note: services depend on this protocol, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def existing_ids(self, user_ids: Sequence[int]) -> set[int]:
        """Subset of ``user_ids`` that resolve to a user."""

        raise NotImplementedError

    def create_user(self, user: NewUser) -> Optional[int]:
        """Insert a user; returns None when the email is already taken."""

        raise NotImplementedError

    def update_account(self, *, user_id: int, changes: UserChanges) -> bool:
        """Apply ``changes``; False when the user is missing.

        Raises ConflictError(code="DuplicateEmail") when the new email is taken.
        """

        raise NotImplementedError

    def update_password(self, *, user_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def list_all(self, *, department: Optional[str] = None) -> Sequence[User]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError
