from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from ..core.enums import Role

ADMIN_PERMISSIONS = ("create", "read", "update", "delete", "manage_users", "manage_attendance")


@dataclass(frozen=True)
class AdminProfile:
    permissions: tuple[str, ...] = ("read",)

    def to_dict(self) -> dict:
        return {"permissions": list(self.permissions)}


@dataclass(frozen=True)
class ClientProfile:
    company: Optional[str] = None
    contact_number: Optional[str] = None

    def to_dict(self) -> dict:
        return {"company": self.company, "contactNumber": self.contact_number}


Profile = Union[AdminProfile, ClientProfile]


@dataclass(frozen=True)
class User:
    """Domain entity: a portal account.

    One record type for every role; ``profile`` carries the role-specific
    attributes (AdminProfile for admins, ClientProfile for clients).
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    department: Optional[str] = None
    mobile: Optional[str] = None
    created_at: Optional[datetime] = None
    profile: Optional[Profile] = None

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "department": self.department,
            "mobile": self.mobile,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "profile": self.profile.to_dict() if self.profile else None,
        }


@dataclass(frozen=True)
class Principal:
    """The authenticated identity attached to a request."""

    user_id: int
    role: Role
    name: str = ""
    email: str = ""
    department: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            user_id=user.user_id,
            role=user.role,
            name=user.name,
            email=user.email,
            department=user.department,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "role": self.role.value,
            "name": self.name,
            "email": self.email,
            "department": self.department,
        }


@dataclass(frozen=True)
class NewUser:
    name: str
    email: str
    password_hash: str
    role: Role
    department: Optional[str] = None
    mobile: Optional[str] = None
    profile: Optional[Profile] = field(default=None)


@dataclass(frozen=True)
class UserChanges:
    """Account edits; None means "leave unchanged"."""

    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[Role] = None
    department: Optional[str] = None
    mobile: Optional[str] = None
    profile: Optional[Profile] = None

    @property
    def empty(self) -> bool:
        return all(getattr(self, f) is None for f in ("name", "email", "role", "department", "mobile", "profile"))
