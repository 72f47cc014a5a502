"""Role-based row scoping.

A ScopeFilter describes which records of a collection a principal may see.
Repositories turn it into a query predicate (``access.sql.scope_clause``) so
that filtering happens in the store, never after loading.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ..core.enums import Resource, Role
from ..core.exceptions import AuthorizationError
from ..users.model import Principal


@dataclass(frozen=True)
class ScopeFilter:
    resource: Resource
    owner_id: Optional[int] = None

    @property
    def unrestricted(self) -> bool:
        return self.owner_id is None


UNRESTRICTED = {r: ScopeFilter(r) for r in Resource}


def scope_for(principal: Principal, resource: Resource) -> ScopeFilter:
    if principal.role == Role.ADMIN:
        return UNRESTRICTED[resource]
    return ScopeFilter(resource=resource, owner_id=principal.user_id)


def own_scope(principal: Principal, resource: Resource) -> ScopeFilter:
    """Records tied to the principal personally, whatever the role."""

    return ScopeFilter(resource=resource, owner_id=principal.user_id)


def require_role(principal: Principal, allowed_roles: Iterable[Role]) -> None:
    if principal.role not in set(allowed_roles):
        raise AuthorizationError("You do not have permission to perform this action", code="Forbidden")


def require_admin(principal: Principal) -> None:
    require_role(principal, (Role.ADMIN,))
