from __future__ import annotations

from functools import wraps
from typing import Callable, Optional

from flask import g, request

from ..core.enums import Role
from ..core.exceptions import AuthenticationError


def extract_bearer(auth_header: Optional[str]) -> Optional[str]:
    """Return the token of an ``Authorization: Bearer <token>`` header, or None."""

    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def auth_guards(auth_service) -> tuple[Callable, Callable]:
    """Build ``login_required`` and ``roles_required`` bound to an AuthService.

    The resolved principal lives in ``flask.g.principal`` for the current request only.
    """

    def _resolve() -> None:
        token = extract_bearer(request.headers.get("Authorization"))
        if not token:
            raise AuthenticationError("You are not logged in", code="MissingToken")
        g.principal = auth_service.resolve_principal(token)

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            _resolve()
            return view(*args, **kwargs)

        return wrapper

    def roles_required(*roles: Role):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                _resolve()
                auth_service.require_role(g.principal, roles)
                return view(*args, **kwargs)

            return wrapper

        return decorator

    return login_required, roles_required
