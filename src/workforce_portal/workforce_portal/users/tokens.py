from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from ..core.constants import DEFAULT_TOKEN_MINUTES
from ..core.enums import Role
from ..core.exceptions import AuthenticationError


class TokenCodec:
    """Signs and verifies stateless, time-limited session tokens (JWT)."""

    def __init__(self, secret: str, *, algorithm: str = "HS256", expires_minutes: int = DEFAULT_TOKEN_MINUTES):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._expires = timedelta(minutes=int(expires_minutes))

    def issue(self, *, user_id: int, role: Role, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "role": role.value,
            "iat": now,
            "exp": now + self._expires,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Session expired, please log in again", code="TokenExpired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token", code="InvalidToken")

    def user_id_of(self, token: str) -> int:
        payload = self.decode(token)
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Invalid token payload", code="InvalidToken")
