from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt

from ..core.constants import JWT_ALGORITHM
from ..core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class TokenService:
    """Issues and verifies the signed bearer tokens that identify a user."""

    def __init__(self, secret: str, *, expire_days: int = 30, algorithm: str = JWT_ALGORITHM):
        self._secret = secret
        self._expire_days = int(expire_days)
        self._algorithm = algorithm

    @property
    def expire_days(self) -> int:
        return self._expire_days

    def issue(self, user_id: int) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "type": "access",
            "iat": now,
            "exp": now + timedelta(days=self._expire_days),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> int:
        """Return the user id carried by a valid token."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired, please log in again") from None
        except jwt.InvalidTokenError:
            raise AuthenticationError("Not authorized to access this route") from None

        if payload.get("type") != "access" or not str(payload.get("sub", "")).isdigit():
            raise AuthenticationError("Not authorized to access this route")
        return int(payload["sub"])
