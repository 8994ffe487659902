"""Bearer token signing and verification."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from .errors import InvalidCredential

_JWT_ALG = "HS256"


class TokenService:
    """Issue and verify HS256 JWTs carrying an admin id in ``sub``."""

    def __init__(self, secret: str, *, ttl: timedelta = timedelta(hours=24)) -> None:
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        if ttl <= timedelta(0):
            raise ValueError("Token lifetime must be positive")
        self._secret = secret
        self._ttl = ttl

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, subject_id: str, *, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": str(subject_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=_JWT_ALG)

    def verify(self, token: str) -> str:
        """Return the subject id embedded in ``token``.

        Raises :class:`InvalidCredential` for tampered, malformed or expired
        tokens and for tokens without a subject.
        """

        if not token:
            raise InvalidCredential()
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_JWT_ALG],
                options={"require": ["sub", "exp"]},
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidCredential() from exc

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidCredential()
        return subject


__all__ = ["TokenService"]
