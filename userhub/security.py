"""Bearer authentication for the protected API routes."""
from __future__ import annotations

from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import AuthenticationRequired
from .tokens import TokenService


class BearerAuth:
    """FastAPI dependency that verifies ``Authorization: Bearer <jwt>``.

    The verified admin id is stored on ``request.state.admin_id`` and returned
    to the route. Missing credentials raise :class:`AuthenticationRequired`;
    verification failures surface as ``InvalidCredential`` from the token
    service. Both are rendered by the API's error translator.
    """

    def __init__(self, tokens: TokenService):
        self._tokens = tokens
        self._bearer = HTTPBearer(auto_error=False)

    async def __call__(self, request: Request) -> str:
        credentials: HTTPAuthorizationCredentials | None = await self._bearer(request)  # type: ignore[assignment]
        if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
            raise AuthenticationRequired()

        admin_id = self._tokens.verify(credentials.credentials)
        request.state.admin_id = admin_id
        return admin_id


__all__ = ["BearerAuth"]
