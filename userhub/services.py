"""Handler-level operations for the user resource and the admin credential flow.

Each operation returns a :class:`~userhub.results.Success` or
:class:`~userhub.results.Failure`. Blocking store calls run in a worker thread
so concurrent requests are never stalled behind SQLite or bcrypt.
"""
from __future__ import annotations

import logging
import math
from functools import partial
from typing import Callable, List, Sequence, TypeVar

import anyio

from .database import Database, DuplicateRecordError
from .errors import BadRequest, Conflict, InvalidCredential, NotFound, ValidationError
from .results import Failure, Result, Success
from .schemas import AdminRegister, BulkDeleteRequest, BulkUpdateItem, LoginRequest, UserCreate, UserUpdate
from .tokens import TokenService

logger = logging.getLogger("userhub.services")

T = TypeVar("T")

USER_NOT_FOUND = "User not found"


async def _run(func: Callable[..., T], *args: object, **kwargs: object) -> T:
    return await anyio.to_thread.run_sync(partial(func, *args, **kwargs))


def _store_failure(exc: ValueError) -> Failure:
    if isinstance(exc, DuplicateRecordError):
        return Failure(Conflict(str(exc)))
    return Failure(ValidationError(str(exc)))


class UserService:
    """CRUD, bulk, search and pagination over user records."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create(self, payload: UserCreate) -> Result:
        try:
            user = await _run(self._db.create_user, payload.model_dump())
        except ValueError as exc:
            return _store_failure(exc)
        return Success({"data": user.to_dict()}, status_code=201)

    async def create_many(self, payload: Sequence[UserCreate]) -> Result:
        if not payload:
            return Failure(ValidationError("At least one user is required"))
        try:
            users = await _run(self._db.insert_users, [item.model_dump() for item in payload])
        except ValueError as exc:
            return _store_failure(exc)
        logger.info("Inserted %s user(s) in bulk", len(users))
        return Success(
            {"count": len(users), "data": [user.to_dict() for user in users]},
            status_code=201,
        )

    async def list_all(self) -> Result:
        users = await _run(self._db.list_users)
        return Success({"count": len(users), "data": [user.to_dict() for user in users]})

    async def get(self, user_id: str) -> Result:
        user = await _run(self._db.get_user, user_id)
        if user is None:
            return Failure(NotFound(USER_NOT_FOUND))
        return Success({"data": user.to_dict()})

    async def update(self, user_id: str, payload: UserUpdate) -> Result:
        try:
            user = await _run(self._db.update_user, user_id, payload.changes())
        except ValueError as exc:
            return _store_failure(exc)
        if user is None:
            return Failure(NotFound(USER_NOT_FOUND))
        return Success({"data": user.to_dict()})

    async def update_many(self, payload: Sequence[BulkUpdateItem]) -> Result:
        """Apply independent field-sets; only the aggregate count is reported."""

        if not payload:
            return Failure(ValidationError("At least one update is required"))
        items = [(item.id, item.data.changes()) for item in payload]
        try:
            modified = await _run(self._db.bulk_update_users, items)
        except ValueError as exc:
            return _store_failure(exc)
        return Success({"modified": modified})

    async def delete(self, user_id: str) -> Result:
        deleted = await _run(self._db.delete_user, user_id)
        if not deleted:
            return Failure(NotFound(USER_NOT_FOUND))
        return Success({"data": {}})

    async def delete_many(self, payload: BulkDeleteRequest) -> Result:
        deleted = await _run(self._db.delete_users, payload.ids)
        return Success({"deleted": deleted})

    async def search(self, key: str) -> Result:
        users = await _run(self._db.search_users, key)
        return Success({"count": len(users), "data": [user.to_dict() for user in users]})

    async def page(self, page: int, limit: int) -> Result:
        if page < 1 or limit < 1:
            return Failure(ValidationError("page and limit must be positive integers"))
        users = await _run(self._db.page_users, offset=(page - 1) * limit, limit=limit)
        total = await _run(self._db.count_users)
        data: List[dict] = [user.to_dict() for user in users]
        return Success(
            {
                "count": len(data),
                "pagination": {
                    "current": page,
                    "limit": limit,
                    "pages": math.ceil(total / limit),
                    "total": total,
                },
                "data": data,
            }
        )


class AuthService:
    """Admin registration and login."""

    INVALID_LOGIN = "Invalid Email or Password"

    def __init__(self, database: Database, tokens: TokenService) -> None:
        self._db = database
        self._tokens = tokens

    async def register(self, payload: AdminRegister) -> Result:
        try:
            admin = await _run(self._db.create_admin, payload.name, payload.email, payload.password)
        except ValueError as exc:
            return _store_failure(exc)
        logger.info("Registered admin %s", admin.id)
        return Success(
            {"data": admin.to_public_dict(), "token": self._tokens.issue(admin.id)},
            status_code=201,
        )

    async def login(self, payload: LoginRequest) -> Result:
        email = (payload.email or "").strip()
        password = payload.password or ""
        if not email or not password:
            return Failure(BadRequest("Email and Password are required"))

        admin = await _run(self._db.authenticate_admin, email, password)
        if admin is None:
            logger.warning("Failed login attempt for %s", email)
            return Failure(InvalidCredential(self.INVALID_LOGIN))

        return Success(
            {
                "message": "Login Successful",
                "data": admin.to_public_dict(),
                "token": self._tokens.issue(admin.id),
            }
        )


__all__ = ["AuthService", "UserService"]
