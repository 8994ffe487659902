"""FastAPI application exposing the user resource and the admin credential flow."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Awaitable, Dict, List, Optional, Sequence

from fastapi import APIRouter, Depends, FastAPI, Path, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, load_settings
from .database import Database
from .errors import APIError, ServerError, ValidationError
from .results import Failure, Result
from .schemas import (
    MAX_PAGE,
    MAX_PAGE_SIZE,
    AdminRegister,
    BulkDeleteRequest,
    BulkUpdateItem,
    LoginRequest,
    UserCreate,
    UserUpdate,
)
from .security import BearerAuth
from .services import AuthService, UserService
from .tokens import TokenService

logger = logging.getLogger("userhub.api")


def error_response(exc: Exception) -> JSONResponse:
    """Render any failure as ``{success: false, error}`` with its status code."""

    if isinstance(exc, APIError):
        status_code, message = exc.status_code, exc.message
    else:
        status_code, message = ServerError.status_code, ServerError.default_message

    if status_code >= 500:
        logger.error("Request failed: %s", exc, exc_info=exc)
    else:
        logger.warning("Request rejected with status %s: %s", status_code, message)

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


def render(result: Result) -> JSONResponse:
    if isinstance(result, Failure):
        return error_response(result.error)
    return JSONResponse(status_code=result.status_code, content={"success": True, **result.payload})


async def respond(operation: Awaitable[Result]) -> JSONResponse:
    """Await a service operation and render it.

    Unexpected failures are rendered here rather than by the server-error
    middleware so the response still passes through CORS.
    """

    try:
        result = await operation
    except Exception as exc:
        return error_response(exc)
    return render(result)


def describe_validation_errors(errors: Sequence[Dict[str, Any]]) -> str:
    messages: List[str] = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query")]
        message = str(error.get("msg", "Invalid value"))
        messages.append(f"{'.'.join(location)}: {message}" if location else message)
    return "; ".join(messages) or ValidationError.default_message


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(APIError)
    async def _api_error(_request: Request, exc: APIError) -> JSONResponse:
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(ValidationError(describe_validation_errors(exc.errors())))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        error = APIError(str(exc.detail))
        error.status_code = exc.status_code
        return error_response(error)

    @app.exception_handler(Exception)
    async def _unhandled_error(_request: Request, exc: Exception) -> JSONResponse:
        return error_response(exc)


def create_app(
    *,
    database: Optional[Database] = None,
    settings: Optional[Settings] = None,
    tokens: Optional[TokenService] = None,
    initialize_database: bool = False,
) -> FastAPI:
    """Build the ASGI application around an injected store handle."""

    if settings is None:
        settings = load_settings()

    if database is None:
        database = Database(settings.database_path, bcrypt_rounds=settings.bcrypt_rounds)
        database.initialize()
    elif initialize_database:
        database.initialize()

    if tokens is None:
        tokens = TokenService(settings.jwt_secret, ttl=timedelta(hours=settings.token_ttl_hours))

    users = UserService(database)
    auth_service = AuthService(database, tokens)
    require_admin = BearerAuth(tokens)

    app = FastAPI(
        title="userhub",
        description="User records behind an admin bearer token",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.allowed_origin],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.state.database = database
    _install_error_handlers(app)

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    auth_router = APIRouter()

    @auth_router.post("/register")
    async def register(payload: AdminRegister) -> JSONResponse:
        return await respond(auth_service.register(payload))

    @auth_router.post("/login")
    async def login(payload: LoginRequest) -> JSONResponse:
        return await respond(auth_service.login(payload))

    # Literal segments (bulk, page) are registered ahead of /users/{user_id}.
    protected_router = APIRouter(dependencies=[Depends(require_admin)])

    @protected_router.post("/users")
    async def create_user(payload: UserCreate) -> JSONResponse:
        return await respond(users.create(payload))

    @protected_router.post("/users/bulk")
    async def create_users(payload: List[UserCreate]) -> JSONResponse:
        return await respond(users.create_many(payload))

    @protected_router.get("/users")
    async def list_users() -> JSONResponse:
        return await respond(users.list_all())

    @protected_router.put("/users/bulk")
    async def update_users(payload: List[BulkUpdateItem]) -> JSONResponse:
        return await respond(users.update_many(payload))

    @protected_router.delete("/users/bulk")
    async def delete_users(payload: BulkDeleteRequest) -> JSONResponse:
        return await respond(users.delete_many(payload))

    @protected_router.get("/users/page/{page}")
    async def page_users(
        page: int = Path(..., ge=1, le=MAX_PAGE),
        limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    ) -> JSONResponse:
        return await respond(users.page(page, limit))

    @protected_router.get("/users/{user_id}")
    async def read_user(user_id: str) -> JSONResponse:
        return await respond(users.get(user_id))

    @protected_router.put("/users/{user_id}")
    async def update_user(user_id: str, payload: UserUpdate) -> JSONResponse:
        return await respond(users.update(user_id, payload))

    @protected_router.delete("/users/{user_id}")
    async def delete_user(user_id: str) -> JSONResponse:
        return await respond(users.delete(user_id))

    @protected_router.get("/search/{key}")
    async def search_users(key: str) -> JSONResponse:
        return await respond(users.search(key))

    app.include_router(auth_router, prefix="/api")
    app.include_router(protected_router, prefix="/api")

    return app


__all__ = ["create_app", "describe_validation_errors", "error_response", "render", "respond"]
