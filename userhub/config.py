"""Environment-driven configuration for the userhub service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


class ConfigurationError(RuntimeError):
    """Raised when mandatory configuration is missing or malformed."""


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "userhub.sqlite3").resolve(strict=False)


def _int_setting(env: Mapping[str, str], name: str, default: int, *, minimum: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime settings shared by the API and the CLI."""

    jwt_secret: str
    database_path: Path
    token_ttl_hours: int = 24
    bcrypt_rounds: int = 12
    allowed_origin: str = "https://localhost:5174"
    port: int = 5300


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from the environment.

    The signing secret has no fallback: a missing ``USERHUB_JWT_SECRET`` is a
    startup error rather than a silently insecure default.
    """

    if env is None:
        env = os.environ

    secret = (env.get("USERHUB_JWT_SECRET") or "").strip()
    if not secret:
        raise ConfigurationError(
            "USERHUB_JWT_SECRET is not set. Configure a strong random value before starting the service."
        )

    origin = (env.get("USERHUB_ALLOWED_ORIGIN") or "").strip() or "https://localhost:5174"

    return Settings(
        jwt_secret=secret,
        database_path=resolve_database_path(env.get("USERHUB_DB_PATH")),
        token_ttl_hours=_int_setting(env, "USERHUB_TOKEN_TTL_HOURS", 24, minimum=1),
        bcrypt_rounds=_int_setting(env, "USERHUB_BCRYPT_ROUNDS", 12, minimum=4),
        allowed_origin=origin,
        port=_int_setting(env, "USERHUB_PORT", 5300, minimum=1),
    )


__all__ = ["ConfigurationError", "Settings", "load_settings", "resolve_database_path"]
