from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from userhub.config import ConfigurationError, load_settings


def test_missing_secret_fails_fast() -> None:
    with pytest.raises(ConfigurationError):
        load_settings({})

    with pytest.raises(ConfigurationError):
        load_settings({"USERHUB_JWT_SECRET": "   "})


def test_defaults(tmp_path: Path) -> None:
    settings = load_settings({"USERHUB_JWT_SECRET": "s3cret"})

    assert settings.jwt_secret == "s3cret"
    assert settings.token_ttl_hours == 24
    assert settings.bcrypt_rounds == 12
    assert settings.port == 5300
    assert settings.allowed_origin == "https://localhost:5174"
    assert settings.database_path.name == "userhub.sqlite3"


def test_overrides(tmp_path: Path) -> None:
    settings = load_settings(
        {
            "USERHUB_JWT_SECRET": "s3cret",
            "USERHUB_DB_PATH": str(tmp_path / "custom.sqlite3"),
            "USERHUB_PORT": "8080",
            "USERHUB_BCRYPT_ROUNDS": "4",
            "USERHUB_ALLOWED_ORIGIN": "https://app.example.com",
        }
    )

    assert settings.database_path == (tmp_path / "custom.sqlite3").resolve()
    assert settings.port == 8080
    assert settings.bcrypt_rounds == 4
    assert settings.allowed_origin == "https://app.example.com"


@pytest.mark.parametrize(
    "name, value",
    [("USERHUB_PORT", "http"), ("USERHUB_BCRYPT_ROUNDS", "2"), ("USERHUB_TOKEN_TTL_HOURS", "0")],
)
def test_invalid_numbers_are_rejected(name: str, value: str) -> None:
    with pytest.raises(ConfigurationError):
        load_settings({"USERHUB_JWT_SECRET": "s3cret", name: value})
