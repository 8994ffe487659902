"""Request payloads accepted by the HTTP API.

Every model forbids unknown fields so malformed payloads are rejected before
any store call is made.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_AGE = 150
MAX_PAGE = 2**31
MAX_PAGE_SIZE = 1000


def _strip_required(value: str, label: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{label} is required")
    return stripped


class UserCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., max_length=200)
    email: str = Field(..., max_length=320)
    age: Optional[int] = Field(default=None, ge=0, le=MAX_AGE)

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        return _strip_required(value, "Name")

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return _strip_required(value, "Email").lower()


class UserUpdate(BaseModel):
    """Partial update: only the fields present in the payload are replaced."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, max_length=200)
    email: Optional[str] = Field(default=None, max_length=320)
    age: Optional[int] = Field(default=None, ge=0, le=MAX_AGE)

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _strip_required(value, "Name")

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _strip_required(value, "Email").lower()

    @model_validator(mode="after")
    def _reject_null_required_fields(self):  # type: ignore[override]
        for name in ("name", "email"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class BulkUpdateItem(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    data: UserUpdate


class BulkDeleteRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ids: List[str]


class AdminRegister(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., max_length=200)
    email: str = Field(..., max_length=320)
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        return _strip_required(value, "Name")

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return _strip_required(value, "Email").lower()


class LoginRequest(BaseModel):
    """Both fields are optional here; the login operation reports them missing."""

    model_config = ConfigDict(extra="forbid")

    email: Optional[str] = None
    password: Optional[str] = None


__all__ = [
    "AdminRegister",
    "BulkDeleteRequest",
    "BulkUpdateItem",
    "LoginRequest",
    "UserCreate",
    "UserUpdate",
]
