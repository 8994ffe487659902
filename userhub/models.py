"""Records persisted by the userhub store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional


@dataclass(frozen=True)
class Admin:
    """An administrator allowed to obtain bearer tokens."""

    id: str
    name: str
    email: str
    password_hash: str
    created_at: datetime

    def to_public_dict(self) -> Dict[str, object]:
        # The password hash never leaves the store layer.
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class User:
    """A managed user record."""

    id: str
    name: str
    email: str
    age: Optional[int]
    created_at: datetime

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "age": self.age,
            "created_at": self.created_at.isoformat(),
        }


__all__ = ["Admin", "User"]
