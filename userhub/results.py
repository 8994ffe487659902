"""Tagged success/failure values returned by service operations.

Services never raise for business failures (missing records, invalid input,
duplicates). They return a :class:`Failure` wrapping an :class:`APIError` and
the HTTP layer renders both variants through a single function.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Union

from .errors import APIError


@dataclass(frozen=True)
class Success:
    """Envelope fields to merge next to ``success: true``."""

    payload: Dict[str, object] = field(default_factory=dict)
    status_code: int = 200


@dataclass(frozen=True)
class Failure:
    error: APIError


Result = Union[Success, Failure]


__all__ = ["Failure", "Result", "Success"]
