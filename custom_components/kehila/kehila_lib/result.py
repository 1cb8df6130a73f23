# custom_components/kehila/kehila_lib/result.py
"""
Explicit outcome of a calendar lookup.

Calendar helpers never raise into the UI. They return a Result instead, so a
caller can tell "conversion failed" apart from "nothing happens on this date".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Failure(str, Enum):
    """Named reason a lookup produced no value."""

    INVALID_DATE = "invalid_date"
    NO_EVENT = "no_event"
    LIBRARY_ERROR = "library_error"


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    reason: Failure | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, reason: Failure, detail: str = "") -> Result[Any]:
        return cls(reason=reason, detail=detail)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default

    def __bool__(self) -> bool:
        return self.ok
