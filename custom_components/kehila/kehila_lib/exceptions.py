# custom_components/kehila/kehila_lib/exceptions.py
from __future__ import annotations


class KehilaError(Exception):
    """Base class for errors raised by the Kehila stores."""


class ValidationError(KehilaError):
    """A required field is missing or a value is out of range."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class PermissionDenied(KehilaError):
    """The session user's role does not allow the operation."""


class NotFound(KehilaError):
    """No record with the requested id."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} '{record_id}' not found")
        self.kind = kind
        self.record_id = record_id
