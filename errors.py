from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


FORMAT_ERROR = "FORMAT_ERROR"
NOT_FOUND = "NOT_FOUND"
VALIDATION_ERROR = "VALIDATION_ERROR"
INTEGRITY_ERROR = "INTEGRITY_ERROR"
IO_ERROR = "IO_ERROR"


@dataclass
class InjectorError(Exception):
    code: str
    message: str
    details: Optional[Any] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}


class FormatError(InjectorError):
    """Unrecognized or corrupt save container."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(FORMAT_ERROR, message, details)


class NotFoundError(InjectorError):
    """Missing league, team or player row."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(NOT_FOUND, message, details)


class ValidationError(InjectorError):
    """Roster input failed a required-field or type check."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(VALIDATION_ERROR, message, details)


class IntegrityError(InjectorError):
    """Stored value has no known mapping, or a critical write affected zero rows."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(INTEGRITY_ERROR, message, details)


class FileAccessError(InjectorError):
    """File system access failure (wraps OSError)."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(IO_ERROR, message, details)
