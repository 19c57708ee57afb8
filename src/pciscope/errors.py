"""
Typed exceptions for pciscope.

Hierarchy:
    PciscopeError
    ├── ParseError        (a raw attribute value could not be normalized)
    ├── EnumerationError  (listing devices or modules failed, poll aborted)
    └── ConfigError       (bad settings or unknown collector name)
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class PciscopeError(Exception):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ParseError(PciscopeError, ValueError):
    """Raised by the value normalizers on unrecognized input."""

    def __init__(self, message: str, value: Optional[str] = None):
        self.value = value
        super().__init__(message, {"value": value} if value is not None else None)


class EnumerationError(PciscopeError):
    """Raised when the entity listing for a poll cannot be obtained."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message, {"path": path} if path else None)


class ConfigError(PciscopeError):
    pass
