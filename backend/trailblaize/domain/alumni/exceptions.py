"""Domain-level exceptions for the alumni directory."""

from __future__ import annotations

from typing import Mapping, Optional


class AlumniError(Exception):
    """Base class for alumni directory errors."""

    reason: str = "unknown"

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or self.reason)
        if reason:
            self.reason = reason


class ConfigurationError(AlumniError):
    """Raised when required deployment configuration is absent."""

    reason = "Missing environment variables"

    def __init__(self, details: Mapping[str, bool]) -> None:
        super().__init__()
        self.details = dict(details)


class StoreQueryError(AlumniError):
    """Raised when the backing store rejects a query."""

    reason = "Database query failed"

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__()
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return self.message