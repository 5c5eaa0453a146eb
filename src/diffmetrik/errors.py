"""Error types for diffmetrik.

Every failure the package raises derives from :class:`DiffmetrikError` so the
CLI can map it to a single fatal exit path. Store failures are split into I/O
and serialization problems because the caller recovers from both with
:meth:`~diffmetrik.storage.Store.reset`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

# Maximum number of characters of offending content kept in repr/to_dict
RAW_PREVIEW_CHARS = 120


class DiffmetrikError(Exception):
    """Base class for diffmetrik errors.

    Attributes:
        message: Human-readable error message.
        details: Optional structured details (path, source name, ...).
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a dictionary for structured logging."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class StoreError(DiffmetrikError):
    """Base class for failures of the persistent snapshot store."""


class StoreIOError(StoreError):
    """Open, lock, read, write or truncate failure on the store file."""

    def __init__(self, message: str, path: str | Path) -> None:
        super().__init__(message, details={"path": str(path)})
        self.path = Path(path)


class SerializationError(StoreError):
    """Stored content is malformed or does not match the expected schema."""

    def __init__(self, message: str, raw: str = "") -> None:
        preview = raw if len(raw) <= RAW_PREVIEW_CHARS else raw[:RAW_PREVIEW_CHARS] + "..."
        super().__init__(message, details={"raw": preview})
        self.raw = raw


class ClockError(DiffmetrikError):
    """System time is unavailable or before the Unix epoch."""


class SourceError(DiffmetrikError):
    """A metric source failed to produce a sample."""

    def __init__(self, message: str, source: str = "") -> None:
        super().__init__(message, details={"source": source})
        self.source = source
