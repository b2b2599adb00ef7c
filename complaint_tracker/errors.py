"""
Exception hierarchy for the complaint tracker.

Every error raised by the library derives from ``TrackerError`` so callers
(the CLI, a web front end) can catch a single type at their boundary.
"""

from __future__ import annotations

from typing import Any, Optional


class TrackerError(Exception):
    """Base class for all complaint tracker errors."""


class ValidationError(TrackerError, ValueError):
    """An input field violates a length or non-blank constraint."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class NotFoundError(TrackerError, LookupError):
    """A referenced complaint, response, or user does not exist."""

    def __init__(self, kind: str, identifier: Any) -> None:
        super().__init__(f"{kind} #{identifier} not found")
        self.kind = kind
        self.identifier = identifier


class InvalidTransitionError(TrackerError):
    """The requested status change is not allowed from the current status."""

    def __init__(self, current: str, requested: str, allowed: Optional[list[str]] = None) -> None:
        allowed = allowed or []
        options = ", ".join(allowed) if allowed else "none (terminal status)"
        super().__init__(
            f"Cannot move complaint from '{current}' to '{requested}'. "
            f"Allowed: {options}"
        )
        self.current = current
        self.requested = requested
        self.allowed = allowed


class ConflictError(TrackerError):
    """The complaint was modified by someone else since it was loaded."""

    def __init__(self, complaint_id: Any, expected: int, actual: Optional[int] = None) -> None:
        detail = f"expected version {expected}"
        if actual is not None:
            detail += f", found {actual}"
        super().__init__(f"Complaint #{complaint_id} was modified concurrently ({detail})")
        self.complaint_id = complaint_id
        self.expected = expected
        self.actual = actual
