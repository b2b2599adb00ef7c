"""
Domain objects for the complaint lifecycle.

A ``Complaint`` owns an ordered thread of ``Response`` objects. Both sides
of the Complaint <-> Response link are always updated together through
``Complaint.add_response`` and ``Complaint.remove_response``; nothing else
should assign ``Response.complaint`` directly.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional, Union

from complaint_tracker.errors import ValidationError

MAX_TEXT_LENGTH = 255


class ComplaintStatus(enum.Enum):
    """Lifecycle states for a complaint."""

    SUBMITTED = "submitted"
    IN_REVIEW = "in_review"
    RESOLVED = "resolved"
    REJECTED = "rejected"

    @classmethod
    def coerce(cls, value: Union["ComplaintStatus", str]) -> "ComplaintStatus":
        """Accept either a member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                "status",
                f"unknown status '{value}'. Options: {[s.value for s in cls]}",
            )

    @property
    def is_terminal(self) -> bool:
        return not TRANSITIONS[self]


TRANSITIONS: dict[ComplaintStatus, frozenset[ComplaintStatus]] = {
    ComplaintStatus.SUBMITTED: frozenset({ComplaintStatus.IN_REVIEW, ComplaintStatus.REJECTED}),
    ComplaintStatus.IN_REVIEW: frozenset({ComplaintStatus.RESOLVED, ComplaintStatus.REJECTED}),
    ComplaintStatus.RESOLVED: frozenset(),
    ComplaintStatus.REJECTED: frozenset(),
}

OPEN_STATUSES = [s for s in ComplaintStatus if not s.is_terminal]


def validate_text(field_name: str, value: Any, max_length: int = MAX_TEXT_LENGTH) -> str:
    """Check a free-text field is a non-blank string of at most ``max_length`` chars."""
    if value is None or not isinstance(value, str):
        raise ValidationError(field_name, "is required")
    if not value.strip():
        raise ValidationError(field_name, "must not be blank")
    if len(value) > max_length:
        raise ValidationError(
            field_name, f"must be at most {max_length} characters (got {len(value)})"
        )
    return value


@dataclass
class User:
    """The slice of a user account needed to own complaints."""

    id: int
    username: str
    email: str = ""


@dataclass(eq=False)
class Response:
    """A staff reply attached to a complaint.

    Equality is identity: two responses with the same body are still two
    different replies.
    """

    body: str
    responded_date: date = field(default_factory=date.today)
    id: Optional[int] = None
    complaint: Optional["Complaint"] = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "body": self.body,
            "responded_date": self.responded_date.isoformat(),
            "complaint_id": self.complaint.id if self.complaint is not None else None,
        }


@dataclass(eq=False)
class Complaint:
    """A user-filed complaint and its response thread."""

    owner_id: int
    subject: str
    description: str
    filed_date: date = field(default_factory=date.today)
    status: ComplaintStatus = ComplaintStatus.SUBMITTED
    id: Optional[int] = None
    version: int = 1
    responses: list[Response] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"<Complaint(id={self.id}, owner_id={self.owner_id}, "
            f"status={self.status.value}, responses={len(self.responses)})>"
        )

    def has_response(self, response: Response) -> bool:
        return any(r is response for r in self.responses)

    def add_response(self, response: Response) -> bool:
        """Link ``response`` to this complaint.

        Returns False when the same instance is already in the thread.
        A response still linked to another complaint is detached from it
        first.
        """
        if self.has_response(response):
            return False
        previous = response.complaint
        if previous is not None and previous is not self:
            previous.remove_response(response)
        self.responses.append(response)
        response.complaint = self
        return True

    def remove_response(self, response: Response) -> bool:
        """Unlink ``response``; returns whether it was part of this thread."""
        for index, existing in enumerate(self.responses):
            if existing is response:
                del self.responses[index]
                if response.complaint is self:
                    response.complaint = None
                return True
        return False

    def find_response(self, response_id: int) -> Optional[Response]:
        for response in self.responses:
            if response.id == response_id:
                return response
        return None

    def can_transition_to(self, status: ComplaintStatus) -> bool:
        return status in TRANSITIONS[self.status]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "subject": self.subject,
            "description": self.description,
            "filed_date": self.filed_date.isoformat(),
            "status": self.status.value,
            "version": self.version,
            "responses": [r.to_dict() for r in self.responses],
        }
