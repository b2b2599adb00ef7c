"""
Complaint lifecycle service.

Files complaints on behalf of users, moves them through the review
lifecycle, and manages the staff response thread. Persistence and user
lookup are delegated to the collaborators passed in.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Union

from complaint_tracker.errors import (
    InvalidTransitionError,
    NotFoundError,
    TrackerError,
    ValidationError,
)
from complaint_tracker.tracker.models import (
    OPEN_STATUSES,
    TRANSITIONS,
    Complaint,
    ComplaintStatus,
    Response,
    validate_text,
)
from complaint_tracker.tracker.store import ComplaintStore, UserDirectory

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _rejected(error: TrackerError) -> TrackerError:
    logger.warning("Rejected: %s", error)
    return error


class ComplaintTracker:
    """
    Lifecycle operations for complaints.

    Usage:
        db = ComplaintDB("sqlite:///complaints.db")
        tracker = ComplaintTracker(db, users=db)
        complaint = tracker.file(owner_id=1, subject="Late delivery",
                                 description="Package arrived 3 days late")
        tracker.set_status(complaint, "in_review")
        tracker.add_response(complaint, "We are investigating")

    With ``strict_transitions`` enabled, status changes must follow
    ``TRANSITIONS``; otherwise any status may replace any other.
    """

    def __init__(
        self,
        store: ComplaintStore,
        users: Optional[UserDirectory] = None,
        clock: Clock = datetime.now,
        strict_transitions: bool = False,
    ) -> None:
        if users is None:
            if not isinstance(store, UserDirectory):
                raise TypeError("users is required when the store is not a UserDirectory")
            users = store
        self.store = store
        self.users = users
        self.clock = clock
        self.strict_transitions = strict_transitions

    def _today(self) -> date:
        return self.clock().date()

    # ---- Filing ----

    def file(
        self,
        owner_id: int,
        subject: str,
        description: str,
        filed_date: Optional[date] = None,
    ) -> Complaint:
        """File a new complaint in status ``submitted``."""
        try:
            validate_text("subject", subject)
            validate_text("description", description)
        except ValidationError as e:
            raise _rejected(e)
        if self.users.get_user(owner_id) is None:
            raise _rejected(NotFoundError("user", owner_id))

        complaint = Complaint(
            owner_id=owner_id,
            subject=subject,
            description=description,
            filed_date=filed_date or self._today(),
        )
        self.store.create_complaint(complaint)
        logger.info("Complaint #%s filed by user #%s", complaint.id, owner_id)
        return complaint

    # ---- Status ----

    def set_status(
        self, complaint: Complaint, new_status: Union[ComplaintStatus, str]
    ) -> Complaint:
        try:
            status = ComplaintStatus.coerce(new_status)
        except ValidationError as e:
            raise _rejected(e)
        if status is complaint.status:
            return complaint
        if self.strict_transitions and not complaint.can_transition_to(status):
            raise _rejected(InvalidTransitionError(
                complaint.status.value,
                status.value,
                sorted(s.value for s in TRANSITIONS[complaint.status]),
            ))

        previous = complaint.status
        complaint.status = status
        try:
            self.store.save_complaint(complaint)
        except Exception:
            complaint.status = previous
            raise
        logger.info(
            "Complaint #%s status %s -> %s", complaint.id, previous.value, status.value
        )
        return complaint

    # ---- Responses ----

    def add_response(
        self,
        complaint: Complaint,
        body: str,
        responded_date: Optional[date] = None,
    ) -> Response:
        """Append a staff response to the complaint's thread."""
        try:
            validate_text("body", body)
        except ValidationError as e:
            raise _rejected(e)
        response = Response(body=body, responded_date=responded_date or self._today())
        complaint.add_response(response)
        try:
            self.store.save_complaint(complaint)
        except Exception:
            complaint.remove_response(response)
            raise
        logger.info("Response #%s added to complaint #%s", response.id, complaint.id)
        return response

    def remove_response(self, complaint: Complaint, response: Response) -> bool:
        """Detach ``response``; False when it was not part of this complaint."""
        position = next(
            (i for i, r in enumerate(complaint.responses) if r is response), None
        )
        if position is None:
            return False

        complaint.remove_response(response)
        try:
            self.store.save_complaint(complaint)
        except Exception:
            complaint.responses.insert(position, response)
            response.complaint = complaint
            raise
        logger.info("Response #%s removed from complaint #%s", response.id, complaint.id)
        return True

    def list_responses(self, complaint: Complaint) -> tuple[Response, ...]:
        return tuple(complaint.responses)

    # ---- Back office ----

    def get_complaint(self, complaint_id: int) -> Complaint:
        complaint = self.store.get_complaint(complaint_id)
        if complaint is None:
            raise _rejected(NotFoundError("complaint", complaint_id))
        return complaint

    def get_response(self, complaint: Complaint, response_id: int) -> Response:
        response = complaint.find_response(response_id)
        if response is None:
            raise _rejected(NotFoundError("response", response_id))
        return response

    def list_complaints(
        self,
        owner_id: Optional[int] = None,
        status: Optional[Union[ComplaintStatus, str]] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Complaint]:
        if status is not None:
            status = ComplaintStatus.coerce(status)
        return self.store.list_complaints(
            owner_id=owner_id, status=status, limit=limit, offset=offset
        )

    def delete_complaint(self, complaint_id: int) -> None:
        """Delete a complaint together with its responses."""
        if not self.store.delete_complaint(complaint_id):
            raise _rejected(NotFoundError("complaint", complaint_id))
        logger.info("Complaint #%s deleted", complaint_id)

    def get_stats(self) -> dict:
        counts = self.store.count_by_status()
        return {
            "total": sum(counts.values()),
            "open": sum(counts.get(s, 0) for s in OPEN_STATUSES),
            "unanswered": self.store.count_unanswered(),
            "by_status": {s.value: counts[s] for s in ComplaintStatus if counts.get(s)},
        }
