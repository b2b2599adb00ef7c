"""
Collaborator interfaces the complaint tracker depends on.

``ComplaintDB`` implements both against a relational database; tests or
other front ends may supply their own.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from complaint_tracker.tracker.models import Complaint, ComplaintStatus, User


class UserDirectory(ABC):
    """Resolves a user identifier to a user record."""

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Return the user, or None if the id does not resolve."""


class ComplaintStore(ABC):
    """
    Persistence for complaints and their response threads.

    Subclasses must implement create/get/save/delete plus the listing and
    counting queries used for the back-office views.
    """

    @abstractmethod
    def create_complaint(self, complaint: Complaint) -> Complaint:
        """Persist a new complaint and assign ids to it and its responses."""

    @abstractmethod
    def get_complaint(self, complaint_id: int) -> Optional[Complaint]:
        """Load a complaint with its responses, or None."""

    @abstractmethod
    def save_complaint(self, complaint: Complaint) -> Complaint:
        """Write back fields and the response thread.

        Responses missing from ``complaint.responses`` are deleted. Raises
        ``ConflictError`` when the stored version differs from
        ``complaint.version``; on success the version is incremented.
        """

    @abstractmethod
    def delete_complaint(self, complaint_id: int) -> bool:
        """Delete a complaint and its responses; False if it did not exist."""

    @abstractmethod
    def list_complaints(
        self,
        owner_id: Optional[int] = None,
        status: Optional[ComplaintStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Complaint]:
        """Return complaints, newest first."""

    @abstractmethod
    def count_by_status(self) -> dict[ComplaintStatus, int]:
        """Return the number of complaints in each status that has any."""

    @abstractmethod
    def count_unanswered(self) -> int:
        """Return the number of open complaints with no response yet."""
