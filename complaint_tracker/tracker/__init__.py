"""
Complaint tracker domain objects, lifecycle service, and persistence.
"""

from complaint_tracker.tracker.models import (
    Complaint,
    ComplaintStatus,
    Response,
    TRANSITIONS,
    User,
)
from complaint_tracker.tracker.store import ComplaintStore, UserDirectory
from complaint_tracker.tracker.database import Base, ComplaintDB
from complaint_tracker.tracker.tracker import ComplaintTracker

__all__ = [
    "Base",
    "Complaint",
    "ComplaintDB",
    "ComplaintStatus",
    "ComplaintStore",
    "ComplaintTracker",
    "Response",
    "TRANSITIONS",
    "User",
    "UserDirectory",
]
