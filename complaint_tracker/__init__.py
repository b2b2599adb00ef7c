"""
Complaint Tracker: file user complaints, move them through a review
lifecycle, and keep the staff response thread attached to each one.
"""

__version__ = "0.1.0"
