"""
Lifecycle Enums

Enum types for the lending request lifecycle.
Values must match exactly what is stored in the requests table.
"""

from enum import Enum


class RequestStatus(str, Enum):
    """Lending request status."""

    PENDING = "pending"  # Created by the requester, awaiting the owner
    APPROVED = "approved"  # Owner accepted; handover code issued
    ACTIVE = "active"  # Item handed over
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"  # Item returned; return code issued


class RequestAction(str, Enum):
    """Actions a participant can apply to a request."""

    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"
    ACTIVATE = "activate"
    COMPLETE = "complete"


class ActorRole(str, Enum):
    """Participant role on a request."""

    OWNER = "owner"
    REQUESTER = "requester"


class RequestRole(str, Enum):
    """Filter for listing a user's requests."""

    INCOMING = "incoming"  # user is the owner
    OUTGOING = "outgoing"  # user is the requester
    ALL = "all"
