"""
Lending Request Model

Record model for rows of the requests table, as seen by the lifecycle service.
"""

from dataclasses import dataclass
from datetime import date
from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict

from lendly_api.lifecycle.enums import ActorRole
from lendly_api.lifecycle.enums import RequestStatus

PAST_TENSE = {
    "approve": "approved",
    "reject": "rejected",
    "cancel": "cancelled",
    "activate": "activated",
    "complete": "completed",
}


class LendingRequest(BaseModel):
    """Lending request record."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    requester_id: str
    owner_id: str
    status: RequestStatus
    handover_code: Optional[str] = None
    return_code: Optional[str] = None
    updated_at: Optional[datetime] = None

    # Written by the listing request flow, read-only here
    listing_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: Optional[datetime] = None

    def plays(self, role: ActorRole, user_id: str) -> bool:
        """
        Whether ``user_id`` holds ``role`` on this request.

        Each role is checked against its own column, so a user who requested their own
        item holds both roles.
        """
        if role is ActorRole.OWNER:
            return user_id == self.owner_id
        return user_id == self.requester_id

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.owner_id, self.requester_id)


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a successful transition."""

    request_id: str
    action: str
    status: RequestStatus
    handover_code: Optional[str] = None
    return_code: Optional[str] = None

    @property
    def message(self) -> str:
        return f"Request {PAST_TENSE.get(self.action, self.action)} successfully"
