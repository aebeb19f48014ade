"""
Request Lifecycle API Schemas

Request/response models for the lending request endpoints (camelCase on the wire,
matching the web client).
"""

from datetime import date
from datetime import datetime
from typing import List
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from lendly_api.lifecycle.enums import RequestStatus
from lendly_api.lifecycle.models import LendingRequest
from lendly_api.lifecycle.models import TransitionResult


class RequestStatusUpdate(BaseModel):
    """Body of POST /update-request-status."""

    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(..., alias="requestId", min_length=1, description="Request identifier")
    # Free-form so unknown actions are reported as invalid_action rather than a schema error
    action: str = Field(..., description="approve, reject, cancel, activate or complete")
    handover_code: Optional[str] = Field(None, alias="handoverCode", description="Required for activate")
    return_code: Optional[str] = Field(None, alias="returnCode", description="Accepted for compatibility; unused")


class RequestStatusUpdateResponse(BaseModel):
    """Successful transition."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    handover_code: Optional[str] = Field(None, alias="handoverCode")
    return_code: Optional[str] = Field(None, alias="returnCode")

    @classmethod
    def from_result(cls, result: TransitionResult) -> "RequestStatusUpdateResponse":
        return cls(
            message=result.message,
            handover_code=result.handover_code,
            return_code=result.return_code,
        )


class ErrorResponse(BaseModel):
    """Every failure: human readable message plus a stable reason."""

    error: str
    reason: str


class LendingRequestView(BaseModel):
    """A request as shown to one of its participants."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    listing_id: Optional[str] = Field(None, alias="listingId")
    requester_id: str = Field(..., alias="requesterId")
    owner_id: str = Field(..., alias="ownerId")
    status: RequestStatus
    handover_code: Optional[str] = Field(None, alias="handoverCode")
    return_code: Optional[str] = Field(None, alias="returnCode")
    start_date: Optional[date] = Field(None, alias="startDate")
    end_date: Optional[date] = Field(None, alias="endDate")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @classmethod
    def from_request(cls, request: LendingRequest) -> "LendingRequestView":
        """
        Build the participant view.

        The handover code is only shown while the request is approved; once the item has
        changed hands it is no longer useful. The return code is shown once issued.
        """
        return cls(
            id=request.id,
            listing_id=request.listing_id,
            requester_id=request.requester_id,
            owner_id=request.owner_id,
            status=request.status,
            handover_code=request.handover_code if request.status is RequestStatus.APPROVED else None,
            return_code=request.return_code,
            start_date=request.start_date,
            end_date=request.end_date,
            created_at=request.created_at,
            updated_at=request.updated_at,
        )


class LendingRequestListResponse(BaseModel):
    """Requests the caller takes part in."""

    count: int
    requests: List[LendingRequestView]
