"""
Request Lifecycle API Routes

RPC endpoint for request status transitions and read endpoints for participants.
"""

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query
from fastapi import status
from loguru import logger

from lendly_api.dependencies import get_current_user_id
from lendly_api.dependencies import get_lifecycle_service
from lendly_api.lifecycle.enums import RequestRole
from lendly_api.lifecycle.service import RequestLifecycleService
from lendly_api.schemas.schemas_requests import ErrorResponse
from lendly_api.schemas.schemas_requests import LendingRequestListResponse
from lendly_api.schemas.schemas_requests import LendingRequestView
from lendly_api.schemas.schemas_requests import RequestStatusUpdate
from lendly_api.schemas.schemas_requests import RequestStatusUpdateResponse

ROUTER_REQUESTS = APIRouter(tags=["Requests"])

ERROR_RESPONSES = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "Invalid action, transition or code"},
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
    status.HTTP_403_FORBIDDEN: {"model": ErrorResponse, "description": "Caller is not the designated actor"},
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Request not found"},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse, "description": "Store failure"},
}


@ROUTER_REQUESTS.post(
    "/update-request-status",
    response_model=RequestStatusUpdateResponse,
    response_model_exclude_none=True,
    summary="Apply a status transition to a lending request",
    responses=ERROR_RESPONSES,
)
async def update_request_status(
    body: RequestStatusUpdate,
    user_id: str = Depends(get_current_user_id),
    service: RequestLifecycleService = Depends(get_lifecycle_service),
):
    """
    Approve, reject, cancel, activate or complete a request.

    `approve` returns the new handover code and `complete` the new return code, to the
    caller only. A call whose outcome is unknown (timeout) should be followed by a
    GET of the request rather than a blind retry; replays fail with `invalid_transition`.
    """
    result = await service.apply_transition(
        request_id=body.request_id,
        action=body.action,
        acting_user_id=user_id,
        provided_code=body.handover_code,
    )
    return RequestStatusUpdateResponse.from_result(result)


@ROUTER_REQUESTS.get(
    "/requests",
    response_model=LendingRequestListResponse,
    summary="List the caller's requests",
    responses={401: ERROR_RESPONSES[401]},
)
async def list_requests(
    role: RequestRole = Query(
        RequestRole.ALL,
        description="<small>*incoming: caller owns the item; outgoing: caller asked to borrow it*</small>",
    ),
    user_id: str = Depends(get_current_user_id),
    service: RequestLifecycleService = Depends(get_lifecycle_service),
):
    """List requests the caller takes part in, newest first."""
    requests = await service.list_requests(user_id, role)
    logger.debug("Listed requests", role=role.value, count=len(requests))
    return LendingRequestListResponse(
        count=len(requests),
        requests=[LendingRequestView.from_request(request) for request in requests],
    )


@ROUTER_REQUESTS.get(
    "/requests/{request_id}",
    response_model=LendingRequestView,
    summary="Get one request",
    responses={code: ERROR_RESPONSES[code] for code in (401, 403, 404)},
)
async def get_request(
    request_id: str,
    user_id: str = Depends(get_current_user_id),
    service: RequestLifecycleService = Depends(get_lifecycle_service),
):
    """Current state of a request, for its requester or owner."""
    request = await service.get_request(request_id, user_id)
    return LendingRequestView.from_request(request)
