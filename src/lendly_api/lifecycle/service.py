"""
Request Lifecycle Service

Applies one action to one lending request: load, validate, conditional write.
"""

from datetime import datetime
from datetime import timezone
from typing import Callable
from typing import List
from typing import Optional

from loguru import logger

from lendly_api.errors import Forbidden
from lendly_api.errors import InvalidTransition
from lendly_api.errors import NotFound
from lendly_api.lifecycle.codes import generate_code
from lendly_api.lifecycle.codes import verify_code
from lendly_api.lifecycle.enums import RequestRole
from lendly_api.lifecycle.models import LendingRequest
from lendly_api.lifecycle.models import TransitionResult
from lendly_api.lifecycle.state_machine import parse_action
from lendly_api.lifecycle.state_machine import resolve_transition

CODE_LABELS = {"handover_code": "handover", "return_code": "return"}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RequestLifecycleService:
    """
    Mediates every status change of a lending request.

    The repository is any object offering ``get``, ``list_for_user`` and
    ``apply_update`` (RequestRepository or InMemoryRequestRepository).
    ``code_generator`` and ``clock`` are injectable for tests.
    """

    def __init__(
        self,
        repository,
        code_generator: Callable[[], str] = generate_code,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.code_generator = code_generator
        self.clock = clock

    async def apply_transition(
        self,
        request_id: str,
        action: str,
        acting_user_id: str,
        provided_code: Optional[str] = None,
    ) -> TransitionResult:
        """
        Apply ``action`` to request ``request_id`` on behalf of ``acting_user_id``.

        Parameters
        ----------
        request_id : str
            Identifier of an existing request
        action : str
            approve, reject, cancel, activate or complete
        acting_user_id : str
            Resolved identity of the caller
        provided_code : str, optional
            Handover code presented by the requester (activate only)

        Returns
        -------
        TransitionResult
            New status and, for approve/complete, the freshly generated code

        Raises
        ------
        NotFound, InvalidAction, Forbidden, InvalidTransition, InvalidCode, PersistenceFailure
            Nothing is written when any of these is raised.
        """
        logger.info(
            "Processing {} for request {}",
            action,
            request_id,
            request_id=request_id,
            action=action,
            user_id=acting_user_id,
        )

        request = await self.repository.get(request_id)
        if request is None:
            raise NotFound()

        parsed_action = parse_action(action)
        transition = resolve_transition(request, parsed_action, acting_user_id)

        if transition.verifies_code:
            verify_code(
                provided_code,
                getattr(request, transition.verifies_code),
                label=CODE_LABELS[transition.verifies_code],
            )

        fields = {"status": transition.next_status, "updated_at": self.clock()}
        if transition.issues_code:
            fields[transition.issues_code] = self.code_generator()

        updated = await self.repository.apply_update(
            request_id,
            expected_status=request.status,
            fields=fields,
            performed_by=acting_user_id,
            action=parsed_action.value,
        )
        if updated is None:
            logger.warning(
                "Concurrent transition detected; status guard matched no row",
                request_id=request_id,
                action=parsed_action.value,
                observed_status=request.status.value,
            )
            raise InvalidTransition("Request status changed concurrently; re-fetch and retry")

        logger.info(
            "Request {} moved {} -> {}",
            request_id,
            request.status.value,
            updated.status.value,
            request_id=request_id,
            action=parsed_action.value,
            user_id=acting_user_id,
        )

        return TransitionResult(
            request_id=request_id,
            action=parsed_action.value,
            status=updated.status,
            handover_code=updated.handover_code if transition.issues_code == "handover_code" else None,
            return_code=updated.return_code if transition.issues_code == "return_code" else None,
        )

    async def get_request(self, request_id: str, acting_user_id: str) -> LendingRequest:
        """Return a request to one of its participants; third parties get Forbidden."""
        request = await self.repository.get(request_id)
        if request is None:
            raise NotFound()
        if not request.is_participant(acting_user_id):
            raise Forbidden("Only the requester or the owner can view this request")
        return request

    async def list_requests(self, acting_user_id: str, role: RequestRole = RequestRole.ALL) -> List[LendingRequest]:
        """List the caller's requests, newest first."""
        return await self.repository.list_for_user(acting_user_id, role)
