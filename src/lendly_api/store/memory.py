"""
In-process Request Store

Used when no database_url is configured (local runs) and by the test suite. Offers the
same interface as RequestRepository with the same compare-and-set guarantee.
"""

import asyncio
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from loguru import logger

from lendly_api.lifecycle.enums import RequestRole
from lendly_api.lifecycle.enums import RequestStatus
from lendly_api.lifecycle.models import LendingRequest
from lendly_api.store.repository_request import WRITABLE_COLUMNS


class InMemoryRequestRepository:
    """Dictionary-backed request store guarded by an asyncio lock."""

    def __init__(self, requests: Optional[List[LendingRequest]] = None):
        self._requests: Dict[str, LendingRequest] = {}
        self._lock = asyncio.Lock()
        self.events: List[Dict[str, Any]] = []
        for request in requests or []:
            self.add(request)

    def add(self, request: LendingRequest) -> LendingRequest:
        """Seed a request, as the listing request flow would."""
        if request.created_at is None:
            request = request.model_copy(update={"created_at": datetime.now(timezone.utc)})
        self._requests[request.id] = request
        return request

    async def get(self, request_id: str) -> Optional[LendingRequest]:
        request = self._requests.get(request_id)
        return request.model_copy() if request else None

    async def list_for_user(self, user_id: str, role: RequestRole = RequestRole.ALL) -> List[LendingRequest]:
        def matches(request: LendingRequest) -> bool:
            if role is RequestRole.INCOMING:
                return request.owner_id == user_id
            if role is RequestRole.OUTGOING:
                return request.requester_id == user_id
            return user_id in (request.owner_id, request.requester_id)

        found = [request.model_copy() for request in self._requests.values() if matches(request)]
        return sorted(found, key=lambda r: r.created_at, reverse=True)

    async def apply_update(
        self,
        request_id: str,
        expected_status: RequestStatus,
        fields: Dict[str, Any],
        performed_by: str,
        action: str,
    ) -> Optional[LendingRequest]:
        unknown = set(fields) - set(WRITABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Columns not writable by the lifecycle service: {sorted(unknown)}")

        async with self._lock:
            current = self._requests.get(request_id)
            if current is None or current.status != expected_status:
                return None

            updated = current.model_copy(update=fields)
            self._requests[request_id] = updated
            self.events.append(
                {
                    "request_id": request_id,
                    "action": action,
                    "from_status": expected_status.value,
                    "to_status": updated.status.value,
                    "performed_by": performed_by,
                    "created_at": datetime.now(timezone.utc),
                }
            )

        logger.debug("In-memory request updated", request_id=request_id, status=updated.status.value)
        return updated.model_copy()

    async def health_check(self) -> bool:
        return True
