"""
Request Repository

PostgreSQL access to the requests table. Status changes are conditional on the status
the caller observed, so two concurrent transitions can never both succeed.
"""

from typing import Any
from typing import Dict
from typing import List
from typing import Optional

import asyncpg
from loguru import logger

from lendly_api.errors import PersistenceFailure
from lendly_api.lifecycle.enums import RequestRole
from lendly_api.lifecycle.enums import RequestStatus
from lendly_api.lifecycle.models import LendingRequest
from lendly_api.store.pool import DatabasePool

# Columns the lifecycle service is allowed to write
WRITABLE_COLUMNS = ("status", "handover_code", "return_code", "updated_at")

SELECT_COLUMNS = """
    id::text AS id,
    requester_id::text AS requester_id,
    owner_id::text AS owner_id,
    listing_id::text AS listing_id,
    status::text AS status,
    handover_code,
    return_code,
    start_date::date AS start_date,
    end_date::date AS end_date,
    created_at,
    updated_at
"""

STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class RequestRepository:
    """Request repository backed by the asyncpg pool."""

    def __init__(self, db: DatabasePool):
        self.db = db
        self.table = f"{db.schema}.requests"
        self.events_table = f"{db.schema}.request_status_events"

    async def get(self, request_id: str) -> Optional[LendingRequest]:
        """
        Fetch one request by id.

        Args:
            request_id: Request identifier

        Returns:
            The request, or None if no row matches (including ids the column type cannot parse)
        """
        try:
            async with self.db.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {SELECT_COLUMNS} FROM {self.table} WHERE id = $1",
                    request_id,
                )
        except asyncpg.DataError:
            # e.g. a non-UUID string against a uuid id column
            return None
        except STORE_ERRORS as e:
            raise PersistenceFailure("Failed to load request") from e

        return LendingRequest.model_validate(dict(row)) if row else None

    async def list_for_user(self, user_id: str, role: RequestRole = RequestRole.ALL) -> List[LendingRequest]:
        """List requests where ``user_id`` is owner, requester or either, newest first."""
        if role is RequestRole.INCOMING:
            condition = "owner_id::text = $1"
        elif role is RequestRole.OUTGOING:
            condition = "requester_id::text = $1"
        else:
            condition = "(owner_id::text = $1 OR requester_id::text = $1)"

        try:
            async with self.db.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT {SELECT_COLUMNS} FROM {self.table} WHERE {condition} ORDER BY created_at DESC",
                    user_id,
                )
        except STORE_ERRORS as e:
            raise PersistenceFailure("Failed to list requests") from e

        return [LendingRequest.model_validate(dict(row)) for row in rows]

    async def apply_update(
        self,
        request_id: str,
        expected_status: RequestStatus,
        fields: Dict[str, Any],
        performed_by: str,
        action: str,
    ) -> Optional[LendingRequest]:
        """
        Write ``fields`` if, and only if, the row still has ``expected_status``.

        The update and its audit event commit together.

        Args:
            request_id: Request identifier
            expected_status: Status observed when the transition was validated
            fields: Column values to write (subset of WRITABLE_COLUMNS)
            performed_by: Acting user id, recorded in the audit table
            action: Action name, recorded in the audit table

        Returns:
            The updated request, or None when the status guard matched no row
        """
        unknown = set(fields) - set(WRITABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Columns not writable by the lifecycle service: {sorted(unknown)}")

        columns = list(fields)
        assignments = ", ".join(f"{column} = ${index + 3}" for index, column in enumerate(columns))
        values = [fields[column].value if isinstance(fields[column], RequestStatus) else fields[column] for column in columns]

        try:
            async with self.db.acquire() as conn:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        f"""
                        UPDATE {self.table}
                        SET {assignments}
                        WHERE id = $1 AND status = $2
                        RETURNING {SELECT_COLUMNS}
                        """,
                        request_id,
                        expected_status.value,
                        *values,
                    )
                    if row is None:
                        return None

                    updated = LendingRequest.model_validate(dict(row))
                    await self._write_event(conn, request_id, action, expected_status, updated.status, performed_by)
                    return updated
        except STORE_ERRORS as e:
            raise PersistenceFailure() from e

    async def _write_event(
        self,
        conn: asyncpg.Connection,
        request_id: str,
        action: str,
        from_status: RequestStatus,
        to_status: RequestStatus,
        performed_by: str,
    ) -> None:
        """
        Append an audit event inside the caller's transaction.

        Runs in a savepoint so a broken audit table never rolls back the status change.
        """
        try:
            async with conn.transaction():
                await conn.execute(
                    f"""
                    INSERT INTO {self.events_table}
                        (request_id, action, from_status, to_status, performed_by)
                    VALUES ($1, $2, $3, $4, $5)
                    """,
                    request_id,
                    action,
                    from_status.value,
                    to_status.value,
                    performed_by,
                )
        except asyncpg.PostgresError as e:
            logger.error("Failed to write request status event: {}", e, request_id=request_id, action=action)

    async def health_check(self) -> bool:
        return await self.db.health_check()
