"""Request store implementations: PostgreSQL via asyncpg, and an in-process store."""

from lendly_api.store.memory import InMemoryRequestRepository
from lendly_api.store.pool import DatabasePool
from lendly_api.store.repository_request import RequestRepository

__all__ = ["DatabasePool", "InMemoryRequestRepository", "RequestRepository"]
