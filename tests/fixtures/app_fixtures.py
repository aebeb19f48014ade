"""Fixtures for FastAPI application, settings and caller identity."""

from typing import Any
from typing import Dict
from typing import Optional
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from starlette.testclient import TestClient as StarletteTestClient

from lendly_api.errors import Unauthenticated
from tests.consts import TOKENS


def bearer(user_id: str) -> Dict[str, str]:
    """Authorization header for the stub token that resolves to ``user_id``."""
    token = next(token for token, uid in TOKENS.items() if uid == user_id)
    return {"Authorization": f"Bearer {token}"}


class StubIdentityResolver:
    """Resolves the fixed tokens in tests.consts.TOKENS; everything else is unauthenticated."""

    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self.tokens = tokens or dict(TOKENS)
        self.calls = []

    async def resolve(self, token: Optional[str]) -> str:
        self.calls.append(token)
        if token not in self.tokens:
            raise Unauthenticated()
        return self.tokens[token]


class AuthenticatedTestClient(StarletteTestClient):
    """Test client that sends requests as a given user unless headers say otherwise."""

    def __init__(self, *args: Any, user_id: str, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._default_headers = bearer(user_id)

    def _merge_headers(self, headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        merged = dict(self._default_headers)
        if headers:
            merged.update(headers)
        return merged

    def get(self, url: str, **kwargs: Any) -> Any:
        kwargs["headers"] = self._merge_headers(kwargs.get("headers"))
        return super().get(url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> Any:
        kwargs["headers"] = self._merge_headers(kwargs.get("headers"))
        return super().post(url, **kwargs)


@pytest.fixture
def mock_settings():
    """Settings built from a test environment (no database: in-process store)."""
    from lendly_api.settings import Settings

    with patch.dict(
        "os.environ",
        {
            "AUTH_URL": "https://auth.lendly.test",
            "AUTH_API_KEY": "test-anon-key",
            "LOG_LEVEL": "DEBUG",
        },
        clear=False,
    ):
        settings = Settings(_env_file=None)
        yield settings


@pytest.fixture
def identity_resolver():
    return StubIdentityResolver()


@pytest.fixture
def app(mock_settings, seeded_repository, identity_resolver):
    """FastAPI app wired to the seeded in-process store and the stub identity resolver."""
    from lendly_api.main import create_app

    app = create_app(
        settings=mock_settings,
        repository=seeded_repository,
        identity_resolver=identity_resolver,
    )
    yield app


@pytest.fixture
def unauthenticated_client(app):
    """Test client without an Authorization header."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def client_as():
    """Factory for clients acting as a given user: ``client_as(app, "U1")``."""
    clients = []

    def _make(app, user_id: str) -> AuthenticatedTestClient:
        test_client = AuthenticatedTestClient(app, user_id=user_id)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make

    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture
def owner_client(app, client_as):
    from tests.consts import OWNER_ID

    return client_as(app, OWNER_ID)


@pytest.fixture
def requester_client(app, client_as):
    from tests.consts import REQUESTER_ID

    return client_as(app, REQUESTER_ID)
