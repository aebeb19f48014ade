"""Resolve caller bearer tokens into user ids through the authentication provider.

The provider is called on every request; it is the authority on revoked and expired
sessions, so nothing is cached here.
"""

from typing import Optional

import httpx
from loguru import logger

from lendly_api.errors import Unauthenticated

USER_ENDPOINT = "/auth/v1/user"


class IdentityResolver:
    """
    Looks up the user behind a bearer token.

    Attributes
    ----------
    auth_url : str
        Base URL of the authentication provider
    api_key : str
        Provider public API key, sent as the ``apikey`` header
    timeout : float
        Seconds to wait for the provider
    """

    def __init__(self, auth_url: str, api_key: str, timeout: float = 5.0):
        self.auth_url = auth_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    async def resolve(self, token: Optional[str]) -> str:
        """
        Return the user id for ``token``.

        Raises
        ------
        Unauthenticated
            Token missing, rejected by the provider, or the provider unreachable.
        """
        if not token:
            raise Unauthenticated()

        headers = {"Authorization": f"Bearer {token}", "apikey": self.api_key}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(f"{self.auth_url}{USER_ENDPOINT}", headers=headers)
        except httpx.TimeoutException:
            logger.warning("Identity lookup timed out", auth_url=self.auth_url)
            raise Unauthenticated() from None
        except httpx.RequestError as e:
            logger.warning("Identity lookup failed: {}", e, auth_url=self.auth_url)
            raise Unauthenticated() from None

        if response.status_code != 200:
            logger.debug("Identity provider rejected token", status_code=response.status_code)
            raise Unauthenticated()

        try:
            user_id = response.json().get("id")
        except ValueError:
            user_id = None

        if not user_id:
            logger.warning("Identity provider response carried no user id")
            raise Unauthenticated()

        return str(user_id)
