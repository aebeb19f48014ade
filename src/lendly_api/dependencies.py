"""FastAPI dependencies for accessing app state and the caller's identity."""

from typing import Optional

from fastapi import Header
from fastapi import Request
from loguru import logger

from lendly_api.auth.identity import IdentityResolver
from lendly_api.errors import Unauthenticated
from lendly_api.lifecycle.service import RequestLifecycleService
from lendly_api.settings import Settings


def get_settings(request: Request) -> Settings:
    """
    Get application settings from request state.

    Parameters
    ----------
    request : Request
        FastAPI request object

    Returns
    -------
    Settings
        Application settings instance
    """
    return request.app.state.settings


def get_lifecycle_service(request: Request) -> RequestLifecycleService:
    """Get the request lifecycle service from app state."""
    return request.app.state.lifecycle_service


def get_identity_resolver(request: Request) -> IdentityResolver:
    """Get the identity resolver from app state."""
    return request.app.state.identity_resolver


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Pull the token out of an ``Authorization: Bearer <token>`` header value.

    Returns None for a missing header, another scheme, or an empty token.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def get_current_user_id(
    request: Request,
    authorization: Optional[str] = Header(
        None,
        alias="Authorization",
        description="<small>*Bearer token issued by the authentication provider*</small>",
    ),
) -> str:
    """
    Resolve the caller's user id.

    Raises
    ------
    Unauthenticated
        401 when the header is missing or the provider rejects the token
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise Unauthenticated()

    resolver = get_identity_resolver(request)
    user_id = await resolver.resolve(token)

    request.state.user_id = user_id
    logger.debug("Caller authenticated", user_id=user_id)
    return user_id
