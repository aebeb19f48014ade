from textwrap import dedent
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from loguru import logger

from lendly_api.auth.identity import IdentityResolver
from lendly_api.errors import RequestLifecycleError
from lendly_api.errors import handle_broad_exceptions
from lendly_api.errors import handle_lifecycle_errors
from lendly_api.errors import handle_request_validation_errors
from lendly_api.lifecycle.service import RequestLifecycleService
from lendly_api.monitoring.logger import configure_logger
from lendly_api.monitoring.request_context import RequestContextMiddleware
from lendly_api.routes.routes_health import ROUTER_HEALTH
from lendly_api.routes.routes_requests import ROUTER_REQUESTS
from lendly_api.settings import Settings
from lendly_api.store.memory import InMemoryRequestRepository
from lendly_api.store.pool import DatabasePool
from lendly_api.store.repository_request import RequestRepository


def create_app(
    settings: Optional[Settings] = None,
    repository=None,
    identity_resolver: Optional[IdentityResolver] = None,
) -> FastAPI:
    """Create a FastAPI application.

    Configuration is loaded from environment variables via pydantic-settings (or a .env
    file locally). ``repository`` and ``identity_resolver`` replace the configured
    collaborators, which is how tests run without a database or auth provider.
    """
    settings = settings or Settings()

    configure_logger(level=settings.log_level)

    logger.info(
        "Configuration loaded successfully",
        auth_url=settings.auth_url,
        auth_api_key_set=bool(settings.auth_api_key),
        database_configured=bool(settings.database_url),
        cors_allow_origins=settings.cors_allow_origins,
    )

    app = FastAPI(
        title=settings.service_name,
        version="v1",
        description=dedent(
            """
        Lending request lifecycle for Lendly.

        | Action | Actor | From | To |
        | --- | --- | --- | --- |
        | approve | owner | pending | approved (issues handover code) |
        | reject | owner | pending | rejected |
        | cancel | requester | pending, approved | cancelled |
        | activate | requester | approved (with handover code) | active |
        | complete | owner | active | completed (issues return code) |
        """
        ),
        generate_unique_id_function=custom_generate_unique_id,
    )
    app.state.settings = settings

    if repository is not None:
        app.state.store_backend = "injected"
    elif settings.database_url:
        db_pool = DatabasePool(
            settings.database_url,
            schema=settings.db_schema,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
        )
        app.state.db_pool = db_pool
        repository = RequestRepository(db_pool)
        app.state.store_backend = "postgresql"

        @app.on_event("startup")
        async def startup_store():
            """Open the request store pool."""
            await app.state.db_pool.initialize()

        @app.on_event("shutdown")
        async def shutdown_store():
            """Close request store connections."""
            await app.state.db_pool.close()

    else:
        logger.warning("database_url not set - using the in-process request store; state is lost on restart")
        repository = InMemoryRequestRepository()
        app.state.store_backend = "memory"

    app.state.repository = repository
    app.state.lifecycle_service = RequestLifecycleService(repository)
    app.state.identity_resolver = identity_resolver or IdentityResolver(
        auth_url=settings.auth_url,
        api_key=settings.auth_api_key,
        timeout=settings.auth_timeout_seconds,
    )

    logger.info("Starting Lendly request API", store=app.state.store_backend)

    app.add_middleware(RequestContextMiddleware)
    app.include_router(ROUTER_HEALTH, prefix="/api")
    app.include_router(ROUTER_REQUESTS, prefix="/api")

    app.add_exception_handler(
        exc_class_or_status_code=RequestLifecycleError,
        handler=handle_lifecycle_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=RequestValidationError,
        handler=handle_request_validation_errors,
    )

    app.middleware("http")(handle_broad_exceptions)

    # Outermost, so preflight requests are answered before anything else runs
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=settings.cors_allow_headers,
    )

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
