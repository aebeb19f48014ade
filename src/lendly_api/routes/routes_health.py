"""Health check endpoints for monitoring application status."""

from datetime import datetime
from datetime import timezone

from fastapi import APIRouter
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from loguru import logger

ROUTER_HEALTH = APIRouter(tags=["Health"])


@ROUTER_HEALTH.get(
    "/health",
    summary="Health check endpoint",
    description="Basic health check that returns application status and metadata",
    responses={
        status.HTTP_200_OK: {
            "description": "Application is healthy",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "timestamp": "2026-01-05T12:00:00.000000Z",
                        "service": "Lendly Request API",
                        "version": "v1",
                        "store": "postgresql",
                    }
                }
            },
        }
    },
)
async def health_check(request: Request):
    """
    Basic health check endpoint.

    Lightweight; does not touch the request store.
    """
    settings = request.app.state.settings

    response_data = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.service_name,
        "version": request.app.version,
        "store": request.app.state.store_backend,
    }

    logger.debug("Health check requested", status="healthy")

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=response_data,
    )


@ROUTER_HEALTH.get("/health/live", summary="Liveness probe")
async def liveness_check():
    """The process is up and serving requests."""
    return {"status": "alive"}


@ROUTER_HEALTH.get(
    "/health/ready",
    summary="Readiness probe",
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Request store unreachable"}},
)
async def readiness_check(request: Request):
    """Ready when the request store answers."""
    repository = request.app.state.repository
    store_ok = await repository.health_check()

    if not store_ok:
        logger.warning("Readiness check failed: request store unreachable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "store": False},
        )

    return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ready", "store": True})
