"""Request context middleware for logging."""
import time
from typing import Any
from typing import Callable
from uuid import uuid4

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from lendly_api.monitoring.logger import log_request_info


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware to capture request context and log one line per HTTP request.

    Request bodies are never captured: activation calls carry handover codes.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Any:
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        client_ip = self._get_client_ip(request)
        request_path = f"{request.method} {request.url.path}"

        with logger.contextualize(
            request_id=request_id,
            client_ip=client_ip,
            request_path=request_path,
            origin=request.headers.get("Origin", "unknown"),
        ):
            log_request_info(request)

            start_time = time.time()
            response = await call_next(request)
            duration_ms = (time.time() - start_time) * 1000

            logger.info(
                "{} {} - {}",
                request.method,
                request.url.path,
                response.status_code,
                event_type="http_request",
                http_method=request.method,
                url_path=str(request.url.path),
                status_code=response.status_code,
                response_time_ms=round(duration_ms, 2),
                user_identity=getattr(request.state, "user_id", None),
                user_agent=request.headers.get("User-Agent", "unknown"),
            )

            response.headers["X-Request-ID"] = request_id
            return response

    @staticmethod
    def _get_client_ip(request: Request) -> str:
        """Get the real client IP, honouring the first hop of X-Forwarded-For behind a proxy."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

        if request.client:
            return request.client.host
        return "unknown"
