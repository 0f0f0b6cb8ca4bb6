"""FastAPI middleware for request timing, engine error responses, and request IDs."""

from __future__ import annotations

import time
from uuid import uuid4

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from hazard_engine.exceptions import ClusterNotFoundError, HazardEngineError
from hazard_engine.observability.logger import get_logger

logger = get_logger("middleware")


def _error_status(error: HazardEngineError) -> int:
    if isinstance(error, ClusterNotFoundError):
        return 404
    return 500


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        start = time.monotonic()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)

        try:
            response = await call_next(request)
        except HazardEngineError as e:
            # Engine errors that escaped a route become JSON error bodies
            response = JSONResponse(
                status_code=_error_status(e),
                content={"detail": str(e), "error": type(e).__name__},
            )
            logger.error(
                "engine_error",
                method=request.method,
                error_type=type(e).__name__,
                error=str(e),
            )
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                error=str(e),
                duration_ms=round((time.monotonic() - start) * 1000, 2),
            )
            raise

        duration_ms = round((time.monotonic() - start) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Duration-MS"] = str(duration_ms)
        logger.info(
            "request_completed",
            method=request.method,
            status=response.status_code,
            duration_ms=duration_ms,
        )
        return response
