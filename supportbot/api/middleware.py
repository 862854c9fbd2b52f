"""FastAPI middleware."""

import time
from typing import override
from uuid import uuid4

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from supportbot.core.exceptions import AppError, CorpusNotLoadedError, StoreError
from supportbot.core.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log requests with a request id bound to every log line they produce."""

    # Skip logging for health checks and docs to reduce noise
    SKIP_PATHS = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}

    @override
    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()
        path = request.url.path

        if path in self.SKIP_PATHS:
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info("request_started", method=request.method, path=path)

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "request_failed",
                method=request.method,
                path=path,
                error=str(e),
                duration_ms=round(duration_ms, 2),
            )
            structlog.contextvars.unbind_contextvars("request_id")
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "request_completed",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Process-Time-Ms"] = f"{duration_ms:.2f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for handling exceptions globally."""

    @override
    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except (StoreError, CorpusNotLoadedError) as e:
            logger.error("service_unavailable", path=request.url.path, code=e.code, error=e.message)
            return JSONResponse(status_code=503, content=e.to_dict())
        except AppError as e:
            logger.exception("unhandled_exception", path=request.url.path, error=str(e))
            return JSONResponse(status_code=500, content=e.to_dict())
        except Exception as e:
            logger.exception("unhandled_exception", path=request.url.path, error=str(e))
            return JSONResponse(
                status_code=500,
                content={"error": {"code": "INTERNAL_ERROR", "message": str(e)}},
            )
