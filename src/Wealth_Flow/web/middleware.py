"""Exception handlers and request logging middleware.

Maps domain exceptions from ``Wealth_Flow.utils.exceptions`` to HTTP status
codes. Only the propagating gateway operations (quotes) ever let these
reach a route; degrading operations return empty results instead.
"""

import logging
import time

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from Wealth_Flow.utils.exceptions import (
    CredentialMissingError,
    DataFetchError,
    MalformedResponseError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Domain exception -> HTTP status handlers
# ---------------------------------------------------------------------------


async def _credential_missing_handler(
    request: Request, exc: CredentialMissingError
) -> JSONResponse:
    """Map CredentialMissingError to HTTP 400: the caller must configure a key."""
    logger.warning("Credential missing: %s", exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """Map UpstreamError to HTTP 502, echoing the provider status when known."""
    logger.error("Upstream error: %s", exc)
    content: dict[str, str | int] = {"detail": str(exc)}
    if exc.http_status is not None:
        content["upstream_status"] = exc.http_status
    return JSONResponse(status_code=502, content=content)


async def _malformed_response_handler(
    request: Request, exc: MalformedResponseError
) -> JSONResponse:
    """Map MalformedResponseError to HTTP 502."""
    logger.error("Malformed upstream response: %s", exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


async def _data_fetch_error_handler(request: Request, exc: DataFetchError) -> JSONResponse:
    """Map base DataFetchError to HTTP 502 (catch-all for data errors)."""
    logger.error("Data fetch error: %s", exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    """Register all domain exception handlers on the FastAPI application.

    More specific exception types must be registered before their base classes
    so FastAPI matches them correctly.
    """
    app.add_exception_handler(CredentialMissingError, _credential_missing_handler)  # type: ignore[arg-type]
    app.add_exception_handler(UpstreamError, _upstream_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(MalformedResponseError, _malformed_response_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DataFetchError, _data_fetch_error_handler)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with method, path, status code, and duration.

    Health checks are logged at DEBUG so they do not flood the log.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request, log timing information, and return response."""
        start_time = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start_time) * 1000

        level = logging.DEBUG if request.url.path == "/api/health" else logging.INFO
        logger.log(
            level,
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )

        return response
