"""Exception types and handlers shared by the API layer."""

from __future__ import annotations

import logging
from typing import Any, Final

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from wallet_gate.services.cache import CacheError

logger = logging.getLogger(__name__)

FORBIDDEN_BODY: Final[dict[str, Any]] = {
    "message": "Forbidden resource",
    "error": "Forbidden",
    "statusCode": status.HTTP_403_FORBIDDEN,
}


class ForbiddenError(Exception):
    """Raised by request guards to deny access.

    The reason is for server-side logs only; every denial renders the same
    response body.
    """

    def __init__(self, reason: str = "forbidden") -> None:
        super().__init__(reason)
        self.reason = reason


async def forbidden_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content=dict(FORBIDDEN_BODY))


async def cache_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Cache failure while handling %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Cache unavailable"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the guard denial and cache failure handlers on `app`."""
    app.add_exception_handler(ForbiddenError, forbidden_error_handler)
    app.add_exception_handler(CacheError, cache_error_handler)
