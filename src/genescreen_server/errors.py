"""Error mapping — SDK error kinds to HTTP status codes.

Coordinators return typed results rather than raising; routes use
:func:`http_status` to pick the response code for a failed result.  Errors
raised outside a coordinator (e.g. ``RecordNotFound`` from the store, or
``NotConnected`` from the account dependency) go through the global
``screening_error_handler`` installed by the app factory.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from genescreen.errors import ScreeningError

logger = logging.getLogger(__name__)

# --- Error kind -> HTTP status ---
_KIND_STATUS: dict[str, int] = {
    "validation": 422,
    "not_connected": 401,
    "not_initialized": 503,
    "user_rejected": 409,
    "decryption_in_progress": 409,
    "not_found": 404,
    "encryption_failed": 502,
    "proof_failed": 502,
    "transaction_failed": 502,
    "protocol_violation": 502,
}


def http_status(kind: str | None) -> int:
    """Status code for a failed result of ``kind`` (400 for unknown kinds)."""
    if kind is None:
        return 200
    return _KIND_STATUS.get(kind, 400)


async def screening_error_handler(request: Request, exc: ScreeningError) -> JSONResponse:
    """Map a raised ``ScreeningError`` onto its status code."""
    status = http_status(exc.kind)
    logger.warning("%s [%d] at %s: %s", exc.kind, status, request.url, exc.message)
    return JSONResponse(
        status_code=status,
        content={"detail": exc.message, "error": exc.kind},
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions: log the traceback and return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
