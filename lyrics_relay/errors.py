"""Standardized JSON error responses for the relay's HTTP surface."""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging_config import req_id_var
from .spotify.errors import LyricsUnavailable

logger = logging.getLogger(__name__)

_STATUS_TO_CODE = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    422: "validation_error",
    429: "rate_limited",
    500: "internal_error",
    502: "bad_gateway",
    503: "service_unavailable",
    504: "timeout",
}


def json_error(
    code: str,
    message: str,
    status: int,
    meta: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create a ``{"code", "message", "meta"}`` error response."""
    return JSONResponse(
        {"code": code.lower(), "message": message, "meta": meta or {}},
        status_code=status,
        headers=headers,
    )


def _base_meta(request: Request) -> dict[str, Any]:
    req_id = request.headers.get("x-request-id") or req_id_var.get()
    return {
        "request_id": req_id,
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
    }


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    code = _STATUS_TO_CODE.get(exc.status_code, "http_error")
    return json_error(
        code,
        str(exc.detail),
        exc.status_code,
        meta=_base_meta(request),
        headers=getattr(exc, "headers", None),
    )


async def lyrics_unavailable_handler(
    request: Request, exc: LyricsUnavailable
) -> JSONResponse:
    # The cause was already logged by the client; only the opaque message leaves
    return json_error("internal_error", str(exc), 500, meta=_base_meta(request))


async def global_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "http.unhandled_error",
        extra={"meta": {"path": request.url.path, "error_type": type(exc).__name__}},
    )
    return json_error("internal_error", "Something went wrong", 500, meta=_base_meta(request))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(LyricsUnavailable, lyrics_unavailable_handler)
    app.add_exception_handler(Exception, global_error_handler)
