from __future__ import annotations

import logging
import traceback
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from guardproto.core.errors import ProtocolExError

log = logging.getLogger("guardproto.errors")

# error kind -> HTTP status
STATUS_BY_KIND = {
    "unknown_protocol": 404,
    "unknown_callback": 404,
    "unimplemented_protocol": 422,
    "invalid_specification": 409,
    "missing_subject_argument": 409,
    "duplicate_specification": 409,
    "missing_required_protocol_definition": 409,
    "protocol_test_failure": 409,
}


def _request_id(request: Request):
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")


async def protocol_error_handler(request: Request, exc: ProtocolExError) -> JSONResponse:
    """Structured protocol errors keep their kind and fields on the wire."""
    payload = {"error": exc.to_dict()}
    rid = _request_id(request)
    if rid:
        payload["request_id"] = rid
    return JSONResponse(status_code=STATUS_BY_KIND.get(exc.kind, 400), content=payload)


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    payload = {"error": {"kind": "bad_request", "message": str(exc)}}
    rid = _request_id(request)
    if rid:
        payload["request_id"] = rid
    return JSONResponse(status_code=400, content=payload)


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    - Never return stack traces to clients
    - Preserve request_id if present
    - Log traceback server-side
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = _request_id(request)
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=500, content=payload)
