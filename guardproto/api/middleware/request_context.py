from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from guardproto.core.observability.metrics import HTTP_REQUESTS_TOTAL, inc_named

log = logging.getLogger("guardproto.request")


def normalize_path(path: str) -> str:
    """Reduce high-cardinality paths for metrics labels."""
    p = path or "/"
    p = re.sub(r"^((?:/api/v\d+)?/protocols)/[^/]+", r"\1/:name", p)
    return p


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Adds:
      request.state.request_id
      response header: X-Request-Id
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = rid

        start = time.time()
        resp = await call_next(request)
        dur_ms = int((time.time() - start) * 1000)

        resp.headers["X-Request-Id"] = rid

        p = normalize_path(request.url.path)
        m = request.method.upper()
        HTTP_REQUESTS_TOTAL.labels(method=m, path=p, status=str(resp.status_code)).inc()
        inc_named("requests_total")

        log.info(
            "%s",
            {
                "event": "request",
                "request_id": rid,
                "method": m,
                "path": request.url.path,
                "status_code": resp.status_code,
                "duration_ms": dur_ms,
            },
        )
        return resp
