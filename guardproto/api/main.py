from __future__ import annotations

from fastapi import FastAPI

from guardproto import __version__
from guardproto.api.endpoints import health, metrics, protocols
from guardproto.api.middleware.error_shaping import (
    SafeErrorMiddleware,
    protocol_error_handler,
    value_error_handler,
)
from guardproto.api.middleware.request_context import RequestContextMiddleware
from guardproto.core.errors import ProtocolExError

app = FastAPI(
    title="guardproto",
    version=__version__,
)

# ------------------------------------------------------------
# Middleware stack
# Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
#   SafeErrorMiddleware -> RequestContextMiddleware -> handler
# ------------------------------------------------------------
app.add_middleware(RequestContextMiddleware)
app.add_middleware(SafeErrorMiddleware)

app.add_exception_handler(ProtocolExError, protocol_error_handler)
app.add_exception_handler(ValueError, value_error_handler)


# ------------------------------------------------------------
# Unversioned + versioned (/api/v1)
# ------------------------------------------------------------
app.include_router(health.router)
app.include_router(protocols.router)
app.include_router(metrics.router)

app.include_router(health.router, prefix="/api/v1")
app.include_router(protocols.router, prefix="/api/v1")
app.include_router(metrics.router, prefix="/api/v1")
