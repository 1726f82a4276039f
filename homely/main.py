# homely/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .domain.errors import DomainError, InvalidArgument
from .logging_config import configure_logging
from .middleware.request_id import RequestIDMiddleware, request_id_for
from .middleware.structured_logging import StructuredLoggingMiddleware
from .routers.health import router as health_router
from .routers.maintenance import router as maintenance_router
from .routers.work_orders import router as work_orders_router
from .routers.work_orders import workmen_router

API_PREFIX = "/api"

log = logging.getLogger("homely.api")


def _cors_origins() -> list[str]:
    val = getattr(settings, "cors_allow_origins", ["*"])
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


def _error_body(request: Request, exc: DomainError) -> dict:
    return {"detail": exc.message, "error": exc.code, "request_id": request_id_for(request)}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("domain error %s: %s", exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed ids and bodies are InvalidArgument like any other bad input."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = [str(x) for x in first.get("loc", ()) if x not in ("body", "path", "query")]
        message = f"{'.'.join(loc) or 'request'}: {first.get('msg', 'invalid value')}"
    else:
        message = "invalid request"
    err = InvalidArgument(message)
    return JSONResponse(status_code=err.status_code, content=_error_body(request, err))


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Homely Maintenance",
        version=settings.app_version,
    )

    # Last added runs outermost: request id wraps the access log.
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(maintenance_router, prefix=API_PREFIX)
    app.include_router(work_orders_router, prefix=API_PREFIX)
    app.include_router(workmen_router, prefix=API_PREFIX)

    return app


app = create_app()
