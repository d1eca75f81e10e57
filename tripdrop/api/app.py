"""
FastAPI application factory.

* Registers routes for deliveries and admin.
* Renders every ``DeliveryError`` as ``{"detail", "code"}`` with the
  error's own status code.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from tripdrop.api.middleware import limiter
from tripdrop.api.routes import admin, deliveries
from tripdrop.config import settings
from tripdrop.domain.errors import DeliveryError
from tripdrop.infrastructure.database import engine

logging.basicConfig(level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release pooled DB connections on shutdown."""
    yield
    await engine.dispose()


async def delivery_error_handler(request: Request, exc: DeliveryError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": type(exc).__name__},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Trip-N-Drop Delivery API",
        description=(
            "Matches pending deliveries to travelers whose journey passes "
            "near both pickup and drop-off, then walks each accepted "
            "delivery through an OTP-verified handoff."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain failures
    app.add_exception_handler(DeliveryError, delivery_error_handler)

    # Routers
    app.include_router(deliveries.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
