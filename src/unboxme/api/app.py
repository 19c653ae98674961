"""FastAPI application factory."""

import logging
import math
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from unboxme.api.boxes import router as boxes_router
from unboxme.api.builder import router as builder_router
from unboxme.api.checkout import router as checkout_router
from unboxme.app_logging import configure_logging
from unboxme.config import parse_allowed_origins
from unboxme.containers import AppContainer
from unboxme.domain.errors import (
    CardLocked,
    NotFound,
    PaymentNotCompleted,
    UpstreamFailure,
    ValidationError,
)
from unboxme.domain.unlock import format_remaining

SAFE_REDIRECT = "/"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    allowed_origins = parse_allowed_origins(container.settings.cors_allowed_origins)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(title="UnboxMe", lifespan=lifespan)
    app.state.container = container

    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(builder_router)
    app.include_router(checkout_router)
    app.include_router(boxes_router)

    @app.exception_handler(ValidationError)
    async def validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc), "problems": exc.problems},
        )

    @app.exception_handler(UpstreamFailure)
    async def upstream_failure(_: Request, exc: UpstreamFailure) -> JSONResponse:
        logger.warning("Upstream failure: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": str(exc), "retryable": True},
        )

    @app.exception_handler(PaymentNotCompleted)
    async def payment_not_completed(
        _: Request, exc: PaymentNotCompleted
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            content={
                "detail": str(exc),
                "payment_status": exc.status,
                "retryable": True,
            },
        )

    @app.exception_handler(NotFound)
    async def not_found(_: Request, exc: NotFound) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": str(exc), "redirect_to": SAFE_REDIRECT},
        )

    @app.exception_handler(CardLocked)
    async def card_locked(_: Request, exc: CardLocked) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_423_LOCKED,
            content={
                "detail": str(exc),
                "remaining_seconds": math.ceil(exc.remaining.total_seconds()),
                "countdown": format_remaining(exc.remaining),
            },
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
