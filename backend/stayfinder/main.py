"""StayFinder API: FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stayfinder.api.v1.admin import router as admin_router
from stayfinder.api.v1.auth import router as auth_router
from stayfinder.api.v1.bookings import router as bookings_router
from stayfinder.api.v1.listings import router as listings_router
from stayfinder.api.v1.webhooks import router as webhooks_router
from stayfinder.config import settings
from stayfinder.errors import BookingError, ValidationError

# Configure root logger so all stayfinder.* loggers output to stderr.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the booking sweep on startup; stop it and dispose the engine on shutdown."""
    from stayfinder.database import async_session_factory, engine
    from stayfinder.services.scheduler import BookingSweepScheduler

    scheduler = BookingSweepScheduler(async_session_factory)
    app.state.sweep_scheduler = scheduler
    if settings.sweep_enabled:
        scheduler.start()
    else:
        logger.info("Booking sweep disabled by configuration")

    yield

    await scheduler.stop()
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Short-term rental marketplace API: listings, bookings, and moderation.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render domain errors as ``{"detail": ..., "kind": ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures with the same ``kind`` envelope."""
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"detail": jsonable_encoder(exc.errors()), "kind": ValidationError.kind},
    )


# Routers
app.include_router(auth_router)
app.include_router(listings_router)
app.include_router(bookings_router)
app.include_router(admin_router)
app.include_router(webhooks_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
