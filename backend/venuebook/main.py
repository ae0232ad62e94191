"""Venuebook — FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from venuebook.api.v1.auth import router as auth_router
from venuebook.api.v1.bookings import router as bookings_router
from venuebook.api.v1.notifications import router as notifications_router
from venuebook.api.v1.reservations import router as reservations_router
from venuebook.api.v1.webhooks import router as webhooks_router
from venuebook.config import settings
from venuebook.errors import VenuebookError
from venuebook.logging_config import configure_logging

# Configure root logger so all venuebook.* loggers output to stderr (captured by Docker).
configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    yield
    # Shutdown: dispose engine connections
    from venuebook.database import engine

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Hall reservations with deposits, conversion to bookings, and pay-first bookings.",
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


@app.exception_handler(VenuebookError)
async def venuebook_error_handler(request: Request, exc: VenuebookError) -> JSONResponse:
    """Render domain errors with the status code each one carries."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Routers
app.include_router(auth_router)
app.include_router(reservations_router)
app.include_router(bookings_router)
app.include_router(notifications_router)
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
