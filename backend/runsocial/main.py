"""
Run Social API

FastAPI application for run tracking, gamification and nearby runners.
"""

from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from runsocial.config import settings
from runsocial.db.session import init_db, AsyncSessionLocal
from runsocial.api.v1.router import api_router
from runsocial.features.achievements.catalog import seed_default_achievements
from runsocial.shared.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    RunSocialError,
    ValidationError,
)


# === Logging Setup ===
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)


# === Lifespan ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    logger.info("Starting Run Social API...")
    await init_db()
    logger.info("Database initialized")

    if settings.seed_achievements_on_startup:
        async with AsyncSessionLocal() as db:
            await seed_default_achievements(db)

    yield

    # Shutdown
    logger.info("Shutting down...")


# === App Creation ===
app = FastAPI(
    title="Run Social API",
    description="Run tracking with stats, achievements and nearby runners",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# === Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Error Mapping ===
ERROR_STATUS = [
    (NotFoundError, 404),
    (InvalidStateError, 400),
    (ValidationError, 422),
    (ConflictError, 409),
]


@app.exception_handler(RunSocialError)
async def run_social_error_handler(request: Request, exc: RunSocialError):
    """Map engine errors to HTTP status codes."""
    status_code = 500
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            status_code = code
            break
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


# === Routes ===
app.include_router(api_router, prefix="/api/v1")


# === Health Check ===
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}
