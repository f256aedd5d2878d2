"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from cropmarket.config import settings
from cropmarket.infrastructure.database import Database
from cropmarket.middleware.error_handler import ErrorHandlerMiddleware
from cropmarket.api.v1.routers import crops, interests
from cropmarket.services.application.reconciler import Reconciler

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# Rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_requests}/minute"],
    enabled=settings.rate_limit_enabled,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Opens the database handle on startup; on shutdown repairs any crops
    still marked stale and closes the handle.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Storage backend: {settings.storage_backend}")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")

    database = Database.connect(settings)
    app.state.database = database
    app.state.reconciler = Reconciler(database.crops, database.interests)

    yield

    # Shutdown
    logger.info("Shutting down application...")
    repaired = app.state.reconciler.run_pending()
    if repaired:
        logger.info(f"Reconciled {repaired} stale crops before shutdown")
    database.close()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Crop Marketplace API

    Sellers list crops; buyers register interest in buying a quantity of a
    crop; sellers accept or reject each interest.

    ## Consistency

    - Every interest has a canonical record and a summary embedded in its
      crop listing; both carry the same id
    - Writes go to the canonical record first, the crop summary second
    - A crop whose summaries could not be written is repaired from the
      canonical records, lazily on read or through the reconcile endpoint
    - Accepting an interest reduces the crop's available quantity with a
      conditional update, never below zero
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# Add CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add global error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Include routers
app.include_router(crops.router, prefix="/api/v1")
app.include_router(interests.router, prefix="/api/v1")


@app.get("/", tags=["health"])
async def root():
    """
    Root endpoint for health check.

    Returns:
        Status message
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
    }
