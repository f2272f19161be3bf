"""
Clinical Trial Tracker API - FastAPI Application
=================================================
Role-based clinical trial registry: cookie-session accounts plus
owner-scoped trial management.
"""

import logging
from datetime import datetime, timezone
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trialtracker.database import get_db_manager

from app.config import settings
from app.core.errors import register_exception_handlers
from app.models.schemas import HealthResponse
from app.services.database import database_status
from app.api.v1.routes import auth, trials

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    db_manager = get_db_manager()
    db_manager.create_tables()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")
    logger.info(f"Database: {db_manager.config.display_name}")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Role-based clinical trial tracking API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware; credentials are required for the session cookie
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(trials.router, prefix="/api/v1/trials", tags=["Trials"])

# =============================================================================
# BACKWARD COMPATIBLE ROUTES (without /v1/ prefix)
# =============================================================================
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication (Legacy)"])
app.include_router(trials.router, prefix="/api/trials", tags=["Trials (Legacy)"])


@app.get("/health", response_model=HealthResponse, tags=["System"])
@app.get("/api/health", response_model=HealthResponse, tags=["System"])
def health():
    """Liveness plus database connectivity."""
    return HealthResponse(
        status="OK",
        message="Clinical Trials API is running",
        database=database_status(),
        environment=settings.ENVIRONMENT,
        timestamp=datetime.now(timezone.utc),
    )
