"""
SocioDent Doctor Matching - Main Application
Assigns doctors to pending appointment requests
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables FIRST before reading settings
load_dotenv()

from .api import matching_routes  # noqa: E402
from .config import get_settings  # noqa: E402
from .services.matching import PendingAssignmentSweep  # noqa: E402
from .utils.logging_config import configure_logging  # noqa: E402

configure_logging(get_settings().log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    settings = get_settings()
    logger.info(f"Starting SocioDent matching service (store={settings.store_backend})...")

    sweep = None
    if settings.sweep_enabled:
        try:
            matcher = matching_routes.get_matcher(
                matching_routes.get_store(),
                matching_routes.get_notification_service()
            )
            sweep = PendingAssignmentSweep(matcher, settings.sweep_interval_minutes)
            sweep.start()
            app.state.pending_sweep = sweep
        except Exception as e:
            logger.warning(f"Failed to start pending assignment sweep: {e}")
            sweep = None

    yield

    logger.info("Shutting down SocioDent matching service...")
    if sweep is not None:
        sweep.stop()
    logger.info("SocioDent matching service shutdown complete")


app = FastAPI(
    title="SocioDent Doctor Matching",
    description="Automatic and manual doctor assignment for dental appointments.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(matching_routes.router)


@app.get("/health")
async def health_check():
    """Instant health check endpoint"""
    settings = get_settings()
    return {
        "status": "healthy",
        "store_backend": settings.store_backend,
        "sweep_enabled": settings.sweep_enabled,
        "timestamp": datetime.now().isoformat(),
    }
