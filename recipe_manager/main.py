"""Main application entry point with FastAPI."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import ValidationError

from .config import get_settings
from .database import check_database_health, dispose_engine, list_tables
from .errors import RecipeStoreError
from .routes import recipe_store_error_handler, router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def validate_environment():
    """Validate environment variables on startup."""
    try:
        settings = get_settings()
        logger.info("Environment variables validated successfully")
        return settings
    except ValidationError as e:
        logger.error("ERROR: Missing or invalid environment variables:")
        logger.error(str(e))
        sys.exit(1)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown."""
    # Startup
    settings = validate_environment()
    logging.getLogger().setLevel(settings.log_level)
    logger.info(f"Starting {settings.app_name} {settings.app_version}...")

    tables = list_tables()
    logger.info(f"=== Tables in database: {tables} ===")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    dispose_engine()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        description="REST backend for recipes, their ingredients, steps and tags",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.include_router(router)
    app.add_exception_handler(RecipeStoreError, recipe_store_error_handler)

    @app.get("/health")
    def health_check():
        """Health check endpoint.

        Verifies database connection and returns status.
        """
        if check_database_health():
            return {"status": "healthy", "database": "connected"}
        return {"status": "unhealthy", "database": "disconnected"}

    @app.get("/")
    def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "status": "running",
            "version": settings.app_version,
        }

    return app


app = create_app()
