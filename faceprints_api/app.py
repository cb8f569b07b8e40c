"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application for the
Faceprints server-mode API.

The application provides:
- REST and WebSocket endpoints for enrollment
- REST endpoint for authentication
- REST endpoints for user management
- Health check endpoint

Usage:
    # From project root:
    uvicorn faceprints_api.app:app --host 0.0.0.0 --port 8000

    # Or run directly:
    python -m faceprints_api.app
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from faceprints_api.dependencies import get_service
from faceprints_api.routes import (
    authentication_router,
    enrollment_rest_router,
    enrollment_router,
    management_router,
)
from faceprints_api.schemas import HealthResponse
from faceprints.config import get_config, get_logging_config, get_server_config
from faceprints.service import FaceprintsService
from faceprints.statuses import Status

API_NAME = "Faceprints Server Mode API"
API_VERSION = "0.1.0"


def configure_logging() -> None:
    """Configure root logging from the logging config section."""
    try:
        logging_config = get_logging_config()
    except FileNotFoundError:
        logging_config = {"level": "INFO", "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"}

    logging.basicConfig(
        level=getattr(logging, str(logging_config["level"]).upper(), logging.INFO),
        format=logging_config["format"],
    )


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup:
    - Build the faceprints service from config (unless one was injected)
    - Connect the device

    Runs on shutdown:
    - Disconnect the device
    """
    logger.info("=" * 60)
    logger.info(f"Starting {API_NAME}")
    logger.info("=" * 60)

    if app.state.service is None:
        logger.info("Initializing faceprints service from config...")
        app.state.service = FaceprintsService.from_config(get_config())

    service: FaceprintsService = app.state.service
    if not service.device.is_connected:
        status = service.device.connect()
        if status != Status.OK:
            logger.error(f"Failed connecting to device, status: {status}")

    logger.info(f"Faceprints service ready: {len(service.store)} users enrolled")
    logger.info("API startup complete!")

    yield

    logger.info("Shutting down API...")
    service.device.disconnect()
    logger.info("Shutdown complete")


def create_app(service: Optional[FaceprintsService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Service to serve. If None, one is built from config.yaml
                 when the application starts.
    """
    app = FastAPI(
        title=API_NAME,
        description="""
API for host-side faceprint enrollment and authentication.

## Features
- **Enrollment**: Extract a faceprint on the sensor and store it for a user
- **Authentication**: Identify the user in front of the sensor against the store
- **User Management**: List, inspect and delete enrolled users

## WebSocket Enrollment
Connect to `/ws/enroll/{user_id}` to receive pose progress, guidance and
hints while the sensor works, followed by the enrollment result.
        """,
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.service = service

    # Configure CORS for browser clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(enrollment_router)
    app.include_router(enrollment_rest_router)
    app.include_router(authentication_router)
    app.include_router(management_router)

    @app.get("/health", response_model=HealthResponse, tags=["system"])
    def health_check(service: FaceprintsService = Depends(get_service)):
        """
        Check the health of the API and the device connection.
        """
        stats = service.get_stats()
        return HealthResponse(
            status="healthy" if stats["device_connected"] else "degraded",
            device_connected=stats["device_connected"],
            enrolled_users=stats["total_users"],
            last_enroll_status=stats["last_enroll_status"],
            last_auth_status=stats["last_auth_status"],
        )

    @app.get("/", tags=["system"])
    def root():
        """Root endpoint with API information."""
        return {
            "name": API_NAME,
            "version": API_VERSION,
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    server = get_server_config()
    logger.info(f"Starting server on {server['host']}:{server['port']}")
    uvicorn.run(
        "faceprints_api.app:app",
        host=server["host"],
        port=server["port"],
        log_level="info",
    )
