"""
API Routes Package

This package contains route handlers organized by feature:
- enrollment.py: WebSocket and REST endpoints for user enrollment
- authentication.py: REST endpoint for authentication
- management.py: REST endpoints for user management
"""

from faceprints_api.routes.enrollment import router as enrollment_router
from faceprints_api.routes.enrollment import rest_router as enrollment_rest_router
from faceprints_api.routes.authentication import router as authentication_router
from faceprints_api.routes.management import router as management_router

__all__ = [
    "enrollment_router",
    "enrollment_rest_router",
    "authentication_router",
    "management_router",
]
