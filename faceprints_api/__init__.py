"""
API Layer for the Faceprints Server Mode

This package provides the FastAPI-based API layer that exposes:
- WebSocket endpoint for enrollment with live pose guidance
- REST endpoints for enrollment, authentication, user management and
  health checks

The API layer drives a single FaceprintsService owned by the application.
"""
