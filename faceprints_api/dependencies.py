"""
Shared route dependencies.

The application keeps its single FaceprintsService on `app.state.service`;
routes receive it through FastAPI dependency injection.
"""

from fastapi import HTTPException, Request

from faceprints.service import FaceprintsService


def get_service(request: Request) -> FaceprintsService:
    """Return the service owned by the running application."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Faceprints service not initialized")
    return service
