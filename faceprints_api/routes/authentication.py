"""
Authentication API Routes

This module provides the POST /faceprints/authenticate endpoint. It runs
one authentication extraction on the sensor and scans the template store
with the sensor's match function. No match is a normal response.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from faceprints_api.dependencies import get_service
from faceprints_api.schemas import AuthResponse
from faceprints.extraction import DeviceBusyError
from faceprints.service import FaceprintsService
from faceprints.statuses import Status

# Setup logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/faceprints", tags=["authentication"])


@router.post("/authenticate", response_model=AuthResponse)
def authenticate(service: FaceprintsService = Depends(get_service)):
    """
    Identify the user in front of the sensor.

    Returns:
        AuthResponse. matched=true with user_id on a hit; no_match_found=true
        when no stored faceprint matched; otherwise auth_status names the
        extraction failure.

    Raises:
        409: Another extraction is running.
        503: The device call failed (e.g. not connected).
    """
    try:
        outcome = service.authenticate_faceprints()
    except DeviceBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if outcome.status != Status.OK:
        raise HTTPException(
            status_code=503,
            detail=f"Device call failed with status {outcome.status.name}",
        )

    if outcome.matched:
        logger.info(f"Authenticated user {outcome.user_id} (updated={outcome.updated})")

    return AuthResponse(
        matched=outcome.matched,
        user_id=outcome.user_id,
        updated=outcome.updated,
        no_match_found=outcome.no_match_found,
        status=outcome.status.name,
        auth_status=outcome.auth_status.name if outcome.auth_status is not None else None,
        candidates=outcome.candidates,
    )
