"""
User Management API Routes

This module provides REST endpoints for managing enrolled users:
- GET /users: List all enrolled user ids
- GET /users/{user_id}: Get a user's faceprint header and binary record
- DELETE /users/{user_id}: Delete one enrolled user
- DELETE /users: Delete all enrolled users
"""

import base64

from fastapi import APIRouter, Depends, HTTPException

from faceprints_api.dependencies import get_service
from faceprints_api.schemas import (
    ClearUsersResponse,
    DeleteUserResponse,
    UserDetailResponse,
    UserListResponse,
)
from faceprints.service import FaceprintsService
from faceprints.template_store import UserNotFoundError

# Create router
router = APIRouter(tags=["users"])


@router.get("/users", response_model=UserListResponse)
def list_users(service: FaceprintsService = Depends(get_service)):
    """
    List all enrolled users.

    Ids are returned in the order the matcher scans them (sorted).
    """
    users = service.list_users()
    return UserListResponse(users=users, total=len(users))


@router.get("/users/{user_id}", response_model=UserDetailResponse)
def get_user(user_id: str, service: FaceprintsService = Depends(get_service)):
    """
    Get a user's stored faceprint.

    Raises:
        404: If the user is not found.
    """
    faceprint = service.lookup(user_id)

    if faceprint is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")

    return UserDetailResponse(
        user_id=user_id,
        faceprint=base64.b64encode(faceprint.to_bytes()).decode("ascii"),
        **faceprint.summary(),
    )


@router.delete("/users/{user_id}", response_model=DeleteUserResponse)
def delete_user(user_id: str, service: FaceprintsService = Depends(get_service)):
    """
    Delete an enrolled user.

    Raises:
        404: If the user is not found.
    """
    try:
        service.remove_user(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return DeleteUserResponse(
        success=True,
        user_id=user_id,
        message=f"User {user_id} deleted successfully",
    )


@router.delete("/users", response_model=ClearUsersResponse)
def clear_users(service: FaceprintsService = Depends(get_service)):
    """Delete every enrolled user."""
    removed = service.clear_users()
    return ClearUsersResponse(success=True, removed=removed)
