"""
Pydantic Schemas for API Request/Response Models

This module defines the data models exchanged between API clients and the
faceprints service.

These schemas provide:
- Type validation
- Automatic documentation in OpenAPI/Swagger
- Clear interface contracts
"""

from typing import List, Optional
from pydantic import BaseModel, Field


# ============================================================
# Enrollment Schemas
# ============================================================

class EnrollRequest(BaseModel):
    """Request to enroll a user from one sensor extraction."""
    user_id: str = Field(..., min_length=1, description="Id to enroll the user under")


class EnrollResponse(BaseModel):
    """Result of an enrollment extraction."""
    success: bool = Field(..., description="True if a faceprint was stored")
    user_id: str = Field(..., description="User id that was enrolled")
    status: str = Field(..., description="Connection status of the device call")
    enroll_status: Optional[str] = Field(None, description="Terminal extraction status")
    guidance: List[str] = Field(default_factory=list, description="Pose guidance shown during capture")
    hints: List[str] = Field(default_factory=list, description="Hints reported by the sensor")
    message: str = Field(..., description="Human-readable summary")


class ProgressEvent(BaseModel):
    """WebSocket event: the sensor detected a pose."""
    type: str = Field(default="progress", description="Message type")
    pose: str = Field(..., description="Detected pose: Center, Left or Right")


class GuidanceEvent(BaseModel):
    """WebSocket event: where the user should look next."""
    type: str = Field(default="guidance", description="Message type")
    message: str = Field(..., description="Instruction text")


class HintEvent(BaseModel):
    """WebSocket event: advisory hint from the sensor."""
    type: str = Field(default="hint", description="Message type")
    hint: str = Field(..., description="Hint status name")


class EnrollmentCompleteResponse(BaseModel):
    """WebSocket message sent when the enrollment extraction has ended."""
    type: str = Field(default="enrollment_complete", description="Message type")
    success: bool = Field(..., description="True if a faceprint was stored")
    user_id: str = Field(..., description="User id that was enrolled")
    enroll_status: Optional[str] = Field(None, description="Terminal extraction status")


class EnrollmentErrorResponse(BaseModel):
    """Error message during WebSocket enrollment."""
    type: str = Field(default="error", description="Message type")
    error: str = Field(..., description="Error message")
    code: str = Field(default="ENROLLMENT_ERROR", description="Error code")


# ============================================================
# Authentication Schemas
# ============================================================

class AuthResponse(BaseModel):
    """Result of an authentication extraction and store scan."""
    matched: bool = Field(..., description="True if a stored user matched")
    user_id: Optional[str] = Field(None, description="Matched user id")
    updated: bool = Field(False, description="True if the user's average faceprint was refreshed")
    no_match_found: bool = Field(False, description="True if the scan completed without a match")
    status: str = Field(..., description="Connection status of the device call")
    auth_status: Optional[str] = Field(None, description="Terminal extraction status")
    candidates: int = Field(0, description="Stored faceprints offered to the matcher")


# ============================================================
# User Management Schemas
# ============================================================

class UserListResponse(BaseModel):
    """Enrolled user ids in match-scan order."""
    users: List[str] = Field(default_factory=list)
    total: int = Field(0, description="Total number of enrolled users")


class UserDetailResponse(BaseModel):
    """Stored faceprint header of one user."""
    user_id: str = Field(..., description="Unique user identifier")
    version: int = Field(..., description="Faceprint format version")
    number_of_descriptors: int = Field(..., description="Encoded descriptor element count")
    features_type: str = Field(..., description="Descriptor encoding tag")
    descriptor_length: int = Field(..., description="Length of each descriptor vector")
    faceprint: Optional[str] = Field(None, description="Base64 binary faceprint record")


class DeleteUserResponse(BaseModel):
    """Response from user deletion."""
    success: bool = Field(..., description="Whether deletion was successful")
    user_id: str = Field(..., description="ID of deleted user")
    message: str = Field(..., description="Status message")


class ClearUsersResponse(BaseModel):
    """Response from deleting all users."""
    success: bool = Field(..., description="Whether the store was cleared")
    removed: int = Field(..., description="Number of users removed")


# ============================================================
# Health Check Schemas
# ============================================================

class HealthResponse(BaseModel):
    """System health check response."""
    status: str = Field(..., description="Overall status: 'healthy' or 'degraded'")
    device_connected: bool = Field(..., description="Whether the sensor is connected")
    enrolled_users: int = Field(..., description="Number of enrolled users")
    last_enroll_status: Optional[str] = Field(None, description="Latest enrollment extraction status")
    last_auth_status: Optional[str] = Field(None, description="Latest authentication extraction status")
