"""
Response DTOs for authentication endpoints.

RequestOtpResponse  — POST /auth/request-otp  (200)
VerifyOtpResponse   — POST /auth/verify-otp  (200)
AuthResponse        — POST /auth/register (201), /auth/login, /auth/refresh,
                      /auth/change-password (200)
UserProfileResponse — GET /auth/me  (200)
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.user import UserDoc


class RequestOtpResponse(BaseModel):
    """Response body for POST /auth/request-otp."""

    model_config = ConfigDict(populate_by_name=True)

    verification_id: str
    message: str
    ttl_minutes: int


class VerifyOtpResponse(BaseModel):
    """Response body for POST /auth/verify-otp."""

    model_config = ConfigDict(populate_by_name=True)

    verification_id: str
    message: str
    verified: bool
    profile_completion_ttl_minutes: int


class AuthResponse(BaseModel):
    """Token pair returned after register, login, refresh and password change."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


class UserProfileResponse(BaseModel):
    """Profile of the authenticated user, returned by GET /auth/me."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    full_name: str
    profile_image: Optional[str] = None
    email_subscribed: bool
    role: str
    status: str
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: UserDoc) -> "UserProfileResponse":
        return cls(
            id=str(user.id),
            email=user.email,
            full_name=user.full_name,
            profile_image=user.profile_image,
            email_subscribed=user.email_subscribed,
            role=user.role,
            status=user.status,
            created_at=user.created_at,
            last_login_at=user.last_login_at,
        )
