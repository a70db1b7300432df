"""
Request DTOs for authentication endpoints.

RequestOtpRequest         — POST /api/v1/auth/request-otp
VerifyOtpRequest          — POST /api/v1/auth/verify-otp
FinalRegistrationRequest  — POST /api/v1/auth/register
LoginRequest              — POST /api/v1/auth/login
RefreshTokenRequest       — POST /api/v1/auth/refresh, /api/v1/auth/logout
ChangePasswordRequest     — POST /api/v1/auth/change-password
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from shared.generators import VERIFICATION_ID_PATTERN


class RequestOtpRequest(BaseModel):
    """Request body for POST /auth/request-otp."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr


class VerifyOtpRequest(BaseModel):
    """Request body for POST /auth/verify-otp.

    ``otp`` is the numeric code sent to the address being registered.
    """

    model_config = ConfigDict(populate_by_name=True)

    verification_id: str = Field(pattern=VERIFICATION_ID_PATTERN)
    otp: str = Field(min_length=1, max_length=12)


class FinalRegistrationRequest(BaseModel):
    """Request body for POST /auth/register.

    Only accepted for a verification_id whose OTP has been verified.
    """

    model_config = ConfigDict(populate_by_name=True)

    verification_id: str = Field(pattern=VERIFICATION_ID_PATTERN)
    full_name: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=8)
    confirm_password: str
    profile_image: Optional[str] = None
    email_subscribed: bool = True


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    password: str


class RefreshTokenRequest(BaseModel):
    """Request body for POST /auth/refresh and POST /auth/logout."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(min_length=1)


class ChangePasswordRequest(BaseModel):
    """Request body for POST /auth/change-password."""

    model_config = ConfigDict(populate_by_name=True)

    old_password: str
    new_password: str = Field(min_length=8)
