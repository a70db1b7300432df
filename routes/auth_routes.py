"""
Authentication endpoints.

POST /api/v1/auth/request-otp      — start registration, email an OTP
POST /api/v1/auth/verify-otp       — check the OTP
POST /api/v1/auth/register         — create the account for a verified session
POST /api/v1/auth/login            — email/password login
POST /api/v1/auth/refresh          — new access token from a refresh token
POST /api/v1/auth/logout           — revoke a refresh token
POST /api/v1/auth/change-password  — bearer auth
GET  /api/v1/auth/me               — bearer auth

Handlers only translate between DTOs and AuthService; every failure is an
AppError rendered by the global handler.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from dependencies import get_auth_service, get_current_user_id
from schemas.dto.requests.auth import (
    ChangePasswordRequest,
    FinalRegistrationRequest,
    LoginRequest,
    RefreshTokenRequest,
    RequestOtpRequest,
    VerifyOtpRequest,
)
from schemas.dto.responses.auth import (
    AuthResponse,
    RequestOtpResponse,
    UserProfileResponse,
    VerifyOtpResponse,
)
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from services.auth_service import AuthService, RegistrationProfile
from services.token_service import IssuedTokens

router = APIRouter(
    prefix="/api/v1/auth",
    tags=["auth"],
    responses={
        code: {"model": ErrorResponse}
        for code in (400, 401, 403, 409, 410, 429, 503)
    },
)


def _auth_response(tokens: IssuedTokens) -> AuthResponse:
    return AuthResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.access_expires_in,
    )


@router.post("/request-otp", response_model=RequestOtpResponse)
async def request_otp(
    body: RequestOtpRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> RequestOtpResponse:
    result = await auth_service.request_registration_otp(body.email)
    return RequestOtpResponse(
        verification_id=result.verification_id,
        message="OTP sent to your email",
        ttl_minutes=result.ttl_minutes,
    )


@router.post("/verify-otp", response_model=VerifyOtpResponse)
async def verify_otp(
    body: VerifyOtpRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> VerifyOtpResponse:
    result = await auth_service.verify_registration_otp(body.verification_id, body.otp)
    return VerifyOtpResponse(
        verification_id=result.verification_id,
        message="Email verified. Complete your profile to finish registration.",
        verified=True,
        profile_completion_ttl_minutes=result.profile_completion_ttl_minutes,
    )


@router.post(
    "/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED
)
async def register(
    body: FinalRegistrationRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    profile = RegistrationProfile(
        full_name=body.full_name,
        password=body.password,
        confirm_password=body.confirm_password,
        profile_image=body.profile_image,
        email_subscribed=body.email_subscribed,
    )
    tokens = await auth_service.complete_registration(body.verification_id, profile)
    return _auth_response(tokens)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    tokens = await auth_service.login(body.email, body.password)
    return _auth_response(tokens)


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    body: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await auth_service.refresh(body.refresh_token)
    return AuthResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        expires_in=result.expires_in,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    body: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.logout(body.refresh_token)
    return MessageResponse(success=True, message="Logged out")


@router.post("/change-password", response_model=AuthResponse)
async def change_password(
    body: ChangePasswordRequest,
    user_id: str = Depends(get_current_user_id),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    tokens = await auth_service.change_password(
        user_id, body.old_password, body.new_password
    )
    return _auth_response(tokens)


@router.get("/me", response_model=UserProfileResponse)
async def me(
    user_id: str = Depends(get_current_user_id),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserProfileResponse:
    user = await auth_service.get_user(user_id)
    return UserProfileResponse.from_user(user)
