"""Unit tests for request and response DTOs."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from bson import ObjectId
from pydantic import ValidationError

from schemas.dto.requests.auth import (
    ChangePasswordRequest,
    FinalRegistrationRequest,
    LoginRequest,
    RefreshTokenRequest,
    RequestOtpRequest,
    VerifyOtpRequest,
)
from schemas.dto.responses.auth import AuthResponse, UserProfileResponse
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from schemas.models.user import UserDoc

VID = "0f8fad5b-d9cb-469f-a165-70867728950e"


def _registration(**overrides) -> dict:
    base = {
        "verification_id": VID,
        "full_name": "Ada Lovelace",
        "password": "s3cret-pass",
        "confirm_password": "s3cret-pass",
    }
    base.update(overrides)
    return base


class TestRequestOtpRequest:
    def test_valid_email(self):
        assert RequestOtpRequest(email="a@x.com").email == "a@x.com"

    @pytest.mark.parametrize("email", ["", "not-an-email", "a@"], ids=["empty", "no_at", "no_domain"])
    def test_invalid_email(self, email):
        with pytest.raises(ValidationError):
            RequestOtpRequest(email=email)


class TestVerifyOtpRequest:
    def test_valid(self):
        req = VerifyOtpRequest(verification_id=VID, otp="123456")
        assert req.otp == "123456"

    def test_missing_otp(self):
        with pytest.raises(ValidationError):
            VerifyOtpRequest(verification_id=VID)

    @pytest.mark.parametrize(
        "verification_id",
        [
            "abc",
            "rate:victim@x.com",
            "0F8FAD5B-D9CB-469F-A165-70867728950E",
            "0f8fad5bd9cb469fa16570867728950e",
            "0f8fad5b-d9cb-169f-a165-70867728950e",
            "0f8fad5b-d9cb-469f-a165-70867728950e\n",
        ],
        ids=["short", "key_prefix", "uppercase", "no_dashes", "uuid1", "trailing_newline"],
    )
    def test_rejects_non_uuid4_id(self, verification_id):
        with pytest.raises(ValidationError):
            VerifyOtpRequest(verification_id=verification_id, otp="123456")


class TestFinalRegistrationRequest:
    def test_defaults(self):
        req = FinalRegistrationRequest(**_registration())
        assert req.email_subscribed is True
        assert req.profile_image is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"full_name": "Al"},
            {"full_name": "x" * 101},
            {"password": "short", "confirm_password": "short"},
            {"verification_id": ""},
            {"verification_id": "rate:victim@x.com"},
        ],
        ids=[
            "name_too_short",
            "name_too_long",
            "password_too_short",
            "empty_verification_id",
            "key_prefix_verification_id",
        ],
    )
    def test_invalid(self, overrides):
        with pytest.raises(ValidationError):
            FinalRegistrationRequest(**_registration(**overrides))

    def test_mismatched_confirmation_is_left_to_the_service(self):
        req = FinalRegistrationRequest(**_registration(confirm_password="different-pass"))
        assert req.password != req.confirm_password


def test_login_request():
    req = LoginRequest(email="a@x.com", password="pw")
    assert req.password == "pw"


def test_refresh_token_request_rejects_empty():
    with pytest.raises(ValidationError):
        RefreshTokenRequest(refresh_token="")


def test_change_password_request_min_length():
    with pytest.raises(ValidationError):
        ChangePasswordRequest(old_password="old-password", new_password="short")


class TestResponses:
    def test_auth_response_token_type_default(self):
        resp = AuthResponse(access_token="a", refresh_token="r", expires_in=3600)
        assert resp.model_dump() == {
            "access_token": "a",
            "refresh_token": "r",
            "token_type": "Bearer",
            "expires_in": 3600,
        }

    def test_user_profile_from_user(self):
        o = ObjectId()
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        user = UserDoc(
            _id=o,
            email="a@x.com",
            password_hash="hash",
            full_name="Ada Lovelace",
            created_at=created,
        )
        profile = UserProfileResponse.from_user(user)
        assert profile.id == str(o)
        assert profile.email == "a@x.com"
        assert profile.role == "USER"
        assert profile.created_at == created
        assert "password_hash" not in profile.model_dump()

    def test_error_response_matches_app_error_shape(self):
        err = ErrorResponse(error="bad", code="invalid_otp", details={"attempts_remaining": 4})
        assert err.field is None

    def test_message_response(self):
        assert MessageResponse(success=True).message is None
