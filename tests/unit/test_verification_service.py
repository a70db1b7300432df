"""Unit tests for the verification session manager."""

import json
import uuid
from unittest.mock import AsyncMock

import pytest

from errors import (
    InvalidOtpError,
    MaxAttemptsExceededError,
    OtpExpiredError,
    OtpRateLimitExceededError,
    SessionExpiredError,
    StoreUnavailableError,
)
from schemas.models.verification import VerificationState
from services.rate_limiter import rate_key
from services.verification_service import VerificationService


def _wrong(code: str) -> str:
    """A same-length code guaranteed to differ from *code*."""
    return "".join("1" if c == "0" else "0" for c in code)


class TestRequestOtp:
    async def test_writes_session_keys(self, verification_service, redis_client):
        vid = await verification_service.request_otp("a@x.com")

        assert len(vid) == 36
        code = await redis_client.get(f"otp:{vid}")
        assert code.isdigit() and len(code) == 6
        assert await redis_client.get(f"email:{vid}") == "a@x.com"
        assert await redis_client.get(f"attempts:{vid}") == "0"
        for key in (f"otp:{vid}", f"email:{vid}", f"attempts:{vid}"):
            assert 0 < await redis_client.ttl(key) <= 300
        assert await redis_client.get(f"verified:{vid}") is None

    async def test_enqueues_one_email_job(self, verification_service, redis_client):
        vid = await verification_service.request_otp("a@x.com")

        items = await redis_client.lrange("queue:email", 0, -1)
        assert len(items) == 1
        job = json.loads(items[0])
        assert job["email"] == "a@x.com"
        assert job["otp"] == await redis_client.get(f"otp:{vid}")
        assert job["type"] == "OTP_VERIFICATION"
        assert job["otpTtlMinutes"] == 5
        assert isinstance(job["timestamp"], int)

    async def test_fresh_id_per_request(self, verification_service):
        a = await verification_service.request_otp("a@x.com")
        b = await verification_service.request_otp("a@x.com")
        assert a != b

    async def test_rate_limited_request_writes_nothing(
        self, verification_service, redis_client
    ):
        for _ in range(5):
            await verification_service.request_otp("a@x.com")
        with pytest.raises(OtpRateLimitExceededError) as info:
            await verification_service.request_otp("a@x.com")
        assert info.value.retry_after_seconds > 0
        assert await redis_client.llen("queue:email") == 5

    async def test_initial_state_pending(self, verification_service):
        vid = await verification_service.request_otp("a@x.com")
        assert await verification_service.get_state(vid) is VerificationState.PENDING_OTP


class TestVerifyOtp:
    async def test_correct_code_returns_email(self, verification_service, read_otp):
        vid = await verification_service.request_otp("a@x.com")
        code = await read_otp(vid)
        assert await verification_service.verify_otp(vid, code) == "a@x.com"

    async def test_success_marks_verified_and_destroys_code(
        self, verification_service, redis_client, read_otp
    ):
        vid = await verification_service.request_otp("a@x.com")
        await verification_service.verify_otp(vid, await read_otp(vid))

        assert await redis_client.get(f"verified:{vid}") == "true"
        assert 300 < await redis_client.ttl(f"verified:{vid}") <= 1200
        assert await redis_client.get(f"otp:{vid}") is None
        assert await redis_client.get(f"attempts:{vid}") is None
        assert await verification_service.is_verified(vid) is True
        assert await verification_service.get_state(vid) is VerificationState.VERIFIED

    async def test_email_outlives_otp_window(
        self, verification_service, redis_client, read_otp
    ):
        vid = await verification_service.request_otp("a@x.com")
        await verification_service.verify_otp(vid, await read_otp(vid))
        assert await verification_service.get_email(vid) == "a@x.com"
        assert await redis_client.ttl(f"email:{vid}") > 300

    async def test_replay_after_success_is_expired(self, verification_service, read_otp):
        vid = await verification_service.request_otp("a@x.com")
        code = await read_otp(vid)
        await verification_service.verify_otp(vid, code)
        with pytest.raises(OtpExpiredError):
            await verification_service.verify_otp(vid, code)

    async def test_wrong_code_reports_remaining(
        self, verification_service, redis_client, read_otp
    ):
        vid = await verification_service.request_otp("a@x.com")
        code = await read_otp(vid)
        with pytest.raises(InvalidOtpError) as info:
            await verification_service.verify_otp(vid, _wrong(code))
        assert info.value.attempts_remaining == 4
        assert await redis_client.get(f"attempts:{vid}") == "1"

    async def test_remaining_counts_down(self, verification_service, read_otp):
        vid = await verification_service.request_otp("a@x.com")
        wrong = _wrong(await read_otp(vid))
        remaining = []
        for _ in range(5):
            with pytest.raises(InvalidOtpError) as info:
                await verification_service.verify_otp(vid, wrong)
            remaining.append(info.value.attempts_remaining)
        assert remaining == [4, 3, 2, 1, 0]

    async def test_exhausted_attempts_destroy_session(
        self, verification_service, redis_client, read_otp
    ):
        vid = await verification_service.request_otp("a@x.com")
        code = await read_otp(vid)
        for _ in range(5):
            with pytest.raises(InvalidOtpError):
                await verification_service.verify_otp(vid, _wrong(code))

        with pytest.raises(MaxAttemptsExceededError):
            await verification_service.verify_otp(vid, code)

        for key in (f"otp:{vid}", f"email:{vid}", f"attempts:{vid}"):
            assert await redis_client.get(key) is None
        # Unrecoverable: the correct code now finds nothing
        with pytest.raises(OtpExpiredError):
            await verification_service.verify_otp(vid, code)
        assert await verification_service.get_state(vid) is VerificationState.EXPIRED

    async def test_unknown_id_is_expired(self, verification_service):
        with pytest.raises(OtpExpiredError):
            await verification_service.verify_otp(str(uuid.uuid4()), "123456")

    async def test_ttl_elapsed_is_expired(self, verification_service, redis_client, read_otp):
        vid = await verification_service.request_otp("a@x.com")
        code = await read_otp(vid)
        await redis_client.delete(f"otp:{vid}", f"email:{vid}", f"attempts:{vid}")
        with pytest.raises(OtpExpiredError):
            await verification_service.verify_otp(vid, code)

    async def test_missing_email_on_match_is_session_expired(
        self, verification_service, redis_client, read_otp
    ):
        vid = await verification_service.request_otp("a@x.com")
        code = await read_otp(vid)
        await redis_client.delete(f"email:{vid}")
        with pytest.raises(SessionExpiredError):
            await verification_service.verify_otp(vid, code)
        assert await verification_service.is_verified(vid) is False

    async def test_store_outage_is_not_expiry(self, otp_settings, rate_limiter):
        store = AsyncMock()
        store.get.side_effect = StoreUnavailableError("redis", "get")
        service = VerificationService(store, rate_limiter, otp_settings)
        with pytest.raises(StoreUnavailableError):
            await service.verify_otp(str(uuid.uuid4()), "123456")

    async def test_missing_attempts_counter_is_reseeded_with_expiry(
        self, verification_service, redis_client, read_otp
    ):
        vid = await verification_service.request_otp("a@x.com")
        code = await read_otp(vid)
        await redis_client.delete(f"attempts:{vid}")
        with pytest.raises(InvalidOtpError) as info:
            await verification_service.verify_otp(vid, _wrong(code))
        assert info.value.attempts_remaining == 4
        assert await redis_client.get(f"attempts:{vid}") == "1"
        assert 0 < await redis_client.ttl(f"attempts:{vid}") <= 300


class TestMalformedIds:
    async def test_key_prefixed_id_cannot_reset_rate_window(
        self, verification_service, redis_client
    ):
        for _ in range(5):
            await verification_service.request_otp("victim@x.com")
        with pytest.raises(OtpRateLimitExceededError):
            await verification_service.request_otp("victim@x.com")

        forged = "rate:victim@x.com"
        for _ in range(7):
            with pytest.raises(OtpExpiredError):
                await verification_service.verify_otp(forged, "000000")

        assert await redis_client.get(rate_key("victim@x.com")) == "5"
        assert await redis_client.exists(f"attempts:{forged}") == 0
        with pytest.raises(OtpRateLimitExceededError):
            await verification_service.request_otp("victim@x.com")

    @pytest.mark.parametrize(
        "verification_id",
        ["", "rate:a@x.com", "../otp", "0F8FAD5B-D9CB-469F-A165-70867728950E"],
    )
    async def test_malformed_id_never_reaches_the_store(
        self, otp_settings, rate_limiter, verification_id
    ):
        store = AsyncMock()
        service = VerificationService(store, rate_limiter, otp_settings)

        with pytest.raises(OtpExpiredError):
            await service.verify_otp(verification_id, "123456")
        assert await service.is_verified(verification_id) is False
        assert await service.get_email(verification_id) is None
        assert await service.get_state(verification_id) is VerificationState.EXPIRED
        await service.cleanup(verification_id)

        assert store.method_calls == []


class TestCleanup:
    async def test_removes_every_key(self, verification_service, redis_client, read_otp):
        vid = await verification_service.request_otp("a@x.com")
        await verification_service.verify_otp(vid, await read_otp(vid))

        await verification_service.cleanup(vid)

        for prefix in ("otp", "email", "attempts", "verified"):
            assert await redis_client.get(f"{prefix}:{vid}") is None
        assert await verification_service.is_verified(vid) is False
        assert await verification_service.get_email(vid) is None

    async def test_idempotent(self, verification_service, read_otp):
        vid = await verification_service.request_otp("a@x.com")
        await verification_service.verify_otp(vid, await read_otp(vid))
        await verification_service.cleanup(vid)
        await verification_service.cleanup(vid)
        assert await verification_service.get_state(vid) is VerificationState.EXPIRED

    async def test_removes_partial_state(self, verification_service, redis_client):
        vid = await verification_service.request_otp("a@x.com")
        await verification_service.cleanup(vid)
        assert await redis_client.get(f"otp:{vid}") is None
        assert await redis_client.get(f"attempts:{vid}") is None


class TestScenario:
    async def test_wrong_then_correct_code(self, verification_service, redis_client, mocker):
        mocker.patch(
            "services.verification_service.generate_otp_code", return_value="482913"
        )
        vid = await verification_service.request_otp("a@x.com")
        assert len(vid) == 36
        assert await redis_client.llen("queue:email") == 1

        with pytest.raises(InvalidOtpError) as info:
            await verification_service.verify_otp(vid, "000000")
        assert info.value.attempts_remaining == 4

        assert await verification_service.verify_otp(vid, "482913") == "a@x.com"
