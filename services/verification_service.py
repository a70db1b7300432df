"""
Verification session manager: the OTP life cycle of one registration attempt.

A session lives only as TTL-bound keys in the keyed store:

    otp:{id}       the code                     OTP TTL
    email:{id}     the address being verified   OTP TTL, then profile TTL
    attempts:{id}  failed comparisons so far    OTP TTL
    verified:{id}  "true" once the code matched profile TTL

PENDING_OTP -> VERIFIED -> consumed. Neither consumption nor expiry has a
stored form: when the keys are gone the session reads as EXPIRED, which is
indistinguishable from a session that never existed.

Ids that are not canonical uuid4 strings are treated as unknown sessions
without touching the store, so a caller cannot steer key names into another
prefix (``rate:<email>`` would otherwise land on the rate-limit counter).
"""

from __future__ import annotations

import time
from typing import Optional

from config import OtpSettings
from errors import (
    InvalidOtpError,
    MaxAttemptsExceededError,
    OtpExpiredError,
    SessionExpiredError,
)
from infrastructure.store.protocol import KeyedStore
from schemas.models.verification import OtpEmailJob, VerificationState
from services.rate_limiter import OtpRateLimiter
from shared.generators import (
    generate_otp_code,
    generate_verification_id,
    is_verification_id,
)
from shared.logging import get_logger, mask_email

log = get_logger(__name__)

VERIFIED_FLAG = "true"


def otp_key(verification_id: str) -> str:
    return f"otp:{verification_id}"


def email_key(verification_id: str) -> str:
    return f"email:{verification_id}"


def attempts_key(verification_id: str) -> str:
    return f"attempts:{verification_id}"


def verified_key(verification_id: str) -> str:
    return f"verified:{verification_id}"


class VerificationService:
    def __init__(
        self,
        store: KeyedStore,
        rate_limiter: OtpRateLimiter,
        settings: OtpSettings,
    ) -> None:
        self._store = store
        self._rate_limiter = rate_limiter
        self._settings = settings

    @property
    def otp_ttl_minutes(self) -> int:
        return self._settings.otp_ttl_minutes

    @property
    def profile_completion_ttl_minutes(self) -> int:
        return self._settings.profile_completion_ttl_minutes

    async def request_otp(self, email: str) -> str:
        """Open a new session for *email* and queue the OTP email.

        The caller has already rejected registered emails.

        Raises:
            OtpRateLimitExceededError: too many requests for this email.
        """
        await self._rate_limiter.admit(email)

        verification_id = generate_verification_id()
        code = generate_otp_code(self._settings.otp_length)
        ttl = self._settings.otp_ttl_seconds

        await self._store.set(otp_key(verification_id), code, ttl)
        await self._store.set(email_key(verification_id), email, ttl)
        await self._store.set(attempts_key(verification_id), "0", ttl)

        job = OtpEmailJob(
            email=email,
            otp=code,
            timestamp=int(time.time() * 1000),
            otp_ttl_minutes=self._settings.otp_ttl_minutes,
        )
        await self._store.enqueue(self._settings.email_queue_name, job.to_payload())

        log.info(
            "otp_requested",
            verification_id=verification_id,
            email=mask_email(email),
            ttl_minutes=self._settings.otp_ttl_minutes,
        )
        return verification_id

    async def verify_otp(self, verification_id: str, code: str) -> str:
        """Check *code* against the session and return the verified email.

        Raises:
            MaxAttemptsExceededError: attempt budget spent; session destroyed.
            OtpExpiredError: no live code for this id (expired, consumed,
                already verified or never issued).
            InvalidOtpError: wrong code; carries the attempts left.
            SessionExpiredError: code matched but the email key was gone.
        """
        if not is_verification_id(verification_id):
            log.warning("otp_verify_malformed_id")
            raise OtpExpiredError()

        raw_attempts = await self._store.get(attempts_key(verification_id))
        attempts = int(raw_attempts) if raw_attempts else 0
        max_attempts = self._settings.otp_max_attempts

        if attempts >= max_attempts:
            await self._store.delete(
                otp_key(verification_id),
                email_key(verification_id),
                attempts_key(verification_id),
            )
            log.warning(
                "otp_max_attempts_exceeded",
                verification_id=verification_id,
                attempts=attempts,
            )
            raise MaxAttemptsExceededError()

        stored_code = await self._store.get(otp_key(verification_id))
        if stored_code is None:
            log.info("otp_expired", verification_id=verification_id)
            raise OtpExpiredError()

        if code != stored_code:
            if raw_attempts is None:
                # INCR on an absent key would leave a counter with no expiry
                ttl = await self._store.ttl_remaining(otp_key(verification_id))
                attempts = 1
                await self._store.set(
                    attempts_key(verification_id),
                    str(attempts),
                    ttl or self._settings.otp_ttl_seconds,
                )
            else:
                attempts = await self._store.increment(attempts_key(verification_id))
            remaining = max(max_attempts - attempts, 0)
            log.warning(
                "otp_invalid",
                verification_id=verification_id,
                attempts=attempts,
                attempts_remaining=remaining,
            )
            raise InvalidOtpError(attempts_remaining=remaining)

        email = await self._store.get(email_key(verification_id))
        if email is None:
            log.warning("verification_session_missing_email", verification_id=verification_id)
            raise SessionExpiredError()

        profile_ttl = self._settings.profile_completion_ttl_seconds
        await self._store.set(verified_key(verification_id), VERIFIED_FLAG, profile_ttl)
        # The email must outlive the OTP window so final registration can read it
        await self._store.set(email_key(verification_id), email, profile_ttl)
        await self._store.delete(otp_key(verification_id), attempts_key(verification_id))

        log.info(
            "otp_verified",
            verification_id=verification_id,
            email=mask_email(email),
        )
        return email

    async def is_verified(self, verification_id: str) -> bool:
        if not is_verification_id(verification_id):
            return False
        return await self._store.get(verified_key(verification_id)) == VERIFIED_FLAG

    async def get_email(self, verification_id: str) -> Optional[str]:
        if not is_verification_id(verification_id):
            return None
        return await self._store.get(email_key(verification_id))

    async def cleanup(self, verification_id: str) -> None:
        """Consume the session. Deleting keys that are already gone is a no-op."""
        if not is_verification_id(verification_id):
            return
        await self._store.delete(
            verified_key(verification_id),
            email_key(verification_id),
            otp_key(verification_id),
            attempts_key(verification_id),
        )
        log.info("verification_session_consumed", verification_id=verification_id)

    async def get_state(self, verification_id: str) -> VerificationState:
        """Derive the observable state from which keys are still present.

        A consumed session has no keys left, so it reads as EXPIRED.
        """
        if not is_verification_id(verification_id):
            return VerificationState.EXPIRED
        if await self.is_verified(verification_id):
            return VerificationState.VERIFIED
        if await self._store.get(otp_key(verification_id)) is not None:
            return VerificationState.PENDING_OTP
        return VerificationState.EXPIRED
