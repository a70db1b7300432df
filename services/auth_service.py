"""
Registration and login orchestration.

Sequences the verification session manager, the credential issuer and the
user repository into the supported flows:

    signup: request_registration_otp -> verify_registration_otp
            -> complete_registration
    login:  login -> refresh* -> logout

Emails are normalised (trimmed, lowercased) on the way in, so every store
key and document uses one spelling per address.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId

from errors import (
    AccountNotActiveError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    InvalidTokenError,
    PasswordMismatchError,
    SessionExpiredError,
    VerificationNotCompletedError,
)
from repositories.user_repository import UserRepository
from schemas.models.user import ROLE_USER, STATUS_ACTIVE, UserDoc
from schemas.models.verification import VerificationState
from services.token_service import IssuedTokens, RefreshedAccess, TokenService
from services.verification_service import VerificationService
from shared.crypto import DUMMY_PASSWORD_HASH, hash_password, verify_password
from shared.logging import get_logger, mask_email

log = get_logger(__name__)


@dataclass(frozen=True)
class OtpRequestResult:
    verification_id: str
    ttl_minutes: int


@dataclass(frozen=True)
class OtpVerificationResult:
    verification_id: str
    email: str
    profile_completion_ttl_minutes: int


@dataclass(frozen=True)
class RegistrationProfile:
    full_name: str
    password: str
    confirm_password: str
    profile_image: Optional[str] = None
    email_subscribed: bool = True


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    def __init__(
        self,
        user_repo: UserRepository,
        verification_service: VerificationService,
        token_service: TokenService,
    ) -> None:
        self._users = user_repo
        self._verification = verification_service
        self._tokens = token_service

    # ── Signup ───────────────────────────────────────────────────────────────

    async def request_registration_otp(self, email: str) -> OtpRequestResult:
        """
        Raises:
            EmailAlreadyRegisteredError: an account already uses this email.
            OtpRateLimitExceededError: too many OTP requests for this email.
        """
        email = normalize_email(email)
        if await self._users.exists_by_email(email):
            log.info("registration_otp_rejected_existing", email=mask_email(email))
            raise EmailAlreadyRegisteredError()

        verification_id = await self._verification.request_otp(email)
        return OtpRequestResult(
            verification_id=verification_id,
            ttl_minutes=self._verification.otp_ttl_minutes,
        )

    async def verify_registration_otp(
        self, verification_id: str, code: str
    ) -> OtpVerificationResult:
        email = await self._verification.verify_otp(verification_id, code.strip())
        return OtpVerificationResult(
            verification_id=verification_id,
            email=email,
            profile_completion_ttl_minutes=self._verification.profile_completion_ttl_minutes,
        )

    async def complete_registration(
        self, verification_id: str, profile: RegistrationProfile
    ) -> IssuedTokens:
        """Create the account for a verified session and sign the first tokens.

        Raises:
            PasswordMismatchError: password and confirmation differ.
            VerificationNotCompletedError: the OTP was never verified, or the
                session was already used.
            SessionExpiredError: verified but the email key has expired.
            EmailAlreadyRegisteredError: the address was registered after
                the OTP was requested.
        """
        if profile.password != profile.confirm_password:
            raise PasswordMismatchError()

        state = await self._verification.get_state(verification_id)
        if state is not VerificationState.VERIFIED:
            log.info(
                "registration_rejected_unverified",
                verification_id=verification_id,
                state=state.value,
            )
            raise VerificationNotCompletedError()

        email = await self._verification.get_email(verification_id)
        if email is None:
            raise SessionExpiredError()

        if await self._users.exists_by_email(email):
            raise EmailAlreadyRegisteredError()

        now = datetime.now(timezone.utc)
        user = UserDoc(
            email=email,
            password_hash=hash_password(profile.password),
            full_name=profile.full_name.strip(),
            profile_image=profile.profile_image,
            email_subscribed=profile.email_subscribed,
            role=ROLE_USER,
            status=STATUS_ACTIVE,
            created_at=now,
            updated_at=now,
        )
        user_id = await self._users.create(user)

        await self._verification.cleanup(verification_id)

        log.info("user_registered", user_id=str(user_id), email=mask_email(email))
        return await self._tokens.issue(user_id, email, ROLE_USER)

    # ── Login / session ──────────────────────────────────────────────────────

    async def login(self, email: str, password: str) -> IssuedTokens:
        """
        Unknown email and wrong password raise the same InvalidCredentialsError.

        Raises:
            InvalidCredentialsError: no such account, or bad password.
            AccountNotActiveError: credentials are right but the account is
                not ACTIVE.
        """
        email = normalize_email(email)
        user = await self._users.find_by_email(email)
        # Unknown emails still pay for one argon2 verification
        password_hash = user.password_hash if user is not None else DUMMY_PASSWORD_HASH
        password_ok = verify_password(password, password_hash)
        if user is None or not password_ok:
            log.warning("login_failed", email=mask_email(email))
            raise InvalidCredentialsError()

        if not user.is_active:
            log.warning("login_blocked_inactive", user_id=str(user.id), status=user.status)
            raise AccountNotActiveError()

        await self._users.update_last_login(user.id, datetime.now(timezone.utc))
        log.info("login_success", user_id=str(user.id))
        return await self._tokens.issue(user.id, user.email, user.role)

    async def refresh(self, refresh_token: str) -> RefreshedAccess:
        return await self._tokens.refresh_access_token(refresh_token)

    async def logout(self, refresh_token: str) -> None:
        await self._tokens.revoke(refresh_token)

    # ── Account ──────────────────────────────────────────────────────────────

    async def get_user(self, user_id: str) -> UserDoc:
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise InvalidTokenError("User not found")
        return user

    async def change_password(
        self, user_id: str, old_password: str, new_password: str
    ) -> IssuedTokens:
        """Replace the password after checking the current one.

        Returns a fresh token pair. Earlier refresh tokens stay valid until
        they are revoked or expire.
        """
        user = await self.get_user(user_id)
        if not user.is_active:
            raise AccountNotActiveError()
        if not verify_password(old_password, user.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")

        await self._users.update_password(
            user.id, hash_password(new_password), datetime.now(timezone.utc)
        )
        log.info("password_changed", user_id=str(user.id))
        return await self._tokens.issue(user.id, user.email, user.role)

    def decode_access_token(self, access_token: str) -> dict:
        return self._tokens.decode_access_token(access_token)
