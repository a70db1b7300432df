"""
Credential issuer: access/refresh token pairs backed by a durable ledger.

Tokens are signed JWTs that verify offline, and every issued token is also
recorded in the `user-tokens` collection (by SHA-256 of the token string).
The ledger is what makes server-side revocation possible: a refresh token is
only honoured while its record exists, is unrevoked and unexpired, AND its
own signature and claims verify.

Refresh tokens are not rotated on use. Access tokens are never revoked; they
simply expire.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import jwt
from bson import ObjectId

from errors import AccountNotActiveError, InvalidTokenError, TokenRevokedOrExpiredError
from repositories.token_repository import TokenRepository
from repositories.user_repository import UserRepository
from schemas.models.token import (
    PROVIDER_LOCAL,
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
    CredentialDoc,
)
from shared.crypto import hash_token
from shared.jwt_codec import (
    TOKEN_TYPE_ACCESS as CLAIM_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH as CLAIM_TYPE_REFRESH,
    JwtCodec,
    SignedToken,
)
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str
    access_expires_in: int


@dataclass(frozen=True)
class RefreshedAccess:
    access_token: str
    refresh_token: str
    expires_in: int


def _ensure_aware(value: datetime) -> datetime:
    # pymongo returns naive UTC datetimes unless the client is tz_aware
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TokenService:
    def __init__(
        self,
        codec: JwtCodec,
        token_repo: TokenRepository,
        user_repo: UserRepository,
    ) -> None:
        self._codec = codec
        self._tokens = token_repo
        self._users = user_repo

    def _credential(
        self, user_id: ObjectId, token_type: str, signed: SignedToken
    ) -> CredentialDoc:
        return CredentialDoc(
            user_id=user_id,
            token_type=token_type,
            token_hash=hash_token(signed.token),
            provider=PROVIDER_LOCAL,
            issued_at=signed.issued_at,
            expires_at=signed.expires_at,
        )

    async def issue(self, user_id: ObjectId, email: str, role: str) -> IssuedTokens:
        """Sign an access/refresh pair for the user and record both."""
        access = self._codec.encode_access(str(user_id), email, role)
        refresh = self._codec.encode_refresh(str(user_id))

        await self._tokens.insert_many(
            [
                self._credential(user_id, TOKEN_TYPE_ACCESS, access),
                self._credential(user_id, TOKEN_TYPE_REFRESH, refresh),
            ]
        )

        log.info("tokens_issued", user_id=str(user_id))
        return IssuedTokens(
            access_token=access.token,
            refresh_token=refresh.token,
            access_expires_in=access.expires_in,
        )

    async def _load_refresh_record(self, refresh_token: str) -> CredentialDoc:
        record = await self._tokens.find_by_hash(hash_token(refresh_token))
        if record is None:
            raise InvalidTokenError("Invalid refresh token")
        if record.token_type != TOKEN_TYPE_REFRESH:
            raise InvalidTokenError("Token is not a refresh token")
        return record

    async def validate_refresh(self, refresh_token: str) -> ObjectId:
        """Return the user id bound to a live refresh token.

        Raises:
            InvalidTokenError: unknown token, wrong type, or the token's own
                signature/claims do not verify or disagree with the record.
            TokenRevokedOrExpiredError: the ledger record is revoked or past
                its expiry.
        """
        record = await self._load_refresh_record(refresh_token)

        now = datetime.now(timezone.utc)
        if record.revoked or now > _ensure_aware(record.expires_at):
            log.info(
                "refresh_token_rejected",
                user_id=str(record.user_id),
                revoked=record.revoked,
            )
            raise TokenRevokedOrExpiredError()

        try:
            claims = self._codec.decode(refresh_token, CLAIM_TYPE_REFRESH)
        except jwt.InvalidTokenError as e:
            log.warning("refresh_token_signature_invalid", error=str(e))
            raise InvalidTokenError("Invalid refresh token") from e

        if claims.get("sub") != str(record.user_id):
            log.warning("refresh_token_subject_mismatch", user_id=str(record.user_id))
            raise InvalidTokenError("Invalid refresh token")

        return record.user_id

    async def refresh_access_token(self, refresh_token: str) -> RefreshedAccess:
        """Sign a new access token; the refresh token is returned unchanged.

        No refresh credential is created. The new access token is recorded
        for the audit trail.
        """
        user_id = await self.validate_refresh(refresh_token)

        user = await self._users.find_by_id(user_id)
        if user is None:
            raise InvalidTokenError("User not found")
        if not user.is_active:
            raise AccountNotActiveError()

        access = self._codec.encode_access(str(user_id), user.email, user.role)
        await self._tokens.insert(self._credential(user_id, TOKEN_TYPE_ACCESS, access))

        log.info("access_token_refreshed", user_id=str(user_id))
        return RefreshedAccess(
            access_token=access.token,
            refresh_token=refresh_token,
            expires_in=access.expires_in,
        )

    async def revoke(self, refresh_token: str) -> None:
        """Mark the refresh token revoked. Revoking twice is harmless.

        Access-token records are refused with InvalidTokenError.
        """
        record = await self._load_refresh_record(refresh_token)
        await self._tokens.mark_revoked(record.id)
        log.info("refresh_token_revoked", user_id=str(record.user_id))

    def decode_access_token(self, access_token: str) -> dict:
        """Verify an access token offline and return its claims.

        Raises:
            InvalidTokenError: bad signature, wrong type or expired.
        """
        try:
            return self._codec.decode(access_token, CLAIM_TYPE_ACCESS)
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError("Invalid or expired access token") from e
