"""
Shared fixtures for unit and integration tests.

Redis is replaced by fakeredis; MongoDB repositories by in-memory doubles
with the same async interface as repositories.user_repository and
repositories.token_repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import fakeredis
import pytest
from bson import ObjectId

from config import JWTSettings, OtpSettings
from errors import EmailAlreadyRegisteredError
from infrastructure.store.redis_store import RedisKeyedStore
from schemas.models.base import coerce_object_id
from schemas.models.token import CredentialDoc
from schemas.models.user import UserDoc
from services.auth_service import AuthService
from services.rate_limiter import OtpRateLimiter
from services.token_service import TokenService
from services.verification_service import VerificationService, otp_key
from shared.jwt_codec import JwtCodec


class InMemoryUserRepository:
    def __init__(self) -> None:
        self.users: dict[ObjectId, UserDoc] = {}

    async def exists_by_email(self, email: str) -> bool:
        return any(u.email == email for u in self.users.values())

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        return next((u for u in self.users.values() if u.email == email), None)

    async def find_by_id(self, user_id: Any) -> Optional[UserDoc]:
        oid = coerce_object_id(user_id)
        return self.users.get(oid) if oid is not None else None

    async def create(self, user: UserDoc) -> ObjectId:
        if await self.exists_by_email(user.email):
            raise EmailAlreadyRegisteredError()
        oid = ObjectId()
        self.users[oid] = user.model_copy(update={"id": oid})
        return oid

    async def update_last_login(self, user_id: ObjectId, when: datetime) -> None:
        self.users[user_id] = self.users[user_id].model_copy(
            update={"last_login_at": when, "updated_at": when}
        )

    async def update_password(
        self, user_id: ObjectId, password_hash: str, when: datetime
    ) -> None:
        self.users[user_id] = self.users[user_id].model_copy(
            update={"password_hash": password_hash, "updated_at": when}
        )


class InMemoryTokenRepository:
    def __init__(self) -> None:
        self.records: dict[ObjectId, CredentialDoc] = {}

    async def insert(self, credential: CredentialDoc) -> ObjectId:
        oid = ObjectId()
        self.records[oid] = credential.model_copy(update={"id": oid})
        return oid

    async def insert_many(self, credentials: list[CredentialDoc]) -> list[ObjectId]:
        return [await self.insert(c) for c in credentials]

    async def find_by_hash(self, token_hash: str) -> Optional[CredentialDoc]:
        return next(
            (r for r in self.records.values() if r.token_hash == token_hash), None
        )

    async def mark_revoked(self, credential_id: ObjectId) -> bool:
        if credential_id not in self.records:
            return False
        self.records[credential_id] = self.records[credential_id].model_copy(
            update={"revoked": True}
        )
        return True


@pytest.fixture
def redis_client():
    return fakeredis.FakeAsyncRedis(decode_responses=True)


@pytest.fixture
def store(redis_client):
    return RedisKeyedStore(redis_client, timeout_seconds=2.0)


@pytest.fixture
def otp_settings():
    return OtpSettings(
        otp_length=6,
        otp_ttl_minutes=5,
        otp_max_attempts=5,
        profile_completion_ttl_minutes=20,
        otp_max_requests_per_hour=5,
        otp_rate_window_seconds=3600,
        email_queue_name="queue:email",
    )


@pytest.fixture
def jwt_settings():
    return JWTSettings(
        jwt_issuer="credential-engine",
        jwt_audience="credential-engine.api",
        jwt_secret="test-signing-secret-with-enough-bytes-for-hs256",
        jwt_private_key="",
        jwt_public_key="",
        access_token_ttl_seconds=3600,
        refresh_token_ttl_seconds=604800,
    )


@pytest.fixture
def user_repo():
    return InMemoryUserRepository()


@pytest.fixture
def token_repo():
    return InMemoryTokenRepository()


@pytest.fixture
def rate_limiter(store, otp_settings):
    return OtpRateLimiter(
        store,
        max_requests=otp_settings.otp_max_requests_per_hour,
        window_seconds=otp_settings.otp_rate_window_seconds,
    )


@pytest.fixture
def verification_service(store, rate_limiter, otp_settings):
    return VerificationService(store, rate_limiter, otp_settings)


@pytest.fixture
def token_service(jwt_settings, token_repo, user_repo):
    return TokenService(JwtCodec(jwt_settings), token_repo, user_repo)


@pytest.fixture
def auth_service(user_repo, verification_service, token_service):
    return AuthService(user_repo, verification_service, token_service)


@pytest.fixture
def read_otp(redis_client):
    """Return a coroutine function that reads the live code for a session."""

    async def _read(verification_id: str) -> Optional[str]:
        return await redis_client.get(otp_key(verification_id))

    return _read
