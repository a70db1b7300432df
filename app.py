"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.cache.redis_client import create_redis_client
from infrastructure.store.redis_store import RedisKeyedStore
from repositories.indexes import TOKENS_COLLECTION, USERS_COLLECTION, ensure_indexes
from repositories.token_repository import TokenRepository
from repositories.user_repository import UserRepository
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from services.auth_service import AuthService
from services.rate_limiter import OtpRateLimiter
from services.token_service import TokenService
from services.verification_service import VerificationService
from shared.jwt_codec import JwtCodec
from shared.logging import get_logger, setup_logging
from utils.log_context import setup_logging_middleware

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(
        log_level=settings.logging.log_level,
        log_format=settings.logging.log_format,
    )

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        timeout_ms = settings.db.mongo_timeout_ms
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
            timeoutMS=timeout_ms,
        )
        db = mongo_client[settings.db.db_name]
        redis_client = create_redis_client(settings.redis)

        app.state.db = db
        app.state.redis = redis_client

        store = RedisKeyedStore(redis_client, settings.redis.redis_timeout_seconds)
        user_repo = UserRepository(db[USERS_COLLECTION])
        token_repo = TokenRepository(db[TOKENS_COLLECTION])

        rate_limiter = OtpRateLimiter(
            store,
            max_requests=settings.otp.otp_max_requests_per_hour,
            window_seconds=settings.otp.otp_rate_window_seconds,
        )
        verification_service = VerificationService(store, rate_limiter, settings.otp)
        token_service = TokenService(JwtCodec(settings.jwt), token_repo, user_repo)
        app.state.auth_service = AuthService(
            user_repo, verification_service, token_service
        )

        await ensure_indexes(db)
        log.info("app_started", env=settings.env, db_name=settings.db.db_name)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await mongo_client.close()
        await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_logging_middleware(app)
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)

    return app
