"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

Redis is not optional here: the verification sessions and rate-limit
counters live in it, so a missing Redis is an infrastructure failure rather
than a degraded mode.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "credential-engine"
    mongo_timeout_ms: int = 2000


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    redis_uri: str = "redis://localhost:6379/0"
    # Upper bound for every single store round trip
    redis_timeout_seconds: float = 2.0


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_issuer: str = "credential-engine"
    jwt_audience: str = "credential-engine.api"
    access_token_ttl_seconds: int = 3600
    refresh_token_ttl_seconds: int = 604800

    # RS256 keys (preferred)
    jwt_private_key: str = ""
    jwt_public_key: str = ""

    # HS256 fallback (used when RS256 keys are absent)
    jwt_secret: str = ""

    @property
    def use_rs256(self) -> bool:
        return bool(self.jwt_private_key and self.jwt_public_key)


class OtpSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    otp_length: int = 6
    otp_ttl_minutes: int = 5
    otp_max_attempts: int = 5
    profile_completion_ttl_minutes: int = 20

    # Fixed-window limit on OTP requests per email address
    otp_max_requests_per_hour: int = 5
    otp_rate_window_seconds: int = 3600

    # Redis list consumed by the external mail dispatcher
    email_queue_name: str = "queue:email"

    @property
    def otp_ttl_seconds(self) -> int:
        return self.otp_ttl_minutes * 60

    @property
    def profile_completion_ttl_seconds(self) -> int:
        return self.profile_completion_ttl_minutes * 60


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    secret_key: str = ""
    env: str = "development"
    app_name: str = "credential-engine"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    jwt: Optional[JWTSettings] = None
    otp: Optional[OtpSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.jwt is None:
            self.jwt = JWTSettings()
        if self.otp is None:
            self.otp = OtpSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        # The signing key falls back to the app secret when no JWT key is set
        if not self.jwt.use_rs256 and not self.jwt.jwt_secret and self.secret_key:
            self.jwt.jwt_secret = self.secret_key

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
