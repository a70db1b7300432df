"""
JWT signing and verification.

Tokens are self-describing: signature and expiry can be checked offline with
no store lookup. RS256 is used when a key pair is configured, HS256 with the
shared secret otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from config import JWTSettings
from shared.generators import generate_token_id

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


@dataclass(frozen=True)
class SignedToken:
    """A freshly signed token together with its time bounds."""

    token: str
    issued_at: datetime
    expires_at: datetime

    @property
    def expires_in(self) -> int:
        return int((self.expires_at - self.issued_at).total_seconds())


class JwtCodec:
    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings
        if settings.use_rs256:
            # Support keys provided via env with literal \n sequences
            self._signing_key: Any = settings.jwt_private_key.replace("\\n", "\n")
            self._verifying_key: Any = settings.jwt_public_key.replace("\\n", "\n")
            self._algorithm = "RS256"
        else:
            if not settings.jwt_secret:
                raise RuntimeError(
                    "JWT_SECRET must be set when RS256 keys are not provided"
                )
            self._signing_key = settings.jwt_secret
            self._verifying_key = settings.jwt_secret
            self._algorithm = "HS256"

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def _sign(self, subject: str, token_type: str, ttl_seconds: int, **extra: Any) -> SignedToken:
        now = datetime.now(timezone.utc).replace(microsecond=0)
        expires_at = now + timedelta(seconds=ttl_seconds)
        claims = {
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "sub": subject,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "type": token_type,
            "jti": generate_token_id(),
            **extra,
        }
        token = jwt.encode(claims, self._signing_key, algorithm=self._algorithm)
        return SignedToken(token=token, issued_at=now, expires_at=expires_at)

    def encode_access(self, user_id: str, email: str, role: str) -> SignedToken:
        return self._sign(
            user_id,
            TOKEN_TYPE_ACCESS,
            self._settings.access_token_ttl_seconds,
            email=email,
            role=role,
        )

    def encode_refresh(self, user_id: str) -> SignedToken:
        # Refresh tokens carry no email/role so a role change cannot go stale in them
        return self._sign(
            user_id, TOKEN_TYPE_REFRESH, self._settings.refresh_token_ttl_seconds
        )

    def decode(self, token: str, expected_type: str) -> dict[str, Any]:
        """Verify signature, expiry, issuer, audience and token type.

        Raises:
            jwt.InvalidTokenError: on any verification failure (including
                ``jwt.ExpiredSignatureError``).
        """
        claims = jwt.decode(
            token,
            self._verifying_key,
            algorithms=[self._algorithm],
            audience=self._settings.jwt_audience,
            issuer=self._settings.jwt_issuer,
            options={"require": ["exp", "iat", "sub"]},
        )
        if claims.get("type") != expected_type:
            raise jwt.InvalidTokenError(f"Not a {expected_type} token")
        return claims
