"""
Fixed-window limiter on OTP requests per email address.

One counter per email under ``otp:rate:{email}``. The window opens on the
first request (seeded to 1 with the window TTL) and closes when Redis expires
the key.

The read, seed and increment are three separate round trips. Two concurrent
first requests for the same email may both seed the key, which under-counts
the first window by at most the number of racing requests. That race is
accepted; no lock is taken.
"""

from __future__ import annotations

from errors import OtpRateLimitExceededError
from infrastructure.store.protocol import KeyedStore
from shared.logging import get_logger, mask_email

log = get_logger(__name__)

RATE_KEY_PREFIX = "otp:rate:"


def rate_key(email: str) -> str:
    return f"{RATE_KEY_PREFIX}{email}"


class OtpRateLimiter:
    def __init__(self, store: KeyedStore, max_requests: int, window_seconds: int) -> None:
        self._store = store
        self._max_requests = max_requests
        self._window_seconds = window_seconds

    async def admit(self, email: str) -> None:
        """Count one OTP request for *email*.

        Raises:
            OtpRateLimitExceededError: when the window is already full. The
                error carries the seconds left in the window.
        """
        key = rate_key(email)
        raw = await self._store.get(key)
        count = int(raw) if raw else 0

        if count >= self._max_requests:
            ttl = await self._store.ttl_remaining(key)
            retry_after = ttl if ttl and ttl > 0 else self._window_seconds
            log.warning(
                "otp_rate_limit_exceeded",
                email=mask_email(email),
                count=count,
                retry_after_seconds=retry_after,
            )
            raise OtpRateLimitExceededError(
                retry_after_seconds=retry_after, max_requests=self._max_requests
            )

        if count == 0:
            await self._store.set(key, "1", self._window_seconds)
        else:
            await self._store.increment(key)
