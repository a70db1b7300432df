"""
Random code and identifier generators: pure, side-effect-free functions.
"""

from __future__ import annotations

import re
import secrets
import string
import uuid

# Canonical lowercase uuid4, as produced by generate_verification_id().
VERIFICATION_ID_PATTERN = (
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)
_VERIFICATION_ID_RE = re.compile(VERIFICATION_ID_PATTERN)


def generate_otp_code(length: int = 6) -> str:
    """Generate a numeric OTP with uniformly distributed digits.

    Args:
        length: Number of digits (default 6).

    Returns:
        String of random decimal digits. Leading zeros are kept.
    """
    if length < 1:
        raise ValueError("OTP length must be at least 1")
    return "".join(secrets.choice(string.digits) for _ in range(length))


def generate_verification_id() -> str:
    """Return a fresh verification handle (uuid4, 122 random bits, 36 chars)."""
    return str(uuid.uuid4())


def is_verification_id(value: object) -> bool:
    """True when *value* has the exact shape of an issued verification id.

    Session keys are built by prefixing the id, so anything else could
    address keys that belong to another namespace (e.g. ``rate:<email>``).
    """
    return isinstance(value, str) and _VERIFICATION_ID_RE.fullmatch(value) is not None


def generate_token_id() -> str:
    """Return a unique JWT ``jti`` value."""
    return uuid.uuid4().hex
