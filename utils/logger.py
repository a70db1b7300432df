"""
Logger factory and utility functions for the credential engine.

Provides:
- get_logger(): Get a configured logger instance
- mask_email(): Mask email addresses for privacy
"""

from typing import Optional

import structlog
from structlog.stdlib import BoundLogger

from .logging_config import mask_email as _mask_email


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured structlog BoundLogger instance

    Example:
        >>> from utils.logger import get_logger
        >>> log = get_logger(__name__)
        >>> log.info("user_login", user_id="123", method="password")
    """
    return structlog.get_logger(name)


def mask_email(email: Optional[str]) -> Optional[str]:
    """
    Mask an email address for privacy in production.

    Convenience wrapper around logging_config.mask_email() that handles
    None values gracefully.

    Example:
        >>> log.warning("otp_rate_limited", email=mask_email(email))
    """
    if email is None:
        return None
    return _mask_email(email)

