"""
Logging utilities: re-exports.

Re-exports from utils.logger and utils.logging_config so that services and
infrastructure import from shared.logging only.
"""

from utils.logger import get_logger, mask_email
from utils.logging_config import setup_logging

__all__ = [
    "get_logger",
    "mask_email",
    "setup_logging",
]
