"""
User document model.

Maps to the `users` MongoDB collection.

Accounts are created exactly once, by final registration after a verified
OTP exchange. Login reads them; change-password and last-login stamping are
the only later writes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from schemas.models.base import MongoBaseModel

ROLE_USER = "USER"

STATUS_ACTIVE = "ACTIVE"
STATUS_INACTIVE = "INACTIVE"
STATUS_SUSPENDED = "SUSPENDED"


class UserDoc(MongoBaseModel):
    """
    Document model for the `users` collection.

    role: USER for self-registered accounts; other roles are granted outside
    this service and carried into access tokens unchanged.
    status values: ACTIVE, INACTIVE, SUSPENDED (only ACTIVE may log in)
    """

    email: str
    password_hash: str
    full_name: str
    profile_image: Optional[str] = None
    email_subscribed: bool = True
    role: str = ROLE_USER
    status: str = STATUS_ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE
