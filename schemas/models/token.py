"""
Credential document model.

Maps to the `user-tokens` MongoDB collection, the durable token ledger.

One record per issued access or refresh token. token_hash stores
SHA-256(token) and is the lookup key; records are never deleted and only the
`revoked` flag ever changes.
"""

from __future__ import annotations

from datetime import datetime

from schemas.models.base import MongoBaseModel, PyObjectId

TOKEN_TYPE_ACCESS = "ACCESS"
TOKEN_TYPE_REFRESH = "REFRESH"

PROVIDER_LOCAL = "LOCAL"


class CredentialDoc(MongoBaseModel):
    """Document model for the `user-tokens` collection."""

    user_id: PyObjectId
    token_type: str
    token_hash: str
    provider: str = PROVIDER_LOCAL
    issued_at: datetime
    expires_at: datetime
    revoked: bool = False
