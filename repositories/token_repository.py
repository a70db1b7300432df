"""
Repository for the `user-tokens` collection (the durable credential ledger).

Records are append-only: nothing here deletes, and the only update flips
`revoked` to true.
"""

from __future__ import annotations

from typing import Optional

from bson import ObjectId

from repositories.base_repository import BaseRepository
from schemas.models.token import CredentialDoc


class TokenRepository(BaseRepository):
    async def insert(self, credential: CredentialDoc) -> ObjectId:
        async with self._guard("insert_credential"):
            result = await self._col.insert_one(credential.to_mongo())
        return result.inserted_id

    async def insert_many(self, credentials: list[CredentialDoc]) -> list[ObjectId]:
        async with self._guard("insert_credentials"):
            result = await self._col.insert_many(
                [c.to_mongo() for c in credentials], ordered=True
            )
        return list(result.inserted_ids)

    async def find_by_hash(self, token_hash: str) -> Optional[CredentialDoc]:
        async with self._guard("find_credential"):
            doc = await self._col.find_one({"token_hash": token_hash})
        return CredentialDoc.from_mongo(doc)

    async def mark_revoked(self, credential_id: ObjectId) -> bool:
        """Set revoked=true. Returns False when no record matched."""
        async with self._guard("revoke_credential"):
            result = await self._col.update_one(
                {"_id": credential_id}, {"$set": {"revoked": True}}
            )
        return result.matched_count > 0
