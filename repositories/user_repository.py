"""
Repository for the `users` collection.

Emails are stored normalised (lowercase, trimmed); normalisation is the
caller's job. The unique index on `email` backs create(), so a registration
racing another one for the same address fails with EmailAlreadyRegisteredError
instead of producing a duplicate account.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from errors import EmailAlreadyRegisteredError
from repositories.base_repository import BaseRepository
from schemas.models.user import UserDoc


class UserRepository(BaseRepository):
    async def exists_by_email(self, email: str) -> bool:
        async with self._guard("exists_by_email"):
            count = await self._col.count_documents({"email": email}, limit=1)
        return count > 0

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        async with self._guard("find_by_email"):
            doc = await self._col.find_one({"email": email})
        return UserDoc.from_mongo(doc)

    async def find_by_id(self, user_id: Any) -> Optional[UserDoc]:
        oid = self._as_object_id(user_id)
        if oid is None:
            return None
        async with self._guard("find_by_id"):
            doc = await self._col.find_one({"_id": oid})
        return UserDoc.from_mongo(doc)

    async def create(self, user: UserDoc) -> ObjectId:
        """Insert a new user and return its generated _id."""
        async with self._guard("create_user"):
            try:
                result = await self._col.insert_one(user.to_mongo())
            except DuplicateKeyError as e:
                raise EmailAlreadyRegisteredError() from e
        return result.inserted_id

    async def update_last_login(self, user_id: ObjectId, when: datetime) -> None:
        async with self._guard("update_last_login"):
            await self._col.update_one(
                {"_id": user_id},
                {"$set": {"last_login_at": when, "updated_at": when}},
            )

    async def update_password(
        self, user_id: ObjectId, password_hash: str, when: datetime
    ) -> None:
        async with self._guard("update_password"):
            await self._col.update_one(
                {"_id": user_id},
                {"$set": {"password_hash": password_hash, "updated_at": when}},
            )
