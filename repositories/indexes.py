"""
MongoDB index setup, run once from the application lifespan.
"""

from __future__ import annotations

from pymongo import ASCENDING
from pymongo.asynchronous.database import AsyncDatabase

from shared.logging import get_logger

log = get_logger(__name__)

USERS_COLLECTION = "users"
TOKENS_COLLECTION = "user-tokens"


async def ensure_indexes(db: AsyncDatabase) -> None:
    users = db[USERS_COLLECTION]
    tokens = db[TOKENS_COLLECTION]

    await users.create_index([("email", ASCENDING)], unique=True, name="email_unique")
    await tokens.create_index(
        [("token_hash", ASCENDING)], unique=True, name="token_hash_unique"
    )
    await tokens.create_index([("user_id", ASCENDING)], name="user_id")

    log.info("mongo_indexes_ensured", collections=[USERS_COLLECTION, TOKENS_COLLECTION])
