"""
Base class for the MongoDB repositories.

Wraps a single pymongo async collection. Every driver call goes through
_guard(), which turns driver failures (timeouts, lost connections, server
selection errors) into StoreUnavailableError so callers never read an outage
as "not found".
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from bson import ObjectId
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from errors import StoreUnavailableError
from schemas.models.base import coerce_object_id
from shared.logging import get_logger

log = get_logger(__name__)

_STORE_NAME = "mongodb"


class BaseRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except PyMongoError as e:
            log.error(
                "document_store_unavailable",
                collection=self._col.name,
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StoreUnavailableError(_STORE_NAME, operation) from e

    @staticmethod
    def _as_object_id(value: Any) -> Optional[ObjectId]:
        return coerce_object_id(value)
