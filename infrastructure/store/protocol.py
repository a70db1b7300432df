"""KeyedStore protocol: services depend on this, not the concrete implementation.

A networked key-value store with per-key TTL, atomic increment and a work
queue. There is no cross-key atomicity: each call is one round trip.
"""

from typing import Optional, Protocol


class KeyedStore(Protocol):
    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def get(self, key: str) -> Optional[str]: ...

    async def delete(self, *keys: str) -> None: ...

    async def increment(self, key: str) -> int: ...

    async def ttl_remaining(self, key: str) -> Optional[int]: ...

    async def enqueue(self, queue_name: str, payload: str) -> None: ...
