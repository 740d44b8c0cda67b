from abc import ABC, abstractmethod
from datetime import timedelta


class CacheStore(ABC):
    """Raw string store behind RateCache. Implementations raise CacheError on faults."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl: timedelta) -> None:
        ...

    async def close(self) -> None:
        return None
