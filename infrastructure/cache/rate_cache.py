import json
import logging
from datetime import timedelta
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from domain.exceptions.currency import CacheError
from infrastructure.cache.base import CacheStore

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)


def type_tag(value_type: type[BaseModel]) -> str:
    return f'{value_type.__module__}.{value_type.__name__}'


class RateCache:
    """Typed, best-effort cache-aside facade over a CacheStore.

    Values are written as a tagged JSON envelope ``{"type": ..., "value": ...}``.
    A read for a different type than the one written is a miss, as is any
    store fault or undecodable payload. Every hit decodes a fresh object, so
    callers never share state with the cache.

    When disabled, ``get`` always misses and ``set`` does nothing.
    """

    def __init__(self, store: CacheStore, enabled: bool = True):
        self.store = store
        self.enabled = enabled

    async def get(self, key: str, value_type: type[M]) -> M | None:
        if not self.enabled:
            return None

        try:
            raw = await self.store.get(key)
        except CacheError as e:
            logger.warning(f'Cache read failed for {key}, treating as miss: {e}')
            return None

        if raw is None:
            logger.debug(f'Cache MISS for {key}')
            return None

        try:
            envelope = json.loads(raw)
            if envelope.get('type') != type_tag(value_type):
                logger.warning(
                    f'Cache entry {key} holds {envelope.get("type")}, expected {type_tag(value_type)}'
                )
                return None
            value = value_type.model_validate(envelope['value'])
        except (json.JSONDecodeError, PydanticValidationError, AttributeError, KeyError) as e:
            logger.warning(f'Discarding undecodable cache entry {key}: {e}')
            return None

        logger.debug(f'Cache HIT for {key}')
        return value

    async def set(self, key: str, value: BaseModel, ttl: timedelta) -> None:
        if not self.enabled:
            return

        payload = json.dumps({'type': type_tag(type(value)), 'value': value.model_dump(mode='json')})
        try:
            await self.store.set(key, payload, ttl)
        except CacheError as e:
            logger.warning(f'Cache write failed for {key}: {e}')
