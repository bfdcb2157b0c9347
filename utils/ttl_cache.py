# utils/ttl_cache.py
"""
Короткоживущие ключи: подавление повторного /start и антифлуд.

Кэш передаётся в обработчики через bot_data, а не хранится глобально,
поэтому с RedisTTLCache поведение одинаково для нескольких процессов.
"""

import time
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)

class TTLCache(ABC):
    """Множество ключей с истечением"""

    @abstractmethod
    async def add(self, key: str, ttl: float) -> bool:
        """Добавить ключ на ttl секунд. False - ключ уже есть и не истёк"""

    async def close(self) -> None:
        pass

class MemoryTTLCache(TTLCache):
    """Кэш в памяти процесса"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._expires: Dict[str, float] = {}
        self._clock = clock

    async def add(self, key: str, ttl: float) -> bool:
        now = self._clock()
        self._purge(now)

        if self._expires.get(key, 0) > now:
            return False
        self._expires[key] = now + ttl
        return True

    def _purge(self, now: float) -> None:
        expired = [key for key, expires in self._expires.items() if expires <= now]
        for key in expired:
            del self._expires[key]

    def __len__(self) -> int:
        return len(self._expires)

class RedisTTLCache(TTLCache):
    """Кэш на Redis: SET NX с истечением"""

    def __init__(self, client: redis.Redis, prefix: str = "flowbot:"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> "RedisTTLCache":
        client = redis.from_url(url, encoding="utf-8", decode_responses=True, max_connections=10)
        return cls(client)

    async def add(self, key: str, ttl: float) -> bool:
        # Redis принимает только целые секунды, минимум 1
        seconds = max(1, int(round(ttl)))
        return bool(await self.client.set(f"{self.prefix}{key}", "1", nx=True, ex=seconds))

    async def close(self) -> None:
        await self.client.aclose()

def create_ttl_cache(redis_url: Optional[str] = None) -> TTLCache:
    if redis_url:
        logger.info("🔄 TTL-кэш на Redis")
        return RedisTTLCache.from_url(redis_url)
    return MemoryTTLCache()
