# 캐시 레이어: 추천 결과 메모이제이션
# - REDIS_URL 있으면 Redis, 없으면 프로세스 메모리(TTL dict)
# - 캐시 장애는 요청 실패로 번지지 않는다 (fail open)

from __future__ import annotations

import abc
import fnmatch
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import redis.asyncio as aioredis

log = logging.getLogger(__name__)

SUGGESTIONS_PREFIX = "suggestions"

def suggestions_key(user_id: str, limit: int) -> str:
    return f"{SUGGESTIONS_PREFIX}:{user_id}:{limit}"

def suggestions_pattern(user_id: Optional[str] = None) -> str:
    # user_id 없으면 전체 사용자 추천 캐시
    if user_id:
        return f"{SUGGESTIONS_PREFIX}:{user_id}:*"
    return f"{SUGGESTIONS_PREFIX}:*"


class Cache(abc.ABC):
    """get/set/delete 공통 인터페이스. ttl 단위는 초."""

    @abc.abstractmethod
    async def get(self, key: str) -> Optional[Any]: ...

    @abc.abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    @abc.abstractmethod
    async def delete(self, key: str) -> None: ...

    @abc.abstractmethod
    async def delete_pattern(self, pattern: str) -> int: ...

    async def close(self) -> None:
        return None


class MemoryCache(Cache):
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: Dict[str, Tuple[float, Any]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            # 만료 항목은 읽을 때 정리
            self._data.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._data[key] = (self._clock() + ttl_seconds, value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def delete_pattern(self, pattern: str) -> int:
        keys = [k for k in self._data if fnmatch.fnmatchcase(k, pattern)]
        for k in keys:
            del self._data[k]
        return len(keys)


class RedisCache(Cache):
    # 값은 JSON 문자열로 저장 (EX = ttl)
    def __init__(self, client: aioredis.Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        return cls(aioredis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        await self.client.set(key, json.dumps(value, ensure_ascii=False), ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    async def delete_pattern(self, pattern: str) -> int:
        # KEYS 대신 SCAN (운영 redis 블로킹 방지)
        keys = [k async for k in self.client.scan_iter(match=pattern)]
        if keys:
            await self.client.delete(*keys)
        return len(keys)

    async def close(self) -> None:
        await self.client.aclose()


def build_cache(redis_url: Optional[str]) -> Cache:
    if redis_url:
        return RedisCache.from_url(redis_url)
    return MemoryCache()


async def with_cache(
    cache: Optional[Cache],
    key: str,
    ttl_seconds: int,
    factory: Callable[[], Awaitable[Any]],
) -> Any:
    """
    check → compute → store.
    캐시 get/set 중 예외는 경고만 남기고 직접 계산으로 진행한다.
    동일 키 동시 요청은 중복 계산될 수 있음 (single-flight 보장 안 함).
    """
    if cache is None:
        return await factory()

    try:
        cached = await cache.get(key)
    except Exception as e:
        log.warning("cache get failed (%s): %s", key, e)
        cached = None

    if cached is not None:
        log.debug("cache hit: %s", key)
        return cached

    log.debug("cache miss: %s", key)
    value = await factory()

    try:
        await cache.set(key, value, ttl_seconds)
    except Exception as e:
        log.warning("cache set failed (%s): %s", key, e)
    return value


async def invalidate(cache: Optional[Cache], pattern: str) -> int:
    # 무효화 실패도 fail open
    if cache is None:
        return 0
    try:
        return await cache.delete_pattern(pattern)
    except Exception as e:
        log.warning("cache invalidate failed (%s): %s", pattern, e)
        return 0
