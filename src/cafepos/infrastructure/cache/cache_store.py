from __future__ import annotations

import os
from functools import lru_cache

import redis

from cafepos.application.ports.cache import CacheStore

KEY_PREFIX = "cafepos:"


def redis_url() -> str | None:
    return os.getenv("REDIS_URL") or None


@lru_cache(maxsize=8)
def _client_for(url: str, timeout_seconds: float) -> redis.Redis:
    return redis.Redis.from_url(
        url,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
        decode_responses=True,
        client_name="cafepos-menu-cache",
    )


def get_redis_client(timeout_seconds: float = 1.0) -> redis.Redis:
    url = redis_url()
    if url is None:
        raise RuntimeError("REDIS_URL is not set")
    return _client_for(url, timeout_seconds)


def ping_redis(timeout_seconds: float = 1.0) -> bool:
    try:
        return bool(get_redis_client(timeout_seconds).ping())
    except Exception:
        return False


class RedisCacheStore(CacheStore):
    def __init__(self, timeout_seconds: float = 1.0, key_prefix: str = KEY_PREFIX) -> None:
        self._timeout_seconds = timeout_seconds
        self._key_prefix = key_prefix

    def _client(self) -> redis.Redis:
        return get_redis_client(timeout_seconds=self._timeout_seconds)

    def get(self, key: str) -> str | None:
        value = self._client().get(self._key_prefix + key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._client().set(self._key_prefix + key, value, ex=max(1, ttl_seconds))

    def incr(self, key: str) -> int:
        return int(self._client().incr(self._key_prefix + key))


class NullCacheStore(CacheStore):
    """Used when no REDIS_URL is configured: every read misses."""

    def get(self, key: str) -> str | None:
        return None

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        return None

    def incr(self, key: str) -> int:
        return 0


def build_cache_store(timeout_seconds: float = 1.0) -> CacheStore:
    if redis_url() is None:
        return NullCacheStore()
    return RedisCacheStore(timeout_seconds=timeout_seconds)
