from __future__ import annotations

import hashlib
import logging

from pydantic import ValidationError

from cafepos.application.dto.responses import MenuResponse
from cafepos.application.mappers.menu_mapper import to_menu_response
from cafepos.application.ports.cache import CacheStore
from cafepos.application.ports.repositories import MenuRepository

logger = logging.getLogger(__name__)

MENU_GENERATION_CACHE_KEY = "menu:available:generation"


def menu_version_cache_key(generation: str) -> str:
    return f"menu:available:g{generation}:version"


def menu_payload_cache_key(version: str) -> str:
    return f"menu:available:v{version}"


def _content_version(response: MenuResponse) -> str:
    # Identical catalogs share a version so ETags survive cache misses.
    payload = response.model_dump_json(include={"categories"})
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:12]


def invalidate_menu_cache(cache: CacheStore) -> None:
    """Start a new catalog generation.

    Version pointers are scoped to the generation that was current when the
    reader started, so a reader racing a write can only publish into a
    generation nobody looks up any more.
    """
    try:
        cache.incr(MENU_GENERATION_CACHE_KEY)
    except Exception:
        logger.warning("menu_cache_invalidate_failed", exc_info=True)


class GetMenu:
    def __init__(
        self,
        repository: MenuRepository,
        cache: CacheStore,
        ttl_seconds: int = 300,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    def _cache_get(self, key: str) -> str | None:
        try:
            return self._cache.get(key)
        except Exception:
            logger.warning("menu_cache_read_failed", extra={"cache_key": key}, exc_info=True)
            return None

    def _cache_set(self, key: str, value: str) -> None:
        try:
            self._cache.set(key, value, ttl_seconds=self._ttl_seconds)
        except Exception:
            logger.warning("menu_cache_write_failed", extra={"cache_key": key}, exc_info=True)

    def execute(self) -> MenuResponse:
        generation = self._cache_get(MENU_GENERATION_CACHE_KEY) or "0"
        version_key = menu_version_cache_key(generation)
        cached_version = self._cache_get(version_key)
        if cached_version:
            payload = self._cache_get(menu_payload_cache_key(cached_version))
            if payload:
                try:
                    return MenuResponse.model_validate_json(payload)
                except ValidationError:
                    logger.warning("menu_cache_payload_invalid", extra={"menu_version": cached_version})

        items = self._repository.list_items(available_only=True)
        response = to_menu_response(items, version="")
        version = _content_version(response)
        response = response.model_copy(update={"version": version})
        self._cache_set(menu_payload_cache_key(version), response.model_dump_json())
        self._cache_set(version_key, version)
        return response
