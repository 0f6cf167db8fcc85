# src/search/cache.py
from __future__ import annotations

import hashlib
import json
import logging
import os
from typing import Any

from redis.exceptions import RedisError

from src import config
from src.search.backend import SearchBackend, SearchParams, SearchResult
from src.search.pagination import PageInfo

log = logging.getLogger(__name__)

# Cache key version. Bump when changing key construction to avoid stale collisions.
CACHE_KEY_VERSION = "v1"


def _hash_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _get_cache_namespace(backend: SearchBackend) -> str:
    """
    Return a namespace string that scopes cache entries to the active backend / DB.

    Resolution order:
      1) Explicit env override: ADVOCATE_SEARCH_CACHE_NAMESPACE
      2) backend.cache_namespace() if present
      3) Fallback: class identity + instance id
    """
    env_ns = os.getenv("ADVOCATE_SEARCH_CACHE_NAMESPACE")
    if env_ns:
        return env_ns.strip()

    cache_ns_fn = getattr(backend, "cache_namespace", None)
    if callable(cache_ns_fn):
        ns = cache_ns_fn()
        if isinstance(ns, str) and ns.strip():
            return ns.strip()

    return f"{backend.__class__.__module__}.{backend.__class__.__name__}:{id(backend)}"


def _build_cache_key(backend: SearchBackend, params: SearchParams) -> str:
    """
    Build a deterministic cache key from the filters + limit and backend namespace.

    Cursor pages are never cached, so the cursor is not part of the key.
    Filters are cleaned first so " Austin " and "Austin" share an entry.
    """
    key_payload = {
        "filters": params.filters.cache_payload(),
        "limit": params.limit,
    }

    namespace_digest = _hash_hex(_get_cache_namespace(backend))[:16]
    raw = json.dumps(key_payload, sort_keys=True, separators=(",", ":"))
    return f"advocates_search:{CACHE_KEY_VERSION}:{namespace_digest}:{_hash_hex(raw)}"


def _get_redis_client() -> Any | None:
    """
    Obtain the shared Redis client, or None if Redis support is unusable.

    The returned object is expected to support:
      - get(key: str) -> str | None
      - setex(key: str, ttl: int, value: str) -> Any
    """
    from src.redis_conn import get_redis

    try:
        return get_redis()
    except (RedisError, ValueError) as err:
        log.warning("redis unavailable for search cache: %s", err)
        return None


def _decode_cached(cached: Any) -> SearchResult | None:
    if isinstance(cached, bytes):
        cached = cached.decode("utf-8")
    try:
        data = json.loads(cached)
    except (TypeError, json.JSONDecodeError):
        return None
    if not isinstance(data, dict):
        return None

    advocates = data.get("advocates")
    page_info = data.get("pageInfo")
    if not isinstance(advocates, list) or not isinstance(page_info, dict):
        return None
    try:
        info = PageInfo(
            next_cursor=page_info.get("nextCursor"),
            has_next_page=bool(page_info["hasNextPage"]),
            limit=int(page_info["limit"]),
        )
    except (KeyError, TypeError, ValueError):
        return None
    return SearchResult(advocates=advocates, page_info=info)


def search_with_cache(backend: SearchBackend, params: SearchParams) -> SearchResult:
    """
    Execute an advocate search with an optional Redis-backed cache.

    Cache policy:

      - Only the first page (no cursor) is cached.
      - Disabled unless ADVOCATE_SEARCH_CACHE_ENABLED is true and the TTL is
        positive.
      - Redis errors degrade to a direct backend.search() and never fail the
        request.
    """
    if not params.is_first_page:
        return backend.search(params)

    if not config.ADVOCATE_SEARCH_CACHE_ENABLED or config.ADVOCATE_SEARCH_CACHE_TTL_SECONDS <= 0:
        return backend.search(params)

    redis_client = _get_redis_client()
    if redis_client is None:
        return backend.search(params)

    key = _build_cache_key(backend, params)

    try:
        cached = redis_client.get(key)
    except RedisError as err:
        log.debug("search cache read failed: %s", err)
        cached = None

    if cached is not None:
        hit = _decode_cached(cached)
        if hit is not None:
            log.debug("search cache hit %s", key)
            return hit

    result = backend.search(params)

    payload = json.dumps(
        {"advocates": result.advocates, "pageInfo": result.page_info.to_dict()},
        separators=(",", ":"),
    )
    try:
        redis_client.setex(key, config.ADVOCATE_SEARCH_CACHE_TTL_SECONDS, payload)
    except RedisError as err:
        log.debug("search cache write failed: %s", err)

    return result
