"""
In-memory TTL cache for proxied analytics responses.
Key: route prefix + query string (e.g. "bar:from_date=...&is_team=false"). Value: decoded JSON.
Entries expire CACHE_TTL_SECONDS after they are written; nothing else evicts them.
"""

import time
from typing import Any, Callable

from api.config import CACHE_TTL_SECONDS

# Module-level store; key -> (expires_at, value)
_cache: dict[str, tuple[float, Any]] = {}


def _now() -> float:
    return time.monotonic()


def make_key(prefix: str, query: str = "") -> str:
    """Build cache key from a route prefix and its encoded query string."""
    return f"{prefix}:{query}"


def get(key: str) -> Any | None:
    """Return cached value if present and not expired, else None. Expired entries are dropped."""
    entry = _cache.get(key)
    if entry is None:
        return None
    expires_at, value = entry
    if _now() >= expires_at:
        del _cache[key]
        return None
    return value


def set(key: str, value: Any, ttl: float | None = None) -> None:
    """Store value; it stays valid for ttl seconds (CACHE_TTL_SECONDS by default)."""
    ttl = CACHE_TTL_SECONDS if ttl is None else ttl
    _cache[key] = (_now() + ttl, value)


def get_or_fetch(key: str, fetcher: Callable[[], Any], ttl: float | None = None) -> Any:
    """
    Return value from cache if present; otherwise call fetcher(), store, and return.

    Args:
        key: Cache key from make_key().
        fetcher: No-arg callable that returns the value (e.g. calls the upstream API).
            Exceptions propagate and nothing is stored.
        ttl: Optional override of the default time-to-live in seconds.
    """
    cached = get(key)
    if cached is not None:
        return cached
    value = fetcher()
    set(key, value, ttl)
    return value


def purge_expired() -> int:
    """Drop every expired entry. Returns how many were removed."""
    now = _now()
    expired = [k for k, (expires_at, _) in _cache.items() if now >= expires_at]
    for k in expired:
        del _cache[k]
    return len(expired)


def size() -> int:
    return len(_cache)


def clear() -> None:
    """Clear the cache (e.g. for tests)."""
    _cache.clear()
