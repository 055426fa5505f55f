"""Disk-based response cache.

Uses :mod:`diskcache` to persist decoded API responses on the filesystem.
The cache is a plain key/value store with per-entry expiry; whether it is
consulted at all, and for how long entries live, is decided by the
:class:`~sightline_api.models.CachePolicy` held by each accessor.

Values are stored already decoded (dicts, lists, XML text, PNG bytes) so
that a hit never has to re-parse a response.

See Also:
    :mod:`sightline_api.cache.keys` -- how keys are derived.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

import diskcache

_MISSING = object()


class CacheBackend(Protocol):
    """The cache contract consumed by the accessors."""

    def get(self, key: str) -> tuple[bool, Any]: ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...


class ResponseCache:
    """Disk-backed implementation of :class:`CacheBackend`.

    Args:
        cache_dir: Root directory for the cache. A ``responses/``
            subdirectory is created inside it.

    Example::

        from sightline_api.cache import ResponseCache

        cache = ResponseCache("/tmp/sightline-cache")
        cache.set("sightline_rest_abc", {"data": []}, ttl_seconds=900)
        hit, value = cache.get("sightline_rest_abc")
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._cache_dir = Path(cache_dir)
        self._cache = diskcache.Cache(str(self._cache_dir / "responses"))

    def get(self, key: str) -> tuple[bool, Any]:
        """Look up *key*.

        Returns:
            ``(True, value)`` on a hit, ``(False, None)`` on a miss or
            after the entry expired.
        """
        value = self._cache.get(key, default=_MISSING)
        if value is _MISSING:
            return False, None
        return True, value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store *value* under *key* for *ttl_seconds*."""
        self._cache.set(key, value, expire=ttl_seconds)

    def clear(self) -> None:
        """Remove all entries from the cache."""
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return the number of entries and the cache directory."""
        return {
            "size": len(self._cache),
            "directory": str(self._cache_dir / "responses"),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`."""
        self._cache.close()
