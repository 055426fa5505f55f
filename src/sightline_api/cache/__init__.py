"""Response caching for sightline_api.

This package provides :class:`ResponseCache`, a :mod:`diskcache`-backed
store implementing the :class:`CacheBackend` contract, and the key
derivation helpers in :mod:`sightline_api.cache.keys`.
"""

from sightline_api.cache.cache import CacheBackend, ResponseCache
from sightline_api.cache.keys import make_document_key, make_get_key, make_post_key

__all__ = [
    "CacheBackend",
    "ResponseCache",
    "make_document_key",
    "make_get_key",
    "make_post_key",
]
