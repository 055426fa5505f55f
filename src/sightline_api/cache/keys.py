"""Deterministic cache keys for Sightline requests.

Keys have the form ``<prefix>_<sha256 hex>``. The prefix names the kind of
resource (``sightline_rest_mt``, ``sightline_ws``, ...) so that accessors
sharing one cache backend never read each other's entries. The digest
covers the full canonical request identity:

- GET requests: ``URL`` plus the query arguments, sorted by name, so two
  mappings with the same items hash identically regardless of insertion
  order.
- Mutations: ``URL``, upper-cased method and the request body.
- SOAP calls: the XML documents that make up the call.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from typing import Any, Optional
from urllib.parse import urlencode


def _digest(*parts: str) -> str:
    # Length-prefix each part so that no two part sequences share an encoding.
    hasher = hashlib.sha256()
    for part in parts:
        encoded = part.encode("utf-8")
        hasher.update(f"{len(encoded)}:".encode("ascii"))
        hasher.update(encoded)
    return hasher.hexdigest()


def canonical_query(args: Optional[Mapping[str, Any]]) -> str:
    """Encode *args* as a query string with keys in sorted order."""
    if not args:
        return ""
    return urlencode(sorted((str(k), str(v)) for k, v in args.items()))


def make_get_key(prefix: str, url: str, args: Optional[Mapping[str, Any]] = None) -> str:
    """Key for a GET request identified by *url* and query *args*.

    ``None`` and an empty mapping produce the same key.
    """
    return f"{prefix}_{_digest('GET', url, canonical_query(args))}"


def make_post_key(prefix: str, url: str, method: str, body: Optional[str]) -> str:
    """Key for a POST/PATCH request identified by *url*, *method* and *body*."""
    return f"{prefix}_{_digest(method.upper(), url, body or '')}"


def make_document_key(prefix: str, *documents: str) -> str:
    """Key for a call identified only by the request documents it sends."""
    return f"{prefix}_{_digest(*documents)}"
