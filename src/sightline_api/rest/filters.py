"""Encoding of REST search filters into query strings.

Two shapes are accepted by :func:`filter_to_url`:

- a single filter (a :class:`~sightline_api.models.RestFilter` or an
  equivalent mapping), encoded as
  ``filter=<type>/<field>.<operator>.<search>``;
- a list of filters, each encoded as ``filter[]=...`` and joined with
  ``&``. List entries whose operator is not ``eq``/``cn`` or whose type is
  not ``a``/``r``, or that lack a required member, are dropped with a
  logged warning.

A list-valued ``search`` is URL-encoded per element and joined with ``|``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Union
from urllib.parse import quote_plus

from pydantic import ValidationError

from sightline_api.models import RestFilter

logger = logging.getLogger(__name__)

ALLOWED_OPERATORS = frozenset({"eq", "cn"})
ALLOWED_TYPES = frozenset({"a", "r"})

FilterInput = Union[RestFilter, Mapping[str, Any]]


def filter_to_url(filters: Union[FilterInput, Sequence[FilterInput]]) -> str:
    """Encode *filters* as a query string (without the leading ``?``)."""
    if isinstance(filters, (RestFilter, Mapping)):
        return f"filter={encode_filter(_coerce(filters))}"

    args: list[str] = []
    for item in filters:
        try:
            rest_filter = _coerce(item)
        except ValidationError:
            logger.warning("Dropping malformed filter %r", item)
            continue
        if rest_filter.operator not in ALLOWED_OPERATORS or rest_filter.type not in ALLOWED_TYPES:
            logger.warning(
                "Dropping unsupported filter %s/%s.%s",
                rest_filter.type, rest_filter.field, rest_filter.operator,
            )
            continue
        args.append(f"filter[]={encode_filter(rest_filter)}")

    return "&".join(args)


def encode_filter(rest_filter: RestFilter) -> str:
    """Encode one filter as ``<type>/<field>.<operator>.<search>``."""
    return (
        f"{rest_filter.type}/{rest_filter.field}.{rest_filter.operator}."
        f"{encode_search(rest_filter.search)}"
    )


def encode_search(search: Any) -> str:
    """URL-encode a search term, or each term of a list joined by ``|``."""
    if isinstance(search, (list, tuple)):
        return "|".join(quote_plus(str(term)) for term in search)
    return quote_plus(str(search))


def _coerce(item: FilterInput) -> RestFilter:
    if isinstance(item, RestFilter):
        return item
    return RestFilter.model_validate(dict(item))
