"""Request document builders for the Sightline traffic APIs.

The SOAP and web-services APIs take two XML documents, both rooted at
``<peakflow version="2.0">``:

- a *query document* (:func:`build_query_document`) selecting the time
  range, unit, traffic classes and filters of a traffic query, and
- a *graph document* (:func:`build_graph_document`) describing how the
  resulting traffic graph image is rendered.

The REST ``/traffic_queries/`` endpoint takes a JSON document instead
(:func:`build_traffic_query_document`), whose start and end times are
truncated to the top of the hour because the API only accepts
hour-aligned windows.

Element and attribute names are part of the wire format and must not change.
"""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Mapping
from datetime import datetime, time
from typing import Any, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from sightline_api.exceptions import DocumentBuildError
from sightline_api.models import QueryFilter, TrafficQueryFilter

SEARCH_TIMEOUT = 30
SEARCH_LIMIT = 200

# XML 1.0 forbids most C0 control characters and lone surrogates.
_ILLEGAL_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

_RELATIVE_TIME = re.compile(
    r"^\s*([+-]?\d+)\s+(second|minute|hour|day|week|month|year)s?(\s+ago)?\s*$", re.IGNORECASE
)

_DAY_OFFSETS = {"today": 0, "midnight": 0, "yesterday": -1, "tomorrow": 1}


# ------------------------------------------------------------------ #
# XML documents
# ------------------------------------------------------------------ #


def build_query_document(
    filters: Iterable[Union[QueryFilter, Mapping[str, Any]]],
    start: str = "7 days ago",
    end: str = "now",
    unit: str = "bps",
    classes: Iterable[str] = (),
) -> str:
    """Build the XML query document for a traffic query.

    ``start`` and ``end`` are copied verbatim into the ``start_ascii`` and
    ``end_ascii`` attributes; the platform parses them, not this library.
    Filters are emitted in input order. Mapping filters without a ``type``
    key are skipped.

    Args:
        filters: :class:`~sightline_api.models.QueryFilter` objects or
            equivalent mappings.
        start: Start of the time range, e.g. ``"7 days ago"``.
        end: End of the time range, e.g. ``"now"``.
        unit: ``"bps"`` or ``"pps"``.
        classes: Traffic classes to gather: in, out, total, backbone, dropped.

    Returns:
        The serialised XML document.

    Raises:
        DocumentBuildError: If the document cannot be serialised.
    """
    root = _base_document()

    query = ET.SubElement(root, "query", {"type": "traffic"})
    ET.SubElement(query, "time", {"end_ascii": _xml_text(end), "start_ascii": _xml_text(start)})
    ET.SubElement(query, "unit", {"type": _xml_text(unit)})
    ET.SubElement(
        query, "search", {"timeout": str(SEARCH_TIMEOUT), "limit": str(SEARCH_LIMIT)}
    )

    for traffic_class in classes:
        ET.SubElement(query, "class").text = _xml_text(traffic_class)

    for item in filters:
        query_filter = _coerce_query_filter(item)
        if query_filter is not None:
            query.append(build_filter_element(query_filter))

    return _serialise(root, "query")


def build_filter_element(query_filter: QueryFilter) -> ET.Element:
    """Build one ``<filter>`` element.

    A scalar value yields one ``<instance>``, a list yields one per element
    in order, and ``None`` yields none. ``binby`` adds ``binby="1"``.
    """
    element = ET.Element("filter", {"type": _xml_text(query_filter.type)})

    if query_filter.binby:
        element.set("binby", "1")

    value = query_filter.value
    if value is None:
        return element

    values = value if isinstance(value, list) else [value]
    for instance in values:
        ET.SubElement(element, "instance", {"value": _xml_text(instance)})

    return element


def build_graph_document(
    title: str,
    y_label: str,
    detail: bool = False,
    width: int = 986,
    height: int = 180,
) -> str:
    """Build the XML document that configures a traffic graph image.

    Args:
        title: Title of the graph.
        y_label: Label for the Y axis.
        detail: Render a detail graph (adds ``<type>detail</type>``).
        width: Graph width in pixels.
        height: Graph height in pixels.

    Returns:
        The serialised XML document.

    Raises:
        DocumentBuildError: If the document cannot be serialised.
    """
    root = _base_document()

    graph = ET.SubElement(root, "graph", {"id": "graph1"})
    ET.SubElement(graph, "title").text = _xml_text(title)
    ET.SubElement(graph, "ylabel").text = _xml_text(y_label)
    ET.SubElement(graph, "width").text = str(width)
    ET.SubElement(graph, "height").text = str(height)
    ET.SubElement(graph, "legend").text = "1"

    if detail:
        ET.SubElement(graph, "type").text = "detail"

    return _serialise(root, "graph")


# ------------------------------------------------------------------ #
# JSON traffic query document
# ------------------------------------------------------------------ #


def build_traffic_query_document(
    filters: Iterable[Union[TrafficQueryFilter, Mapping[str, Any]]],
    start: Union[str, datetime],
    end: Union[str, datetime],
    unit: str = "bps",
    limit: int = 100,
    classes: Iterable[str] = ("in", "out"),
) -> str:
    """Build the JSON document for the REST ``/traffic_queries/`` endpoint.

    Both ends of the window are truncated to the top of the hour in the
    timezone they were parsed in (local time for naive input) and emitted
    as ISO-8601 timestamps with a UTC offset.

    Raises:
        DocumentBuildError: If a timestamp cannot be parsed or the document
            cannot be serialised.
    """
    query_start = truncate_to_hour(parse_timestamp(start))
    query_end = truncate_to_hour(parse_timestamp(end))

    query = {
        "data": {
            "attributes": {
                "query_start_time": query_start.isoformat(),
                "query_end_time": query_end.isoformat(),
                "unit": unit,
                "limit": limit,
                "traffic_classes": list(classes),
                "filters": [_coerce_traffic_filter(f).model_dump() for f in filters],
            }
        }
    }

    try:
        return json.dumps(query)
    except (TypeError, ValueError) as exc:
        raise DocumentBuildError(f"Error creating traffic query JSON: {exc}") from exc


def parse_timestamp(value: Union[str, datetime], now: datetime | None = None) -> datetime:
    """Parse an absolute or relative timestamp into an aware datetime.

    Accepted forms: a :class:`~datetime.datetime`; ``"now"``; ``"today"``,
    ``"yesterday"`` and ``"tomorrow"`` (midnight of that day); relative
    offsets such as ``"7 days ago"``, ``"1 month ago"`` or ``"+2 hours"``;
    and anything :func:`dateutil.parser.parse` understands
    (``2024-01-15T10:47:00Z``, ``15 January 2024 10:47``). Naive values are
    interpreted as local time; the wall-clock time is kept.

    Raises:
        DocumentBuildError: If the value is not understood.
    """
    if isinstance(value, datetime):
        return value.astimezone() if value.tzinfo is None else value

    reference = now or datetime.now().astimezone()
    text = value.strip()
    keyword = text.lower()

    if keyword == "now":
        return reference

    if keyword in _DAY_OFFSETS:
        midnight = reference.replace(hour=0, minute=0, second=0, microsecond=0)
        return midnight + relativedelta(days=_DAY_OFFSETS[keyword])

    match = _RELATIVE_TIME.match(text)
    if match:
        amount, unit = int(match.group(1)), match.group(2).lower()
        if match.group(3):
            amount = -amount
        return reference + relativedelta(**{f"{unit}s": amount})

    try:
        parsed = date_parser.parse(text, default=datetime.combine(reference.date(), time()))
    except (ValueError, OverflowError) as exc:
        raise DocumentBuildError(f"Unable to parse timestamp: {value!r}") from exc

    return parsed.astimezone() if parsed.tzinfo is None else parsed


def truncate_to_hour(value: datetime) -> datetime:
    """Zero the minutes, seconds and microseconds, keeping hour and timezone."""
    return value.replace(minute=0, second=0, microsecond=0)


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _base_document() -> ET.Element:
    return ET.Element("peakflow", {"version": "2.0"})


def _serialise(root: ET.Element, kind: str) -> str:
    ET.indent(root)
    try:
        raw = ET.tostring(root, encoding="UTF-8", xml_declaration=True)
        return raw.decode("utf-8")
    except (TypeError, ValueError) as exc:
        raise DocumentBuildError(f"Error creating {kind} XML: {exc}") from exc


def _xml_text(value: Any) -> str:
    text = str(value)
    if _ILLEGAL_XML_CHARS.search(text):
        raise DocumentBuildError(f"Value cannot be represented in XML: {text!r}")
    return text


def _coerce_query_filter(item: Union[QueryFilter, Mapping[str, Any]]) -> QueryFilter | None:
    if isinstance(item, QueryFilter):
        return item
    if item.get("type") is None:
        return None
    return QueryFilter.model_validate(dict(item))


def _coerce_traffic_filter(item: Union[TrafficQueryFilter, Mapping[str, Any]]) -> TrafficQueryFilter:
    if isinstance(item, TrafficQueryFilter):
        return item
    return TrafficQueryFilter.model_validate(dict(item))
