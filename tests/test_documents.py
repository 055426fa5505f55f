"""Tests for the XML and JSON request document builders."""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone

import pytest

from sightline_api.documents import (
    build_filter_element,
    build_graph_document,
    build_query_document,
    build_traffic_query_document,
    parse_timestamp,
    truncate_to_hour,
)
from sightline_api.exceptions import DocumentBuildError
from sightline_api.models import QueryFilter, TrafficQueryFilter


def _parse(document: str) -> ET.Element:
    return ET.fromstring(document.encode("utf-8"))


# ------------------------------------------------------------------ #
# Query document
# ------------------------------------------------------------------ #


class TestQueryDocument:
    def test_root_and_query_skeleton(self) -> None:
        doc = build_query_document([], "1 day ago", "now", "pps", ["in", "out"])
        assert doc.startswith("<?xml version='1.0' encoding='UTF-8'?>")

        root = _parse(doc)
        assert root.tag == "peakflow"
        assert root.get("version") == "2.0"

        query = root.find("query")
        assert query.get("type") == "traffic"
        assert query.find("time").attrib == {"end_ascii": "now", "start_ascii": "1 day ago"}
        assert query.find("unit").get("type") == "pps"
        assert query.find("search").attrib == {"timeout": "30", "limit": "200"}
        assert [c.text for c in query.findall("class")] == ["in", "out"]

    def test_defaults(self) -> None:
        query = _parse(build_query_document([])).find("query")
        assert query.find("time").get("start_ascii") == "7 days ago"
        assert query.find("time").get("end_ascii") == "now"
        assert query.find("unit").get("type") == "bps"
        assert query.findall("class") == []

    def test_null_value_emits_no_instances(self) -> None:
        doc = build_query_document([QueryFilter(type="as_origin", value=None, binby=True)])
        flt = _parse(doc).find("query/filter")
        assert flt.get("type") == "as_origin"
        assert flt.get("binby") == "1"
        assert flt.findall("instance") == []

    def test_list_value_emits_instances_in_order(self) -> None:
        doc = build_query_document([QueryFilter(type="interface", value=[3, 1, 2])])
        instances = _parse(doc).findall("query/filter/instance")
        assert [i.get("value") for i in instances] == ["3", "1", "2"]

    def test_binby_absent_when_false(self) -> None:
        flt = build_filter_element(QueryFilter(type="peer", value=12))
        assert "binby" not in flt.attrib
        assert flt.find("instance").get("value") == "12"

    def test_filters_keep_input_order(self) -> None:
        doc = build_query_document([
            {"type": "interface", "value": 5, "binby": True},
            {"type": "aspath", "value": "_174_"},
        ])
        types = [f.get("type") for f in _parse(doc).findall("query/filter")]
        assert types == ["interface", "aspath"]

    def test_mapping_without_type_is_skipped(self) -> None:
        doc = build_query_document([{"value": 1}, {"type": "peer", "value": 2}])
        filters = _parse(doc).findall("query/filter")
        assert len(filters) == 1
        assert filters[0].get("type") == "peer"

    def test_special_characters_are_escaped(self) -> None:
        doc = build_query_document([QueryFilter(type="aspath", value="^1 & <2>$")])
        assert _parse(doc).find("query/filter/instance").get("value") == "^1 & <2>$"

    def test_illegal_xml_character_raises(self) -> None:
        with pytest.raises(DocumentBuildError):
            build_query_document([QueryFilter(type="peer", value="bad\x01value")])


# ------------------------------------------------------------------ #
# Graph document
# ------------------------------------------------------------------ #


class TestGraphDocument:
    def test_graph_elements(self) -> None:
        graph = _parse(build_graph_document("Peer traffic", "bps")).find("graph")
        assert graph.get("id") == "graph1"
        assert graph.find("title").text == "Peer traffic"
        assert graph.find("ylabel").text == "bps"
        assert graph.find("width").text == "986"
        assert graph.find("height").text == "180"
        assert graph.find("legend").text == "1"
        assert graph.find("type") is None

    def test_detail_adds_type(self) -> None:
        graph = _parse(build_graph_document("t", "y", detail=True, width=500, height=270)).find("graph")
        assert graph.find("type").text == "detail"
        assert graph.find("width").text == "500"
        assert graph.find("height").text == "270"


# ------------------------------------------------------------------ #
# Traffic query JSON
# ------------------------------------------------------------------ #


class TestTrafficQueryDocument:
    def test_times_truncated_to_hour(self) -> None:
        tz = timezone(timedelta(hours=2))
        doc = json.loads(build_traffic_query_document(
            [TrafficQueryFilter(facet="Peer", values=["7"], groupby=True)],
            datetime(2024, 1, 15, 10, 47, 12, tzinfo=tz),
            datetime(2024, 1, 15, 14, 3, tzinfo=tz),
        ))
        attributes = doc["data"]["attributes"]
        assert attributes["query_start_time"] == "2024-01-15T10:00:00+02:00"
        assert attributes["query_end_time"] == "2024-01-15T14:00:00+02:00"

    def test_attributes(self) -> None:
        doc = json.loads(build_traffic_query_document(
            [{"facet": "Interface", "values": ["1", "2"]}],
            "2024-01-15T10:47:00+00:00",
            "2024-01-15T14:03:00+00:00",
            unit="pps",
            limit=10,
            classes=["in", "out", "total"],
        ))
        attributes = doc["data"]["attributes"]
        assert attributes["unit"] == "pps"
        assert attributes["limit"] == 10
        assert attributes["traffic_classes"] == ["in", "out", "total"]
        assert attributes["filters"] == [
            {"facet": "Interface", "values": ["1", "2"], "groupby": False}
        ]

    def test_unparseable_time_raises(self) -> None:
        with pytest.raises(DocumentBuildError):
            build_traffic_query_document([], "whenever it suits", "now")

    @pytest.mark.parametrize("start", ["15 January 2024 10:47", "1 month ago", "yesterday"])
    def test_natural_language_start(self, start: str) -> None:
        attributes = json.loads(build_traffic_query_document([], start, "now"))["data"]["attributes"]
        start_time = datetime.fromisoformat(attributes["query_start_time"])
        assert (start_time.minute, start_time.second) == (0, 0)
        assert start_time.tzinfo is not None


class TestParseTimestamp:
    NOW = datetime(2024, 1, 15, 12, 30, tzinfo=timezone.utc)

    def test_now(self) -> None:
        assert parse_timestamp("now", now=self.NOW) == self.NOW

    @pytest.mark.parametrize(
        "text, delta",
        [
            ("1 hour ago", timedelta(hours=1)),
            ("7 days ago", timedelta(days=7)),
            ("2 weeks ago", timedelta(weeks=2)),
            ("30 Minutes ago", timedelta(minutes=30)),
            ("-3 days", timedelta(days=3)),
        ],
    )
    def test_relative(self, text: str, delta: timedelta) -> None:
        assert parse_timestamp(text, now=self.NOW) == self.NOW - delta

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1 month ago", datetime(2023, 12, 15, 12, 30, tzinfo=timezone.utc)),
            ("2 years ago", datetime(2022, 1, 15, 12, 30, tzinfo=timezone.utc)),
            ("+1 week", datetime(2024, 1, 22, 12, 30, tzinfo=timezone.utc)),
            ("yesterday", datetime(2024, 1, 14, tzinfo=timezone.utc)),
            ("today", datetime(2024, 1, 15, tzinfo=timezone.utc)),
            ("Tomorrow", datetime(2024, 1, 16, tzinfo=timezone.utc)),
        ],
    )
    def test_calendar_offsets(self, text: str, expected: datetime) -> None:
        assert parse_timestamp(text, now=self.NOW) == expected

    def test_free_form_date(self) -> None:
        parsed = parse_timestamp("15 January 2024 10:47")
        assert (parsed.year, parsed.month, parsed.day) == (2024, 1, 15)
        assert (parsed.hour, parsed.minute) == (10, 47)
        assert parsed.tzinfo is not None

    def test_utc_designator(self) -> None:
        parsed = parse_timestamp("2024-01-15T10:47:00Z")
        assert parsed.utcoffset() == timedelta(0)
        assert parsed.hour == 10

    def test_time_only_uses_reference_day(self) -> None:
        parsed = parse_timestamp("10:47", now=self.NOW)
        assert (parsed.year, parsed.month, parsed.day, parsed.hour) == (2024, 1, 15, 10)

    def test_naive_keeps_wall_clock(self) -> None:
        parsed = parse_timestamp("2024-01-15T10:47:00")
        assert parsed.tzinfo is not None
        assert (parsed.hour, parsed.minute) == (10, 47)

    def test_truncate_keeps_timezone(self) -> None:
        value = datetime(2024, 1, 15, 14, 3, 59, 999, tzinfo=timezone.utc)
        assert truncate_to_hour(value) == datetime(2024, 1, 15, 14, tzinfo=timezone.utc)
