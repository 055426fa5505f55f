"""Ready-made traffic graphs and reports for the SOAP and web-services APIs.

:class:`TrafficReports` combines the document builders in
:mod:`sightline_api.documents` with any :class:`TrafficSource` -- the
:class:`~sightline_api.ws.WebServicesApi` or the
:class:`~sightline_api.soap.SoapApi` -- so both APIs share the same
canned queries::

    reports = TrafficReports(client.ws)
    png = reports.get_peer_traffic_graph(1234, "Peer traffic")
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, Union
from xml.etree.ElementTree import Element

from sightline_api.documents import build_graph_document, build_query_document
from sightline_api.models import QueryFilter

WIDE_GRAPH = {"width": 986, "height": 270}


class TrafficSource(Protocol):
    def get_traffic_xml(self, query_xml: str) -> Element: ...

    def get_traffic_graph(self, query_xml: str, graph_xml: str) -> bytes: ...


def _sorted_ids(ids: Iterable[Union[int, str]]) -> list[int]:
    return sorted(int(i) for i in ids)


class TrafficReports:
    """Canned traffic queries over a :class:`TrafficSource`."""

    def __init__(self, source: TrafficSource) -> None:
        self.source = source

    def get_peer_traffic_graph(
        self, sightline_id: int, title: str, start: str = "7 days ago", end: str = "now"
    ) -> bytes:
        """Detail graph (in, out, total) of a peer managed object."""
        query = build_query_document(
            [QueryFilter(type="peer", value=sightline_id)],
            start, end, "bps", ["in", "out", "total"],
        )
        graph = build_graph_document(title, "bps", detail=True)
        return self.source.get_traffic_graph(query, graph)

    def get_as_path_traffic_graph(self, as_path: str, start: str = "7 days ago", end: str = "now") -> bytes:
        query = build_query_document([QueryFilter(type="aspath", value=as_path, binby=True)], start, end)
        graph = build_graph_document(f"Traffic with AS{as_path}", "bps [+ to / - from ]", **WIDE_GRAPH)
        return self.source.get_traffic_graph(query, graph)

    def get_as_path_traffic_xml(self, as_path: str, start: str = "7 days ago", end: str = "now") -> Element:
        query = build_query_document([QueryFilter(type="aspath", value=as_path, binby=True)], start, end)
        return self.source.get_traffic_xml(query)

    def get_interface_traffic_graph(
        self, sightline_id: int, title: str, start: str = "7 days ago", end: str = "now"
    ) -> bytes:
        """Detail graph of an interface: in, out, total, dropped and backbone."""
        query = build_query_document(
            [QueryFilter(type="interface", value=sightline_id)],
            start, end, "bps", ["in", "out", "total", "dropped", "backbone"],
        )
        graph = build_graph_document(title, "bps", detail=True)
        return self.source.get_traffic_graph(query, graph)

    def get_interface_as_path_traffic_graph(
        self,
        as_path: str,
        interface_ids: Iterable[Union[int, str]],
        title: str,
        start: str = "7 days ago",
        end: str = "now",
    ) -> bytes:
        """AS path traffic graph broken down by interface."""
        query = build_query_document(
            [
                QueryFilter(type="interface", value=_sorted_ids(interface_ids), binby=True),
                QueryFilter(type="aspath", value=as_path, binby=True),
            ],
            start, end,
        )
        graph = build_graph_document(title, "bps (-In / +Out)", **WIDE_GRAPH)
        return self.source.get_traffic_graph(query, graph)

    def get_interface_as_path_traffic_xml(
        self,
        as_path: str,
        interface_ids: Iterable[Union[int, str]],
        start: str = "7 days ago",
        end: str = "now",
    ) -> Element:
        query = build_query_document(
            [
                QueryFilter(type="interface", value=_sorted_ids(interface_ids), binby=True),
                QueryFilter(type="aspath", value=as_path, binby=False),
            ],
            start, end,
        )
        return self.source.get_traffic_xml(query)

    def get_interface_asn_traffic_graph(
        self, interface_id: int, title: str, start: str = "7 days ago", end: str = "now"
    ) -> bytes:
        """Interface traffic graph broken down by origin AS."""
        query = build_query_document(
            [
                QueryFilter(type="interface", value=interface_id),
                QueryFilter(type="as_origin", value=None, binby=True),
            ],
            start, end,
        )
        graph = build_graph_document(title, "bps (-In / +Out)", **WIDE_GRAPH)
        return self.source.get_traffic_graph(query, graph)

    def get_interface_asn_traffic_xml(
        self, interface_id: int, start: str = "7 days ago", end: str = "now"
    ) -> Element:
        query = build_query_document(
            [
                QueryFilter(type="interface", value=interface_id),
                QueryFilter(type="as_origin", value=None, binby=True),
            ],
            start, end,
        )
        return self.source.get_traffic_xml(query)
