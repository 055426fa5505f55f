"""Access the Sightline REST API ``/traffic_queries/`` endpoint.

Each helper builds a JSON traffic query with
:func:`~sightline_api.documents.build_traffic_query_document` and posts it
through :meth:`~sightline_api.rest.api.RestApi.cached_post`, so repeating a
query inside the cache TTL does not hit the leader again.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, Union

from sightline_api.documents import build_traffic_query_document
from sightline_api.models import TrafficQueryFilter
from sightline_api.rest.api import RestApi

ENDPOINT = "traffic_queries"


def _interface_values(interfaces: Iterable[Union[int, str]]) -> list[str]:
    """Sort interface IDs numerically and return them as strings."""
    return [str(i) for i in sorted(interfaces, key=int)]


class TrafficQueryApi(RestApi):
    cache_key_prefix = "sightline_rest_tquery"

    def run_traffic_query(
        self,
        filters: Sequence[TrafficQueryFilter],
        start: str = "7 days ago",
        end: str = "now",
        unit: str = "bps",
        limit: int = 100,
        classes: Sequence[str] = ("in", "out"),
    ) -> dict[str, Any]:
        """Build and post a traffic query, returning the decoded result."""
        body = build_traffic_query_document(filters, start, end, unit, limit, classes)
        return self.cached_post(f"{self.url}{ENDPOINT}/", "POST", body)

    def get_interface_as_path_traffic(
        self,
        as_path: str,
        interfaces: Iterable[Union[int, str]],
        start: str = "7 days ago",
        end: str = "now",
    ) -> dict[str, Any]:
        """AS path traffic broken down by interface."""
        filters = [
            TrafficQueryFilter(facet="Interface", values=_interface_values(interfaces), groupby=True),
            TrafficQueryFilter(facet="AS_Path", values=[as_path], groupby=True),
        ]
        return self.run_traffic_query(filters, start, end)

    def get_interface_asn_traffic(
        self, interface_id: Union[int, str], start: str = "7 days ago", end: str = "now"
    ) -> dict[str, Any]:
        """Interface traffic broken down by AS origin."""
        filters = [
            TrafficQueryFilter(facet="Interface", values=[str(interface_id)], groupby=False),
            TrafficQueryFilter(facet="AS_Origin", values=[], groupby=True),
        ]
        return self.run_traffic_query(filters, start, end)

    def get_as_path_traffic(self, as_path: str, start: str = "7 days ago", end: str = "now") -> dict[str, Any]:
        filters = [TrafficQueryFilter(facet="AS_Path", values=[as_path], groupby=True)]
        return self.run_traffic_query(filters, start, end)

    def get_peer_traffic(
        self, peer_id: Union[int, str], start: str = "7 days ago", end: str = "now"
    ) -> dict[str, Any]:
        """Peer managed object traffic: in, out and total."""
        filters = [TrafficQueryFilter(facet="Peer", values=[str(peer_id)], groupby=True)]
        return self.run_traffic_query(filters, start, end, classes=("in", "out", "total"))

    def get_interface_traffic(
        self, interface_id: Union[int, str], start: str = "7 days ago", end: str = "now"
    ) -> dict[str, Any]:
        """Interface traffic: in, out, total and dropped."""
        filters = [TrafficQueryFilter(facet="Interface", values=[str(interface_id)], groupby=True)]
        return self.run_traffic_query(
            filters, start, end, classes=("in", "out", "total", "dropped")
        )

    def get_interfaces_traffic(
        self,
        interfaces: Iterable[Union[int, str]],
        start: str = "7 days ago",
        end: str = "now",
    ) -> dict[str, Any]:
        """Traffic of several interfaces: in, out and total."""
        filters = [
            TrafficQueryFilter(facet="Interface", values=_interface_values(interfaces), groupby=True),
        ]
        return self.run_traffic_query(filters, start, end, classes=("in", "out", "total"))
