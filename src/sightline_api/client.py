"""One entry point for every Sightline API.

:class:`SightlineClient` builds the accessors for the REST, web-services
and SOAP APIs from one :class:`~sightline_api.models.SightlineConfig`. They
share a disk-backed :class:`~sightline_api.cache.ResponseCache`::

    with SightlineClient(load_config()) as client:
        groups = client.notification_groups.get_notification_groups()
        png = client.reports().get_peer_traffic_graph(1234, "Peer traffic")

Accessors are created on first use. Cache settings changed through
:meth:`SightlineClient.set_should_cache` and
:meth:`SightlineClient.set_cache_ttl` apply to every accessor, including
ones created later.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import httpx

from sightline_api.cache import ResponseCache
from sightline_api.config import get_cache_dir
from sightline_api.models import SightlineConfig
from sightline_api.rest import (
    ManagedObjectApi,
    MitigationTemplateApi,
    NotificationGroupApi,
    PagedFetcher,
    RestApi,
    TrafficQueryApi,
)
from sightline_api.soap import HttpSoapTransport, SoapApi, SoapTransport
from sightline_api.traffic import TrafficReports, TrafficSource
from sightline_api.transport import HttpTransport
from sightline_api.ws import WebServicesApi


class SightlineClient:
    """Façade over the Sightline APIs.

    Args:
        config: Connection and cache settings.
        cache_dir: Directory of the response cache. Defaults to
            :func:`~sightline_api.config.get_cache_dir`.
        http_transport: Optional httpx transport for the REST and
            web-services clients (``httpx.MockTransport`` in tests).
        soap_transport: Optional SOAP transport replacing the HTTP one.
    """

    def __init__(
        self,
        config: SightlineConfig,
        cache_dir: Optional[Path] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
        soap_transport: Optional[SoapTransport] = None,
    ) -> None:
        self.config = config
        self._cache_dir = cache_dir
        self._http_transport = http_transport
        self._soap_transport = soap_transport

        self._cache: Optional[ResponseCache] = None
        self._http: Optional[HttpTransport] = None
        self._owned_soap: Optional[HttpSoapTransport] = None
        self._accessors: dict[str, Any] = {}

    def __enter__(self) -> SightlineClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP clients and the response cache."""
        if self._http is not None:
            self._http.close()
            self._http = None
        if self._owned_soap is not None:
            self._owned_soap.close()
            self._owned_soap = None
        if self._cache is not None:
            self._cache.close()
            self._cache = None
        self._accessors.clear()

    # ------------------------------------------------------------------ #
    # Cache policy
    # ------------------------------------------------------------------ #

    @property
    def cache(self) -> ResponseCache:
        """The shared response cache, opened on first access."""
        if self._cache is None:
            if self._cache_dir is None:
                self._cache_dir = get_cache_dir()
            self._cache = ResponseCache(self._cache_dir)
        return self._cache

    def set_should_cache(self, cache_on: bool) -> None:
        """Turn the cache on or off for every accessor."""
        self._update_config(cache=cache_on)
        for accessor in self._accessors.values():
            accessor.set_should_cache(cache_on)

    def set_cache_ttl(self, ttl_seconds: int) -> None:
        """Change the TTL of entries written from now on, for every accessor.

        Raises:
            pydantic.ValidationError: If *ttl_seconds* is below 1. Nothing is
                changed in that case.
        """
        self._update_config(cache_ttl=ttl_seconds)
        for accessor in self._accessors.values():
            accessor.set_cache_ttl(ttl_seconds)

    def _update_config(self, **changes: Any) -> None:
        self.config = SightlineConfig.model_validate({**self.config.model_dump(), **changes})

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def http(self) -> HttpTransport:
        """Transport shared by the REST and web-services accessors."""
        if self._http is None:
            self._http = HttpTransport(
                timeout=self.config.timeout,
                verify_ssl=self.config.verify_ssl,
                transport=self._http_transport,
            )
        return self._http

    def _rest(self, name: str, cls: type[RestApi]):
        if name not in self._accessors:
            self._accessors[name] = cls.from_config(self.config, self.http, self.cache)
        return self._accessors[name]

    @property
    def rest(self) -> RestApi:
        return self._rest("rest", RestApi)

    @property
    def managed_objects(self) -> ManagedObjectApi:
        return self._rest("managed_objects", ManagedObjectApi)

    @property
    def mitigation_templates(self) -> MitigationTemplateApi:
        return self._rest("mitigation_templates", MitigationTemplateApi)

    @property
    def notification_groups(self) -> NotificationGroupApi:
        return self._rest("notification_groups", NotificationGroupApi)

    @property
    def traffic_queries(self) -> TrafficQueryApi:
        return self._rest("traffic_queries", TrafficQueryApi)

    def paged(self) -> PagedFetcher:
        """Return a new :class:`PagedFetcher`, one per paging session."""
        return PagedFetcher.from_config(self.config, self.http, self.cache)

    @property
    def ws(self) -> WebServicesApi:
        if "ws" not in self._accessors:
            self._accessors["ws"] = WebServicesApi.from_config(
                self.config, self.http, self.cache
            )
        return self._accessors["ws"]

    @property
    def soap(self) -> SoapApi:
        if "soap" not in self._accessors:
            transport = self._soap_transport
            if transport is None:
                self._owned_soap = HttpSoapTransport.from_config(self.config, self._http_transport)
                transport = self._owned_soap
            self._accessors["soap"] = SoapApi.from_config(
                self.config, self.cache, transport
            )
        return self._accessors["soap"]

    def reports(self, source: Optional[TrafficSource] = None) -> TrafficReports:
        """Canned traffic reports over *source*, the SOAP API by default."""
        return TrafficReports(source if source is not None else self.soap)
