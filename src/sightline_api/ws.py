"""Access the Sightline legacy web-services API (``/arborws/``).

The web-services API answers HTTP GET requests whose ``query`` (and, for
graphs, ``graph``) arguments carry the XML documents built by
:mod:`sightline_api.documents`. Responses are XML traffic data or a PNG
image; errors come back as XML ``error-line`` documents.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from xml.etree.ElementTree import Element

from sightline_api.cache import CacheBackend, make_get_key
from sightline_api.exceptions import ApiError, NoDataError
from sightline_api.models import CachePolicy, SightlineConfig
from sightline_api.results import handle_xml_result, is_png
from sightline_api.transport import HttpTransport

logger = logging.getLogger(__name__)


class WebServicesApi:
    """Traffic source backed by the web-services API.

    Args:
        url: Base URL of the web-services API, ending in ``/``.
        api_key: Web services API key.
        http: Transport used for every request.
        cache: Cache backend; required for caching to take effect.
        policy: Cache switch and TTL. Defaults to caching disabled.
    """

    cache_key_prefix = "sightline_ws"

    def __init__(
        self,
        url: str,
        api_key: str,
        http: HttpTransport,
        cache: Optional[CacheBackend] = None,
        policy: Optional[CachePolicy] = None,
    ) -> None:
        self.url = url if url.endswith("/") else f"{url}/"
        self._api_key = api_key
        self._http = http
        self._cache = cache
        self._policy = policy if policy is not None else CachePolicy()

    @classmethod
    def from_config(
        cls,
        config: SightlineConfig,
        http: HttpTransport,
        cache: Optional[CacheBackend] = None,
    ) -> WebServicesApi:
        return cls(config.ws_url, config.wskey, http, cache, config.cache_policy())

    @property
    def should_cache(self) -> bool:
        return self._policy.enabled and self._cache is not None

    def set_should_cache(self, cache_on: bool) -> None:
        """Turn the cache on or off."""
        self._policy.enabled = cache_on

    def set_cache_ttl(self, ttl_seconds: int) -> None:
        self._policy.ttl_seconds = ttl_seconds

    def get_traffic_graph(self, query_xml: str, graph_xml: str) -> bytes:
        """Get a traffic graph as PNG image bytes.

        Raises:
            ApiError: If the API returns an error document instead of an image.
        """
        url = f"{self.url}traffic/"
        args = {"graph": graph_xml, "query": query_xml}
        key = make_get_key(self.cache_key_prefix, url, args)

        if self.should_cache:
            hit, image = self._cache.get(key)
            if hit:
                logger.debug("Cache hit for traffic graph")
                return image

        output = self._request(url, args)

        if not is_png(output):
            # Errors on graphs come back as XML error documents.
            handle_xml_result(output)
            raise ApiError("Traffic graph request did not return an image.")

        if self.should_cache:
            self._cache.set(key, output, self._policy.ttl_seconds)

        return output

    def get_traffic_xml(self, query_xml: str) -> Element:
        """Run a traffic query and return the parsed XML result."""
        url = f"{self.url}traffic/"
        args = {"query": query_xml}
        key = make_get_key(self.cache_key_prefix, url, args)

        if self.should_cache:
            hit, body = self._cache.get(key)
            if hit:
                logger.debug("Cache hit for traffic XML")
                return handle_xml_result(body)

        output = self._request(url, args)
        root = handle_xml_result(output)

        if self.should_cache:
            self._cache.set(key, output, self._policy.ttl_seconds)

        return root

    def _request(self, url: str, args: dict[str, Any]) -> bytes:
        response = self._http.get(url, params={**args, "api_key": self._api_key})

        if response.status_code >= 300:
            raise ApiError(
                f"Web services request failed with status code: {response.status_code}",
                status_code=response.status_code,
            )
        if not response.content:
            raise NoDataError("API server returned no data.")

        return response.content
