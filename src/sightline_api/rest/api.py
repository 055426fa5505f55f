"""Access the Sightline REST API (``https://<leader>/api/sp/``).

:class:`RestApi` is the shared accessor behind every REST resource class.
It provides:

- :meth:`RestApi.get_by_id` -- one record, cached by URL.
- :meth:`RestApi.find_rest` -- every record matching a search, fetched
  page by page and aggregated. Page one is always fetched fresh so the
  page count comes from the server; the aggregated result set is cached
  under the URL without paging arguments, so a hit returns the whole set
  without any request.
- :meth:`RestApi.create_record` / :meth:`RestApi.change_record` -- POST and
  PATCH with JSON:API bodies, optionally cached by (URL, method, body) so
  identical mutations inside the TTL window are not re-sent.

Caching is governed by the :class:`~sightline_api.models.CachePolicy` the
accessor was built with; when it is disabled no cache reads or writes
happen.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional
from urllib.parse import parse_qs, urlsplit

from sightline_api.cache import CacheBackend, make_get_key, make_post_key
from sightline_api.exceptions import PagingError
from sightline_api.models import CachePolicy, ResourceData, ResourceDocument, SightlineConfig
from sightline_api.rest.filters import filter_to_url
from sightline_api.results import decode_json, raise_for_result
from sightline_api.transport import HttpTransport

logger = logging.getLogger(__name__)

JSON_API_CONTENT_TYPE = "application/vnd.api+json"


class RestApi:
    """Accessor for the Sightline REST API.

    Args:
        url: Base URL of the REST API, ending in ``/``.
        token: REST API token, sent as ``X-Arbux-APIToken``.
        http: Transport used for every request.
        cache: Cache backend; required for caching to take effect.
        policy: Cache switch and TTL. Defaults to caching disabled.

    Subclasses set :attr:`cache_key_prefix` so that each resource kind keeps
    its own key namespace in a shared cache.
    """

    cache_key_prefix = "sightline_rest"

    def __init__(
        self,
        url: str,
        token: str,
        http: HttpTransport,
        cache: Optional[CacheBackend] = None,
        policy: Optional[CachePolicy] = None,
    ) -> None:
        self.url = url if url.endswith("/") else f"{url}/"
        self._token = token
        self._http = http
        self._cache = cache
        self._policy = policy if policy is not None else CachePolicy()

    @classmethod
    def from_config(
        cls,
        config: SightlineConfig,
        http: HttpTransport,
        cache: Optional[CacheBackend] = None,
    ):
        """Build an accessor from a :class:`~sightline_api.models.SightlineConfig`."""
        return cls(config.rest_url, config.resttoken, http, cache, config.cache_policy())

    # ------------------------------------------------------------------ #
    # Cache policy
    # ------------------------------------------------------------------ #

    @property
    def should_cache(self) -> bool:
        return self._policy.enabled and self._cache is not None

    @property
    def cache_ttl(self) -> int:
        return self._policy.ttl_seconds

    def set_should_cache(self, cache_on: bool) -> None:
        """Turn the cache on or off."""
        self._policy.enabled = cache_on

    def set_cache_ttl(self, ttl_seconds: int) -> None:
        """Change the lifetime of entries written from now on."""
        self._policy.ttl_seconds = ttl_seconds

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_by_id(self, endpoint: str, sightline_id: str) -> dict[str, Any]:
        """Get a single object by its ID.

        Args:
            endpoint: Type of object, e.g. ``managed_objects``.
            sightline_id: Object ID.

        Returns:
            The decoded response document.
        """
        return self._get(f"{self.url}{endpoint}/{sightline_id}")

    def find_rest(
        self,
        endpoint: str,
        filters: Any = None,
        per_page: int = 50,
        commit_flag: bool = False,
    ) -> list[dict[str, Any]]:
        """Find every record of *endpoint* matching *filters*.

        All pages are fetched and their ``data`` arrays concatenated in page
        order. Any failed page aborts the whole call.

        Args:
            endpoint: Endpoint name, e.g. ``managed_objects``.
            filters: A single filter or a list of filters, see
                :func:`~sightline_api.rest.filters.filter_to_url`.
            per_page: Number of records per page.
            commit_flag: Add ``config=committed`` for endpoints that need it.

        Returns:
            The records of all pages.

        Raises:
            ApiError: If any page returns a status of 300 or above.
            NoDataError: If any page returns an empty body.
            TransportError: If the server cannot be reached.
        """
        url = self.search_url(endpoint, filters)
        key = make_get_key(self.cache_key_prefix, url)

        if self.should_cache:
            hit, records = self._cache.get(key)
            if hit:
                logger.debug("Cache hit for result set %s", url)
                return records

        args = self.page_args(per_page, 1, commit_flag)

        # Page one is fetched fresh; it carries the page count.
        first = self._get(url, args, use_cache=False)
        total_pages = self.total_pages_of(first) or 1
        logger.debug("%s has %s page(s)", url, total_pages)

        records = list(self.records_of(first))
        for page in range(2, total_pages + 1):
            args["page"] = page
            records.extend(self.records_of(self._get(url, args, use_cache=False)))

        if self.should_cache:
            self._cache.set(key, records, self.cache_ttl)

        return records

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def create_record(
        self,
        endpoint: str,
        attributes: Mapping[str, Any],
        relationships: Optional[Mapping[str, Any]] = None,
        resource_type: Optional[str] = None,
        cached: bool = False,
    ) -> dict[str, Any]:
        """POST a new record built from *attributes* and *relationships*."""
        document = ResourceDocument(
            data=ResourceData(
                attributes=dict(attributes),
                relationships=None if relationships is None else dict(relationships),
                type=resource_type,
            )
        )
        url = f"{self.url}{endpoint}/"
        if cached:
            return self.cached_post(url, "POST", document.to_json())
        return self.post(url, "POST", document.to_json())

    def change_record(
        self,
        endpoint: str,
        sightline_id: str,
        attributes: Mapping[str, Any],
        relationships: Optional[Mapping[str, Any]] = None,
        cached: bool = False,
    ) -> dict[str, Any]:
        """PATCH the record *sightline_id* with *attributes* and *relationships*."""
        document = ResourceDocument(
            data=ResourceData(
                attributes=dict(attributes),
                relationships=None if relationships is None else dict(relationships),
            )
        )
        url = f"{self.url}{endpoint}/{sightline_id}"
        if cached:
            return self.cached_post(url, "PATCH", document.to_json())
        return self.post(url, "PATCH", document.to_json())

    def post(self, url: str, method: str = "POST", body: Optional[str] = None) -> dict[str, Any]:
        """Send *body* with *method* (POST or PATCH) and return the decoded result."""
        return self._send(method, url, content=body)

    def cached_post(self, url: str, method: str = "POST", body: Optional[str] = None) -> dict[str, Any]:
        """Like :meth:`post`, but the result is cached by (URL, method, body).

        A byte-identical request inside the TTL window returns the cached
        result without being sent.
        """
        key = make_post_key(self.cache_key_prefix, url, method, body)

        if self.should_cache:
            hit, result = self._cache.get(key)
            if hit:
                logger.debug("Cache hit for %s %s", method, url)
                return result

        result = self.post(url, method, body)

        if self.should_cache:
            self._cache.set(key, result, self.cache_ttl)

        return result

    # ------------------------------------------------------------------ #
    # Helpers shared with PagedFetcher
    # ------------------------------------------------------------------ #

    def search_url(self, endpoint: str, filters: Any = None) -> str:
        """Return the search URL for *endpoint*, with the encoded *filters*."""
        url = f"{self.url}{endpoint}/"
        if filters is not None:
            query = filter_to_url(filters)
            if query:
                url = f"{url}?{query}"
        return url

    @staticmethod
    def page_args(per_page: int, page: int, commit_flag: bool = False) -> dict[str, Any]:
        args: dict[str, Any] = {"perPage": per_page, "page": page}
        if commit_flag:
            args["config"] = "committed"
        return args

    @staticmethod
    def total_pages_of(result: Mapping[str, Any]) -> Optional[int]:
        """Read the page count from the ``page`` argument of ``links.last``.

        Returns ``None`` when there is no ``last`` link.

        Raises:
            PagingError: If the ``last`` link carries no usable page number.
        """
        links = result.get("links") or {}
        last = links.get("last") if isinstance(links, Mapping) else None
        if not last:
            return None

        pages = parse_qs(urlsplit(str(last)).query).get("page")
        try:
            return int(pages[0])
        except (TypeError, ValueError) as exc:
            raise PagingError(f"Unable to determine the number of pages from {last!r}") from exc

    @staticmethod
    def records_of(result: Mapping[str, Any]) -> list[dict[str, Any]]:
        data = result.get("data")
        if data is None:
            return []
        if isinstance(data, list):
            return data
        return [data]

    def _get(
        self,
        url: str,
        args: Optional[dict[str, Any]] = None,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """GET *url* with query *args*, consulting the cache when allowed."""
        use_cache = use_cache and self.should_cache
        key = make_get_key(self.cache_key_prefix, url, args)

        if use_cache:
            hit, result = self._cache.get(key)
            if hit:
                logger.debug("Cache hit for GET %s", url)
                return result

        result = self._send("GET", url, params=args)

        if use_cache:
            self._cache.set(key, result, self.cache_ttl)

        return result

    def _send(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        content: Optional[str] = None,
    ) -> dict[str, Any]:
        headers = {
            "Content-Type": JSON_API_CONTENT_TYPE,
            "X-Arbux-APIToken": self._token,
        }
        response = self._http.request(
            method, url, params=params, headers=headers, content=content,
        )
        return raise_for_result(response.status_code, decode_json(response))
