"""Page-at-a-time access to Sightline REST searches.

Unlike :meth:`~sightline_api.rest.api.RestApi.find_rest`, which returns the
whole result set, :class:`PagedFetcher` keeps one page in memory and
advances on request::

    fetcher = PagedFetcher.from_config(config, http)
    fetcher.find_rest_paged("alerts", per_page=100)
    while True:
        handle(fetcher.current_data)
        if not fetcher.get_next_page():
            break

A fetcher holds the state of one paging session and must not be shared
between concurrent sessions. Calling :meth:`PagedFetcher.find_rest_paged`
again starts a new session.
"""

from __future__ import annotations

from typing import Any

from sightline_api.exceptions import PagingError
from sightline_api.rest.api import RestApi


class PagedFetcher(RestApi):
    """REST accessor that walks a search one page at a time.

    Each page is an ordinary cached GET, keyed by the search URL and its
    paging arguments.
    """

    cache_key_prefix = "sightline_rest_paged"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._reset()

    def _reset(self) -> None:
        self._current_page = 1
        self._total_pages = 0
        self._current_data: list[dict[str, Any]] = []
        self._search_url = ""
        self._args: dict[str, Any] = {}

    @property
    def current_data(self) -> list[dict[str, Any]]:
        """Records of the current page."""
        return self._current_data

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def total_pages(self) -> int:
        return self._total_pages

    def find_rest_paged(
        self,
        endpoint: str,
        filters: Any = None,
        per_page: int = 50,
        commit_flag: bool = False,
    ) -> None:
        """Start a paging session and load the first page.

        Raises:
            PagingError: If the first page has no ``links.last``.
            ApiError: If the server returns an error status.
            NoDataError: If the server returns an empty body.
        """
        self._reset()
        self._search_url = self.search_url(endpoint, filters)
        self._args = self.page_args(per_page, 1, commit_flag)

        result = self._get(self._search_url, dict(self._args))
        total_pages = self.total_pages_of(result)
        if total_pages is None:
            raise PagingError("Unable to determine the number of pages.")

        self._current_data = self.records_of(result)
        self._total_pages = total_pages

    def get_next_page(self) -> bool:
        """Load the next page.

        Returns:
            ``True`` if a new page was loaded, ``False`` once the last page
            has been reached. After that every call returns ``False`` without
            touching the network.
        """
        if self._current_page >= self._total_pages:
            return False

        next_page = self._current_page + 1
        args = {**self._args, "page": next_page}
        result = self._get(self._search_url, args)

        self._current_data = self.records_of(result)
        self._current_page = next_page
        self._args = args
        return True

