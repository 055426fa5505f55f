"""Blocking HTTP transport for the REST and web-services clients.

:class:`HttpTransport` wraps :class:`httpx.Client`. Each call is a single
attempt; connection and timeout failures surface as
:class:`~sightline_api.exceptions.TransportError` and are never retried.

Status codes are *not* mapped here; the accessors inspect the returned
:class:`httpx.Response` through :mod:`sightline_api.results`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from sightline_api.exceptions import TransportError

logger = logging.getLogger(__name__)


class HttpTransport:
    """Synchronous HTTP transport.

    The underlying :class:`httpx.Client` is created on first use (or on
    ``__enter__``) and released by :meth:`close` / ``__exit__``.

    Args:
        timeout: Request timeout in seconds.
        verify_ssl: Verify TLS certificates.
        auth: Optional :mod:`httpx` auth (e.g. :class:`httpx.DigestAuth`).
        transport: Optional :class:`httpx.BaseTransport`, used by tests to
            plug in :class:`httpx.MockTransport`.

    Example::

        with HttpTransport(timeout=10) as http:
            response = http.request(
                "GET", "https://leader/api/sp/alerts/",
                headers={"X-Arbux-APIToken": token},
            )
    """

    def __init__(
        self,
        timeout: float = 30,
        verify_ssl: bool = True,
        auth: Optional[httpx.Auth] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._auth = auth
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpTransport:
        self._ensure_client()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client`, if open."""
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        content: Optional[str | bytes] = None,
    ) -> httpx.Response:
        """Send a request and return the raw :class:`httpx.Response`.

        Args:
            method: HTTP method (GET, POST, PATCH).
            url: Absolute URL. An existing query string is kept and
                *params* are appended to it.
            params: Query parameters.
            headers: Request headers.
            content: Raw request body.

        Raises:
            TransportError: On any :class:`httpx.HTTPError`.
        """
        client = self._ensure_client()
        logger.debug("%s %s params=%s", method, url, params)
        try:
            return client.request(method, url, params=params, headers=headers, content=content)
        except httpx.HTTPError as exc:
            raise TransportError(f"Error connecting to the server: {exc}") from exc

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout,
                verify=self._verify_ssl,
                auth=self._auth,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client
