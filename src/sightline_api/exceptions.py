"""Exception hierarchy for sightline_api.

All exceptions inherit from :class:`SightlineError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`sightline_api.exit_codes`. Library callers catch the specific
subclasses; the command line catches ``SightlineError`` and exits with the
appropriate code.

Subclass hierarchy::

    SightlineError          (exit 1)
    +-- ConfigError         (exit 3)
    +-- ApiError            (exit 4)
    +-- NoDataError         (exit 5)
    +-- TransportError      (exit 6)
    +-- DocumentBuildError  (exit 7)
    +-- PagingError         (exit 8)
"""

from __future__ import annotations

from typing import Any, Optional

from sightline_api.exit_codes import (
    EXIT_API_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_DOCUMENT_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NO_DATA,
    EXIT_PAGING_ERROR,
    EXIT_TRANSPORT_ERROR,
)


class SightlineError(Exception):
    """Base exception for all sightline_api errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(SightlineError):
    """Raised for missing or invalid configuration (hostname, tokens, TTL)."""

    exit_code = EXIT_CONFIG_ERROR


class DocumentBuildError(SightlineError):
    """Raised when a query, graph or traffic-query document cannot be built."""

    exit_code = EXIT_DOCUMENT_ERROR


class TransportError(SightlineError):
    """Raised on connection-level failures from the HTTP or SOAP transport.

    The underlying exception is chained as ``__cause__``.
    """

    exit_code = EXIT_TRANSPORT_ERROR


class ApiError(SightlineError):
    """Raised for non-2xx responses or error documents embedded in a response.

    Args:
        message: Aggregated error text (one line per error field).
        status_code: HTTP status code, or ``None`` for XML error documents.
        errors: The decoded ``errors`` array, when the API supplied one.
    """

    exit_code = EXIT_API_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[list[dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors or []


class NoDataError(SightlineError):
    """Raised when the server returns an empty decoded body."""

    exit_code = EXIT_NO_DATA


class PagingError(SightlineError):
    """Raised when a paged session cannot find a ``last`` link on page one."""

    exit_code = EXIT_PAGING_ERROR
