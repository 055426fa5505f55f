"""Shared test fixtures for sightline_api.

Provides a sample configuration, a recording ``httpx.MockTransport``, an
isolated config environment, and CLI helpers. These fixtures are
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from sightline_api.cache import ResponseCache
from sightline_api.models import CachePolicy, SightlineConfig
from sightline_api.output import OutputFormat, OutputManager, reset_output, set_output
from sightline_api.transport import HttpTransport

HOSTNAME = "leader.example.net"
REST_URL = f"https://{HOSTNAME}/api/sp/"
WS_URL = f"https://{HOSTNAME}/arborws/"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the CLI log handler after every test.

    Both keep references to the streams CliRunner swaps in; once a test
    finishes those streams are closed.
    """
    yield
    reset_output()
    logger = logging.getLogger("sightline_api")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> SightlineConfig:
    """Connection settings for a fake leader, caching off."""
    return SightlineConfig(
        hostname=HOSTNAME,
        wskey="ws-key",
        resttoken="rest-token",
        username="soap-user",
        password="soap-pass",
    )


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_CACHE_HOME to subdirectories of tmp_path
    and clears all SIGHTLINE_* environment variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))

    for var in [
        "SIGHTLINE_HOSTNAME",
        "SIGHTLINE_WSKEY",
        "SIGHTLINE_RESTTOKEN",
        "SIGHTLINE_USERNAME",
        "SIGHTLINE_PASSWORD",
        "SIGHTLINE_CACHE",
        "SIGHTLINE_CACHE_TTL",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# HTTP and cache
# ---------------------------------------------------------------------------


class Recorder:
    """Handler for ``httpx.MockTransport`` that records every request.

    *handler* maps a request to a response; the default returns an empty
    JSON:API collection.
    """

    def __init__(self, handler: Optional[Callable[[httpx.Request], httpx.Response]] = None) -> None:
        self.requests: list[httpx.Request] = []
        self._handler = handler or (lambda request: httpx.Response(200, json={"data": []}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def paged_handler(pages: list[list[dict[str, Any]]]) -> Callable[[httpx.Request], httpx.Response]:
    """Serve *pages* by their ``page`` query argument, with a ``links.last``."""

    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params.get("page", "1"))
        last = f"{REST_URL}alerts/?page={len(pages)}&perPage=50"
        return httpx.Response(200, json={"data": pages[page - 1], "links": {"last": last}})

    return handler


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def http(recorder: Recorder) -> HttpTransport:
    transport = HttpTransport(transport=recorder.transport)
    yield transport
    transport.close()


@pytest.fixture
def cache(tmp_path: Path) -> ResponseCache:
    c = ResponseCache(tmp_path / "cache")
    yield c
    c.close()


@pytest.fixture
def cache_on() -> CachePolicy:
    return CachePolicy(enabled=True, ttl_seconds=300)


# ---------------------------------------------------------------------------
# Output and CLI
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
