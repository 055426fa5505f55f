"""Tests for the ``sightline`` command line."""

from __future__ import annotations

import base64
import json
from functools import partial
from pathlib import Path

import httpx
import pytest

import sightline_api.app as app_module
from conftest import PNG_BYTES, Recorder
from sightline_api import __version__
from sightline_api.app import app
from sightline_api.client import SightlineClient
from sightline_api.config import config_path

VALID = {
    "hostname": "leader.example.net",
    "wskey": "ws-key",
    "resttoken": "rest-token",
    "username": "soap-user",
    "password": "soap-pass",
}


class FakeSoapTransport:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def call(self, operation: str, **params) -> str:
        self.calls.append((operation, params))
        if operation == "cliRun":
            return "uptime: 10 days"
        if operation == "runXmlQuery":
            return "<peakflow><traffic/></peakflow>"
        return base64.b64encode(PNG_BYTES).decode()


@pytest.fixture
def configured(isolated_config: Path) -> Path:
    path = config_path()
    path.write_text(json.dumps(VALID), encoding="utf-8")
    return path


@pytest.fixture
def soap() -> FakeSoapTransport:
    return FakeSoapTransport()


def _patch_client(monkeypatch, tmp_path: Path, recorder: Recorder, soap: FakeSoapTransport) -> None:
    monkeypatch.setattr(
        app_module,
        "SightlineClient",
        partial(
            SightlineClient,
            cache_dir=tmp_path / "responses",
            http_transport=recorder.transport,
            soap_transport=soap,
        ),
    )


class TestRoot:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_no_args_shows_help(self, cli_runner) -> None:
        result = cli_runner.invoke(app, [])
        assert "Usage" in result.output


class TestConfigShow:
    def test_masks_secrets(self, cli_runner, configured: Path) -> None:
        result = cli_runner.invoke(app, ["--json", "--quiet", "config", "show"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["hostname"] == "leader.example.net"
        assert data["password"] == "****"
        assert data["resttoken"] == "****"
        assert data["wskey"] == "****"

    def test_missing_config(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["config", "show"])
        assert result.exit_code == 3

    def test_explicit_path(self, cli_runner, isolated_config: Path) -> None:
        path = isolated_config / "other.json"
        path.write_text(json.dumps({**VALID, "hostname": "other.example.net"}), encoding="utf-8")
        result = cli_runner.invoke(app, ["--json", "--quiet", "--config", str(path), "config", "show"])
        assert json.loads(result.stdout)["hostname"] == "other.example.net"


class TestRestCommands:
    def test_find(self, cli_runner, configured: Path, tmp_path: Path, monkeypatch, soap) -> None:
        recorder = Recorder(lambda r: httpx.Response(200, json={"data": [{"id": "1"}, {"id": "2"}]}))
        _patch_client(monkeypatch, tmp_path, recorder, soap)

        result = cli_runner.invoke(
            app,
            ["--json", "--quiet", "find", "managed_objects", "--filter", "a/name.cn.cust", "--per-page", "10"],
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [{"id": "1"}, {"id": "2"}]

        params = recorder.requests[0].url.params
        assert params["filter"] == "a/name.cn.cust"
        assert params["perPage"] == "10"

    def test_find_multiple_filters(self, cli_runner, configured: Path, tmp_path: Path, monkeypatch, soap) -> None:
        recorder = Recorder()
        _patch_client(monkeypatch, tmp_path, recorder, soap)

        result = cli_runner.invoke(
            app,
            ["--quiet", "find", "alerts", "--filter", "a/importance.eq.2", "--filter", "r/managed_object.eq.5|6"],
        )
        assert result.exit_code == 0, result.output
        assert recorder.requests[0].url.params.get_list("filter[]") == [
            "a/importance.eq.2",
            "r/managed_object.eq.5|6",
        ]

    def test_invalid_filter(self, cli_runner, configured: Path) -> None:
        result = cli_runner.invoke(app, ["find", "alerts", "--filter", "nonsense"])
        assert result.exit_code == 2

    def test_get_api_error(self, cli_runner, configured: Path, tmp_path: Path, monkeypatch, soap) -> None:
        body = {"errors": [{"title": "Not Found"}]}
        recorder = Recorder(lambda r: httpx.Response(404, json=body))
        _patch_client(monkeypatch, tmp_path, recorder, soap)

        result = cli_runner.invoke(app, ["--no-color", "get", "alerts", "99"])
        assert result.exit_code == 4
        assert "status code: 404" in result.output
        assert "Not Found" in result.output

    def test_get_transport_error(self, cli_runner, configured: Path, tmp_path: Path, monkeypatch, soap) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        _patch_client(monkeypatch, tmp_path, Recorder(handler), soap)
        result = cli_runner.invoke(app, ["get", "alerts", "99"])
        assert result.exit_code == 6


class TestTrafficCommands:
    def test_graph_writes_png(self, cli_runner, configured: Path, tmp_path: Path, monkeypatch, soap) -> None:
        _patch_client(monkeypatch, tmp_path, Recorder(), soap)
        out = tmp_path / "peer.png"

        result = cli_runner.invoke(app, ["graph", "peer", "12", "--output", str(out), "--title", "Transit"])
        assert result.exit_code == 0, result.output
        assert out.read_bytes() == PNG_BYTES
        operation, params = soap.calls[0]
        assert operation == "getTrafficGraph"
        assert "<title>Transit</title>" in params["graph"]

    def test_traffic_over_web_services(self, cli_runner, configured: Path, tmp_path: Path, monkeypatch, soap) -> None:
        recorder = Recorder(lambda r: httpx.Response(200, content=b"<peakflow><traffic/></peakflow>"))
        _patch_client(monkeypatch, tmp_path, recorder, soap)

        result = cli_runner.invoke(app, ["traffic", "interface", "7", "--source", "ws"])
        assert result.exit_code == 0, result.output
        assert "<traffic />" in result.stdout
        assert 'value="7"' in recorder.requests[0].url.params["query"]
        assert soap.calls == []

    def test_cli_run(self, cli_runner, configured: Path, tmp_path: Path, monkeypatch, soap) -> None:
        _patch_client(monkeypatch, tmp_path, Recorder(), soap)
        result = cli_runner.invoke(app, ["cli-run", "system uptime", "--timeout", "5"])
        assert result.exit_code == 0, result.output
        assert "uptime: 10 days" in result.stdout
        assert soap.calls == [("cliRun", {"command": "system uptime", "timeout": 5})]


class TestCacheCommands:
    def test_stats_and_clear(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--json", "cache", "stats"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["size"] == 0

        result = cli_runner.invoke(app, ["cache", "clear"])
        assert result.exit_code == 0
        assert "Cache cleared" in result.output
