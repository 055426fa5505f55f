"""Tests for the CLI output manager: stream routing, formats, and logging setup."""

from __future__ import annotations

import json
import logging

import pytest

from sightline_api.output import (
    OutputFormat,
    OutputManager,
    configure_logging,
    get_output,
    info,
    reset_output,
    set_output,
)


class TestFormats:
    def test_auto_resolves_to_plain_when_piped(self) -> None:
        assert OutputManager().format == OutputFormat.PLAIN

    def test_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.JSON).format_response([{"id": "1"}])
        out = capsys.readouterr()
        assert json.loads(out.out) == [{"id": "1"}]
        assert out.err == ""

    def test_plain_records(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response(
            [{"id": "1", "type": "alert"}, {"id": "2", "type": "alert"}]
        )
        assert capsys.readouterr().out.splitlines() == ["1\talert", "2\talert"]

    def test_plain_mapping(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(format=OutputFormat.PLAIN).format_response({"hostname": "leader"})
        assert capsys.readouterr().out == "hostname\tleader\n"


class TestDiagnostics:
    def test_messages_go_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        output = OutputManager(no_color=True)
        output.info("fetching")
        output.warning("slow")
        output.error("failed")
        out = capsys.readouterr()
        assert out.out == ""
        assert out.err.splitlines() == ["fetching", "Warning: slow", "Error: failed"]

    def test_quiet_keeps_errors(self, capsys: pytest.CaptureFixture[str]) -> None:
        output = OutputManager(no_color=True, quiet=True)
        output.info("fetching")
        output.success("done")
        output.error("failed")
        assert capsys.readouterr().err == "Error: failed\n"

    def test_debug_needs_verbose(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager(no_color=True).debug("hidden")
        OutputManager(no_color=True, verbose=True).debug("shown")
        assert capsys.readouterr().err == "[debug] shown\n"

    def test_brackets_are_not_markup(self, capsys: pytest.CaptureFixture[str]) -> None:
        OutputManager().error("filter[] rejected")
        assert "filter[] rejected" in capsys.readouterr().err

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        OutputManager().warning("plain")
        assert capsys.readouterr().err == "Warning: plain\n"


class TestGlobalOutput:
    def test_module_helpers_use_installed_manager(self, capsys: pytest.CaptureFixture[str]) -> None:
        manager = OutputManager(no_color=True, quiet=True)
        set_output(manager)
        assert get_output() is manager
        info("suppressed")
        assert capsys.readouterr().err == ""

    def test_reset_creates_default(self) -> None:
        set_output(OutputManager(quiet=True))
        reset_output()
        assert get_output().is_quiet is False


class TestConfigureLogging:
    def test_levels(self) -> None:
        logger = logging.getLogger("sightline_api")
        configure_logging(verbose=True)
        assert logger.level == logging.DEBUG
        configure_logging()
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
