"""Typer application and CLI entry point for sightline_api.

The ``sightline`` command exposes the library's read paths for quick
inspection of a leader from the shell:

* ``get`` / ``find`` -- REST records by ID or by search.
* ``traffic`` / ``graph`` -- XML traffic data and PNG graphs through the
  SOAP (default) or web-services API.
* ``cli-run`` -- a CLI command on the leader, over SOAP.
* ``config show`` and ``cache clear|stats`` -- local housekeeping.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. Library errors are reported on stderr and mapped to the
exit code of the :class:`~sightline_api.exceptions.SightlineError` raised.

See Also:
    :mod:`sightline_api.config`: Config file and environment resolution.
    :mod:`sightline_api.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import re
import signal
import sys
import xml.etree.ElementTree as ET
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Optional

import typer

from sightline_api import __version__
from sightline_api.cache import ResponseCache
from sightline_api.client import SightlineClient
from sightline_api.config import get_cache_dir, get_config_dir, load_config
from sightline_api.documents import build_query_document
from sightline_api.exceptions import SightlineError
from sightline_api.exit_codes import EXIT_GENERIC_FAILURE
from sightline_api.models import QueryFilter, RestFilter
from sightline_api.output import (
    OutputFormat,
    OutputManager,
    configure_logging,
    error,
    format_response,
    info,
    print_data,
    set_output,
    success,
)

app = typer.Typer(
    name="sightline",
    help="Query an Arbor/NETSCOUT Sightline leader.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
config_app = typer.Typer(no_args_is_help=True)
cache_app = typer.Typer(no_args_is_help=True)
app.add_typer(config_app, name="config", help="Configuration management.")
app.add_typer(cache_app, name="cache", help="Response cache management.")

_FILTER_RE = re.compile(r"^(?P<type>\w+)/(?P<field>[^.]+)\.(?P<operator>\w+)\.(?P<search>.*)$")
_SECRET_KEYS = ("wskey", "resttoken", "password")


class TrafficKind(str, Enum):
    peer = "peer"
    interface = "interface"
    aspath = "aspath"


class SourceName(str, Enum):
    soap = "soap"
    ws = "ws"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"sightline {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Config file (default: config.json in the config directory)."
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the response cache."),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~sightline_api.output.OutputManager`, routes
    library logging to stderr, and stores shared options in ``ctx.obj``.
    """
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["no_cache"] = no_cache


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


@contextmanager
def _reported_errors() -> Iterator[None]:
    """Report :class:`SightlineError` on stderr and exit with its code."""
    try:
        yield
    except SightlineError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc


@contextmanager
def _client(ctx: typer.Context) -> Iterator[SightlineClient]:
    obj = ctx.obj or {}
    config = load_config(obj.get("config_path"))
    if obj.get("no_cache"):
        config = config.model_copy(update={"cache": False})
    with SightlineClient(config) as client:
        yield client


def _parse_filter(text: str) -> RestFilter:
    """Parse ``type/field.operator.search``; ``|`` separates search values."""
    match = _FILTER_RE.match(text)
    if match is None:
        raise typer.BadParameter(
            f"Invalid filter {text!r}, expected type/field.operator.search", param_hint="--filter"
        )
    parts = match.groupdict()
    search: Any = parts["search"]
    if "|" in search:
        search = search.split("|")
    return RestFilter(type=parts["type"], field=parts["field"], operator=parts["operator"], search=search)


def _source(client: SightlineClient, source: SourceName):
    return client.ws if source == SourceName.ws else client.soap


# ------------------------------------------------------------------ #
# REST
# ------------------------------------------------------------------ #


@app.command("get")
def get_command(
    ctx: typer.Context,
    endpoint: str = typer.Argument(help="Endpoint name, e.g. managed_objects."),
    sightline_id: str = typer.Argument(help="Object ID."),
) -> None:
    """Get one REST object by ID.

    Example::

        sightline get managed_objects 12
    """
    with _reported_errors(), _client(ctx) as client:
        format_response(client.rest.get_by_id(endpoint, sightline_id))


@app.command("find")
def find_command(
    ctx: typer.Context,
    endpoint: str = typer.Argument(help="Endpoint name, e.g. alerts."),
    filters: Optional[list[str]] = typer.Option(
        None, "--filter", help="Filter as type/field.operator.search, repeatable."
    ),
    per_page: int = typer.Option(50, "--per-page", min=1, help="Records per page."),
    committed: bool = typer.Option(False, "--committed", help="Read the committed configuration."),
) -> None:
    """Find every REST object matching the filters, across all pages.

    Example::

        sightline find managed_objects --filter a/name.cn.customer
    """
    parsed: Any = [_parse_filter(f) for f in filters or []]
    if len(parsed) == 1:
        parsed = parsed[0]
    with _reported_errors(), _client(ctx) as client:
        records = client.rest.find_rest(endpoint, parsed if filters else None, per_page, committed)
        info(f"{len(records)} record(s)")
        format_response(records)


# ------------------------------------------------------------------ #
# Traffic
# ------------------------------------------------------------------ #


@app.command("traffic")
def traffic_command(
    ctx: typer.Context,
    kind: TrafficKind = typer.Argument(help="What the ID refers to."),
    sightline_id: str = typer.Argument(help="Peer or interface ID, or AS path."),
    start: str = typer.Option("7 days ago", "--start", help="Start of the period."),
    end: str = typer.Option("now", "--end", help="End of the period."),
    source: SourceName = typer.Option(SourceName.soap, "--source", help="API to query."),
) -> None:
    """Print the XML traffic data of a peer, interface or AS path."""
    with _reported_errors(), _client(ctx) as client:
        query = build_query_document(
            [QueryFilter(type=kind.value, value=sightline_id, binby=kind == TrafficKind.aspath)],
            start, end,
        )
        root = _source(client, source).get_traffic_xml(query)
        print_data(ET.tostring(root, encoding="unicode"))


@app.command("graph")
def graph_command(
    ctx: typer.Context,
    kind: TrafficKind = typer.Argument(help="What the ID refers to."),
    sightline_id: str = typer.Argument(help="Peer or interface ID, or AS path."),
    output: Path = typer.Option(..., "--output", "-o", help="PNG file to write."),
    title: Optional[str] = typer.Option(None, "--title", help="Graph title."),
    start: str = typer.Option("7 days ago", "--start", help="Start of the period."),
    end: str = typer.Option("now", "--end", help="End of the period."),
    source: SourceName = typer.Option(SourceName.soap, "--source", help="API to query."),
) -> None:
    """Save the traffic graph of a peer, interface or AS path as PNG."""
    with _reported_errors(), _client(ctx) as client:
        reports = client.reports(_source(client, source))
        if kind == TrafficKind.aspath:
            image = reports.get_as_path_traffic_graph(sightline_id, start, end)
        elif kind == TrafficKind.peer:
            image = reports.get_peer_traffic_graph(
                sightline_id, title or f"Peer {sightline_id}", start, end
            )
        else:
            image = reports.get_interface_traffic_graph(
                sightline_id, title or f"Interface {sightline_id}", start, end
            )
        output.write_bytes(image)
        success(f"Wrote {len(image)} bytes to {output}")


@app.command("cli-run")
def cli_run_command(
    ctx: typer.Context,
    command: str = typer.Argument(help="CLI command to run on the leader."),
    timeout: int = typer.Option(20, "--timeout", min=1, help="Command timeout in seconds."),
) -> None:
    """Run a CLI command on the leader over SOAP."""
    with _reported_errors(), _client(ctx) as client:
        print_data(client.soap.cli_run(command, timeout))


# ------------------------------------------------------------------ #
# Config and cache
# ------------------------------------------------------------------ #


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration, with secrets masked."""
    with _reported_errors():
        config = load_config((ctx.obj or {}).get("config_path"))
    data = config.model_dump(mode="json")
    for key in _SECRET_KEYS:
        data[key] = "****"
    info(f"Config directory: {get_config_dir()}")
    format_response(data)


@cache_app.command("clear")
def cache_clear() -> None:
    """Remove every cached response."""
    cache = ResponseCache(get_cache_dir())
    try:
        cache.clear()
    finally:
        cache.close()
    success("Cache cleared.")


@cache_app.command("stats")
def cache_stats() -> None:
    """Show the number of cached responses."""
    cache = ResponseCache(get_cache_dir())
    try:
        format_response(cache.stats())
    finally:
        cache.close()


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``sightline`` console script.

    :class:`~sightline_api.exceptions.SightlineError` instances escaping a
    command cause a clean exit with the error's ``exit_code``. Anything
    else is reported as an unexpected error with a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except SightlineError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
