"""Configuration loading with XDG paths, atomic writes, and env overrides.

This module handles the persistent configuration of sightline_api:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.sightline/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **Config file** -- A single ``config.json`` deserialised into a
  :class:`~sightline_api.models.SightlineConfig`. Managed via
  :func:`load_config` and :func:`save_config`.
* **Environment overrides** -- ``SIGHTLINE_*`` variables take precedence
  over the file (see :data:`ENV_OVERRIDES`).

File writes use a temp-file-then-rename strategy (:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from sightline_api.exceptions import ConfigError
from sightline_api.models import SightlineConfig

_APP_NAME = "sightline"
_CONFIG_FILENAME = "config.json"

#: Environment variable -> config key.
ENV_OVERRIDES = {
    "SIGHTLINE_HOSTNAME": "hostname",
    "SIGHTLINE_WSKEY": "wskey",
    "SIGHTLINE_RESTTOKEN": "resttoken",
    "SIGHTLINE_USERNAME": "username",
    "SIGHTLINE_PASSWORD": "password",
    "SIGHTLINE_CACHE": "cache",
    "SIGHTLINE_CACHE_TTL": "cache_ttl",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/sightline/`` (default ``~/.config/sightline/``).
    On macOS/Windows: ``~/.sightline/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the response cache directory, creating it if necessary.

    Cached responses can be safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/sightline/`` (default ``~/.cache/sightline/``).
    On macOS/Windows: ``~/.sightline/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_path() -> Path:
    """Path to the default config file."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Load / save ---


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for env_var, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            overrides[key] = value
    return overrides


def load_config(path: Optional[Path] = None) -> SightlineConfig:
    """Load the configuration file and apply environment overrides.

    Precedence (high to low):
        1. ``SIGHTLINE_*`` environment variables
        2. The config file (*path*, or ``config.json`` in :func:`get_config_dir`)
        3. Model defaults

    A missing file is not an error as long as the environment supplies the
    required keys.

    Args:
        path: Explicit config file path.

    Returns:
        The validated :class:`~sightline_api.models.SightlineConfig`.

    Raises:
        ConfigError: If the file contains invalid JSON or the merged
            settings fail validation.
    """
    path = path if path is not None else config_path()

    data: dict[str, Any] = {}
    if path.is_file():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, ValueError) as exc:
            raise ConfigError(f"Invalid config at {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid config at {path}: expected a JSON object")

    data.update(_env_overrides())

    try:
        return SightlineConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid Sightline configuration ({path}): {exc}") from exc


def save_config(config: SightlineConfig, path: Optional[Path] = None) -> Path:
    """Persist *config* atomically and return the path written."""
    path = path if path is not None else config_path()
    data = config.model_dump(mode="json")
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path
