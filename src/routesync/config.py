"""Configuration management with precedence resolution and atomic writes.

This module handles all persistent configuration for routesync:

* **Project settings** -- ``routesync.yaml`` / ``routesync.yml`` /
  ``routesync.json`` in the working directory (or an explicit path),
  deserialised into a :class:`~routesync.models.Settings`.
* **Precedence resolution** -- :func:`load_settings` layers CLI overrides
  over environment variables over the settings file over model defaults.
* **Credential resolution** -- :func:`resolve_credential` reads the Postman
  API key from an environment variable or a file. The key itself is never
  stored in the settings file.
* **Data directory** -- XDG compliant location for crash logs.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`).
"""

from __future__ import annotations

import copy
import json
import os
import platform
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from routesync.exceptions import ConfigError
from routesync.models import Settings

_APP_NAME = "routesync"

SETTINGS_FILENAMES = ("routesync.yaml", "routesync.yml", "routesync.json")

ENV_OVERRIDES: dict[str, str] = {
    "ROUTESYNC_COLLECTION_ID": "remote.collection_id",
    "ROUTESYNC_WORKSPACE_ID": "remote.workspace_id",
    "ROUTESYNC_BASE_URL": "collection.base_url",
    "ROUTESYNC_PREFIX": "routes.prefix",
    "ROUTESYNC_GROUP_BY": "routes.group_by",
}
"""Environment variable -> dotted settings key."""


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform uses XDG base directories (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/routesync/`` (default
    ``~/.local/share/routesync/``). Elsewhere: ``~/.routesync/logs/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
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
        fd = None  # prevent double-close in finally
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


# --- Settings file ---


def find_settings_file(directory: Optional[Path] = None) -> Optional[Path]:
    """Return the first settings file found in *directory* (default: cwd)."""
    directory = directory or Path.cwd()
    for filename in SETTINGS_FILENAMES:
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    return None


def read_settings_file(path: Path) -> dict[str, Any]:
    """Parse a settings file into a raw dict.

    ``.json`` files are parsed as JSON, everything else as YAML. An empty
    file is an empty mapping.

    Raises:
        ConfigError: If the file is missing, unparsable, or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json":
            data = json.loads(text) if text.strip() else {}
        else:
            data = yaml.safe_load(text) or {}
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid settings file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    return data


def _set_dotted(data: dict[str, Any], dotted: str, value: Any) -> None:
    segments = dotted.split(".")
    current = data
    for segment in segments[:-1]:
        child = current.get(segment)
        if not isinstance(child, dict):
            child = {}
            current[segment] = child
        current = child
    current[segments[-1]] = value


def apply_env_overrides(
    data: Mapping[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    """Return a copy of *data* with ``ROUTESYNC_*`` variables applied.

    Empty variables are ignored.
    """
    environ = os.environ if environ is None else environ
    result = copy.deepcopy(dict(data))
    for variable, dotted in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            _set_dotted(result, dotted, value)
    return result


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Settings:
    """Resolve the effective settings.

    Precedence (high to low):
        1. *overrides* -- dotted keys from CLI flags; ``None`` values are skipped
        2. Environment variables (see :data:`ENV_OVERRIDES`)
        3. The settings file (*config_path*, or one found in the cwd)
        4. Model defaults

    Raises:
        ConfigError: If an explicit *config_path* does not exist, or the
            merged settings fail validation.
    """
    if config_path is not None:
        path: Optional[Path] = Path(config_path)
    else:
        path = find_settings_file()

    data = read_settings_file(path) if path is not None else {}
    data = apply_env_overrides(data)
    for dotted, value in (overrides or {}).items():
        if value is not None:
            _set_dotted(data, dotted, value)

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        source = str(path) if path is not None else "defaults"
        raise ConfigError(f"Invalid settings ({source}): {exc}") from exc


def write_default_settings(path: Path, force: bool = False) -> Path:
    """Write a settings file holding every default value.

    The format follows the file extension (JSON for ``.json``, else YAML).

    Raises:
        ConfigError: If *path* exists and *force* is false.
    """
    if path.exists() and not force:
        raise ConfigError(f"{path} already exists (use --force to overwrite)")

    data = Settings().model_dump(mode="json", by_alias=True)
    if path.suffix.lower() == ".json":
        text = json.dumps(data, indent=2) + "\n"
    else:
        text = yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
    atomic_write(path, text)
    return path


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if not value:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")
