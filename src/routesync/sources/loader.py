"""Load route and rule manifests from a URL, local file, or stdin.

Manifests are exported by the host application (for example with
``php artisan route:list --json``) and may be JSON or YAML. Format is
detected from the file extension or response content type, falling back to
trying JSON first and YAML second.

The public function is :func:`load_document`. Its result is handed to
:mod:`routesync.sources.routes` or :mod:`routesync.sources.rules`, which
check the shape.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Union

import httpx
import yaml

from routesync.exceptions import ManifestError

Document = Union[dict[str, Any], list[Any]]


def load_document(source: str) -> Document:
    """Load a manifest from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The parsed manifest: a mapping or a list.

    Raises:
        ManifestError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def _load_from_stdin() -> Document:
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise ManifestError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise ManifestError("No input received from stdin")

    return _parse_content(content, hint="stdin")


def _load_from_url(url: str) -> Document:
    """Fetch a manifest over HTTP(S).

    Raises:
        ManifestError: If the URL cannot be fetched or content cannot be parsed.
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise ManifestError(
            f"HTTP {exc.response.status_code} fetching manifest from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise ManifestError(f"Failed to fetch manifest from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> Document:
    """Load a manifest from a local ``.json``, ``.yaml`` or ``.yml`` file.

    Raises:
        ManifestError: If the file cannot be read or content cannot be parsed.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise ManifestError(f"Manifest file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Failed to read manifest {path}: {exc}") from exc

    if not content.strip():
        raise ManifestError(f"Manifest file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> Document:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.

    Raises:
        ManifestError: If the content parses to neither an object nor a list.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            return _check_shape(json.loads(content))
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise ManifestError(f"Invalid JSON: {exc}") from exc

    try:
        return _check_shape(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        yaml_error = exc

    msg = "Failed to parse manifest as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise ManifestError(msg)


def _check_shape(result: Any) -> Document:
    if not isinstance(result, (dict, list)):
        raise ManifestError(
            "Manifest must be a JSON/YAML object or list (got "
            f"{type(result).__name__ if result is not None else 'empty document'})"
        )
    return result
