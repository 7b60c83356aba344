"""Route sources -- where the application's route table comes from.

The collection core only needs one read per generation cycle:
:meth:`RouteSource.list_routes`. The built-in :class:`ManifestRouteSource`
reads a route manifest exported by the application. Two entry shapes are
accepted and may be mixed:

* **Native** -- ``uri``, ``methods`` (list), ``name``, ``handler``,
  ``middleware`` (list), and optionally ``parameters``.
* **Laravel** ``route:list --json`` -- ``method`` as ``"GET|HEAD"``,
  ``action`` as ``"App\\Http\\Controllers\\UserController@store"`` or
  ``"Closure"``, and ``middleware`` as a list or a newline-joined string.

The manifest itself is either a list of entries or an object with a
``routes`` list.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from routesync.exceptions import ManifestError
from routesync.models import PathParameter, RouteDescriptor
from routesync.sources.loader import load_document

_PARAMETER = re.compile(r"\{([^}]+)\}")

_CLOSURE_ACTIONS = {"closure", ""}


class RouteSource(ABC):
    """Produces the application's routes for one generation cycle."""

    @abstractmethod
    def list_routes(self) -> list[RouteDescriptor]:
        """Return every registered route, in declaration order."""
        ...


class StaticRouteSource(RouteSource):
    """A route source over an in-memory list, mostly useful for embedding and tests."""

    def __init__(self, routes: list[RouteDescriptor]) -> None:
        self._routes = list(routes)

    def list_routes(self) -> list[RouteDescriptor]:
        return list(self._routes)


class ManifestRouteSource(RouteSource):
    """Reads routes from a JSON/YAML manifest on every :meth:`list_routes` call.

    Nothing is cached across calls, since routes may change between cycles.

    Args:
        source: File path, URL, or ``-`` for stdin.
    """

    def __init__(self, source: str) -> None:
        self.source = source

    def list_routes(self) -> list[RouteDescriptor]:
        return parse_route_manifest(load_document(self.source))


def parse_route_manifest(data: Any) -> list[RouteDescriptor]:
    """Convert a loaded manifest into route descriptors.

    Raises:
        ManifestError: If the manifest is not a list (or ``{"routes": [...]}``)
            or an entry has no ``uri``.
    """
    if isinstance(data, Mapping):
        data = data.get("routes")
    if not isinstance(data, list):
        raise ManifestError("Route manifest must be a list of routes or contain a 'routes' list")

    routes = []
    for index, entry in enumerate(data):
        if not isinstance(entry, Mapping):
            raise ManifestError(f"Route entry #{index} is not an object")
        try:
            routes.append(parse_route_entry(entry))
        except ManifestError as exc:
            raise ManifestError(f"Route entry #{index}: {exc}") from exc
    return routes


def parse_route_entry(entry: Mapping[str, Any]) -> RouteDescriptor:
    """Convert a single native or Laravel-style manifest entry."""
    uri = entry.get("uri")
    if not isinstance(uri, str) or not uri.strip():
        raise ManifestError("missing 'uri'")
    uri = uri.strip().lstrip("/")

    parameters = entry.get("parameters")
    if isinstance(parameters, list):
        path_parameters = [
            PathParameter(name=str(p["name"]), required=bool(p.get("required", True)))
            for p in parameters
            if isinstance(p, Mapping) and p.get("name")
        ]
    else:
        path_parameters = extract_path_parameters(uri)

    try:
        return RouteDescriptor(
            uri=uri,
            methods=_parse_methods(entry.get("methods", entry.get("method"))),
            name=entry.get("name") or None,
            handler=_parse_handler(entry.get("handler", entry.get("action"))),
            middleware=_parse_middleware(entry.get("middleware")),
            parameters=path_parameters,
        )
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ManifestError(f"invalid route ({problems})") from exc


def extract_path_parameters(uri: str) -> list[PathParameter]:
    """Find ``{name}`` and optional ``{name?}`` placeholders in *uri*."""
    parameters = []
    for raw in _PARAMETER.findall(uri):
        parameters.append(PathParameter(name=raw.rstrip("?"), required=not raw.endswith("?")))
    return parameters


def _parse_methods(raw: Any) -> list[str]:
    if isinstance(raw, str):
        methods = raw.split("|")
    elif isinstance(raw, (list, tuple)):
        methods = [str(m) for m in raw]
    else:
        methods = []
    cleaned = [m.strip().upper() for m in methods if m and m.strip()]
    return cleaned or ["GET"]


def _parse_handler(raw: Any) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    handler = raw.strip()
    if handler.lower() in _CLOSURE_ACTIONS:
        return None
    return handler


def _parse_middleware(raw: Any) -> list[str]:
    if isinstance(raw, str):
        items = re.split(r"[\n,]", raw)
    elif isinstance(raw, (list, tuple)):
        items = [str(m) for m in raw]
    else:
        return []
    return [m.strip() for m in items if m.strip()]
