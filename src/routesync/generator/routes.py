"""Route filtering and grouping.

Decides which of the application's routes make it into the collection and
which top-level folder each one lands in. The pipeline, applied in order:

1. **Prefix** -- when :attr:`~routesync.models.RoutesConfig.prefix` is set,
   only URIs starting with it are kept.
2. **Exclude** -- URIs matching any glob in ``exclude`` are dropped. ``*``
   matches any run of characters (slashes included) and ``?`` exactly one;
   the pattern must match the whole URI.
3. **Middleware** -- when ``middleware`` is non-empty, a route must run at
   least one of the listed middleware.

Surviving routes are then grouped by controller, by first URI segment, or
into a single folder, and the groups are sorted by name.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable

from routesync.models import GroupBy, RouteDescriptor, RoutesConfig

ALL_ROUTES_GROUP = "All Routes"
NO_CONTROLLER_GROUP = "Other"
ROOT_GROUP = "Root"


def filter_routes(routes: Iterable[RouteDescriptor], config: RoutesConfig) -> list[RouteDescriptor]:
    """Return the routes kept by *config*, in their original order."""
    return [route for route in routes if should_include(route, config)]


def should_include(route: RouteDescriptor, config: RoutesConfig) -> bool:
    """Check a single route against the prefix, exclude and middleware filters."""
    uri = _normalize_uri(route.uri)

    prefix = config.prefix.lstrip("/")
    if prefix and not uri.startswith(prefix):
        return False

    for pattern in config.exclude:
        if matches_glob(pattern.lstrip("/"), uri):
            return False

    if config.middleware:
        if not set(config.middleware).intersection(route.middleware):
            return False

    return True


def matches_glob(pattern: str, value: str) -> bool:
    """Match *value* against a ``*`` / ``?`` wildcard *pattern* (whole string)."""
    if pattern == value:
        return True
    return _glob_regex(pattern).fullmatch(value) is not None


@functools.lru_cache(maxsize=256)
def _glob_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def short_type_name(qualified: str) -> str:
    """Last component of a namespaced class name (``App\\Http\\UserController`` -> ``UserController``)."""
    parts = [part for part in re.split(r"[\\.:]+", qualified) if part]
    return parts[-1] if parts else qualified


def group_key(route: RouteDescriptor, group_by: GroupBy) -> str:
    """Folder name for *route* under the *group_by* policy."""
    if group_by == GroupBy.CONTROLLER:
        controller = route.controller
        if controller:
            return short_type_name(controller)
        return NO_CONTROLLER_GROUP

    if group_by == GroupBy.PREFIX:
        first = _normalize_uri(route.uri).split("/")[0]
        if not first:
            return ROOT_GROUP
        return first[0].upper() + first[1:]

    return ALL_ROUTES_GROUP


def group_routes(
    routes: Iterable[RouteDescriptor],
    group_by: GroupBy,
) -> list[tuple[str, list[RouteDescriptor]]]:
    """Group routes into ``(folder name, routes)`` pairs sorted by folder name.

    Routes keep their relative order inside each group. With
    :attr:`GroupBy.NONE` a single ``"All Routes"`` group is always returned,
    even when there are no routes.
    """
    routes = list(routes)
    if group_by == GroupBy.NONE:
        return [(ALL_ROUTES_GROUP, routes)]

    grouped: dict[str, list[RouteDescriptor]] = {}
    for route in routes:
        grouped.setdefault(group_key(route, group_by), []).append(route)
    return sorted(grouped.items(), key=lambda pair: pair[0])


def _normalize_uri(uri: str) -> str:
    return uri.strip().lstrip("/")
