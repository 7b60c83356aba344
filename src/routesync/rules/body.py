"""Example request-body synthesis.

Assembles the interpreted fields of one handler into a nested payload.
Dot-notation paths become nested objects (``address.city`` ->
``{"address": {"city": ...}}``), and array segments (``*`` or a number) all
collapse onto the single key ``"0"`` so that a list of items is represented by
one example element. :func:`listify` turns such index-keyed objects back into
JSON arrays when the body is rendered.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from routesync.models import FieldDescriptor

_NUMERIC = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*")


def normalize_segment(segment: str) -> str:
    """Map wildcard and numeric path segments to ``"0"``."""
    if segment == "*" or _NUMERIC.fullmatch(segment):
        return "0"
    return segment


def set_path(tree: dict[str, Any], path: str, value: Any) -> None:
    """Write *value* into *tree* at the dot-notation *path*.

    Intermediate segments that are missing, or hold a scalar, are replaced by
    a new object; a list found there is re-keyed by index so its elements
    survive. A leaf never replaces an object already built by a longer path,
    so ``items`` declared after ``items.*.sku`` keeps the nested example.
    """
    segments = [normalize_segment(s) for s in path.split(".")]
    current = tree
    for segment in segments[:-1]:
        child = current.get(segment)
        if isinstance(child, list):
            child = {str(index): item for index, item in enumerate(child)}
            current[segment] = child
        elif not isinstance(child, dict):
            child = {}
            current[segment] = child
        current = child

    leaf = segments[-1]
    if isinstance(current.get(leaf), dict) and not isinstance(value, dict):
        return
    current[leaf] = value


def synthesize(fields: Mapping[str, FieldDescriptor], required_only: bool = False) -> dict[str, Any]:
    """Build an example body from interpreted fields.

    Fields are placed in the mapping's order. With ``required_only`` the
    optional fields are skipped entirely.

    Args:
        fields: Interpreted fields keyed by dot-notation path.
        required_only: Leave out fields that are not required.

    Returns:
        A fresh nested dict holding the admitted fields' examples.
    """
    body: dict[str, Any] = {}
    for path, field in fields.items():
        if required_only and not field.required:
            continue
        set_path(body, field.path or path, field.example)
    return body


def listify(value: Any) -> Any:
    """Convert objects keyed ``"0"`` .. ``"n-1"`` into lists, recursively.

    This is how an array example such as ``{"items": {"0": {...}}}`` is
    rendered as ``{"items": [{...}]}`` in the collection's raw JSON body.
    """
    if isinstance(value, dict):
        converted = {key: listify(item) for key, item in value.items()}
        if converted and list(converted) == [str(i) for i in range(len(converted))]:
            return list(converted.values())
        return converted
    if isinstance(value, list):
        return [listify(item) for item in value]
    return value
