"""Reconcile a freshly generated collection with the previously published one.

Regeneration must not destroy what people curated by hand in Postman:
descriptions, extra headers, auth settings, test scripts. :func:`reconcile`
merges the two trees level by level:

* Sibling nodes are matched by ``name``. When a prior sibling list holds the
  same name twice, the later one wins the match.
* Fresh nodes come first, in their fresh order. A matched folder has its
  children merged recursively.
* For every matched node, each dotted path in ``preserve_fields`` whose value
  is present in the prior node is copied over the merged node, creating
  missing containers on the way.
* Prior nodes with no fresh counterpart are appended after the fresh ones.
  Routes that disappeared are kept, never deleted.

Documents are plain JSON-compatible dicts so that keys the generator knows
nothing about survive untouched. Inputs are never mutated and the result
depends only on the arguments, so reconciling twice is a no-op.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from typing import Any, Optional

Document = dict[str, Any]

_MISSING = object()


def reconcile(
    fresh: Mapping[str, Any],
    prior: Optional[Mapping[str, Any]],
    preserve_fields: Iterable[str],
    enabled: bool = True,
) -> Document:
    """Merge *fresh* with *prior*, keeping curated fields from *prior*.

    Args:
        fresh: The collection document just produced by the assembler.
        prior: The previously published document, or ``None`` when there is
            none (first run, or it could not be obtained).
        preserve_fields: Dotted paths relative to each node
            (``request.description``, ``event`` ...).
        enabled: When false, *fresh* is returned as is.

    Returns:
        A new document. Everything outside the top-level ``item`` list comes
        from *fresh*.
    """
    merged = copy.deepcopy(dict(fresh))
    if not enabled or prior is None:
        return merged

    merged["item"] = merge_items(
        merged.get("item") or [],
        prior.get("item") or [],
        list(preserve_fields),
    )
    return merged


def merge_items(
    fresh_items: list[Any],
    prior_items: list[Any],
    preserve_fields: list[str],
) -> list[Any]:
    """Merge two sibling lists. See the module docstring for the rules."""
    remaining: dict[str, Any] = {}
    unnamed: list[Any] = []
    for node in prior_items:
        name = _node_name(node)
        if name is None:
            unnamed.append(node)
        else:
            remaining[name] = node

    merged = []
    for node in fresh_items:
        name = _node_name(node)
        if name is not None and name in remaining:
            merged.append(merge_node(node, remaining.pop(name), preserve_fields))
        else:
            merged.append(copy.deepcopy(node))

    merged.extend(copy.deepcopy(node) for node in remaining.values())
    merged.extend(copy.deepcopy(node) for node in unnamed)
    return merged


def merge_node(
    fresh_node: Mapping[str, Any],
    prior_node: Mapping[str, Any],
    preserve_fields: list[str],
) -> Document:
    """Merge one matched pair of nodes."""
    merged = copy.deepcopy(dict(fresh_node))

    if isinstance(fresh_node.get("item"), list):
        prior_children = prior_node.get("item")
        merged["item"] = merge_items(
            fresh_node["item"],
            prior_children if isinstance(prior_children, list) else [],
            preserve_fields,
        )

    for path in preserve_fields:
        value = get_path(prior_node, path)
        if value is not None:
            set_path(merged, path, copy.deepcopy(value))

    return merged


def get_path(document: Any, path: str) -> Any:
    """Read a dotted *path* from nested mappings.

    Returns ``None`` when any segment is missing or crosses a non-mapping.
    """
    current = document
    for segment in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(segment, _MISSING)
        if current is _MISSING:
            return None
    return current


def set_path(document: dict[str, Any], path: str, value: Any) -> None:
    """Write *value* at a dotted *path*, replacing non-dict intermediates with ``{}``."""
    segments = path.split(".")
    current = document
    for segment in segments[:-1]:
        child = current.get(segment)
        if not isinstance(child, dict):
            child = {}
            current[segment] = child
        current = child
    current[segments[-1]] = value


def _node_name(node: Any) -> Optional[str]:
    if isinstance(node, Mapping):
        name = node.get("name")
        if isinstance(name, str):
            return name
    return None
