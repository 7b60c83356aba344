"""One generation cycle: assemble, reconcile, save, publish.

:func:`run_cycle` is the glue between the collection core and the outside
world::

    routes ─► assemble ─► reconcile(prior) ─► save ─► (push)

The prior document is read before anything is written. It comes from the
Postman API when a collection id is configured and
``merge.download_before_update`` is set, otherwise from the newest locally
saved file. Failing to obtain it is not fatal: the cycle logs a warning and
continues without merging.

Nothing is saved or published unless a complete document was produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from routesync.client.postman import PostmanClient, SyncResult
from routesync.exceptions import InvalidUsageError, RoutesyncError
from routesync.generator.assembler import CollectionAssembler
from routesync.merge.reconciler import reconcile
from routesync.models import GroupBy, Settings
from routesync.sources.routes import RouteSource
from routesync.sources.rules import RuleProvider
from routesync.storage import CollectionStore

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """What a generation cycle produced."""

    document: dict[str, Any]
    request_count: int
    saved_path: Optional[Path] = None
    prior_source: Optional[str] = None
    """``"remote"``, ``"local"``, or ``None`` when nothing was merged."""
    sync: Optional[SyncResult] = None


def generate_collection(
    settings: Settings,
    source: RouteSource,
    provider: Optional[RuleProvider] = None,
    group_by: Optional[GroupBy] = None,
) -> dict[str, Any]:
    """Assemble a fresh collection document from the current routes."""
    routes = source.list_routes()
    collection = CollectionAssembler(settings, provider).assemble(routes, group_by)
    return collection.to_document()


def load_prior(
    settings: Settings,
    store: Optional[CollectionStore],
    client: Optional[PostmanClient] = None,
) -> tuple[Optional[dict[str, Any]], Optional[str]]:
    """Obtain the previously published document.

    Returns:
        ``(document, source)``; ``(None, None)`` when there is no prior or it
        could not be read.
    """
    collection_id = settings.remote.collection_id
    if client is not None and collection_id and settings.merge.download_before_update:
        try:
            prior = client.fetch(collection_id)
        except RoutesyncError as exc:
            logger.warning("Could not download collection %s: %s", collection_id, exc)
            return None, None
        if prior is None:
            logger.warning("Collection %s not found remotely; not merging", collection_id)
            return None, None
        return prior, "remote"

    if store is None:
        return None, None
    try:
        prior = store.load_latest()
    except RoutesyncError as exc:
        logger.warning("Could not read the last saved collection: %s", exc)
        return None, None
    if prior is None:
        return None, None
    return prior, "local"


def run_cycle(
    settings: Settings,
    source: RouteSource,
    provider: Optional[RuleProvider],
    store: Optional[CollectionStore],
    client: Optional[PostmanClient] = None,
    push: bool = False,
    group_by: Optional[GroupBy] = None,
) -> CycleResult:
    """Run one full generation cycle.

    Args:
        settings: Effective settings.
        source: Where routes come from.
        provider: Where validation rules come from.
        store: Local collection store; ``None`` skips saving (and local priors).
        client: An open :class:`PostmanClient`, needed for remote priors and
            for *push*.
        push: Publish the merged document.
        group_by: Overrides ``routes.group_by``.

    Raises:
        InvalidUsageError: If *push* is requested without a client.
    """
    if push and client is None:
        raise InvalidUsageError("Publishing requires a Postman API client")

    fresh = generate_collection(settings, source, provider, group_by)

    merge = settings.merge
    prior, prior_source = (None, None)
    if merge.enabled:
        prior, prior_source = load_prior(settings, store, client)

    document = reconcile(fresh, prior, merge.preserve_fields, enabled=merge.enabled)
    result = CycleResult(
        document=document,
        request_count=count_requests(document),
        prior_source=prior_source,
    )

    if store is not None:
        result.saved_path = store.save(document)
    if push and client is not None:
        result.sync = client.sync(document, settings.remote.collection_id)
    return result


def count_requests(document: dict[str, Any]) -> int:
    """Number of request nodes anywhere in the tree."""
    total = 0
    stack = list(document.get("item") or [])
    while stack:
        node = stack.pop()
        if not isinstance(node, dict):
            continue
        if isinstance(node.get("item"), list):
            stack.extend(node["item"])
        elif "request" in node:
            total += 1
    return total
