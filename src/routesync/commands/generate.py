"""Generate, push and routes commands.

``routesync generate`` runs one generation cycle (see
:mod:`routesync.pipeline`) and is the command git hooks and CI call.
``routesync push`` publishes an already saved collection and
``routesync routes`` previews which routes would be included.
"""

from __future__ import annotations

from contextlib import ExitStack
from typing import Optional

import typer

from routesync.exceptions import ConfigError, InvalidUsageError
from routesync.models import GroupBy
from routesync.output import debug, info, print_data, print_table, success, suggest, warning


def generate_command(
    routes: Optional[str] = typer.Option(
        None, "--routes", help="Route manifest (file, URL, or '-' for stdin)."
    ),
    rules: Optional[str] = typer.Option(
        None, "--rules", help="Validation rule manifest (file or URL)."
    ),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Settings file (default: ./routesync.yaml)."
    ),
    group_by: Optional[GroupBy] = typer.Option(
        None, "--group-by", help="Folder grouping: controller, prefix or none."
    ),
    push: Optional[bool] = typer.Option(
        None, "--push/--no-push", help="Publish to Postman (default: remote.auto_push)."
    ),
    no_merge: bool = typer.Option(
        False, "--no-merge", help="Do not merge with the previous collection."
    ),
    to_stdout: bool = typer.Option(
        False, "--stdout", help="Print the collection instead of saving it."
    ),
) -> None:
    """Generate the collection from the current routes.

    The fresh collection is merged with the previously published one so
    that curated descriptions, headers, auth and scripts survive, then
    saved under ``storage.storage_path`` and optionally pushed.

    Example::

        routesync generate
        routesync generate --routes routes.json --rules rules.json --push
        php artisan route:list --json | routesync generate --routes - --stdout
    """
    from routesync.commands.common import (
        build_client,
        route_source,
        rule_provider,
        settings_from_options,
    )
    from routesync.pipeline import run_cycle
    from routesync.storage import CollectionStore, to_json

    settings = settings_from_options(
        config,
        sources__routes=routes,
        sources__rules=rules,
        routes__group_by=group_by.value if group_by else None,
        merge__enabled=False if no_merge else None,
    )
    do_push = settings.remote.auto_push if push is None else push
    wants_remote_prior = bool(
        settings.merge.enabled
        and settings.merge.download_before_update
        and settings.remote.collection_id
    )

    with ExitStack() as stack:
        client = None
        if do_push or wants_remote_prior:
            try:
                client = stack.enter_context(build_client(settings))
            except ConfigError as exc:
                if do_push:
                    raise
                warning(f"Not downloading the published collection: {exc}")

        store = None if to_stdout else CollectionStore.from_config(settings.storage)
        debug(f"Reading routes from {settings.sources.routes}")
        result = run_cycle(
            settings,
            route_source(settings),
            rule_provider(settings),
            store,
            client,
            push=do_push,
        )

    if to_stdout:
        print_data(to_json(result.document).rstrip("\n"))

    if result.prior_source:
        info(f"Merged with the {result.prior_source} collection")
    success(f"Generated {result.request_count} request(s)")
    if result.saved_path is not None:
        info(f"Saved: {result.saved_path}")
    if result.sync is not None:
        success(f"Collection {result.sync.action} in Postman: {result.sync.collection_id}")
        if result.sync.action == "created" and result.sync.collection_id:
            suggest(
                "Pin it with ROUTESYNC_COLLECTION_ID or remote.collection_id: "
                f"{result.sync.collection_id}"
            )


def push_command(
    file: Optional[str] = typer.Argument(
        None, help="Collection file to publish (default: the latest saved one)."
    ),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Settings file (default: ./routesync.yaml)."
    ),
) -> None:
    """Publish a saved collection to Postman.

    Example::

        routesync push
        routesync push storage/postman/api-collection.postman_collection.json
    """
    from routesync.commands.common import build_client, settings_from_options
    from routesync.storage import CollectionStore

    settings = settings_from_options(config)
    store = CollectionStore.from_config(settings.storage)

    path = file or store.latest_path()
    if path is None:
        raise InvalidUsageError(
            f"No saved collection in {store.root}; run 'routesync generate' first"
        )
    document = store.load(path)

    with build_client(settings) as client:
        result = client.sync(document, settings.remote.collection_id)

    success(f"Collection {result.action} in Postman: {result.collection_id}")


def routes_command(
    routes: Optional[str] = typer.Option(
        None, "--routes", help="Route manifest (file, URL, or '-' for stdin)."
    ),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Settings file (default: ./routesync.yaml)."
    ),
    group_by: Optional[GroupBy] = typer.Option(
        None, "--group-by", help="Folder grouping: controller, prefix or none."
    ),
) -> None:
    """List the routes that would be included, with their folder.

    Example::

        routesync routes
        routesync routes --group-by prefix --json
    """
    from routesync.commands.common import route_source, settings_from_options
    from routesync.generator.assembler import primary_method, request_name
    from routesync.generator.routes import filter_routes, group_routes

    settings = settings_from_options(
        config,
        sources__routes=routes,
        routes__group_by=group_by.value if group_by else None,
    )
    kept = filter_routes(route_source(settings).list_routes(), settings.routes)

    rows = []
    for folder, members in group_routes(kept, settings.routes.group_by):
        for route in members:
            rows.append([folder, primary_method(route.methods), route.uri, request_name(route)])

    print_table(["Folder", "Method", "URI", "Request"], rows, title="Routes")
    info(f"{len(rows)} route(s)")
