"""Collections commands -- inspect and manage collections in Postman.

Provides the ``routesync collections`` sub-command group. Every command
resolves the API key from ``remote.api_key_source``.
"""

from __future__ import annotations

from typing import Optional

import typer

from routesync.exceptions import AuthError
from routesync.output import error, info, print_table, success


collections_app = typer.Typer(no_args_is_help=True)


@collections_app.command("list")
def collections_list(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Settings file (default: ./routesync.yaml)."
    ),
) -> None:
    """List the collections visible to the API key.

    Scoped to ``remote.workspace_id`` when one is configured.

    Example::

        routesync collections list
        routesync collections list --json
    """
    from routesync.commands.common import build_client, settings_from_options

    settings = settings_from_options(config)
    with build_client(settings) as client:
        collections = client.list()

    rows = [
        [str(c.get("name", "")), str(c.get("uid") or c.get("id", "")), str(c.get("updatedAt", ""))]
        for c in collections
    ]
    print_table(["Name", "UID", "Updated"], rows, title="Collections")
    info(f"{len(rows)} collection(s)")


@collections_app.command("delete")
def collections_delete(
    collection_id: str = typer.Argument(help="Collection id or uid."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation."),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Settings file (default: ./routesync.yaml)."
    ),
) -> None:
    """Delete a collection from Postman.

    Example::

        routesync collections delete 1234-abcd --yes
    """
    from routesync.commands.common import build_client, settings_from_options

    if not yes and not typer.confirm(f"Delete collection {collection_id}?"):
        info("Cancelled.")
        raise typer.Exit()

    settings = settings_from_options(config)
    with build_client(settings) as client:
        deleted = client.delete(collection_id)

    if not deleted:
        error(f"Collection {collection_id} not found")
        raise typer.Exit(code=4)
    success(f"Deleted collection {collection_id}")


@collections_app.command("check-key")
def collections_check_key(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Settings file (default: ./routesync.yaml)."
    ),
) -> None:
    """Check that the configured API key is accepted by Postman.

    Example::

        routesync collections check-key
    """
    from routesync.commands.common import build_client, settings_from_options

    settings = settings_from_options(config)
    with build_client(settings) as client:
        valid, message = client.validate_api_key()

    if not valid:
        raise AuthError(f"API key rejected: {message}")
    success("API key is valid")
