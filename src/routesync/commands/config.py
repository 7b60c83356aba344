"""Config commands -- view and create the project settings file.

Provides the ``routesync config`` sub-command group. Settings live in
``routesync.yaml`` (or ``.yml`` / ``.json``) next to the application.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from routesync.output import format_response, info, success, suggest


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Settings file (default: ./routesync.yaml)."
    ),
) -> None:
    """Show the effective settings.

    Prints the settings file in use, then the settings after environment
    overrides have been applied. The API key itself is never shown, only
    where it is read from.

    Example::

        routesync config show
        routesync config show --json
    """
    from routesync.config import find_settings_file, load_settings

    settings = load_settings(config)
    source = config or find_settings_file()
    info(f"Settings file: {source if source else '(none, using defaults)'}")
    format_response(settings.model_dump(mode="json", by_alias=True))


@config_app.command("init")
def config_init(
    path: Path = typer.Option(
        Path("routesync.yaml"), "--path", help="Where to write the settings file."
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file."),
) -> None:
    """Write a settings file with every default value.

    Example::

        routesync config init
        routesync config init --path routesync.json --force
    """
    from routesync.config import write_default_settings

    written = write_default_settings(path, force=force)
    success(f"Wrote {written}")
    suggest("Export POSTMAN_API_KEY, then run: routesync generate --push")
