"""Configure command for ByteBridge CLI.

Commands:
- configure: Store the server URL, sync folder and poll interval
"""

from __future__ import annotations

from pathlib import Path

import click

from bytebridge.client.cli.config import (
    get_config_file,
    get_poll_interval,
    get_server_url,
    get_sync_folder,
    load_config,
    save_config,
)


@click.command()
@click.option("--server-url", help="Base URL of the file store.")
@click.option(
    "--sync-folder",
    type=click.Path(file_okay=False, path_type=Path),
    help="Local folder to keep in sync.",
)
@click.option(
    "--poll-interval",
    type=click.FloatRange(min=1.0),
    help="Seconds between two remote listings.",
)
def configure(
    server_url: str | None,
    sync_folder: Path | None,
    poll_interval: float | None,
) -> None:
    """Save connection and folder settings.

    Options that are not given keep their current value.
    """
    config = load_config()
    if server_url:
        if not server_url.startswith(("http://", "https://")):
            raise click.BadParameter(
                "must start with http:// or https://", param_hint="--server-url"
            )
        config["server_url"] = server_url.rstrip("/")
    if sync_folder is not None:
        config["sync_folder"] = str(sync_folder.expanduser().resolve())
    if poll_interval is not None:
        config["poll_interval"] = poll_interval

    if server_url or sync_folder is not None or poll_interval is not None:
        save_config(config)
        click.echo(f"Configuration saved to {get_config_file()}")

    click.echo(f"Server URL:    {get_server_url()}")
    click.echo(f"Sync folder:   {get_sync_folder()}")
    click.echo(f"Poll interval: {get_poll_interval():g}s")
