"""Remote listing command for ByteBridge CLI.

Commands:
- ls: List files stored on the server
"""

from __future__ import annotations

import sys

import click

from bytebridge.client.cli.config import get_server_url


@click.command(name="ls")
def list_remote() -> None:
    """List files stored on the server."""
    from bytebridge.client.api import StoreClient, TransportError
    from bytebridge.core.config import ServerConfig

    with StoreClient(ServerConfig(server_url=get_server_url())) as client:
        try:
            records = client.list_files()
        except TransportError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    if not records:
        click.echo("No files on the server.")
        return

    for record in records:
        updated = record.updated_on.isoformat(sep=" ", timespec="seconds") if record.updated_on else "-"
        click.echo(f"{record.id:>6}  {updated:<19}  {record.name}")
    click.echo(f"\n{len(records)} file(s)")
