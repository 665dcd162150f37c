"""Command-line interface for ByteBridge.

This module provides the main CLI entry point and assembles all commands.

Commands:
- configure: Save server URL, sync folder and poll interval
- ls: List files stored on the server
- sync: Synchronize the sync folder with the server
"""

from __future__ import annotations

import click

from bytebridge.client.cli.config import (
    get_config_dir,
    get_config_file,
    get_poll_interval,
    get_server_url,
    get_sync_folder,
    load_config,
    save_config,
)
from bytebridge.client.cli.configure import configure
from bytebridge.client.cli.files import list_remote
from bytebridge.client.cli.sync import sync


@click.group()
@click.version_option(package_name="bytebridge")
def cli() -> None:
    """ByteBridge - keep a local folder in sync with a remote file store."""


cli.add_command(configure)
cli.add_command(list_remote)
cli.add_command(sync)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "get_poll_interval",
    "get_server_url",
    "get_sync_folder",
    "load_config",
    "save_config",
]
