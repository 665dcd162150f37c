"""Sync command for ByteBridge CLI.

Commands:
- sync: Download missing files once, or keep the folder in sync with --watch
"""

from __future__ import annotations

import logging
import sys

import click

from bytebridge.client.cli.config import (
    get_poll_interval,
    get_server_url,
    get_sync_folder,
)

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(message)s"


class ClickEchoHandler(logging.Handler):
    """Logging handler that writes through click.echo.

    Warnings and errors go to stderr, everything else to stdout.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            click.echo(msg, err=record.levelno >= logging.WARNING)
        except Exception:
            self.handleError(record)


def configure_logging(verbose: bool) -> None:
    """Route the bytebridge loggers to the terminal.

    Args:
        verbose: Show DEBUG messages instead of INFO and above.
    """
    handler = ClickEchoHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))

    bytebridge_logger = logging.getLogger("bytebridge")
    # Remove any existing handlers
    for existing in bytebridge_logger.handlers[:]:
        bytebridge_logger.removeHandler(existing)
    bytebridge_logger.addHandler(handler)
    bytebridge_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    # Prevent propagation to root logger
    bytebridge_logger.propagate = False


@click.command()
@click.option("--watch", "-w", is_flag=True, help="Watch for changes and sync continuously.")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output.")
def sync(watch: bool, verbose: bool) -> None:
    """Synchronize the sync folder with the server.

    Without --watch, downloads every server file missing locally and exits.
    With --watch, also uploads local changes and propagates local deletions
    until interrupted.
    """
    from bytebridge.client.api import StoreClient
    from bytebridge.client.sync import ReconciliationEngine
    from bytebridge.core.config import ServerConfig, SyncSettings

    configure_logging(verbose)

    sync_folder = get_sync_folder()
    if not sync_folder.exists():
        sync_folder.mkdir(parents=True)
        click.echo(f"Created sync folder: {sync_folder}")
    elif not sync_folder.is_dir():
        click.echo(f"Error: sync folder is not a directory: {sync_folder}", err=True)
        sys.exit(1)

    server_config = ServerConfig(server_url=get_server_url())
    settings = SyncSettings(sync_folder=sync_folder, poll_interval=get_poll_interval())

    click.echo(f"Syncing with {server_config.server_url}...")
    click.echo(f"Sync folder: {settings.sync_folder}\n")

    with StoreClient(server_config) as client:
        engine = ReconciliationEngine(client, settings)

        if not watch:
            result = engine.run_once()
            if result.listing_error:
                click.echo(f"Error: could not list server files: {result.listing_error}", err=True)
                sys.exit(1)

            if result.errors:
                click.echo(click.style("\nErrors:", fg="red"))
                for error in result.errors:
                    click.echo(f"  ✗ {error}")

            if not result.downloaded and not result.errors:
                click.echo("Everything is up to date.")
            else:
                click.echo(
                    f"\nSync complete: {len(result.downloaded)} downloaded, "
                    f"{len(result.errors)} errors"
                )
            return

        try:
            engine.start()
        except OSError as e:
            click.echo(f"Error: cannot watch {settings.sync_folder}: {e}", err=True)
            sys.exit(1)

        click.echo("Watching for changes... (Ctrl+C to stop)\n")
        try:
            while not engine.wait(1.0):
                pass
        except KeyboardInterrupt:
            click.echo("\nStopping...")
        finally:
            engine.stop()
