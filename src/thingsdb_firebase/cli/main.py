"""
ThingsDB Firebase module — `thingsdb-firebase` command.

ThingsDB starts this process and talks to it over stdin/stdout, so all
logging goes to stderr.
"""

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler

from thingsdb_firebase import __version__
from thingsdb_firebase.module import FirebaseModule
from thingsdb_firebase.settings import Settings
from thingsdb_firebase.transport.stdio import DEFAULT_READ_SIZE, StdioTransport

console = Console(stderr=True)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


async def _serve(settings: Settings) -> FirebaseModule:
    transport = StdioTransport(read_size=settings.read_size)
    module = FirebaseModule(transport, name=settings.name)
    await module.run(install_signal_handlers=True)
    return module


@click.command()
@click.version_option(__version__)
@click.option("--name", default="firebase", envvar="THINGSDB_FIREBASE_NAME", show_default=True,
              help="Module name used in logs and Firebase app names.")
@click.option("--log-level", default="INFO", envvar="THINGSDB_FIREBASE_LOG_LEVEL", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False))
@click.option("--read-size", default=DEFAULT_READ_SIZE, envvar="THINGSDB_FIREBASE_READ_SIZE",
              type=click.IntRange(min=1), show_default=True, help="Bytes read from stdin at once.")
def main(name: str, log_level: str, read_size: int):
    """Firebase Cloud Messaging module for ThingsDB."""
    settings = Settings(name=name, log_level=log_level.upper(), read_size=read_size)
    setup_logging(settings.log_level)

    module = asyncio.run(_serve(settings))
    if module.exit_error is not None:
        sys.exit(1)


if __name__ == "__main__":
    main()
