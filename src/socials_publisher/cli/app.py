"""Typer app configuration and logging setup."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from .core.context import load_settings, set_settings

# Load environment variables from .env file
load_dotenv()

# Loggers written to publisher.log
PUBLISHER_LOGGERS = ("publisher_api", "publisher_tokens", "publisher_fanout")

# Create Typer app
app = typer.Typer(
    name="socials-publisher",
    help="Connect social accounts and publish media to them",
    add_completion=False,
)


def setup_logging(log_dir: Path) -> None:
    """Configure logging for CLI.

    - Suppresses console output from libraries
    - Sends publisher loggers to log_dir/publisher.log
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    # Remove any default console handlers from root logger
    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(logging.CRITICAL)

    # Suppress loggers that might print to console
    for logger_name in ["httpx", "httpcore", "asyncio"]:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.WARNING)
        logger.propagate = False

    file_handler = logging.FileHandler(log_dir / "publisher.log", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
    )

    for logger_name in PUBLISHER_LOGGERS:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        for handler in logger.handlers:
            handler.close()
        logger.handlers = [file_handler]


@app.callback()
def configure(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML settings file"),
) -> None:
    """Load settings and start file logging before any command."""
    settings = load_settings(config)
    set_settings(settings)
    setup_logging(settings.log_dir)


def register_commands() -> None:
    """Register all commands from feature modules."""
    from .connections.commands import complete_auth, connect, connections, disconnect

    app.command(name="connect")(connect)
    app.command(name="complete-auth")(complete_auth)
    app.command(name="disconnect")(disconnect)
    app.command(name="connections")(connections)

    from .publish.commands import publish

    app.command(name="publish")(publish)


# Register all commands
register_commands()


def main() -> None:
    """CLI entry point."""
    app()
