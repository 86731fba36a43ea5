"""Command-line interface package for the backfill runner."""

from rich.console import Console

from backfill.cli.main import CLIApplication, create_app

console = Console()

__all__ = ["CLIApplication", "console", "create_app"]
