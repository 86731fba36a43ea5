"""Command registration utilities for the backfill CLI."""

from __future__ import annotations

from typing import Callable

import typer
from rich.console import Console

from backfill import __version__
from backfill.cli.commands import sweep
from backfill.config.settings import Settings, get_settings
from backfill.services.runner import BatchRunner, RunnerFactory


def register_commands(
    app: typer.Typer,
    console: Console,
    *,
    settings_provider: Callable[[], Settings] = get_settings,
    runner_factory: RunnerFactory = BatchRunner,
) -> None:
    """Attach command groups to the provided Typer application."""

    sweep.register(app, console, settings_provider=settings_provider, runner_factory=runner_factory)

    @app.callback(invoke_without_command=True)
    def main_callback(
        ctx: typer.Context,
        version: bool = typer.Option(False, "--version", help="Show the version and exit", is_eager=True),
    ) -> None:
        """Resumable batch dispatch of YouTube video IDs to a comment-parsing endpoint."""

        if version:
            console.print(f"backfill {__version__}")
            raise typer.Exit()
        if ctx.invoked_subcommand is None:
            console.print(ctx.get_help())


__all__ = ["register_commands"]
