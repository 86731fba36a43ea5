"""CLI entry point and application wiring."""

from __future__ import annotations

from typing import Callable, Optional

import typer
from rich.console import Console

from backfill.cli.commands import register_commands
from backfill.config.settings import Settings, get_settings
from backfill.services.runner import BatchRunner, RunnerFactory


class CLIApplication:
    """Central orchestrator for the backfill Typer application."""

    def __init__(
        self,
        console: Optional[Console] = None,
        *,
        settings_provider: Callable[[], Settings] = get_settings,
        runner_factory: RunnerFactory = BatchRunner,
    ) -> None:
        self.console = console or Console()
        self._app = typer.Typer(add_completion=False, rich_markup_mode="rich")
        register_commands(
            self._app,
            self.console,
            settings_provider=settings_provider,
            runner_factory=runner_factory,
        )

    @property
    def app(self) -> typer.Typer:
        """Return the underlying Typer application instance."""

        return self._app

    def run(self, *, prog_name: Optional[str] = None, args: Optional[list[str]] = None) -> None:
        """Invoke the Typer application with optional overrides."""

        self._app(prog_name=prog_name, args=args)


def create_app(
    console: Optional[Console] = None,
    *,
    settings_provider: Callable[[], Settings] = get_settings,
    runner_factory: RunnerFactory = BatchRunner,
) -> typer.Typer:
    """Factory helper that returns the configured Typer application."""

    return CLIApplication(console, settings_provider=settings_provider, runner_factory=runner_factory).app


def main() -> None:
    """Console script entry point for `python -m backfill` or the installed `backfill` command."""

    CLIApplication().run(prog_name="backfill")


__all__ = ["CLIApplication", "create_app", "main"]
