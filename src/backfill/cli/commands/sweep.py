"""CLI commands for running, inspecting and resetting a backfill sweep."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from backfill.config.settings import ConfigurationError, RunnerConfig, Settings, build_runner_config
from backfill.models.progress import ProgressRecord
from backfill.services.dispatch import EndpointDispatcher
from backfill.services.progress_store import JsonProgressStore, ProgressStoreError
from backfill.services.runner import RunnerFactory, RunSummary
from backfill.services.video_index import VideoIndexError
from backfill.utils.progress import DispatchOutcome
from backfill.utils.validation import InvalidVideoIdError, extract_video_id


class BackfillExitCode:
    """Mapping of meaningful CLI exit codes."""

    SUCCESS = 0
    INVALID_INPUT = 1
    CONFIGURATION_ERROR = 2
    STORAGE_ERROR = 3
    UNEXPECTED_ERROR = 4
    DISPATCH_FAILED = 5


def register(
    app: typer.Typer,
    console: Console,
    *,
    settings_provider: Callable[[], Settings],
    runner_factory: RunnerFactory,
) -> None:
    """Register the sweep commands."""

    def load_settings() -> Settings:
        try:
            return settings_provider()
        except ValidationError as exc:
            console.print(f"[red]Configuration error:[/red] {exc}")
            raise typer.Exit(code=BackfillExitCode.CONFIGURATION_ERROR) from exc

    def resolve_config(**overrides: Any) -> RunnerConfig:
        try:
            return build_runner_config(load_settings(), **overrides)
        except ConfigurationError as exc:
            console.print(f"[red]Configuration error:[/red] {exc}")
            raise typer.Exit(code=BackfillExitCode.CONFIGURATION_ERROR) from exc

    def progress_store_for(progress_file: Optional[Path]) -> JsonProgressStore:
        return JsonProgressStore(progress_file or load_settings().progress_file)

    @app.command("run")
    def run(
        channel: Optional[str] = typer.Option(None, "--channel", "-c", help="Channel name or ID to sweep"),
        video_ids_file: Optional[Path] = typer.Option(None, "--video-ids-file", help="Input video ID index (JSON)"),
        progress_file: Optional[Path] = typer.Option(None, "--progress-file", help="Progress document (JSON)"),
        batch_size: Optional[int] = typer.Option(None, "--batch-size", min=1, help="Videos dispatched per batch"),
        delay: Optional[float] = typer.Option(None, "--delay", min=0.0, help="Seconds to wait between batches"),
        retry_failed: bool = typer.Option(False, "--retry-failed", help="Dispatch previously failed videos again"),
        json_output: bool = typer.Option(False, "--json", help="Print the final tally as JSON"),
    ) -> None:
        """Dispatch every remaining video of a channel, resuming from the progress file."""

        config = resolve_config(
            channel=channel,
            video_ids_file=video_ids_file,
            progress_file=progress_file,
            batch_size=batch_size,
            batch_delay_seconds=delay,
            retry_failed=True if retry_failed else None,
        )
        runner = runner_factory(config, console=Console(quiet=True) if json_output else console)

        if not json_output:
            console.print(Panel.fit(f"Backfill: [bold]{config.channel}[/bold]", border_style="green"))

        try:
            summary = asyncio.run(runner.run())
        except VideoIndexError as exc:
            console.print(f"[red]Error reading video IDs:[/red] {exc}")
            raise typer.Exit(code=BackfillExitCode.INVALID_INPUT) from exc
        except ProgressStoreError as exc:
            console.print(f"[red]Progress storage error:[/red] {exc}")
            raise typer.Exit(code=BackfillExitCode.STORAGE_ERROR) from exc
        except ConfigurationError as exc:
            console.print(f"[red]Configuration error:[/red] {exc}")
            raise typer.Exit(code=BackfillExitCode.CONFIGURATION_ERROR) from exc
        except Exception as exc:  # pragma: no cover - unexpected failure
            console.print(f"[red]Backfill failed:[/red] {exc}")
            raise typer.Exit(code=BackfillExitCode.UNEXPECTED_ERROR) from exc

        if json_output:
            typer.echo(json.dumps(_summary_payload(summary), ensure_ascii=False, indent=2))
            return

        _render_summary(console, summary)

    @app.command("status")
    def status(
        progress_file: Optional[Path] = typer.Option(None, "--progress-file", help="Progress document (JSON)"),
        json_output: bool = typer.Option(False, "--json", help="Output the progress record as JSON"),
    ) -> None:
        """Show the stored progress record without dispatching anything."""

        store = progress_store_for(progress_file)
        try:
            record = store.load()
        except ProgressStoreError as exc:
            console.print(f"[red]Progress storage error:[/red] {exc}")
            raise typer.Exit(code=BackfillExitCode.STORAGE_ERROR) from exc

        if record is None:
            if json_output:
                typer.echo("null")
            else:
                console.print(f"[yellow]No progress recorded yet at {store.location}.[/yellow]")
            return

        if json_output:
            typer.echo(json.dumps(record.to_document(), ensure_ascii=False, indent=2))
            return

        _render_progress(console, record, store.location)

    @app.command("dispatch")
    def dispatch(
        video: str = typer.Argument(..., help="YouTube video URL or ID"),
    ) -> None:
        """Dispatch a single video to the endpoint without touching the progress file."""

        try:
            video_id = extract_video_id(video)
        except InvalidVideoIdError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            raise typer.Exit(code=BackfillExitCode.INVALID_INPUT) from exc

        config = resolve_config(require_channel=False)

        async def _dispatch_one() -> DispatchOutcome:
            async with EndpointDispatcher.create_client(config) as client:
                return await EndpointDispatcher(config, client=client, console=console).dispatch(video_id)

        outcome = asyncio.run(_dispatch_one())
        if not outcome.ok:
            console.print(f"[red]Dispatch failed:[/red] {video_id} - {outcome.reason}")
            raise typer.Exit(code=BackfillExitCode.DISPATCH_FAILED)
        console.print(f"[green]Dispatched[/green] {video_id}")

    @app.command("reset")
    def reset(
        progress_file: Optional[Path] = typer.Option(None, "--progress-file", help="Progress document (JSON)"),
        yes: bool = typer.Option(False, "--yes", "-y", help="Delete without asking for confirmation"),
    ) -> None:
        """Delete the progress file so the next run starts from scratch."""

        store = progress_store_for(progress_file)
        if not store.path.exists():
            console.print(f"[yellow]Nothing to reset: {store.location} does not exist.[/yellow]")
            return

        if not yes:
            typer.confirm(f"Delete {store.location}? Every video will be dispatched again.", abort=True)

        try:
            store.delete()
        except ProgressStoreError as exc:
            console.print(f"[red]Progress storage error:[/red] {exc}")
            raise typer.Exit(code=BackfillExitCode.STORAGE_ERROR) from exc
        console.print(f"[green]Removed[/green] {store.location}")


def _render_summary(console: Console, summary: RunSummary) -> None:
    console.print("Final results:")
    console.print(f"   Total videos: {summary.total_videos}")
    console.print(f"   Successful: {len(summary.successful)}")
    console.print(f"   Failed: {len(summary.failed)}")
    if summary.unresolved:
        console.print(f"   Unresolved (retried next run): {len(summary.unresolved)}")

    if summary.failed:
        table = Table(title="Failed videos")
        table.add_column("Video ID")
        table.add_column("Error", overflow="fold")
        table.add_column("When")
        for failure in summary.failed:
            table.add_row(failure.video_id, failure.error, failure.timestamp.isoformat())
        console.print()
        console.print(table)

    if summary.progress_location:
        console.print(f"\nProgress saved to: {summary.progress_location}")


def _render_progress(console: Console, record: ProgressRecord, location: str) -> None:
    table = Table(title="Backfill Progress", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Started", record.started_at.isoformat())
    table.add_row("Last updated", record.last_updated.isoformat())
    table.add_row("Completed", f"{record.completed_videos}/{record.total_videos} ({record.percent_complete}%)")
    table.add_row("Successful", str(len(record.successful_videos)))
    table.add_row("Failed", str(len(record.failed_videos)))
    table.add_row("Next batch", f"{record.current_batch}/{record.total_batches}")
    table.add_row("File", location)
    console.print(table)


def _summary_payload(summary: RunSummary) -> dict[str, object]:
    return {
        "total_videos": summary.total_videos,
        "successful": len(summary.successful),
        "failed": [failure.to_document() for failure in summary.failed],
        "unresolved": summary.unresolved,
        "dispatched": summary.dispatched,
        "batches_processed": summary.batches_processed,
        "already_complete": summary.already_complete,
        "progress_file": summary.progress_location,
    }


__all__ = ["BackfillExitCode", "register"]
