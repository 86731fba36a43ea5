"""Resumable, batched dispatch of a channel's video IDs."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence

from rich.console import Console
from rich.markup import escape

from backfill.config.settings import ConfigurationError, RunnerConfig
from backfill.models.progress import FailedVideo, ProgressRecord
from backfill.services import Dispatcher
from backfill.services.dispatch import EndpointDispatcher
from backfill.services.progress_store import JsonProgressStore, ProgressStore
from backfill.services.video_index import load_channel_video_ids
from backfill.utils.progress import BatchReport, DispatchOutcome

SleepFunc = Callable[[float], Awaitable[None]]


class RunnerFactory(Protocol):
    """Callable that builds a runner for a resolved configuration."""

    def __call__(self, config: RunnerConfig, *, console: Optional[Console] = None) -> BatchRunner:
        """Return a runner bound to ``config``."""


@dataclass(slots=True)
class RunSummary:
    """Final tally of a :meth:`BatchRunner.run` invocation."""

    total_videos: int
    successful: List[str]
    failed: List[FailedVideo]
    unresolved: List[str] = field(default_factory=list)
    dispatched: int = 0
    batches_processed: int = 0
    already_complete: bool = False
    progress_location: str = ""


def resolve_remainder(video_ids: Sequence[str], progress: ProgressRecord) -> List[str]:
    """Return the IDs in ``video_ids`` with no recorded success or failure, in input order."""

    attempted = progress.attempted_ids()
    return [video_id for video_id in video_ids if video_id not in attempted]


def partition(items: Sequence[str], batch_size: int) -> List[List[str]]:
    """Split ``items`` into consecutive batches of at most ``batch_size``."""

    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [list(items[start : start + batch_size]) for start in range(0, len(items), batch_size)]


class BatchRunner:
    """Sweeps a channel's video IDs against the endpoint, one batch at a time.

    Progress is loaded from (or created in) the configured :class:`ProgressStore` and saved after
    every batch. Items of a batch are dispatched concurrently and the record is only touched once
    every dispatch in the batch has settled.
    """

    def __init__(
        self,
        config: RunnerConfig,
        *,
        store: Optional[ProgressStore] = None,
        dispatcher: Optional[Dispatcher] = None,
        console: Optional[Console] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self._config = config
        self._store = store or JsonProgressStore(config.progress_file)
        self._dispatcher = dispatcher
        self._console = console or Console()
        self._sleep = sleep

    @property
    def store(self) -> ProgressStore:
        return self._store

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    def load_video_ids(self) -> List[str]:
        """Read the run's universe of work from the input document."""

        if not self._config.channel:
            raise ConfigurationError("No channel selected for this run.")
        return load_channel_video_ids(self._config.video_ids_file, self._config.channel, console=self._console)

    def load_or_start_progress(self, video_ids: Sequence[str]) -> ProgressRecord:
        """Load the stored record, or create and immediately persist a fresh one."""

        progress = self._store.load()
        if progress is not None:
            self._console.print("Resuming from previous run...")
            self._console.print(f"   Started: {progress.started_at.isoformat()}")
            self._console.print(f"   Completed: {progress.completed_videos}/{progress.total_videos}")
            self._console.print(f"   Successful: {len(progress.successful_videos)}")
            self._console.print(f"   Failed: {len(progress.failed_videos)}")
            return progress

        self._console.print("Starting fresh run...")
        progress = ProgressRecord.start(len(video_ids), self._config.batch_size)
        self._store.save(progress)
        return progress

    async def run(self, video_ids: Optional[Sequence[str]] = None) -> RunSummary:
        """Dispatch every remaining video ID and return the final tally."""

        universe = list(video_ids) if video_ids is not None else self.load_video_ids()
        label = self._config.channel or "selected"
        self._console.print(f"Found {len(universe)} {label} videos to process")

        progress = self.load_or_start_progress(universe)
        if self._config.retry_failed:
            self._forget_failures(universe, progress)

        remaining = resolve_remainder(universe, progress)
        self._console.print(f"   Remaining: {len(remaining)} videos")

        if not remaining:
            self._console.print("[bold green]All videos have already been processed![/bold green]")
            return self._summarise(progress, already_complete=True)

        if self._dispatcher is not None:
            return await self._process(remaining, progress, self._dispatcher)

        async with EndpointDispatcher.create_client(self._config) as client:
            dispatcher = EndpointDispatcher(self._config, client=client, console=self._console)
            return await self._process(remaining, progress, dispatcher)

    async def run_batch(
        self,
        batch: Sequence[str],
        progress: ProgressRecord,
        *,
        dispatcher: Optional[Dispatcher] = None,
    ) -> BatchReport:
        """Dispatch ``batch`` concurrently, apply every outcome to ``progress`` and persist it."""

        active = dispatcher or self._dispatcher
        if active is None:
            raise RuntimeError("run_batch needs a dispatcher when the runner was built without one.")

        batch_number = progress.current_batch
        self._console.print(f"\n[bold]Processing batch {batch_number}/{progress.total_batches}[/bold]")
        self._console.print(f"Videos in this batch: {len(batch)}")

        results = await asyncio.gather(*(active.dispatch(video_id) for video_id in batch), return_exceptions=True)

        succeeded: List[str] = []
        failed: List[str] = []
        unresolved: List[str] = []
        for video_id, result in zip(batch, results):
            if isinstance(result, DispatchOutcome):
                if result.ok:
                    progress.record_success(video_id)
                    succeeded.append(video_id)
                else:
                    progress.record_failure(video_id, result.reason or "Request failed")
                    failed.append(video_id)
            elif isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            else:
                # Outcome unknown: keep it out of the record so the next run picks it up again.
                self._console.log(f"  [red]Batch processing error for {video_id}:[/red] {escape(repr(result))}")
                unresolved.append(video_id)

        progress.current_batch += 1
        self._store.save(progress)

        report = BatchReport(
            batch_number=batch_number,
            total_batches=progress.total_batches,
            size=len(batch),
            succeeded=succeeded,
            failed=failed,
            unresolved=unresolved,
            completed_videos=progress.completed_videos,
            total_videos=progress.total_videos,
            percent_complete=progress.percent_complete,
        )
        self._console.print(f"Batch complete: {len(succeeded)}/{len(batch)} successful")
        self._console.print(
            f"Overall progress: {report.completed_videos}/{report.total_videos} ({report.percent_complete}%)"
        )
        return report

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #
    async def _process(
        self,
        remaining: Sequence[str],
        progress: ProgressRecord,
        dispatcher: Dispatcher,
    ) -> RunSummary:
        batches = partition(remaining, self._config.batch_size)
        unresolved: List[str] = []

        for index, batch in enumerate(batches):
            report = await self.run_batch(batch, progress, dispatcher=dispatcher)
            unresolved.extend(report.unresolved)

            if index + 1 < len(batches) and self._config.batch_delay_seconds > 0:
                self._console.print(f"Waiting {self._config.batch_delay_seconds:g} seconds before next batch...")
                await self._sleep(self._config.batch_delay_seconds)

        self._console.print("\n[bold green]All batches completed![/bold green]")
        return self._summarise(
            progress,
            unresolved=unresolved,
            dispatched=len(remaining),
            batches_processed=len(batches),
        )

    def _forget_failures(self, universe: Sequence[str], progress: ProgressRecord) -> None:
        retry_ids = set(progress.failed_ids()).intersection(universe)
        removed = progress.forget_failures(retry_ids)
        if removed:
            self._console.log(f"[yellow]Retrying {len(retry_ids)} previously failed videos.[/yellow]")
            self._store.save(progress)

    def _summarise(
        self,
        progress: ProgressRecord,
        *,
        unresolved: Optional[List[str]] = None,
        dispatched: int = 0,
        batches_processed: int = 0,
        already_complete: bool = False,
    ) -> RunSummary:
        return RunSummary(
            total_videos=progress.total_videos,
            successful=list(progress.successful_videos),
            failed=list(progress.failed_videos),
            unresolved=list(unresolved or []),
            dispatched=dispatched,
            batches_processed=batches_processed,
            already_complete=already_complete,
            progress_location=self._store.location,
        )


__all__ = ["BatchRunner", "RunSummary", "RunnerFactory", "partition", "resolve_remainder"]
