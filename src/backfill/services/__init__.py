"""Service layer for the backfill runner."""

from typing import Awaitable, Protocol

from backfill.utils.progress import DispatchOutcome


class Dispatcher(Protocol):
    """Anything that can attempt a single work item and report its outcome."""

    def dispatch(self, video_id: str) -> Awaitable[DispatchOutcome]:
        """Attempt ``video_id``; failures are returned as outcomes rather than raised."""


__all__ = ["Dispatcher"]
