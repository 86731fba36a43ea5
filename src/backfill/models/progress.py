"""Durable progress record for a resumable backfill run."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Iterable, List, Set

from pydantic import Field

from backfill.models.base import DocumentModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FailedVideo(DocumentModel):
    """One failed dispatch attempt."""

    video_id: str = Field(min_length=1)
    error: str
    timestamp: datetime = Field(default_factory=utcnow)


class ProgressRecord(DocumentModel):
    """Cumulative outcomes of a run, persisted after every batch.

    ``completed_videos`` always equals ``len(successful_videos) + len(failed_videos)`` once a batch
    has been applied. ``current_batch`` and ``total_batches`` are reporting counters and play no part
    in deciding which items remain.
    """

    started_at: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)
    total_videos: int = Field(ge=0)
    completed_videos: int = Field(default=0, ge=0)
    successful_videos: List[str] = Field(default_factory=list)
    failed_videos: List[FailedVideo] = Field(default_factory=list)
    current_batch: int = Field(default=1, ge=1)
    total_batches: int = Field(default=0, ge=0)

    @classmethod
    def start(cls, total_videos: int, batch_size: int) -> ProgressRecord:
        """Create a fresh record for a universe of ``total_videos`` items."""

        now = utcnow()
        return cls(
            started_at=now,
            last_updated=now,
            total_videos=total_videos,
            total_batches=math.ceil(total_videos / batch_size) if batch_size > 0 else 0,
        )

    def failed_ids(self) -> List[str]:
        return [failure.video_id for failure in self.failed_videos]

    def attempted_ids(self) -> Set[str]:
        """Return every ID with a recorded success or failure."""

        return set(self.successful_videos).union(self.failed_ids())

    def record_success(self, video_id: str) -> None:
        self.successful_videos.append(video_id)
        self.completed_videos += 1

    def record_failure(self, video_id: str, error: str) -> None:
        self.failed_videos.append(FailedVideo(video_id=video_id, error=error, timestamp=utcnow()))
        self.completed_videos += 1

    def forget_failures(self, video_ids: Iterable[str]) -> int:
        """Drop failure records for ``video_ids`` so they become eligible again.

        Returns the number of records removed; ``completed_videos`` is reduced by the same amount.
        """

        targets = set(video_ids)
        kept = [failure for failure in self.failed_videos if failure.video_id not in targets]
        removed = len(self.failed_videos) - len(kept)
        if removed:
            self.failed_videos = kept
            self.completed_videos = max(self.completed_videos - removed, 0)
        return removed

    def touch(self) -> None:
        self.last_updated = utcnow()

    @property
    def percent_complete(self) -> int:
        if self.total_videos == 0:
            return 100
        return min(math.floor(self.completed_videos / self.total_videos * 100 + 0.5), 100)


__all__ = ["FailedVideo", "ProgressRecord", "utcnow"]
