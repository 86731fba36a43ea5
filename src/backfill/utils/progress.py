"""Outcome and reporting types shared by the dispatcher, runner and CLI."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DispatchStatus(str, Enum):
    """Terminal states of a single dispatch."""

    SUCCESS = "success"
    FAILURE = "failure"


class DispatchOutcome(BaseModel):
    """Result of posting one video ID to the endpoint."""

    video_id: str
    status: DispatchStatus
    reason: Optional[str] = None
    status_code: Optional[int] = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def success(cls, video_id: str, *, status_code: Optional[int] = None) -> DispatchOutcome:
        return cls(video_id=video_id, status=DispatchStatus.SUCCESS, status_code=status_code)

    @classmethod
    def failure(cls, video_id: str, reason: str, *, status_code: Optional[int] = None) -> DispatchOutcome:
        return cls(
            video_id=video_id,
            status=DispatchStatus.FAILURE,
            reason=reason or "Request failed",
            status_code=status_code,
        )

    @property
    def ok(self) -> bool:
        return self.status is DispatchStatus.SUCCESS


class BatchReport(BaseModel):
    """Per-batch tally used for progress output."""

    batch_number: int = Field(ge=1)
    total_batches: int = Field(ge=0)
    size: int = Field(ge=0)
    succeeded: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    unresolved: List[str] = Field(default_factory=list)
    completed_videos: int = Field(ge=0)
    total_videos: int = Field(ge=0)
    percent_complete: int = Field(ge=0, le=100)

    model_config = ConfigDict(extra="forbid")

    @property
    def determinate(self) -> int:
        """Number of items in the batch that produced a success or failure outcome."""

        return len(self.succeeded) + len(self.failed)


__all__ = ["BatchReport", "DispatchOutcome", "DispatchStatus"]
