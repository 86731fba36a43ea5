"""Utility helpers shared across backfill modules."""

from backfill.utils.progress import BatchReport, DispatchOutcome, DispatchStatus
from backfill.utils.validation import InvalidVideoIdError, extract_video_id, normalise_video_ids

__all__ = [
    "BatchReport",
    "DispatchOutcome",
    "DispatchStatus",
    "InvalidVideoIdError",
    "extract_video_id",
    "normalise_video_ids",
]
