"""Pydantic models for the backfill input and progress documents."""

from backfill.models.progress import FailedVideo, ProgressRecord
from backfill.models.video import ChannelVideoIds, VideoIdsDocument

__all__ = ["ChannelVideoIds", "FailedVideo", "ProgressRecord", "VideoIdsDocument"]
