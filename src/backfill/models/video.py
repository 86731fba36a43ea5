"""Pydantic models describing the channel video ID index."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from backfill.models.base import DocumentModel


class ChannelVideoIds(DocumentModel):
    """All known video IDs for a single channel."""

    channel_id: str
    channel_name: str
    video_ids: List[str] = Field(default_factory=list)
    total_count: Optional[int] = Field(default=None, ge=0)


class VideoIdsDocument(DocumentModel):
    """Input document produced by the video ID fetcher.

    Channels are matched by display name or by channel ID, so either can be used to pick the
    universe of work for a run.
    """

    fetched_at: Optional[datetime] = None
    channels: List[ChannelVideoIds] = Field(default_factory=list)
    total_videos: Optional[int] = Field(default=None, ge=0)

    def find_channel(self, name_or_id: str) -> Optional[ChannelVideoIds]:
        needle = name_or_id.strip()
        for channel in self.channels:
            if channel.channel_name == needle or channel.channel_id == needle:
                return channel
        return None

    def channel_names(self) -> List[str]:
        return [channel.channel_name for channel in self.channels]


__all__ = ["ChannelVideoIds", "VideoIdsDocument"]
