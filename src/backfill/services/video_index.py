"""Loading the channel video ID index that defines a run's universe of work."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console

from backfill.models.video import VideoIdsDocument
from backfill.utils.validation import normalise_video_ids


class VideoIndexError(RuntimeError):
    """Raised when the input document is missing or malformed."""


class ChannelNotFoundError(VideoIndexError):
    """Raised when the requested channel is not present in the input document."""


def load_video_index(path: Path) -> VideoIdsDocument:
    """Read and validate the input document at ``path``."""

    if not path.exists():
        raise VideoIndexError(f"Video IDs file not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise VideoIndexError(f"Could not read video IDs file {path}: {exc}") from exc

    try:
        return VideoIdsDocument.model_validate(raw)
    except ValidationError as exc:
        raise VideoIndexError(f"Video IDs file {path} has an unexpected shape: {exc}") from exc


def load_channel_video_ids(path: Path, channel: str, *, console: Optional[Console] = None) -> List[str]:
    """Return the ordered, de-duplicated video IDs for ``channel`` (matched by name or ID)."""

    document = load_video_index(path)
    match = document.find_channel(channel)
    if match is None:
        known = ", ".join(document.channel_names()) or "none"
        raise ChannelNotFoundError(f"Channel {channel!r} not found in {path} (available: {known})")

    video_ids = normalise_video_ids(match.video_ids)
    dropped = len(match.video_ids) - len(video_ids)
    if dropped and console is not None:
        console.log(f"[yellow]{match.channel_name}: ignored {dropped} blank or duplicate video IDs.[/yellow]")
    return video_ids


__all__ = ["ChannelNotFoundError", "VideoIndexError", "load_channel_video_ids", "load_video_index"]
