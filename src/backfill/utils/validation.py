"""Validation helpers for YouTube URLs and video identifiers."""

from __future__ import annotations

import re
from typing import Iterable, List
from urllib.parse import parse_qs, urlparse


class InvalidVideoIdError(ValueError):
    """Raised when a value is neither a YouTube video ID nor a video URL."""


_VIDEO_ID_PATTERN = re.compile(r"^[0-9A-Za-z_-]{11}$")
_PATH_ID_PATTERN = re.compile(r"^/(?:embed|shorts|live|v)/([0-9A-Za-z_-]{11})")


def is_video_id(value: str) -> bool:
    return bool(_VIDEO_ID_PATTERN.fullmatch(value))


def extract_video_id(value: str) -> str:
    """Return the video ID from a raw ID, a watch URL, a short link or an embed/shorts URL."""

    stripped = value.strip()
    if is_video_id(stripped):
        return stripped

    parsed = urlparse(stripped)
    host = parsed.netloc.lower()
    if host in {"youtu.be", "www.youtu.be"}:
        candidate = parsed.path.lstrip("/")
        if is_video_id(candidate):
            return candidate

    if host.endswith("youtube.com"):
        if parsed.path == "/watch":
            candidates = parse_qs(parsed.query).get("v", [])
            if candidates and is_video_id(candidates[0]):
                return candidates[0]
        else:
            match = _PATH_ID_PATTERN.match(parsed.path)
            if match:
                return match.group(1)

    raise InvalidVideoIdError(f"Invalid YouTube URL or video ID: {value!r}")


def normalise_video_ids(video_ids: Iterable[str]) -> List[str]:
    """Strip whitespace, drop blanks and duplicates while keeping first-seen order."""

    seen: set[str] = set()
    ordered: List[str] = []
    for raw in video_ids:
        video_id = raw.strip()
        if not video_id or video_id in seen:
            continue
        seen.add(video_id)
        ordered.append(video_id)
    return ordered


__all__ = ["InvalidVideoIdError", "extract_video_id", "is_video_id", "normalise_video_ids"]
