"""Tests for the progress record and video index models."""

from __future__ import annotations

import pytest

from backfill.models.progress import ProgressRecord
from backfill.models.video import VideoIdsDocument
from tests.fakes import make_ids, seeded_progress


@pytest.mark.unit
@pytest.mark.parametrize("total,batch_size,expected", [(0, 10, 0), (10, 10, 1), (12, 10, 2), (101, 10, 11)])
def test_start_computes_total_batches(total, batch_size, expected):
    record = ProgressRecord.start(total, batch_size)

    assert record.total_batches == expected
    assert record.current_batch == 1
    assert record.completed_videos == 0
    assert record.started_at == record.last_updated


@pytest.mark.unit
def test_completed_count_tracks_successes_and_failures():
    video_ids = make_ids(6)
    record = seeded_progress(video_ids, successes=video_ids[:4], failures=video_ids[4:])

    assert record.completed_videos == len(record.successful_videos) + len(record.failed_videos) == 6
    assert record.attempted_ids() == set(video_ids)
    assert record.percent_complete == 100


@pytest.mark.unit
def test_forget_failures_makes_items_eligible_again():
    video_ids = make_ids(5)
    record = seeded_progress(video_ids, successes=video_ids[:2], failures=video_ids[2:])

    removed = record.forget_failures(video_ids[3:])

    assert removed == 2
    assert record.failed_ids() == [video_ids[2]]
    assert record.completed_videos == 3
    assert record.completed_videos == len(record.successful_videos) + len(record.failed_videos)


@pytest.mark.unit
def test_percent_complete_rounds_and_caps():
    record = ProgressRecord.start(3, 10)
    record.record_success("aaaaaaaaaaa")
    assert record.percent_complete == 33

    eighth = ProgressRecord.start(8, 10)
    eighth.record_success("aaaaaaaaaaa")
    assert eighth.percent_complete == 13

    record.total_videos = 0
    assert record.percent_complete == 100


@pytest.mark.unit
def test_progress_record_reads_existing_camel_case_file():
    raw = {
        "startedAt": "2025-08-22T18:04:11.512Z",
        "lastUpdated": "2025-08-22T18:09:40.001Z",
        "totalVideos": 3,
        "completedVideos": 2,
        "successfulVideos": ["aaaaaaaaaaa"],
        "failedVideos": [{"videoId": "bbbbbbbbbbb", "error": "Request failed", "timestamp": "2025-08-22T18:09:39.000Z"}],
        "currentBatch": 2,
        "totalBatches": 1,
    }

    record = ProgressRecord.model_validate(raw)

    assert record.failed_ids() == ["bbbbbbbbbbb"]
    assert record.to_document()["failedVideos"][0]["videoId"] == "bbbbbbbbbbb"


@pytest.mark.unit
def test_video_document_finds_channel_by_name_or_id():
    document = VideoIdsDocument.model_validate(
        {
            "fetchedAt": "2025-08-22T12:00:00.000Z",
            "channels": [{"channelId": "UC123", "channelName": "Ben Davis", "videoIds": ["aaaaaaaaaaa"], "totalCount": 1}],
            "totalVideos": 1,
        }
    )

    assert document.find_channel("Ben Davis") is document.find_channel("UC123")
    assert document.find_channel("  Ben Davis ") is not None
    assert document.find_channel("Someone") is None
