"""Tests for CLI helpers."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

from liveupload import main as cli
from liveupload.models import RecordingState
from liveupload.upload_management.recording_signal import RealtimeCompletion


@pytest.mark.asyncio
async def test_done_marker_resolves_completion(tmp_path: Path) -> None:
    completion = RealtimeCompletion()
    done_marker = tmp_path / "done"
    watcher = asyncio.create_task(
        cli.watch_markers(completion, done_marker, None, poll_interval=0)
    )
    await asyncio.sleep(0)
    assert completion.try_recv() is RecordingState.PENDING

    done_marker.touch()
    await asyncio.wait_for(watcher, timeout=1)

    assert completion.try_recv() is RecordingState.DONE


@pytest.mark.asyncio
async def test_failed_marker_wins_over_done(tmp_path: Path) -> None:
    completion = RealtimeCompletion()
    done_marker = tmp_path / "done"
    failed_marker = tmp_path / "failed"
    done_marker.touch()
    failed_marker.touch()

    await cli.watch_markers(completion, done_marker, failed_marker, poll_interval=0)

    assert completion.try_recv() is RecordingState.FAILED
    assert "failed" in completion.reason


def test_upload_of_missing_file_exits_with_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "liveupload",
            "--config",
            str(tmp_path / "config.yaml"),
            "upload",
            str(tmp_path / "missing.mp4"),
        ],
    )

    with pytest.raises(SystemExit) as excinfo:
        cli.main()

    assert excinfo.value.code == 1
    assert "File not found" in capsys.readouterr().err


def test_invalid_chunk_size_is_rejected(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(
        sys,
        "argv",
        ["liveupload", "upload", str(tmp_path / "video.mp4"), "--chunk-size", "huge"],
    )

    with pytest.raises(SystemExit) as excinfo:
        cli.main()

    assert excinfo.value.code == 2


@pytest.mark.asyncio
async def test_wait_for_file_returns_once_file_appears(tmp_path: Path) -> None:
    completion = RealtimeCompletion()
    video = tmp_path / "video.mp4"
    waiter = asyncio.create_task(cli.wait_for_file(video, completion, 0))
    await asyncio.sleep(0)
    assert not waiter.done()

    video.write_bytes(b"")
    await asyncio.wait_for(waiter, timeout=1)


@pytest.mark.asyncio
async def test_wait_for_file_stops_when_recording_ends(tmp_path: Path) -> None:
    completion = RealtimeCompletion()
    completion.mark_failed("never started")

    await asyncio.wait_for(
        cli.wait_for_file(tmp_path / "video.mp4", completion, 0), timeout=1
    )


def test_invalid_config_file_exits_with_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys
) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("chunk_size: huge\n")
    video = tmp_path / "video.mp4"
    video.write_bytes(b"a")
    monkeypatch.setattr(
        sys,
        "argv",
        ["liveupload", "--config", str(config_path), "upload", str(video)],
    )

    with pytest.raises(SystemExit) as excinfo:
        cli.main()

    assert excinfo.value.code == 1
    assert "chunk_size" in capsys.readouterr().err
