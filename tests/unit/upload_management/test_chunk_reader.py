from pathlib import Path

import pytest

from liveupload.exceptions import ChunkReadError
from liveupload.upload_management.chunk_reader import read_chunk


def test_reads_requested_range(tmp_path: Path) -> None:
    path = tmp_path / "video.mp4"
    path.write_bytes(bytes(range(100)))

    assert read_chunk(path, 10, 5) == bytes(range(10, 15))


def test_short_read_at_end_of_file(tmp_path: Path) -> None:
    path = tmp_path / "video.mp4"
    path.write_bytes(b"abcdef")

    assert read_chunk(path, 4, 100) == b"ef"


def test_offset_past_end_returns_empty(tmp_path: Path) -> None:
    path = tmp_path / "video.mp4"
    path.write_bytes(b"abc")

    assert read_chunk(path, 10, 5) == b""


def test_sees_data_appended_between_reads(tmp_path: Path) -> None:
    path = tmp_path / "video.mp4"
    path.write_bytes(b"first")
    assert read_chunk(path, 0, 5) == b"first"

    with open(path, "ab") as f:
        f.write(b"second")

    assert read_chunk(path, 5, 6) == b"second"


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ChunkReadError):
        read_chunk(tmp_path / "missing.mp4", 0, 10)
