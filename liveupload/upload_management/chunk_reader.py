"""Read byte ranges from a file that another process may still be writing."""

import logging
import os

from liveupload.exceptions import ChunkReadError

logger = logging.getLogger(__name__)


def read_chunk(file_path: str | os.PathLike, offset: int, length: int) -> bytes:
    """Read up to ``length`` bytes of ``file_path`` starting at ``offset``.

    A fresh handle is opened for every call. Fewer bytes than requested are
    returned only when the end of the file is reached.

    Args:
        file_path: File to read.
        offset: Byte offset to start from.
        length: Maximum number of bytes to read.

    Returns:
        The bytes read.

    Raises:
        ChunkReadError: If the file cannot be opened, seeked or read.
    """
    try:
        with open(file_path, "rb") as f:
            f.seek(offset)
            buffer = bytearray()
            while len(buffer) < length:
                data = f.read(length - len(buffer))
                if not data:
                    break  # EOF
                buffer.extend(data)

            position = f.tell()
    except FileNotFoundError as e:
        raise ChunkReadError(f"File not found: {file_path}") from e
    except OSError as e:
        raise ChunkReadError(f"Failed to read chunk from {file_path}: {e}") from e

    expected_position = offset + len(buffer)
    if position != expected_position:
        logger.warning(
            "File position after read (%d) doesn't match expected position (%d)",
            position,
            expected_position,
        )
    return bytes(buffer)
