"""Upload one part of a multipart upload.

The uploader reads a byte range from disk, signs it with its MD5, asks the
API for a presigned URL and PUTs the bytes, retrying the PUT a fixed number
of times. It never touches session state; the caller records the returned
part.
"""

import asyncio
import base64
import hashlib
import logging
import os
from pathlib import Path

import aiohttp

from liveupload.config_manager.upload_config import UploadConfig
from liveupload.exceptions import (
    ChunkReadError,
    ChunkUploadExhaustedError,
    FileNoLongerExistsError,
    IncompleteReadError,
    NoDataError,
)
from liveupload.models import UploadedPart

from .chunk_reader import read_chunk
from .web_api import RemoteUploadService

logger = logging.getLogger(__name__)


def md5_base64(data: bytes) -> str:
    """Return the base64 encoded MD5 digest used in ``Content-MD5``."""
    return base64.b64encode(hashlib.md5(data).digest()).decode("ascii")


class ChunkUploader:
    """Upload single parts to presigned URLs."""

    def __init__(
        self,
        config: UploadConfig,
        client_session: aiohttp.ClientSession,
        service: RemoteUploadService,
    ) -> None:
        """Initialize the chunk uploader.

        Args:
            config: Upload configuration (timeouts and retry policy).
            client_session: aiohttp ClientSession for the PUT requests.
            service: API client used to presign parts.
        """
        self._config = config
        self._session = client_session
        self._service = service

    async def upload_chunk(
        self,
        file_path: str | os.PathLike,
        video_id: str,
        upload_id: str,
        part_number: int,
        offset: int,
        max_length: int,
    ) -> UploadedPart:
        """Upload ``max_length`` bytes (or what is left) at ``offset``.

        Args:
            file_path: Local file being uploaded.
            video_id: Video the upload belongs to.
            upload_id: Multipart upload id.
            part_number: 1-based part number to upload as.
            offset: Byte offset of the part in the file.
            max_length: Upper bound on the part size.

        Returns:
            The acknowledged part.

        Raises:
            NoDataError: If ``offset`` is at or past the end of the file.
            IncompleteReadError: If no bytes could be read.
            ChunkReadError: If the file cannot be read.
            PresignError: If no presigned URL could be obtained.
            ChunkUploadExhaustedError: If every PUT attempt failed.
        """
        try:
            file_size = Path(file_path).stat().st_size
        except FileNotFoundError as e:
            raise FileNoLongerExistsError(f"File no longer exists: {file_path}") from e
        except OSError as e:
            raise ChunkReadError(f"Failed to get file metadata: {e}") from e

        if offset >= file_size:
            raise NoDataError(
                f"No more data to read for part {part_number}: "
                f"offset {offset} is at end of file ({file_size} bytes)"
            )

        remaining = file_size - offset
        bytes_to_read = min(max_length, remaining)
        logger.debug(
            "Reading part %d at offset %d (file size: %d, remaining: %d)",
            part_number,
            offset,
            file_size,
            remaining,
        )

        chunk = read_chunk(file_path, offset, bytes_to_read)
        if not chunk:
            raise IncompleteReadError(f"No data to upload for part {part_number}")

        md5_sum = md5_base64(chunk)
        logger.info(
            "Uploading part %d (%d bytes), MD5: %s", part_number, len(chunk), md5_sum
        )

        presigned_url = await self._service.presign_part(
            video_id, upload_id, part_number, md5_sum
        )
        etag = await self._put_with_retry(presigned_url, chunk, md5_sum, part_number)

        return UploadedPart(part_number=part_number, etag=etag, size=len(chunk))

    async def _put_with_retry(
        self, presigned_url: str, chunk: bytes, md5_sum: str, part_number: int
    ) -> str:
        """PUT ``chunk`` to ``presigned_url`` and return the unquoted ETag.

        A transport error, a non-2xx status, or a 2xx without an ETag header
        all count as a failed attempt.
        """
        max_attempts = self._config.put_max_attempts
        timeout = aiohttp.ClientTimeout(total=self._config.put_timeout)
        headers = {"Content-MD5": md5_sum}

        for attempt in range(max_attempts):
            logger.debug(
                "Sending part %d (attempt %d/%d): %d bytes",
                part_number,
                attempt + 1,
                max_attempts,
                len(chunk),
            )
            try:
                async with self._session.put(
                    presigned_url, headers=headers, data=chunk, timeout=timeout
                ) as response:
                    status = response.status
                    if 200 <= status < 300:
                        etag = response.headers.get("ETag")
                        if etag:
                            etag = etag.strip('"')
                            logger.debug(
                                "Received ETag %s for part %d", etag, part_number
                            )
                            return etag
                        logger.warning("No ETag in response for part %d", part_number)
                    else:
                        body = await response.text()
                        logger.warning(
                            "Failed part %d (status %d, attempt %d/%d): %s",
                            part_number,
                            status,
                            attempt + 1,
                            max_attempts,
                            body[:200],
                        )
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.warning(
                    "Part %d upload error (attempt %d/%d): %s",
                    part_number,
                    attempt + 1,
                    max_attempts,
                    e,
                )

            if attempt < max_attempts - 1:
                await asyncio.sleep(self._config.put_retry_delay)

        raise ChunkUploadExhaustedError(
            f"Failed to upload part {part_number} after {max_attempts} attempts"
        )
