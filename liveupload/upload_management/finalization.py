"""Finalization of a progressive multipart upload."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from typing import TYPE_CHECKING

from liveupload.exceptions import (
    AuthenticationExpiredError,
    FirstChunkReuploadError,
    MetadataProbeError,
    NoPartsError,
    UploadError,
)
from liveupload.media.video_metadata import build_video_meta
from liveupload.models import RecordingState, SessionState, VideoMetadata

from .chunk_uploader import ChunkUploader
from .web_api import RemoteUploadService

if TYPE_CHECKING:
    from .upload_session import UploadSession

logger = logging.getLogger(__name__)


class FinalizationStage:
    """Fold the rewritten header back into part 1 and complete the upload."""

    def __init__(
        self,
        service: RemoteUploadService,
        chunk_uploader: ChunkUploader,
        metadata_probe: Callable[[str | os.PathLike], VideoMetadata] = (
            build_video_meta
        ),
    ) -> None:
        """Initialize the finalization stage.

        Args:
            service: API client used to complete the upload.
            chunk_uploader: Uploader used to re-upload part 1.
            metadata_probe: Reads media metadata from the finished file.
        """
        self._service = service
        self._chunk_uploader = chunk_uploader
        self._metadata_probe = metadata_probe

    async def finalize(
        self, session: UploadSession, recording: RecordingState
    ) -> str | None:
        """Complete ``session``'s multipart upload.

        When the realtime pipeline finished (``DONE``) the writer may have
        rewritten the container header at the start of the file, so part 1 is
        uploaded again with its original size before completing.

        Args:
            session: Session whose parts are complete.
            recording: Last sampled recording state.

        Returns:
            The final object location, if the API reported one.

        Raises:
            NoPartsError: If no part was uploaded.
            FirstChunkReuploadError: If re-uploading part 1 failed.
            CompleteError: If the complete call failed.
        """
        session.state = SessionState.FINALIZING
        assert session.upload_id is not None

        if not session.parts:
            raise NoPartsError("No parts uploaded before finalizing.")

        if recording is RecordingState.DONE:
            logger.info("Realtime video done, uploading header chunk")
            await self._reupload_first_chunk(session)

        self._log_parts(session)
        metadata = await self._probe_metadata(session)

        logger.info("Completing multipart upload with %d parts", len(session.parts))
        return await self._service.complete(
            session.video_id, session.upload_id, session.parts, metadata
        )

    async def _reupload_first_chunk(self, session: UploadSession) -> None:
        assert session.upload_id is not None
        original_size = session.parts[0].size
        try:
            part = await self._chunk_uploader.upload_chunk(
                session.file_path,
                session.video_id,
                session.upload_id,
                1,
                0,
                original_size,
            )
        except AuthenticationExpiredError:
            raise
        except UploadError as e:
            raise FirstChunkReuploadError(f"Failed to re-upload first chunk: {e}") from e

        if part.size != original_size:
            raise FirstChunkReuploadError(
                f"Re-uploaded first chunk is {part.size} bytes, "
                f"expected {original_size}"
            )
        session.replace_first_part(part)
        logger.info("Successfully re-uploaded first chunk")

    def _log_parts(self, session: UploadSession) -> None:
        for part in session.parts:
            logger.debug(
                "Part %d: %d bytes (ETag: %s)", part.part_number, part.size, part.etag
            )

        expected_numbers = list(range(1, len(session.parts) + 1))
        if [part.part_number for part in session.parts] != expected_numbers:
            logger.warning("Part numbers are not contiguous from 1")

        total_bytes = session.uploaded_bytes
        try:
            file_size = session.file_path.stat().st_size
        except OSError:
            file_size = 0
        logger.info(
            "Sum of all parts: %d bytes, file size on disk: %d bytes",
            total_bytes,
            file_size,
        )
        if (
            session.final_file_size is not None
            and total_bytes != session.final_file_size
        ):
            logger.warning(
                "Uploaded %d bytes but the file was %d bytes when recording ended",
                total_bytes,
                session.final_file_size,
            )

    async def _probe_metadata(self, session: UploadSession) -> VideoMetadata | None:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None, self._metadata_probe, session.file_path
            )
        except MetadataProbeError as e:
            logger.error(f"Failed to get video metadata: {e}")
            return None
        except Exception as e:
            logger.error(f"Unexpected error probing video metadata: {e}", exc_info=True)
            return None
