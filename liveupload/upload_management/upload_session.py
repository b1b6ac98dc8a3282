"""Progressive multipart upload session.

The session polls a file that is still being written and uploads it part by
part as data becomes available. It owns the cumulative upload state (byte
offset, part counter and acknowledged parts) and decides on every iteration
whether to upload, wait, or hand over to finalization.
"""

import asyncio
import logging
import os
from pathlib import Path

from liveupload.config_manager.upload_config import UploadConfig
from liveupload.event_emitter import Emitter, get_emitter
from liveupload.exceptions import (
    ChunkAttemptError,
    FileNoLongerExistsError,
    RecordingFailedError,
    UploadIOError,
)
from liveupload.models import RecordingState, SessionState, UploadedPart

from .chunk_uploader import ChunkUploader
from .finalization import FinalizationStage
from .recording_signal import RecordingSignal
from .web_api import RemoteUploadService

logger = logging.getLogger(__name__)


class UploadSession:
    """State and main loop of one progressive multipart upload."""

    def __init__(
        self,
        video_id: str,
        file_path: str | os.PathLike,
        config: UploadConfig,
        service: RemoteUploadService,
        chunk_uploader: ChunkUploader,
        signal: RecordingSignal,
        finalizer: FinalizationStage | None = None,
        emitter: Emitter | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            video_id: Video the upload belongs to.
            file_path: Local file being recorded.
            config: Upload configuration (chunk size and poll delays).
            service: API client for initiate and complete.
            chunk_uploader: Uploader for individual parts.
            signal: Recording-finished signal of the realtime pipeline.
            finalizer: Finalization stage; built from ``service`` and
                ``chunk_uploader`` when omitted.
            emitter: Emitter for progress events.
        """
        self.video_id = video_id
        self.file_path = Path(file_path)
        self._config = config
        self._service = service
        self._chunk_uploader = chunk_uploader
        self._signal = signal
        self._finalizer = finalizer or FinalizationStage(service, chunk_uploader)
        self._emitter = emitter or get_emitter()

        self.state = SessionState.INITIATING
        self.upload_id: str | None = None
        self.last_uploaded_position = 0
        self.next_part_number = 1
        self.parts: list[UploadedPart] = []
        # File size observed when the terminating condition was detected
        self.final_file_size: int | None = None

    @property
    def uploaded_bytes(self) -> int:
        """Sum of the sizes of all acknowledged parts."""
        return sum(part.size for part in self.parts)

    def record_part(self, part: UploadedPart) -> None:
        """Append a newly acknowledged part and advance offset and counter.

        Raises:
            ValueError: If the part is not numbered ``next_part_number``.
        """
        if part.part_number != self.next_part_number:
            raise ValueError(
                f"Expected part {self.next_part_number}, got {part.part_number}"
            )
        self.parts.append(part)
        self.last_uploaded_position += part.size
        self.next_part_number += 1

    def replace_first_part(self, part: UploadedPart) -> None:
        """Overwrite the stored part 1 after its content was re-uploaded.

        Offset and part counter are left untouched.

        Raises:
            ValueError: If there is no part 1 or the replacement is not part 1.
        """
        if not self.parts or part.part_number != 1:
            raise ValueError("Only an existing part 1 can be replaced")
        self.parts[0] = part

    async def run(self) -> str | None:
        """Upload the file until recording ends, then complete the upload.

        Returns:
            The final object location, if the API reported one.

        Raises:
            UploadError: The single terminal error of an aborted session.
        """
        try:
            await self._initiate()
            await self._upload_until_terminated()
            location = await self._finalizer.finalize(self, self._signal.state)
        except BaseException:
            self.state = SessionState.ABORTED
            raise

        self.state = SessionState.COMPLETED
        logger.info(
            "Multipart upload complete for %s (%d parts, %d bytes)",
            self.video_id,
            len(self.parts),
            self.uploaded_bytes,
        )
        return location

    async def _initiate(self) -> None:
        self.state = SessionState.INITIATING
        logger.info("Initiating multipart upload for %s...", self.video_id)
        self.upload_id = await self._service.initiate(
            self.video_id, self._config.content_type
        )
        logger.info("Multipart upload initiated with ID: %s", self.upload_id)

    def _current_file_size(self) -> int | None:
        """Return the file size, or None if it could not be read this time.

        Raises:
            FileNoLongerExistsError: If the file is missing.
        """
        try:
            return self.file_path.stat().st_size
        except FileNotFoundError as e:
            if self.parts:
                message = f"File no longer exists: {self.file_path}"
            else:
                message = f"File does not exist: {self.file_path}"
            raise FileNoLongerExistsError(message) from e
        except OSError as e:
            logger.warning("Failed to get file metadata: %s", e)
            return None

    def _should_upload(self, new_data_size: int, recording: RecordingState) -> bool:
        if new_data_size >= self._config.chunk_size:
            return True
        if new_data_size > 0 and recording in (
            RecordingState.DONE,
            RecordingState.NO_REALTIME_SOURCE,
        ):
            return True
        return False

    async def _upload_until_terminated(self) -> None:
        """Upload parts until no data is left and recording is not pending."""
        self.state = SessionState.UPLOADING
        assert self.upload_id is not None

        while True:
            recording = self._signal.sample()
            if recording is RecordingState.FAILED:
                reason = self._signal.failure_reason
                logger.warning("Cancelling upload as realtime generation failed")
                raise RecordingFailedError(
                    "Cancelling upload as realtime generation failed"
                    + (f": {reason}" if reason else "")
                )

            file_size = self._current_file_size()
            if file_size is None:
                await asyncio.sleep(self._config.metadata_retry_delay)
                continue

            new_data_size = file_size - self.last_uploaded_position
            if new_data_size < 0:
                raise UploadIOError(
                    f"File shrank to {file_size} bytes after "
                    f"{self.last_uploaded_position} bytes were uploaded"
                )

            if self._should_upload(new_data_size, recording):
                try:
                    part = await self._chunk_uploader.upload_chunk(
                        self.file_path,
                        self.video_id,
                        self.upload_id,
                        self.next_part_number,
                        self.last_uploaded_position,
                        min(new_data_size, self._config.chunk_size),
                    )
                except ChunkAttemptError as e:
                    logger.warning(
                        "Error uploading chunk (part %d): %s. Retrying in %ss...",
                        self.next_part_number,
                        e,
                        self._config.poll_interval,
                    )
                    await asyncio.sleep(self._config.poll_interval)
                    continue

                self.record_part(part)
                logger.info(
                    "Uploaded part %d; position is now %d of %d bytes",
                    part.part_number,
                    self.last_uploaded_position,
                    file_size,
                )
                self._emitter.emit(
                    Emitter.UPLOAD_PROGRESS, self.video_id, self.last_uploaded_position
                )
            elif new_data_size == 0 and recording is not RecordingState.PENDING:
                self.final_file_size = file_size
                return
            else:
                await asyncio.sleep(self._config.poll_interval)
