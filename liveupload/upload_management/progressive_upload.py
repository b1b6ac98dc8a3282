"""Background job running one progressive upload.

``ProgressiveUpload.spawn`` starts the upload as an asyncio task and returns
a handle owned by the caller. The task ends with exactly one result: the
final object location, or the error that aborted the session.
"""

import asyncio
import logging
import os

import aiohttp

from liveupload.auth_management.auth_manager import Auth
from liveupload.config_manager.upload_config import UploadConfig
from liveupload.event_emitter import Emitter, get_emitter
from liveupload.models import SessionState, VideoUploadInfo

from .chunk_uploader import ChunkUploader
from .recording_signal import RealtimeCompletion, RecordingSignal
from .upload_session import UploadSession
from .web_api import RemoteUploadService

logger = logging.getLogger(__name__)


class ProgressiveUpload:
    """Handle of a running progressive upload."""

    def __init__(
        self,
        session: UploadSession,
        video: VideoUploadInfo,
        emitter: Emitter | None = None,
    ) -> None:
        """Initialize the handle. Use ``spawn`` to start an upload.

        Args:
            session: Session to run.
            video: Pre-created video the upload fills in.
            emitter: Emitter for completion and failure events.
        """
        self.session = session
        self.video = video
        self._emitter = emitter or get_emitter()
        self._task: asyncio.Task | None = None

    @classmethod
    def spawn(
        cls,
        config: UploadConfig,
        client_session: aiohttp.ClientSession,
        video: VideoUploadInfo,
        file_path: str | os.PathLike,
        realtime_done: RealtimeCompletion | None = None,
        emitter: Emitter | None = None,
    ) -> "ProgressiveUpload":
        """Start uploading ``file_path`` while it is being recorded.

        Must be called from a running event loop.

        Args:
            config: Upload configuration.
            client_session: aiohttp ClientSession for HTTP requests.
            video: Pre-created video the upload fills in.
            file_path: Local file being recorded.
            realtime_done: Completion channel of the realtime pipeline writing
                the file, or None if the file is not produced by one.
            emitter: Emitter for progress, completion and failure events.

        Returns:
            The running upload.
        """
        emitter = emitter or get_emitter()
        service = RemoteUploadService(config, client_session, Auth(config, emitter))
        chunk_uploader = ChunkUploader(config, client_session, service)
        session = UploadSession(
            video_id=video.id,
            file_path=file_path,
            config=config,
            service=service,
            chunk_uploader=chunk_uploader,
            signal=RecordingSignal(realtime_done),
            emitter=emitter,
        )
        upload = cls(session, video, emitter)
        upload.start()
        return upload

    def start(self) -> asyncio.Task:
        """Schedule the session on the running loop."""
        if self._task is not None:
            raise RuntimeError("Upload already started")
        logger.info("Starting multipart upload for %s...", self.video.id)
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def _run(self) -> str | None:
        try:
            location = await self.session.run()
        except asyncio.CancelledError:
            logger.info("Upload for %s was cancelled", self.video.id)
            self._emitter.emit(Emitter.UPLOAD_FAILED, self.video.id, "Upload cancelled")
            raise
        except Exception as e:
            logger.error(f"Upload failed for {self.video.id}: {e}")
            self._emitter.emit(Emitter.UPLOAD_FAILED, self.video.id, str(e))
            raise

        self._emitter.emit(
            Emitter.UPLOAD_COMPLETE, self.video.id, self.video.link, location
        )
        return location

    @property
    def state(self) -> SessionState:
        """Current state of the session."""
        return self.session.state

    def done(self) -> bool:
        """Whether the upload has finished, successfully or not."""
        return self._task is not None and self._task.done()

    def cancel(self) -> None:
        """Stop the upload. ``wait`` then raises ``asyncio.CancelledError``."""
        if self._task is not None:
            self._task.cancel()

    async def wait(self) -> str | None:
        """Wait for the upload to finish.

        Returns:
            The final object location, if the API reported one.

        Raises:
            UploadError: The error that aborted the session.
        """
        if self._task is None:
            raise RuntimeError("Upload not started")
        return await self._task
