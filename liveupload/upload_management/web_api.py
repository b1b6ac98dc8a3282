"""Client for the multipart upload API.

Every call here is a single attempt. Failures are raised as typed
``ProtocolError`` subclasses carrying the HTTP status and response body;
a 401 invalidates authentication and raises ``AuthenticationExpiredError``.
"""

import asyncio
import json
import logging
from typing import Any

import aiohttp

from liveupload.auth_management.auth_manager import Auth
from liveupload.config_manager.upload_config import UploadConfig
from liveupload.const import (
    API_TIMEOUT_SECS,
    COMPLETE_ENDPOINT,
    CREATE_VIDEO_ENDPOINT,
    INITIATE_ENDPOINT,
    PRESIGN_PART_ENDPOINT,
    RECORDING_MODE,
)
from liveupload.exceptions import (
    AuthenticationExpiredError,
    CompleteError,
    CreateVideoError,
    InitiateError,
    PresignError,
    ProtocolError,
)
from liveupload.models import (
    CompleteUploadRequest,
    S3UploadMeta,
    UploadedPart,
    VideoMetadata,
)

logger = logging.getLogger(__name__)

UNAUTHORIZED = 401


class RemoteUploadService:
    """Authenticated calls to the upload API."""

    def __init__(
        self,
        config: UploadConfig,
        client_session: aiohttp.ClientSession,
        auth: Auth | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            config: Upload configuration (server URL and token).
            client_session: aiohttp ClientSession for HTTP requests.
            auth: Header provider; built from ``config`` when omitted.
        """
        self._config = config
        self._session = client_session
        self._auth = auth if auth is not None else Auth(config)

    async def _authed_request(
        self,
        method: str,
        pathname: str,
        error_cls: type[ProtocolError],
        operation: str,
        **kwargs: Any,
    ) -> Any:
        """Send an authenticated request and return the decoded JSON body.

        Args:
            method: HTTP method.
            pathname: API path appended to the server URL.
            error_cls: Error raised for failures of this operation.
            operation: Human readable operation name for messages.
            **kwargs: Passed through to ``ClientSession.request``.

        Returns:
            The parsed JSON response body.

        Raises:
            AuthenticationExpiredError: If not logged in or the API answers 401.
            ProtocolError: ``error_cls`` on transport errors, non-success
                statuses, or an unparsable body.
        """
        headers = self._auth.get_headers()
        url = self._config.make_url(pathname)
        timeout = aiohttp.ClientTimeout(total=API_TIMEOUT_SECS)

        try:
            async with self._session.request(
                method, url, headers=headers, timeout=timeout, **kwargs
            ) as response:
                status = response.status
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise error_cls(f"Failed to send {operation} request: {e}") from e

        if status == UNAUTHORIZED:
            logger.warning("Authentication expired during %s", operation)
            self._auth.invalidate()
            raise AuthenticationExpiredError(
                "Authentication expired; please log in again"
            )

        if not 200 <= status < 300:
            raise error_cls(
                f"Failed to {operation}. Status: {status}. "
                f"Body: {body or '<no response body>'}",
                status=status,
                body=body,
            )

        try:
            return json.loads(body)
        except ValueError as e:
            raise error_cls(
                f"Failed to parse {operation} response: {e}. Body: {body}",
                status=status,
                body=body,
            ) from e

    async def create_video(
        self,
        video_id: str | None = None,
        name: str | None = None,
        duration: str | None = None,
    ) -> S3UploadMeta:
        """Create (or look up) the remote video record an upload belongs to.

        Args:
            video_id: Existing video to look up instead of creating one.
            name: Display name for a new video.
            duration: Duration hint in seconds.

        Returns:
            The video record.
        """
        params = {"recordingMode": RECORDING_MODE}
        if video_id is not None:
            params["videoId"] = video_id
        if name is not None:
            params["name"] = name
        if duration is not None:
            params["duration"] = duration

        data = await self._authed_request(
            "GET",
            CREATE_VIDEO_ENDPOINT,
            CreateVideoError,
            "create video",
            params=params,
        )
        try:
            return S3UploadMeta.model_validate(data)
        except ValueError as e:
            raise CreateVideoError(f"Failed to deserialize response: {e}") from e

    async def initiate(self, video_id: str, content_type: str) -> str:
        """Start a multipart upload.

        Args:
            video_id: Video the upload belongs to.
            content_type: MIME type of the final object.

        Returns:
            The non-empty upload id.
        """
        data = await self._authed_request(
            "POST",
            INITIATE_ENDPOINT,
            InitiateError,
            "initiate multipart upload",
            json={"videoId": video_id, "contentType": content_type},
        )
        if not isinstance(data, dict) or "uploadId" not in data:
            raise InitiateError("No uploadId returned from initiate endpoint")

        upload_id = data["uploadId"]
        if not isinstance(upload_id, str) or not upload_id:
            raise InitiateError("Empty uploadId returned from initiate endpoint")
        return upload_id

    async def presign_part(
        self, video_id: str, upload_id: str, part_number: int, md5_sum: str
    ) -> str:
        """Request a presigned PUT URL for one part.

        Args:
            video_id: Video the upload belongs to.
            upload_id: Multipart upload id.
            part_number: 1-based part number.
            md5_sum: Base64 MD5 of the part, signed into the URL.

        Returns:
            The non-empty presigned URL.
        """
        data = await self._authed_request(
            "POST",
            PRESIGN_PART_ENDPOINT,
            PresignError,
            f"presign part {part_number}",
            json={
                "videoId": video_id,
                "uploadId": upload_id,
                "partNumber": part_number,
                "md5Sum": md5_sum,
            },
        )
        presigned_url = data.get("presignedUrl") if isinstance(data, dict) else None
        if not isinstance(presigned_url, str) or not presigned_url:
            raise PresignError(f"Empty presignedUrl for part {part_number}")
        return presigned_url

    async def complete(
        self,
        video_id: str,
        upload_id: str,
        parts: list[UploadedPart],
        metadata: VideoMetadata | None = None,
    ) -> str | None:
        """Assemble the uploaded parts into the final object.

        Args:
            video_id: Video the upload belongs to.
            upload_id: Multipart upload id.
            parts: Acknowledged parts in part-number order.
            metadata: Optional media attributes stored with the video.

        Returns:
            The final object location, or None if the API did not report one.
        """
        request = CompleteUploadRequest(
            video_id=video_id,
            upload_id=upload_id,
            parts=parts,
            **(metadata.model_dump() if metadata is not None else {}),
        )
        data = await self._authed_request(
            "POST",
            COMPLETE_ENDPOINT,
            CompleteError,
            "complete multipart upload",
            json=request.to_payload(),
        )

        location = data.get("location") if isinstance(data, dict) else None
        if location is None:
            logger.info(
                "Multipart upload complete for %s. No 'location' in response.",
                video_id,
            )
            return None
        logger.info(
            "Multipart upload complete for %s. Final location: %s", video_id, location
        )
        return str(location)
