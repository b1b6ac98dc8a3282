"""Pydantic model for progressive upload configuration."""

from pydantic import BaseModel, Field

from liveupload.const import (
    CHUNK_SIZE,
    DEFAULT_CONTENT_TYPE,
    METADATA_RETRY_DELAY_SECS,
    POLL_INTERVAL_SECS,
    PUT_MAX_ATTEMPTS,
    PUT_RETRY_DELAY_SECS,
    PUT_TIMEOUT_SECS,
    SERVER_URL,
)


class UploadConfig(BaseModel):
    """Configuration options for a progressive upload.

    Attributes:
        server_url: base URL of the upload API.
        auth_token: bearer token sent with every API request.
        bypass_secret: optional deployment-protection bypass secret.
        chunk_size: bytes per part; every part but the last is this large.
        put_timeout: timeout in seconds for a single part PUT.
        put_max_attempts: PUT attempts per part before giving up.
        put_retry_delay: seconds between PUT attempts.
        metadata_retry_delay: seconds to wait after a failed file stat.
        poll_interval: seconds to wait when there is nothing to upload, and
            after a failed chunk before retrying it.
        content_type: MIME type declared when initiating the upload.
    """

    server_url: str = SERVER_URL
    auth_token: str | None = None
    bypass_secret: str | None = None
    chunk_size: int = Field(default=CHUNK_SIZE, gt=0)
    put_timeout: float = Field(default=PUT_TIMEOUT_SECS, gt=0)
    put_max_attempts: int = Field(default=PUT_MAX_ATTEMPTS, ge=1)
    put_retry_delay: float = Field(default=PUT_RETRY_DELAY_SECS, ge=0)
    metadata_retry_delay: float = Field(default=METADATA_RETRY_DELAY_SECS, ge=0)
    poll_interval: float = Field(default=POLL_INTERVAL_SECS, ge=0)
    content_type: str = DEFAULT_CONTENT_TYPE

    def make_url(self, pathname: str) -> str:
        """Join an API path onto the configured server URL."""
        return f"{self.server_url.rstrip('/')}{pathname}"
