"""Models shared by the upload components."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys for the upload API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON payload for this model, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class RecordingState(str, Enum):
    """Observed state of the realtime pipeline producing the file.

    State transitions:
    - PENDING -> DONE
    - PENDING -> FAILED
    NO_REALTIME_SOURCE never changes.
    """

    NO_REALTIME_SOURCE = "no_realtime_source"
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


class SessionState(str, Enum):
    """Lifecycle states of an upload session.

    State transitions:
    - INITIATING -> UPLOADING -> FINALIZING -> COMPLETED
    - Any -> ABORTED (on a fatal error)
    """

    INITIATING = "initiating"
    UPLOADING = "uploading"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    ABORTED = "aborted"


class UploadedPart(CamelModel):
    """A part acknowledged by the storage backend."""

    part_number: int
    etag: str
    size: int


class VideoMetadata(CamelModel):
    """Descriptive media attributes attached when completing an upload."""

    duration: str | None = None
    bandwidth: str | None = None
    resolution: str | None = None
    video_codec: str | None = None
    audio_codec: str | None = None
    framerate: str | None = None


class CompleteUploadRequest(VideoMetadata):
    """Body of the multipart complete call."""

    video_id: str
    upload_id: str
    parts: list[UploadedPart]


class S3UploadMeta(BaseModel):
    """Remote video record returned by the create endpoint."""

    id: str = Field(default="")

    @field_validator("id", mode="before")
    @classmethod
    def _empty_object_as_string(cls, value: Any) -> Any:
        # The API answers `{}` instead of an id for some legacy records
        if isinstance(value, dict):
            return ""
        return value


class VideoUploadInfo(BaseModel):
    """A pre-created video that a progressive upload fills in."""

    id: str
    link: str = ""
