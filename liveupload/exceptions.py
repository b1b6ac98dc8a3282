"""Exception classes for the progressive upload workflow."""


class UploadError(Exception):
    """Base error for the upload workflow."""


class UploadIOError(UploadError):
    """Raised when the local file cannot be read. Fatal to the session."""


class ChunkReadError(UploadIOError):
    """Raised when opening, seeking or reading the source file fails."""


class FileNoLongerExistsError(UploadIOError):
    """Raised when the source file disappears while uploading."""


class ChunkAttemptError(UploadError):
    """A single chunk attempt failed; the session retries from the same offset."""


class NoDataError(ChunkAttemptError):
    """Raised when the requested offset is at or beyond the end of the file."""


class IncompleteReadError(ChunkAttemptError):
    """Raised when reading a chunk returned no bytes."""


class ChunkUploadExhaustedError(ChunkAttemptError):
    """Raised when every PUT attempt for a part failed."""


class ProtocolError(UploadError):
    """Raised when the upload API rejects a request or answers malformed data."""

    def __init__(
        self, message: str, status: int | None = None, body: str | None = None
    ):
        """Initialize ProtocolError.

        Args:
            message: Description of the failure.
            status: HTTP status of the offending response, if any.
            body: Body of the offending response, if any.
        """
        super().__init__(message)
        self.status = status
        self.body = body


class InitiateError(ProtocolError):
    """Raised when the multipart upload cannot be initiated."""


class PresignError(ProtocolError):
    """Raised when a presigned URL for a part cannot be obtained."""


class CompleteError(ProtocolError):
    """Raised when the multipart upload cannot be completed."""


class CreateVideoError(ProtocolError):
    """Raised when the remote video record cannot be created."""


class AuthenticationExpiredError(UploadError):
    """Raised when the API reports the bearer token is missing or expired."""


class CancelledUploadError(UploadError):
    """Raised when the upload is cancelled instead of failing locally."""


class RecordingFailedError(CancelledUploadError):
    """Raised when the realtime recording pipeline reported a failure."""


class NoPartsError(UploadError):
    """Raised when finalizing an upload that has no acknowledged parts."""


class FirstChunkReuploadError(UploadError):
    """Raised when re-uploading the rewritten file header fails."""


class MetadataProbeError(UploadError):
    """Raised when media metadata cannot be read from the file."""
