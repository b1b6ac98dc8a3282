"""Progressive multipart upload of video files that are still being recorded."""

from .models import RecordingState
from .upload_management.progressive_upload import ProgressiveUpload
from .upload_management.recording_signal import RealtimeCompletion

__version__ = "0.3.0"

__all__ = ["ProgressiveUpload", "RealtimeCompletion", "RecordingState"]
