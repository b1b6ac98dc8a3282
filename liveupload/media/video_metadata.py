"""Read descriptive media attributes from a finished video file."""

import logging
import os

import av

from liveupload.exceptions import MetadataProbeError
from liveupload.models import VideoMetadata

logger = logging.getLogger(__name__)


def build_video_meta(path: str | os.PathLike) -> VideoMetadata:
    """Probe ``path`` for duration, bit rate, resolution, codecs and frame rate.

    Args:
        path: Video file to probe.

    Returns:
        The probed metadata. ``audio_codec`` is unset when there is no audio.

    Raises:
        MetadataProbeError: If the file cannot be opened or has no video stream.
    """
    try:
        with av.open(str(path)) as container:
            if not container.streams.video:
                raise MetadataProbeError(
                    "Failed to find appropriate video stream in file"
                )
            video_stream = container.streams.video[0]
            audio_stream = (
                container.streams.audio[0] if container.streams.audio else None
            )

            # container.duration is in microseconds
            duration_millis = (container.duration or 0) / 1000.0
            codec_context = video_stream.codec_context
            bit_rate = codec_context.bit_rate or video_stream.bit_rate or 0
            frame_rate = video_stream.average_rate

            return VideoMetadata(
                duration=str(duration_millis),
                bandwidth=str(bit_rate),
                resolution=f"{codec_context.width}x{codec_context.height}",
                video_codec=codec_context.name.lower(),
                audio_codec=(
                    audio_stream.codec_context.name.lower()
                    if audio_stream is not None
                    else None
                ),
                framerate=str(frame_rate) if frame_rate is not None else "-",
            )
    except (av.error.FFmpegError, OSError) as e:
        raise MetadataProbeError(f"Failed to read input file: {e}") from e
