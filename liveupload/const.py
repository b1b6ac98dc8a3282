"""Constants for the progressive uploader."""

import os
from pathlib import Path

SERVER_URL = os.getenv("LIVEUPLOAD_SERVER_URL", "https://cap.so")

BYTES_PER_MIB = 1024 * 1024
# S3 minimum size for every part but the last one
CHUNK_SIZE = 5 * BYTES_PER_MIB

PUT_TIMEOUT_SECS = 120
PUT_MAX_ATTEMPTS = 3
PUT_RETRY_DELAY_SECS = 2.0
METADATA_RETRY_DELAY_SECS = 0.5
POLL_INTERVAL_SECS = 1.0
API_TIMEOUT_SECS = 30

DEFAULT_CONTENT_TYPE = "video/mp4"
RECORDING_MODE = "desktopMP4"

INITIATE_ENDPOINT = "/api/upload/multipart/initiate"
PRESIGN_PART_ENDPOINT = "/api/upload/multipart/presign-part"
COMPLETE_ENDPOINT = "/api/upload/multipart/complete"
CREATE_VIDEO_ENDPOINT = "/api/desktop/video/create"

BYPASS_HEADER = "x-vercel-protection-bypass"

CONFIG_DIR = Path.home() / ".liveupload"
CONFIG_FILE = "config.yaml"
