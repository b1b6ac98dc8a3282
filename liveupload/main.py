"""Main entry point for the liveupload CLI."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import aiohttp
from tqdm import tqdm

from liveupload.config_manager.config import ConfigLoadError, ConfigManager
from liveupload.config_manager.helpers import parse_bytes
from liveupload.config_manager.upload_config import UploadConfig
from liveupload.event_emitter import Emitter, get_emitter
from liveupload.exceptions import UploadError
from liveupload.models import RecordingState, VideoUploadInfo
from liveupload.upload_management.progressive_upload import ProgressiveUpload
from liveupload.upload_management.recording_signal import RealtimeCompletion
from liveupload.upload_management.web_api import RemoteUploadService

logger = logging.getLogger(__name__)


def _byte_size(value: str) -> int:
    try:
        return parse_bytes(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


async def watch_markers(
    completion: RealtimeCompletion,
    done_marker: Path | None,
    failed_marker: Path | None,
    poll_interval: float,
) -> None:
    """Resolve ``completion`` once a done or failed marker file appears."""
    while True:
        if failed_marker is not None and failed_marker.exists():
            completion.mark_failed(f"failed marker {failed_marker} appeared")
            return
        if done_marker is not None and done_marker.exists():
            completion.mark_done()
            return
        await asyncio.sleep(poll_interval)


async def wait_for_file(
    path: Path, completion: RealtimeCompletion, poll_interval: float
) -> None:
    """Wait until the recorder creates ``path`` or reports its outcome."""
    if not path.exists():
        logger.info("Waiting for %s to be created...", path)
    while not path.exists():
        if completion.try_recv() is not RecordingState.PENDING:
            return
        await asyncio.sleep(poll_interval)


async def run_upload(config: UploadConfig, args: argparse.Namespace) -> str | None:
    """Run one progressive upload for the ``upload`` command."""
    emitter = get_emitter()
    progress = tqdm(unit="B", unit_scale=True, desc=args.path.name)
    last_position = 0

    def on_progress(video_id: str, bytes_uploaded: int) -> None:
        nonlocal last_position
        progress.update(bytes_uploaded - last_position)
        last_position = bytes_uploaded

    emitter.on(Emitter.UPLOAD_PROGRESS, on_progress)

    watcher: asyncio.Task | None = None
    completion: RealtimeCompletion | None = None
    if args.done_marker is not None or args.failed_marker is not None:
        completion = RealtimeCompletion()
        watcher = asyncio.create_task(
            watch_markers(
                completion, args.done_marker, args.failed_marker, config.poll_interval
            )
        )

    try:
        async with aiohttp.ClientSession() as client_session:
            video_id = args.video_id
            if video_id is None:
                service = RemoteUploadService(config, client_session)
                video_id = (await service.create_video(name=args.name)).id
                logger.info("Created video %s", video_id)

            if completion is not None:
                await wait_for_file(args.path, completion, config.poll_interval)

            upload = ProgressiveUpload.spawn(
                config,
                client_session,
                VideoUploadInfo(id=video_id, link=args.link or ""),
                args.path,
                realtime_done=completion,
                emitter=emitter,
            )
            return await upload.wait()
    finally:
        if watcher is not None:
            watcher.cancel()
        emitter.remove_listener(Emitter.UPLOAD_PROGRESS, on_progress)
        progress.close()


async def run_create_video(config: UploadConfig, args: argparse.Namespace) -> str:
    """Create a remote video record for the ``create-video`` command."""
    async with aiohttp.ClientSession() as client_session:
        service = RemoteUploadService(config, client_session)
        return (await service.create_video(name=args.name)).id


def handle_upload(config: UploadConfig, args: argparse.Namespace) -> int:
    """Handle ``liveupload upload``."""
    if args.done_marker is None and args.failed_marker is None:
        if not args.path.exists():
            print(f"File not found: {args.path}", file=sys.stderr)
            return 1
    location = asyncio.run(run_upload(config, args))
    print(location or "Upload complete")
    return 0


def handle_create_video(config: UploadConfig, args: argparse.Namespace) -> int:
    """Handle ``liveupload create-video``."""
    print(asyncio.run(run_create_video(config, args)))
    return 0


def main() -> None:
    """Handlers for liveupload CLI commands."""
    parser = argparse.ArgumentParser(
        prog="liveupload",
        description="Upload video files while they are being recorded",
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="Path to a YAML config file."
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging."
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    upload_cmd = subparsers.add_parser(
        "upload", help="Upload a file, following it while it grows."
    )
    upload_cmd.add_argument("path", type=Path, help="File to upload.")
    upload_cmd.add_argument("--video-id", help="Existing video id to upload into.")
    upload_cmd.add_argument("--name", help="Name of a newly created video.")
    upload_cmd.add_argument("--link", help="Shareable link reported on completion.")
    upload_cmd.add_argument(
        "--done-marker",
        type=Path,
        help="Keep following the file until this marker file appears.",
    )
    upload_cmd.add_argument(
        "--failed-marker",
        type=Path,
        help="Abort the upload if this marker file appears.",
    )
    upload_cmd.add_argument(
        "--chunk-size", type=_byte_size, help="Part size, e.g. 5mib."
    )
    upload_cmd.set_defaults(handler=handle_upload)

    create_cmd = subparsers.add_parser(
        "create-video", help="Create a video record and print its id."
    )
    create_cmd.add_argument("--name", help="Name of the video.")
    create_cmd.set_defaults(handler=handle_create_video)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = ConfigManager(args.config).resolve_effective_config(
            {"chunk_size": getattr(args, "chunk_size", None)}
        )
        sys.exit(args.handler(config, args))
    except (ConfigLoadError, UploadError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
        sys.exit(130)


if __name__ == "__main__":
    main()
