"""Shared event emitter for upload progress and lifecycle signaling."""

import asyncio
import logging
from typing import Any

from pyee.asyncio import AsyncIOEventEmitter

logger = logging.getLogger(__name__)


class Emitter(AsyncIOEventEmitter):
    """Shared event emitter for upload progress and lifecycle signaling."""

    # Web API -> UI
    AUTHENTICATION_INVALID = "AUTHENTICATION_INVALID"
    # ()

    # Upload session -> UI
    UPLOAD_PROGRESS = "UPLOAD_PROGRESS"
    # (video_id, bytes_uploaded(total))

    # Upload session -> UI / clipboard
    UPLOAD_COMPLETE = "UPLOAD_COMPLETE"
    # (video_id, link, location)

    # Upload session -> UI
    UPLOAD_FAILED = "UPLOAD_FAILED"
    # (video_id, error_message)

    def __init__(self, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Initialize the event emitter.

        Args:
            loop: The event loop to use for async event handlers.
        """
        super().__init__(loop=loop)

    def emit(self, event: str, *args: Any, **kwargs: Any) -> bool:
        """Emit an event with logging.

        Args:
            event: The event name to emit.
            *args: Positional arguments to pass to handlers.
            **kwargs: Keyword arguments to pass to handlers.

        Returns:
            True if the event had listeners, False otherwise.
        """
        formatted_args = []
        for arg in args:
            r = repr(arg)
            formatted_args.append(f"{r[:100]}..." if len(r) > 100 else r)
        logger.debug("EVENT %s: %s", event, ", ".join(formatted_args))
        return super().emit(event, *args, **kwargs)


_emitter: Emitter | None = None


def get_emitter() -> Emitter:
    """Return the shared emitter, creating it on first use."""
    global _emitter
    if _emitter is None:
        _emitter = Emitter()
    return _emitter
