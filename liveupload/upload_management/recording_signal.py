"""Recording-finished signal shared between a recorder and its uploader."""

import logging
import threading

from liveupload.models import RecordingState

logger = logging.getLogger(__name__)


class RealtimeCompletion:
    """Single-slot notification a realtime pipeline uses to report its outcome.

    The recorder resolves it once, as done or failed; any number of readers
    can poll it without blocking. It is safe to resolve from another thread.
    """

    def __init__(self) -> None:
        """Initialize an unresolved completion."""
        self._lock = threading.Lock()
        self._outcome = RecordingState.PENDING
        self._reason: str | None = None

    def _resolve(self, outcome: RecordingState, reason: str | None) -> bool:
        with self._lock:
            if self._outcome is not RecordingState.PENDING:
                logger.debug(
                    "Ignoring %s, realtime pipeline already %s",
                    outcome.value,
                    self._outcome.value,
                )
                return False
            self._outcome = outcome
            self._reason = reason
            return True

    def mark_done(self) -> bool:
        """Report that the pipeline finished writing the file.

        Returns:
            True if this call resolved the completion.
        """
        return self._resolve(RecordingState.DONE, None)

    def mark_failed(self, reason: str | None = None) -> bool:
        """Report that the pipeline failed.

        Args:
            reason: Optional description of the failure.

        Returns:
            True if this call resolved the completion.
        """
        return self._resolve(RecordingState.FAILED, reason)

    def try_recv(self) -> RecordingState:
        """Return the current outcome without blocking.

        Returns:
            PENDING while unresolved, then DONE or FAILED.
        """
        with self._lock:
            return self._outcome

    @property
    def reason(self) -> str | None:
        """Failure reason given to ``mark_failed``, if any."""
        with self._lock:
            return self._reason


class RecordingSignal:
    """Tri-state view of the realtime pipeline sampled by the upload loop."""

    def __init__(self, completion: RealtimeCompletion | None = None) -> None:
        """Initialize the signal.

        Args:
            completion: Channel of the realtime pipeline, or None when the file
                is not produced by one.
        """
        self._completion = completion
        self._state = (
            RecordingState.NO_REALTIME_SOURCE
            if completion is None
            else RecordingState.PENDING
        )

    @property
    def state(self) -> RecordingState:
        """The most recently sampled state."""
        return self._state

    @property
    def failure_reason(self) -> str | None:
        """Reason reported by a failed pipeline."""
        return self._completion.reason if self._completion is not None else None

    def sample(self) -> RecordingState:
        """Poll the pipeline once. DONE and FAILED are terminal."""
        if self._state is RecordingState.PENDING and self._completion is not None:
            self._state = self._completion.try_recv()
        return self._state
