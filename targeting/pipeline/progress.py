"""Fire-and-forget progress broadcasting.

Progress is advisory: listeners that subscribe late miss earlier events, and
a listener that raises is logged and skipped so it cannot affect the batch or
the other listeners.
"""

import json
import logging
import threading
from typing import Callable, List, TextIO

from targeting.logging import get_logger

from .models import ProgressEvent, ProgressStatus

logger = get_logger(__name__, component="progress")

ProgressListener = Callable[[ProgressEvent], None]


class ProgressBroadcaster:
    """Observer list that fans each progress event out to every subscriber.

    Instances are callable, so a broadcaster can be passed directly as the
    ``on_progress`` sink of a batch.
    """

    def __init__(self):
        self._listeners: List[ProgressListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            A callable that unsubscribes the listener (safe to call twice)
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def publish(self, event: ProgressEvent) -> None:
        """Deliver ``event`` to a snapshot of the current listeners."""
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.warning(
                    f"Progress listener failed: {e}",
                    extra={
                        "event": "progress.listener.failed",
                        "error_type": type(e).__name__,
                        "status": event.status.value,
                    },
                )

    __call__ = publish


def logging_listener(event: ProgressEvent) -> None:
    """Log every progress event; errors at WARNING, the rest at DEBUG."""
    level = logging.DEBUG
    if event.status in (ProgressStatus.ERROR, ProgressStatus.GLOBAL_ERROR):
        level = logging.WARNING

    logger.log(
        level,
        f"Batch progress {event.current}/{event.total}: {event.status.value}",
        extra={"event": "progress.emitted", **event.to_payload()},
    )


class JsonLinesProgressWriter:
    """Writes each event's payload as one JSON object per line."""

    def __init__(self, stream: TextIO):
        self.stream = stream

    def __call__(self, event: ProgressEvent) -> None:
        self.stream.write(json.dumps(event.to_payload(), ensure_ascii=False) + "\n")
        self.stream.flush()
