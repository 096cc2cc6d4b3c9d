# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Watch stream engine: turns repeated reads into a stream of snapshots.

Each cycle performs one blocking read and emits exactly one Response:

* success: the document is emitted and the next cycle starts immediately
* failure: the error is emitted and the next cycle waits ``backoff_seconds``

The loop runs on a daemon thread until the stop event is set. The event is
observed between cycles and during the backoff wait; a read already in
flight always runs to completion, and whatever it produces after the event
is set is dropped rather than emitted.
"""

import queue
import threading
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from remote_logging import Logger, create_logger

DEFAULT_BACKOFF_SECONDS = 5.0

# How often a blocked producer or consumer re-checks the stop event
_STOP_POLL_SECONDS = 0.1


@dataclass(frozen=True)
class Response:
    """Result of one watch cycle: a JSON document or the error that replaced it."""

    value: Optional[bytes] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class WatchStream:
    """Background read loop emitting one Response per completed cycle.

    Each response is handed over as a rendezvous: the loop does not start the
    next cycle until the consumer has taken the previous result, so at most
    one unconsumed response exists and every snapshot is read after the
    previous one was consumed.

    Example:
        >>> stream = store.watch("secret/app")
        >>> for response in stream:
        ...     if response.ok:
        ...         apply(json.loads(response.value))
        >>> # elsewhere: stream.stop()

    Attributes:
        key: Key being observed (for logging)
        stop_event: Cancellation signal shared with the caller
        backoff_seconds: Delay after a failed cycle
        cycles: Number of completed read cycles
    """

    def __init__(
        self,
        reader: Callable[[], bytes],
        key: str = "",
        stop: Optional[threading.Event] = None,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        logger: Optional[Logger] = None,
    ):
        """Initialize the stream without starting it.

        Args:
            reader: Zero-argument callable performing one blocking read
            key: Key being observed, used in log records
            stop: Cancellation signal; a new event is created when omitted
            backoff_seconds: Delay after a failed cycle
            logger: Logger for cycle failures and lifecycle records
        """
        self._reader = reader
        self.key = key
        self.stop_event = stop if stop is not None else threading.Event()
        self.backoff_seconds = backoff_seconds
        self.logger = logger or create_logger(name="remote_config.watch")
        self.cycles = 0

        self._responses: queue.Queue[Response] = queue.Queue(maxsize=1)
        self._taken = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "WatchStream":
        """Start the read loop on a daemon thread.

        Raises:
            RuntimeError: If the stream was already started
        """
        if self._thread is not None:
            raise RuntimeError(f"Watch stream for '{self.key}' already started")

        self._thread = threading.Thread(
            target=self._run,
            name=f"remote-config-watch:{self.key}",
            daemon=True,
        )
        self._thread.start()
        return self

    def stop(self) -> None:
        """Signal the read loop to stop after its current cycle."""
        self.stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the read loop thread to exit."""
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def get(self, timeout: Optional[float] = None) -> Response:
        """Take the next response.

        Raises:
            queue.Empty: If no response arrives within ``timeout``
        """
        response = self._responses.get(timeout=timeout)
        self._taken.set()
        return response

    def __iter__(self) -> Iterator[Response]:
        """Yield responses until the stop event is set."""
        while not self.stop_event.is_set():
            try:
                response = self._responses.get(timeout=_STOP_POLL_SECONDS)
            except queue.Empty:
                continue
            self._taken.set()
            yield response

    def __enter__(self) -> "WatchStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _run(self) -> None:
        self.logger.debug("Watch started", key=self.key)

        while not self.stop_event.is_set():
            try:
                value = self._reader()
            except Exception as e:
                # Every read failure, not-found included, is surfaced and retried
                self.cycles += 1
                self.logger.warning(
                    f"Watch read failed for '{self.key}': {e}",
                    key=self.key,
                    error_type=type(e).__name__,
                    retry_in=self.backoff_seconds,
                )
                if not self._emit(Response(error=e)):
                    break
                self.stop_event.wait(self.backoff_seconds)
                continue

            self.cycles += 1
            if not self._emit(Response(value=value)):
                break

        self.logger.debug("Watch stopped", key=self.key, cycles=self.cycles)

    def _emit(self, response: Response) -> bool:
        """Hand a response to the consumer; False if stopped before it was taken."""
        if self.stop_event.is_set():
            return False

        self._taken.clear()
        self._responses.put(response)
        while not self._taken.wait(_STOP_POLL_SECONDS):
            if self.stop_event.is_set():
                return False
        return True
