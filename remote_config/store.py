# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Base backend store interface."""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from remote_logging import Logger

from .watch import DEFAULT_BACKOFF_SECONDS, WatchStream


@dataclass(frozen=True)
class KVPair:
    """A single path/value pair returned by a backend listing."""

    key: str
    value: Optional[bytes]


class BackendStore(ABC):
    """Abstract base class for remote configuration stores.

    Implementations provide one-shot reads and writes against their remote
    system; continuous observation is shared through :meth:`watch`, which
    drives a :class:`~remote_config.watch.WatchStream` over the store's read.

    Attributes:
        backend_name: Short name used in log records and error messages
        logger: Injected logger shared with the store's background tasks
        watch_backoff: Delay in seconds between failed watch cycles
    """

    backend_name = "backend"

    def __init__(self, logger: Logger, watch_backoff: float = DEFAULT_BACKOFF_SECONDS):
        self.logger = logger
        self.watch_backoff = watch_backoff

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Read the document stored at ``key``.

        Args:
            key: Backend-specific key (a path prefix or an exact path)

        Returns:
            The document as a JSON-encoded object

        Raises:
            KeyNotFoundError: If the backend reports no data at ``key``
            BackendConnectionError: If the request fails
            SerializationError: If the fetched data cannot be encoded
        """
        pass

    @abstractmethod
    def list(self, key: str) -> list[KVPair]:
        """Enumerate the pairs stored under ``key``.

        Raises:
            OperationNotSupportedError: If the backend does not list keys
            BackendConnectionError: If the request fails
        """
        pass

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Write ``value`` at ``key``.

        Raises:
            OperationNotSupportedError: If the backend does not accept writes
            BackendConnectionError: If the request fails
        """
        pass

    def watch(self, key: str, stop: Optional[threading.Event] = None) -> WatchStream:
        """Start observing ``key``.

        Args:
            key: Key to observe, with the same meaning as for :meth:`get`
            stop: Cancellation signal; a new event is created when omitted

        Returns:
            A running WatchStream emitting one Response per read cycle
        """
        stream = WatchStream(
            self.watch_reader(key),
            key=key,
            stop=stop,
            backoff_seconds=self.watch_backoff,
            logger=self.logger,
        )
        return stream.start()

    def watch_reader(self, key: str) -> Callable[[], bytes]:
        """Return the read performed on every watch cycle."""
        return lambda: self.get(key)

    def close(self) -> None:
        """Release resources held by this store."""
        pass

    def __enter__(self) -> "BackendStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
