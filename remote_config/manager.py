# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Consumer-facing façade over a backend store."""

import json
import threading
from typing import Any, Callable, Optional

from .store import BackendStore, KVPair
from .watch import WatchStream

Codec = Callable[[bytes], bytes]


class ConfigManager:
    """Configuration manager wrapping a backend store with optional decryption.

    Values read through the manager (``get``, ``list`` and every successful
    watch response) pass through ``decrypt``; values written pass through
    ``encrypt``. Without codecs the manager hands backend payloads through
    unchanged.

    Example:
        >>> from remote_config import ConsulStore, ConfigManager
        >>>
        >>> manager = ConfigManager(ConsulStore(["127.0.0.1:8500"]))
        >>> manager.get_document("app/db")
        {'host': 'x', 'port': 5432}
    """

    def __init__(
        self,
        store: BackendStore,
        decrypt: Optional[Codec] = None,
        encrypt: Optional[Codec] = None,
    ):
        self.store = store
        self._decrypt = decrypt
        self._encrypt = encrypt

    def _decode(self, value: bytes) -> bytes:
        return self._decrypt(value) if self._decrypt is not None else value

    def get(self, key: str) -> bytes:
        return self._decode(self.store.get(key))

    def get_document(self, key: str) -> dict[str, Any]:
        """Read ``key`` and decode the JSON document."""
        return json.loads(self.get(key))

    def list(self, key: str) -> list[KVPair]:
        return [
            KVPair(key=pair.key, value=self._decode(pair.value) if pair.value is not None else None)
            for pair in self.store.list(key)
        ]

    def set(self, key: str, value: bytes) -> None:
        if self._encrypt is not None:
            value = self._encrypt(value)
        self.store.set(key, value)

    def watch(self, key: str, stop: Optional[threading.Event] = None) -> WatchStream:
        """Watch ``key``, decrypting each snapshot inside the read cycle.

        A value that fails to decrypt becomes an error response for that cycle.
        """
        reader = self.store.watch_reader(key)
        stream = WatchStream(
            lambda: self._decode(reader()),
            key=key,
            stop=stop,
            backoff_seconds=self.store.watch_backoff,
            logger=self.store.logger,
        )
        return stream.start()

    def close(self) -> None:
        self.store.close()
