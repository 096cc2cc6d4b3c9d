# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Consul KV backend store."""

from typing import Any, Callable, Mapping, Optional
from urllib.parse import urlparse

import consul
import requests

from remote_logging import Logger, create_logger

from .env_provider import CONSUL_HTTP_TOKEN, WATCH_BACKOFF, EnvConfigProvider
from .exceptions import BackendConnectionError, ConfigurationError
from .normalizer import encode_document, flatten_kv_pairs
from .store import BackendStore, KVPair
from .watch import DEFAULT_BACKOFF_SECONDS

DEFAULT_CONSUL_PORT = 8500

_TRANSPORT_ERRORS = (consul.ConsulException, requests.exceptions.RequestException)


def parse_address(address: str) -> tuple[str, str, int]:
    """Split a Consul address into scheme, host and port.

    Accepts ``host``, ``host:port`` and ``scheme://host:port``.

    Raises:
        ConfigurationError: If the address has no host or an invalid port
    """
    if "://" not in address:
        address = f"http://{address}"

    parsed = urlparse(address)
    if not parsed.hostname:
        raise ConfigurationError(f"Invalid consul address: {address}")

    try:
        port = parsed.port or DEFAULT_CONSUL_PORT
    except ValueError as e:
        raise ConfigurationError(f"Invalid consul address: {address}") from e

    return parsed.scheme, parsed.hostname, port


class ConsulStore(BackendStore):
    """Backend store over the Consul key/value API.

    Keys are hierarchical: :meth:`get` lists every pair under a prefix and
    flattens it into one document, so ``app/db/host`` read with prefix
    ``app/db`` appears as ``host``. An empty listing is an empty document.

    Watches use Consul blocking queries: after the first read, each cycle
    waits on the KV index until the prefix changes or ``blocking_wait``
    elapses, then emits the full document again.

    Example:
        >>> store = ConsulStore(["127.0.0.1:8500"])
        >>> store.get("app/db")
        b'{"host": "x", "port": 5432}'

    Attributes:
        address: Address of the Consul agent in use
        client: consul.Consul instance
    """

    backend_name = "consul"

    def __init__(
        self,
        machines: list[str],
        token: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        client: Any = None,
        logger: Optional[Logger] = None,
        watch_backoff: Optional[float] = None,
        blocking_wait: Optional[str] = "30s",
    ):
        """Initialize the Consul store.

        Args:
            machines: Consul agent addresses; only the first is used
            token: ACL token sent with every request. Defaults to
                CONSUL_HTTP_TOKEN from the environment
            environ: Environment mapping (defaults to os.environ)
            client: Pre-built consul.Consul client, mostly for tests
            logger: Logger for this store and its watches
            watch_backoff: Delay after a failed watch cycle. Defaults to
                REMOTE_CONFIG_WATCH_BACKOFF or 5 seconds
            blocking_wait: Longest time one blocking watch query is held by
                Consul; None disables blocking queries

        Raises:
            ConfigurationError: If no address is given or it cannot be parsed
            BackendConnectionError: If the Consul client cannot be created
        """
        env = EnvConfigProvider(environ)
        if watch_backoff is None:
            watch_backoff = env.get_float(WATCH_BACKOFF, DEFAULT_BACKOFF_SECONDS)
        super().__init__(
            logger or create_logger(name="remote_config.consul"),
            watch_backoff=watch_backoff,
        )

        if not machines:
            raise ConfigurationError("no consul address")

        self.address = machines[0]
        self.token = token or env.get(CONSUL_HTTP_TOKEN)
        self.blocking_wait = blocking_wait

        if client is None:
            scheme, host, port = parse_address(self.address)
            try:
                client = consul.Consul(host=host, port=port, scheme=scheme)
            except _TRANSPORT_ERRORS as e:
                raise BackendConnectionError(f"Failed to create Consul client: {e}") from e

        self.client = client
        self.logger.debug("Initialized Consul store", address=self.address)

    def _list_pairs(
        self,
        prefix: str,
        index: Optional[str] = None,
        wait: Optional[str] = None,
    ) -> tuple[Optional[str], list[KVPair]]:
        try:
            new_index, items = self.client.kv.get(
                prefix,
                recurse=True,
                index=index,
                wait=wait,
                token=self.token,
            )
        except _TRANSPORT_ERRORS as e:
            self.logger.error(f"Error during Consul get - {e}", key=prefix)
            raise BackendConnectionError(f"Consul read of '{prefix}' failed: {e}") from e

        pairs = [KVPair(key=item["Key"], value=item.get("Value")) for item in items or []]
        return new_index, pairs

    def get(self, key: str) -> bytes:
        """Read every pair under the prefix ``key`` as one flat document."""
        _, pairs = self._list_pairs(key)
        return encode_document(flatten_kv_pairs(pairs, key))

    def list(self, key: str) -> list[KVPair]:
        """Return the raw pairs stored under the prefix ``key``."""
        _, pairs = self._list_pairs(key)
        return pairs

    def set(self, key: str, value: bytes) -> None:
        """Store ``value`` verbatim at ``key``."""
        try:
            accepted = self.client.kv.put(key, value, token=self.token)
        except _TRANSPORT_ERRORS as e:
            raise BackendConnectionError(f"Consul write of '{key}' failed: {e}") from e

        if not accepted:
            raise BackendConnectionError(f"Consul rejected write of '{key}'")

    def watch_reader(self, key: str) -> Callable[[], bytes]:
        if self.blocking_wait is None:
            return super().watch_reader(key)

        last_index: dict[str, Optional[str]] = {"index": None}

        def read() -> bytes:
            index, pairs = self._list_pairs(key, index=last_index["index"], wait=self.blocking_wait)
            # A lower index means the KV store was reset; start over unblocked
            if index is not None and last_index["index"] is not None and int(index) < int(last_index["index"]):
                index = None
            last_index["index"] = index
            return encode_document(flatten_kv_pairs(pairs, key))

        return read
