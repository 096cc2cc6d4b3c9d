# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""HashiCorp Vault backend store."""

import base64
import functools
from typing import Any, Mapping, Optional

import hvac
import requests
from hvac.exceptions import VaultError

from remote_logging import Logger, create_logger

from .env_provider import (
    VAULT_ADDR,
    VAULT_ROLE_ID,
    VAULT_SECRET_ID,
    VAULT_TOKEN,
    WATCH_BACKOFF,
    EnvConfigProvider,
)
from .exceptions import (
    BackendConnectionError,
    KeyNotFoundError,
    OperationNotSupportedError,
    UnknownAuthMethodError,
)
from .normalizer import encode_document
from .renewal import DEFAULT_MIN_RENEW_INTERVAL, LifetimeWatcher, TokenRenewer, WatcherFactory, approle_login
from .store import BackendStore, KVPair
from .watch import DEFAULT_BACKOFF_SECONDS

DEFAULT_VAULT_ADDRESS = "https://127.0.0.1:8200"

# Field that wraps raw values written through set()
VALUE_FIELD = "value"

_VAULT_ERRORS = (VaultError, requests.exceptions.RequestException)


class VaultStore(BackendStore):
    """Backend store over Vault's logical read/write API.

    A key is the exact path of one secret; :meth:`get` returns that secret's
    data as the document. A path with no secret is an error
    (:class:`KeyNotFoundError`), and watches retry it on the backoff cadence
    until the secret appears.

    Authentication inputs come from the environment, in this order:

    1. VAULT_ROLE_ID (with VAULT_SECRET_ID): AppRole login, then a background
       :class:`~remote_config.renewal.TokenRenewer` keeps the token alive
    2. VAULT_TOKEN: static token, never renewed

    Example:
        >>> store = VaultStore(["https://vault.internal:8200"])
        >>> store.get("secret/app")
        b'{"password": "s3cret"}'
        >>> store.close()

    Attributes:
        address: Vault address in use
        client: hvac.Client instance
        auth_method: "approle" or "token"
        renewer: Running TokenRenewer in AppRole mode, otherwise None
    """

    backend_name = "vault"

    def __init__(
        self,
        machines: Optional[list[str]] = None,
        environ: Optional[Mapping[str, str]] = None,
        client: Any = None,
        logger: Optional[Logger] = None,
        watch_backoff: Optional[float] = None,
        renew: bool = True,
        watcher_factory: Optional[WatcherFactory] = None,
        min_renew_interval: float = DEFAULT_MIN_RENEW_INTERVAL,
    ):
        """Initialize the Vault store and authenticate.

        Args:
            machines: Vault addresses; only the first is used. Defaults to
                VAULT_ADDR, then DEFAULT_VAULT_ADDRESS
            environ: Environment mapping (defaults to os.environ)
            client: Pre-built hvac.Client, mostly for tests
            logger: Logger for this store, its watches and token renewal
            watch_backoff: Delay after a failed watch cycle. Defaults to
                REMOTE_CONFIG_WATCH_BACKOFF or 5 seconds
            renew: Start background token renewal in AppRole mode
            watcher_factory: Builds lifetime watchers for the renewer
            min_renew_interval: Shortest delay between two renewals

        Raises:
            BackendConnectionError: If the Vault client cannot be created
            LoginError: If AppRole login fails
            UnknownAuthMethodError: If neither a role id nor a token is set
        """
        env = EnvConfigProvider(environ)
        if watch_backoff is None:
            watch_backoff = env.get_float(WATCH_BACKOFF, DEFAULT_BACKOFF_SECONDS)
        super().__init__(
            logger or create_logger(name="remote_config.vault"),
            watch_backoff=watch_backoff,
        )

        self.address = machines[0] if machines else env.get(VAULT_ADDR, DEFAULT_VAULT_ADDRESS)

        if client is None:
            try:
                client = hvac.Client(url=self.address)
            except (*_VAULT_ERRORS, ValueError) as e:
                raise BackendConnectionError(f"Failed to create Vault client: {e}") from e
        self.client = client
        self.renewer: Optional[TokenRenewer] = None

        role_id = env.get(VAULT_ROLE_ID)
        token = env.get(VAULT_TOKEN)

        if role_id:
            self.logger.debug("App role authentication")
            self.auth_method = "approle"
            login = functools.partial(approle_login, client, role_id, env.get(VAULT_SECRET_ID))
            lease = login()

            if renew:
                factory = watcher_factory or functools.partial(
                    LifetimeWatcher, client, min_interval=min_renew_interval
                )
                self.renewer = TokenRenewer(lease, factory, login=login, logger=self.logger).start()
        elif token:
            self.logger.debug("Token auth mode")
            self.auth_method = "token"
            client.token = token
        else:
            raise UnknownAuthMethodError()

        self.logger.info(f"Initialized Vault store for {self.address}", auth_method=self.auth_method)

    def get(self, key: str) -> bytes:
        """Read the secret at path ``key`` as a document."""
        try:
            secret = self.client.read(key)
        except _VAULT_ERRORS as e:
            self.logger.error(f"Error during Vault Get - {e}", key=key)
            raise BackendConnectionError(f"Vault read of '{key}' failed: {e}") from e

        if not isinstance(secret, dict):
            raise KeyNotFoundError(f"source not found: {key}", key=key)

        data = secret.get("data")
        if data is None:
            raise KeyNotFoundError(f"key {key} was not found", key=key)

        return encode_document(data)

    def list(self, key: str) -> list[KVPair]:
        raise OperationNotSupportedError("list", self.backend_name)

    def set(self, key: str, value: bytes) -> None:
        """Write ``value`` as the single field ``value`` of the secret at ``key``.

        The bytes travel base64-encoded, the standard JSON form for binary data.
        """
        payload = {VALUE_FIELD: base64.b64encode(value).decode("ascii")}
        try:
            self.client.write_data(key, data=payload)
        except _VAULT_ERRORS as e:
            raise BackendConnectionError(f"Vault write of '{key}' failed: {e}") from e

    def close(self) -> None:
        """Cancel token renewal and close the HTTP session."""
        if self.renewer is not None:
            self.renewer.cancel()
            self.renewer.join(timeout=1.0)
            self.renewer = None

        adapter = getattr(self.client, "adapter", None)
        close_method = getattr(adapter, "close", None)
        if callable(close_method):
            close_method()
