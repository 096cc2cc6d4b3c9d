# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Remote configuration stores with continuous watching.

Reads, writes and watches key/value configuration held in Consul KV or
HashiCorp Vault through one BackendStore interface. Every read produces a
flat JSON document; watches turn repeated reads into a stream of snapshots,
and Vault AppRole sessions are renewed in the background for as long as the
store is open.

Example:
    >>> from remote_config import create_backend_store
    >>>
    >>> store = create_backend_store("vault", ["https://vault.internal:8200"])
    >>> stream = store.watch("secret/app")
    >>> for response in stream:
    ...     if response.ok:
    ...         print(response.value)
"""

__version__ = "0.1.0"

from .consul_store import ConsulStore
from .env_provider import EnvConfigProvider
from .exceptions import (
    BackendConnectionError,
    ConfigurationError,
    KeyNotFoundError,
    LoginError,
    OperationNotSupportedError,
    RemoteConfigError,
    SerializationError,
    UnknownAuthMethodError,
)
from .factory import (
    create_backend_store,
    new_consul_config_manager,
    new_standard_consul_config_manager,
    new_standard_vault_config_manager,
    new_vault_config_manager,
)
from .manager import ConfigManager
from .normalizer import encode_document, flatten_kv_pairs
from .renewal import Lease, LifetimeWatcher, TokenRenewer, approle_login
from .store import BackendStore, KVPair
from .vault_store import VaultStore
from .watch import DEFAULT_BACKOFF_SECONDS, Response, WatchStream

__all__ = [
    "__version__",
    # Stores
    "BackendStore",
    "ConsulStore",
    "VaultStore",
    "KVPair",
    "create_backend_store",
    # Watching
    "WatchStream",
    "Response",
    "DEFAULT_BACKOFF_SECONDS",
    # Credential lifecycle
    "Lease",
    "LifetimeWatcher",
    "TokenRenewer",
    "approle_login",
    # Normalization
    "flatten_kv_pairs",
    "encode_document",
    # Config manager
    "ConfigManager",
    "new_standard_consul_config_manager",
    "new_consul_config_manager",
    "new_standard_vault_config_manager",
    "new_vault_config_manager",
    # Configuration
    "EnvConfigProvider",
    # Errors
    "RemoteConfigError",
    "ConfigurationError",
    "UnknownAuthMethodError",
    "LoginError",
    "BackendConnectionError",
    "KeyNotFoundError",
    "SerializationError",
    "OperationNotSupportedError",
]
