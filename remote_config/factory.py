# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Factories for backend stores and config managers."""

from typing import Any, Optional, cast

from .consul_store import ConsulStore
from .exceptions import ConfigurationError
from .manager import Codec, ConfigManager
from .store import BackendStore
from .vault_store import VaultStore


def create_backend_store(backend_type: str, machines: Optional[list[str]] = None, **kwargs: Any) -> BackendStore:
    """Factory function to create backend stores.

    Args:
        backend_type: Type of store to create ("consul" or "vault")
        machines: Remote endpoint addresses; only the first is used
        **kwargs: Store-specific configuration

    Returns:
        BackendStore instance

    Raises:
        ConfigurationError: If backend_type is unknown, or the store rejects
            its configuration

    Example:
        >>> store = create_backend_store("consul", ["127.0.0.1:8500"])
    """
    stores: dict[str, type] = {
        "consul": ConsulStore,
        "vault": VaultStore,
    }

    if backend_type not in stores:
        raise ConfigurationError(
            f"Unknown backend type: {backend_type}. "
            f"Available: {', '.join(stores.keys())}"
        )

    store_class = stores[backend_type]
    return cast(BackendStore, store_class(machines or [], **kwargs))


def new_standard_consul_config_manager(machines: list[str], **kwargs: Any) -> ConfigManager:
    return ConfigManager(create_backend_store("consul", machines, **kwargs))


def new_consul_config_manager(
    machines: list[str],
    decrypt: Codec,
    encrypt: Optional[Codec] = None,
    **kwargs: Any,
) -> ConfigManager:
    return ConfigManager(create_backend_store("consul", machines, **kwargs), decrypt=decrypt, encrypt=encrypt)


def new_standard_vault_config_manager(machines: list[str], **kwargs: Any) -> ConfigManager:
    return ConfigManager(create_backend_store("vault", machines, **kwargs))


def new_vault_config_manager(
    machines: list[str],
    decrypt: Codec,
    encrypt: Optional[Codec] = None,
    **kwargs: Any,
) -> ConfigManager:
    return ConfigManager(create_backend_store("vault", machines, **kwargs), decrypt=decrypt, encrypt=encrypt)
