# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Environment-backed configuration provider."""

import os
from typing import Any, Mapping, Optional

VAULT_ADDR = "VAULT_ADDR"
VAULT_ROLE_ID = "VAULT_ROLE_ID"
VAULT_SECRET_ID = "VAULT_SECRET_ID"
VAULT_TOKEN = "VAULT_TOKEN"
CONSUL_HTTP_TOKEN = "CONSUL_HTTP_TOKEN"
WATCH_BACKOFF = "REMOTE_CONFIG_WATCH_BACKOFF"


class EnvConfigProvider:
    """Configuration provider that reads from environment variables.

    Stores read authentication inputs through this provider so tests can pass
    a plain dict instead of mutating ``os.environ``.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ if environ is not None else os.environ

    def get(self, key: str, default: Any = None) -> Any:
        value = self._environ.get(key)
        if value is None:
            return default
        value = value.strip()
        return value if value else default

    def get_float(self, key: str, default: float = 0.0) -> float:
        value = self.get(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            return default
