# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Exceptions for remote configuration stores."""


class RemoteConfigError(Exception):
    """Base exception for all remote configuration errors."""
    pass


class ConfigurationError(RemoteConfigError):
    """Raised when a backend store cannot be constructed from its inputs."""
    pass


class UnknownAuthMethodError(ConfigurationError):
    """Raised when no supported authentication input is present."""

    def __init__(self, message: str = "unknown auth method"):
        super().__init__(message)


class LoginError(RemoteConfigError):
    """Raised when logging in to the secrets service fails."""
    pass


class BackendConnectionError(RemoteConfigError):
    """Raised when the remote store cannot be reached or rejects a request."""
    pass


class KeyNotFoundError(RemoteConfigError):
    """Raised when a requested key has no data in the backend."""

    def __init__(self, message: str, key: str = ""):
        self.key = key
        super().__init__(message)


class SerializationError(RemoteConfigError):
    """Raised when a fetched document cannot be encoded as JSON."""
    pass


class OperationNotSupportedError(RemoteConfigError):
    """Raised by backends for operations they intentionally do not implement."""

    def __init__(self, operation: str, backend: str = ""):
        self.operation = operation
        self.backend = backend
        msg = f"{operation} is not implemented"
        if backend:
            msg += f" for the {backend} backend"
        super().__init__(msg)
