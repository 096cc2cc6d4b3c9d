# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Abstract logger interface."""

from abc import ABC, abstractmethod
from typing import Any


class Logger(ABC):
    """Abstract base class for loggers injected into stores and background tasks."""

    @abstractmethod
    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info-level message.

        Args:
            message: The log message
            **kwargs: Additional structured data to log
        """
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning-level message."""
        pass

    @abstractmethod
    def error(self, message: str, **kwargs: Any) -> None:
        """Log an error-level message."""
        pass

    @abstractmethod
    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug-level message."""
        pass

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an error-level message from inside an exception handler.

        Implementations that can render tracebacks override this; the default
        records the message at error level.
        """
        self.error(message, **kwargs)
