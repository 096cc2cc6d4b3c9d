# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Silent logger implementation for testing."""

import threading
from typing import Any

from .logger import Logger


class SilentLogger(Logger):
    """Logger that stores log messages in memory without output.

    Useful in tests that assert on what a background watch or renewal thread
    logged. SilentLogger does not filter by level; everything is captured.
    """

    def __init__(self, level: str = "INFO", name: str | None = None):
        """Initialize silent logger.

        Args:
            level: Logging level (stored but not used for filtering)
            name: Optional logger name for identification
        """
        self.level = level.upper()
        self.name = name or "remote_config"
        self.logs: list[dict[str, Any]] = []
        # Background threads append concurrently with test assertions
        self._lock = threading.Lock()

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        log_entry: dict[str, Any] = {
            "level": level,
            "message": message,
        }
        if kwargs:
            log_entry["extra"] = kwargs

        with self._lock:
            self.logs.append(log_entry)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log("ERROR", message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log("DEBUG", message, **kwargs)

    def clear_logs(self) -> None:
        """Clear all stored log messages."""
        with self._lock:
            self.logs.clear()

    def get_logs(self, level: str | None = None) -> list[dict[str, Any]]:
        """Get stored log messages, optionally filtered by level.

        Args:
            level: Optional log level to filter by (DEBUG, INFO, WARNING, ERROR)

        Returns:
            List of log entries
        """
        with self._lock:
            snapshot = list(self.logs)
        if level is None:
            return snapshot
        return [log for log in snapshot if log["level"] == level]

    def has_log(self, message: str, level: str | None = None) -> bool:
        """Check if a log message containing the given substring exists.

        Args:
            message: Message to search for (substring match)
            level: Optional log level to filter by

        Returns:
            True if message is found, False otherwise
        """
        return any(message in log["message"] for log in self.get_logs(level))
