# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Structured logging adapter for remote-config.

Every component of remote_config takes a Logger at construction time; there
is no process-wide default logger.

Example:
    >>> from remote_logging import create_logger
    >>>
    >>> logger = create_logger(logger_type="stdout", level="INFO", name="remote_config.vault")
    >>> logger.info("Watch started", key="secret/app")
    >>>
    >>> # Capture logs in memory for tests
    >>> test_logger = create_logger(logger_type="silent")
    >>> test_logger.info("Test message")
"""

__version__ = "0.1.0"

from .factory import create_logger
from .logger import Logger
from .silent_logger import SilentLogger
from .stdout_logger import StdoutLogger

__all__ = [
    "__version__",
    "Logger",
    "SilentLogger",
    "StdoutLogger",
    "create_logger",
]
