# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/services/logging_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Logging Service Implementation.
Configures the ``cellium_mcp`` logger hierarchy. All diagnostics go to
stderr so that stdout carries nothing but JSON-RPC traffic.
"""

# Standard
import logging
import sys
from typing import Optional, TextIO

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
LOG_DATEFMT = "%H:%M:%S"
ROOT_LOGGER_NAME = "cellium_mcp"
DISABLED_LEVELS = {"OFF", "NONE", "DISABLE", "FALSE", "0"}


class LoggingService:
    """Logging service for the client.

    Owns a single stderr handler attached to the package root logger.
    Modules log through child loggers, which inherit its level.

    Examples:
        >>> service = LoggingService()
        >>> service.level
        'INFO'
    """

    def __init__(self, stream: Optional[TextIO] = None):
        """Initialize logging service.

        Args:
            stream: Output stream, stderr when omitted.
        """
        self._stream = stream
        self._level = "INFO"
        self._handler: Optional[logging.Handler] = None

    @property
    def level(self) -> str:
        """Current level name.

        Returns:
            str: Upper-case level name, or ``OFF``.
        """
        return self._level

    async def initialize(self, level: Optional[str] = None, verbose: bool = False) -> None:
        """Attach the stderr handler and apply the configured level.

        Args:
            level: Level name (e.g. "INFO", "DEBUG"), or OFF/None to disable.
            verbose: Force DEBUG regardless of ``level``.
        """
        root = logging.getLogger(ROOT_LOGGER_NAME)
        if self._handler is None:
            self._handler = logging.StreamHandler(self._stream or sys.stderr)
            self._handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
            root.addHandler(self._handler)
        root.propagate = False
        self.set_level("DEBUG" if verbose else level)
        root.debug("Logging service initialized")

    async def shutdown(self) -> None:
        """Detach the handler installed by :meth:`initialize`."""
        if self._handler is not None:
            root = logging.getLogger(ROOT_LOGGER_NAME)
            self._handler.flush()
            root.removeHandler(self._handler)
            root.propagate = True
            self._handler = None

    def set_level(self, level: Optional[str]) -> None:
        """Set minimum log level, or disable logging entirely.

        Args:
            level: Level name; OFF/NONE/0/None disables output.

        Examples:
            >>> service = LoggingService()
            >>> service.set_level("debug")
            >>> service.level
            'DEBUG'
            >>> service.set_level("OFF")
            >>> logging.getLogger("cellium_mcp").disabled
            True
            >>> service.set_level("INFO")
            >>> logging.getLogger("cellium_mcp").disabled
            False
        """
        root = logging.getLogger(ROOT_LOGGER_NAME)
        name = (level or "OFF").strip().upper()
        if name in DISABLED_LEVELS:
            self._level = "OFF"
            root.disabled = True
            # Child loggers inherit the effective level, not the disabled flag
            root.setLevel(logging.CRITICAL + 1)
            return
        self._level = name
        root.disabled = False
        root.setLevel(getattr(logging, name, logging.INFO))
