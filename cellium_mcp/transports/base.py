# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/transports/base.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Base Transport Interface.
This module defines the base protocol for the local MCP transport.
"""

# Standard
from abc import ABC, abstractmethod
from typing import Any, AsyncGenerator, Dict, List, Union

Message = Union[Dict[str, Any], List[Any]]


class Transport(ABC):
    """Base class for local transport implementations.

    A transport is connected once, yields inbound messages until the peer
    goes away, and is closed once.

    Examples:
        >>> try:
        ...     Transport()
        ... except TypeError as e:
        ...     print("Cannot instantiate abstract class")
        Cannot instantiate abstract class
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize transport connection.

        Must be called before sending or receiving messages.
        """

    @abstractmethod
    async def close(self) -> None:
        """Close transport connection and release its resources."""

    @abstractmethod
    async def send_message(self, message: Dict[str, Any]) -> None:
        """Send a message over the transport.

        Args:
            message: Message to send

        Raises:
            TransportClosedError: If the channel to the peer has ended
        """

    @abstractmethod
    async def receive_message(self) -> AsyncGenerator[Message, None]:
        """Receive messages from the transport.

        The generator finishes when the peer closes the channel.

        Yields:
            Received messages (objects, or lists for JSON-RPC batches)
        """

    @abstractmethod
    async def is_connected(self) -> bool:
        """Check if transport is connected.

        Returns:
            True if connected
        """
