# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/transports/stdio_transport.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

stdio Transport Implementation.
This module implements the standard input/output transport the local MCP
host (an editor or assistant) talks to. Messages are newline-delimited JSON:
one JSON-RPC message per line on stdin, one response per line on stdout.

Key Features:
- Asynchronous stream handling with asyncio
- Line-based message protocol
- Parse errors answered on the wire with JSON-RPC -32700
- Serialised writes so concurrent handlers never interleave lines

Note:
    This transport requires access to sys.stdin and sys.stdout. Logging must
    never go to stdout while it is connected.
"""

# Standard
import asyncio
import json
import logging
import sys
from typing import Any, AsyncGenerator, Dict, Optional

# First-Party
from cellium_mcp.errors import TransportClosedError
from cellium_mcp.transports.base import Message, Transport
from cellium_mcp.validation.jsonrpc import make_error, PARSE_ERROR

logger = logging.getLogger(__name__)

# Large tool results arrive as a single line
STDIN_LIMIT = 16 * 1024 * 1024


class StdioTransport(Transport):
    """Transport implementation using stdio streams.

    Examples:
        >>> transport = StdioTransport()
        >>> import asyncio
        >>> asyncio.run(transport.is_connected())
        False
        >>> isinstance(transport, Transport)
        True
    """

    def __init__(self):
        """Initialize stdio transport.

        Examples:
            >>> transport = StdioTransport()
            >>> transport._stdin_reader is None, transport._stdout_writer is None
            (True, True)
        """
        self._stdin_reader: Optional[asyncio.StreamReader] = None
        self._stdout_writer: Optional[asyncio.StreamWriter] = None
        self._write_lock: Optional[asyncio.Lock] = None
        self._connected = False

    async def connect(self) -> None:
        """Set up stdio streams on the running loop."""
        loop = asyncio.get_running_loop()

        # Set up stdin reader
        reader = asyncio.StreamReader(limit=STDIN_LIMIT)
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)
        self._stdin_reader = reader

        # Set up stdout writer
        transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, sys.stdout)
        self._stdout_writer = asyncio.StreamWriter(transport, protocol, reader, loop)
        self._write_lock = asyncio.Lock()

        self._connected = True
        logger.info("stdio transport connected")

    async def close(self) -> None:
        """Clean up stdio streams. Safe to call more than once."""
        if not self._connected:
            return
        self._connected = False
        if self._stdout_writer:
            self._stdout_writer.close()
            try:
                await self._stdout_writer.wait_closed()
            except (BrokenPipeError, ConnectionResetError) as e:
                logger.debug(f"stdout already closed: {e}")
        logger.info("stdio transport disconnected")

    async def send_message(self, message: Dict[str, Any]) -> None:
        """Send a message over stdout.

        Args:
            message: Message to send

        Raises:
            RuntimeError: If transport was never connected
            TransportClosedError: If stdout has been closed, locally or by the peer
            Exception: If unable to write to stdio writer

        Examples:
            >>> transport = StdioTransport()
            >>> import asyncio
            >>> try:
            ...     asyncio.run(transport.send_message({"test": "message"}))
            ... except RuntimeError as e:
            ...     print("Expected error:", str(e))
            Expected error: Transport not connected
        """
        if not self._stdout_writer:
            raise RuntimeError("Transport not connected")
        if not self._connected:
            raise TransportClosedError("stdout channel is closed")
        if self._write_lock is None:
            self._write_lock = asyncio.Lock()

        data = json.dumps(message, ensure_ascii=False)
        try:
            async with self._write_lock:
                self._stdout_writer.write(f"{data}\n".encode())
                await self._stdout_writer.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            self._connected = False
            logger.warning(f"stdout closed by peer: {e}")
            raise TransportClosedError(f"stdout closed by peer: {e}") from e
        except Exception as e:
            logger.error(f"Failed to send message: {e}")
            raise

    async def receive_message(self) -> AsyncGenerator[Message, None]:
        """Receive messages from stdin until EOF.

        Blank lines are skipped. Lines that are not JSON are answered with a
        parse error and skipped.

        Yields:
            Received messages

        Raises:
            RuntimeError: If transport is not connected
        """
        if not self._stdin_reader:
            raise RuntimeError("Transport not connected")

        while True:
            line = await self._stdin_reader.readline()
            if not line:
                logger.info("stdin closed by peer")
                break
            text = line.decode("utf-8", errors="replace").strip()
            if not text:
                continue
            try:
                message = json.loads(text)
            except json.JSONDecodeError as e:
                logger.warning(f"Invalid JSON from stdin: {e}")
                await self.send_message(make_error("Parse error", PARSE_ERROR, text))
                continue
            yield message

    async def is_connected(self) -> bool:
        """Check if transport is connected.

        Returns:
            True if connected
        """
        return self._connected
