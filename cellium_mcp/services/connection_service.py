# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/services/connection_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Connection State Tracker.

Holds the liveness of the remote endpoint and runs the ``ping`` liveness
check on demand. Connectivity is lazy: nothing polls the remote server on a
schedule. A call that finds the state disconnected runs one check before it
is forwarded, and the lifecycle controller fires one background check right
after local startup.

Examples:
    >>> import asyncio
    >>> from cellium_mcp.models import ConnectionState
    >>> async def ok():
    ...     return {}
    >>> tracker = ConnectionTracker(ConnectionState(), probe=ok)
    >>> asyncio.run(tracker.ensure_live())
    >>> tracker.state.connected
    True
"""

# Standard
import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional

# First-Party
from cellium_mcp.errors import RemoteCallError, RemoteErrorKind
from cellium_mcp.models import ConnectionState

logger = logging.getLogger(__name__)

CONNECTION_UNAVAILABLE_MESSAGE = "Cannot connect to remote Cellium server"


class ConnectionTracker:
    """Liveness state machine for the remote endpoint.

    Attributes:
        state: The shared connection state record.
    """

    def __init__(self, state: ConnectionState, probe: Callable[[], Awaitable[Any]]):
        """Create a tracker.

        Args:
            state: Shared connection state, owned by the lifecycle controller.
            probe: Coroutine function issuing the remote ``ping`` call.
        """
        self.state = state
        self._probe = probe
        self._inflight: Optional[asyncio.Task] = None
        self._on_connected: List[Callable[[], None]] = []

    def add_connected_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback run after every successful liveness check.

        Args:
            callback: Synchronous callable, e.g. the retry controller's reset.
        """
        self._on_connected.append(callback)

    async def ensure_live(self) -> None:
        """Make sure the remote endpoint is live before a call proceeds.

        A no-op when already connected.

        Raises:
            RemoteCallError: ``CONNECTION_UNAVAILABLE`` if the check fails.
        """
        if self.state.connected:
            return
        await self.check()

    async def check(self) -> None:
        """Run the liveness check, sharing one in flight if there is one.

        Raises:
            RemoteCallError: ``CONNECTION_UNAVAILABLE`` if the check fails.
        """
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._run_check())
            # Retrieve the outcome even if every awaiter was cancelled
            self._inflight.add_done_callback(lambda t: t.cancelled() or t.exception())
        await asyncio.shield(self._inflight)

    async def _run_check(self) -> None:
        """Issue the ``ping`` call and update the state.

        Raises:
            RemoteCallError: ``CONNECTION_UNAVAILABLE`` if the ping fails.
        """
        try:
            await self._probe()
        except Exception as e:
            self.state.connected = False
            logger.debug(f"Liveness check failed: {e}")
            raise RemoteCallError(RemoteErrorKind.CONNECTION_UNAVAILABLE, CONNECTION_UNAVAILABLE_MESSAGE) from e

        was_connected = self.state.connected
        self.state.connected = True
        if not was_connected:
            logger.info("Connected to remote Cellium server")
        for callback in self._on_connected:
            callback()

    def mark_disconnected(self, reason: Optional[BaseException] = None) -> None:
        """Flag the connection as suspect so the next call re-validates.

        Args:
            reason: The failure that triggered the invalidation.
        """
        if self.state.connected:
            logger.warning(f"Marking remote connection as down: {reason}")
        self.state.connected = False
