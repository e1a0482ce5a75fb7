# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/client.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Lifecycle Controller.

Wires the components together and owns the shared state records. A session
runs through three steps:

1. ``connect()``: open the local transport and fire one background liveness
   probe (the host is never kept waiting on the remote server)
2. ``serve()``: process local messages until the host closes stdin, or until
   the reconnect controller gives up
3. ``disconnect()``: stop background work, report abandoned requests and
   release the transport and HTTP client

Examples:
    >>> from cellium_mcp.config import Settings
    >>> client = CelliumClient(Settings(token="user:a:1f"))
    >>> client.diagnostics()["connected"], client.diagnostics()["pending_requests"]
    (False, 0)
"""

# Standard
import asyncio
from contextlib import suppress
import logging
from typing import Any, Dict, List, Optional

# Third-Party
import httpx

# First-Party
from cellium_mcp.config import Settings
from cellium_mcp.handlers.protocol import LocalProtocolAdapter
from cellium_mcp.models import ConnectionState, PendingRequest, PendingRequestRegistry
from cellium_mcp.services.remote_client import RemoteClient
from cellium_mcp.transports.base import Transport
from cellium_mcp.transports.stdio_transport import StdioTransport
from cellium_mcp.utils.retry_manager import ReconnectController

logger = logging.getLogger(__name__)


class CelliumClient:
    """One proxy session between the local host and the remote server.

    Attributes:
        settings: Client configuration.
        state: Connection state shared with every component.
        pending: Registry of in-flight handler invocations.
        transport: Local transport.
        remote: Remote transcoder.
        tracker: Connection state tracker.
        reconnect: Startup/background reconnect controller.
        adapter: Local protocol adapter.
    """

    def __init__(self, settings: Settings, transport: Optional[Transport] = None, http_client: Optional[httpx.AsyncClient] = None):
        """Build the component graph.

        Args:
            settings: Client configuration.
            transport: Local transport, stdio when omitted.
            http_client: HTTP client for the remote server; one is created when omitted.
        """
        self.settings = settings
        self.state = ConnectionState()
        self.pending = PendingRequestRegistry()
        self.transport = transport or StdioTransport()
        self.remote = RemoteClient(settings, self.state, client=http_client)
        self.tracker = self.remote.tracker
        self.reconnect = ReconnectController(self.tracker, settings.retry_attempts, settings.retry_delay_seconds)
        self.adapter = LocalProtocolAdapter(self.transport, self.remote, self.state, self.pending, settings)
        self._keepalive_task: Optional[asyncio.Task] = None
        self._closed = False

    async def connect(self) -> None:
        """Open the local transport and start the background probe."""
        logger.info(f"Connecting to Cellium server at {self.remote.endpoint}")
        await self.transport.connect()
        self.reconnect.start()

    async def serve(self) -> None:
        """Run the session until the local side closes or retries run out.

        Raises:
            ReconnectExhaustedError: If the remote server stayed unreachable.
        """
        if self._keepalive_task is None:
            self._keepalive_task = asyncio.create_task(self._keepalive())
        adapter_task = asyncio.create_task(self.adapter.serve())
        exhausted = self.reconnect.exhausted
        try:
            done, _ = await asyncio.wait({adapter_task, exhausted}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not adapter_task.done():
                adapter_task.cancel()
                with suppress(asyncio.CancelledError):
                    await adapter_task

        if exhausted in done:
            exhausted.result()
        adapter_task.result()
        logger.info("Local transport closed, ending session")

    async def disconnect(self) -> None:
        """Tear the session down. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        logger.info("Disconnecting from Cellium server")

        self.state.connected = False
        self.reconnect.cancel()
        if self._keepalive_task is not None:
            self._keepalive_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._keepalive_task
            self._keepalive_task = None

        for entry in self.pending.drain():
            logger.warning(f"Request {entry.method} cancelled due to disconnect: pending_id={entry.id} request_id={entry.request_id} elapsed={entry.elapsed():.1f}s")

        await self.adapter.close()
        await self.transport.close()
        await self.remote.aclose()
        logger.info("Disconnected from Cellium server")

    def report_stale(self) -> List[PendingRequest]:
        """Log requests that have been in flight for too long.

        Returns:
            List[PendingRequest]: The stale entries, left in place.
        """
        stale = self.pending.stale(self.settings.stale_request_threshold)
        for entry in stale:
            logger.warning(f"Request {entry.method} pending for {entry.elapsed():.1f}s: pending_id={entry.id} request_id={entry.request_id}")
        return stale

    async def _keepalive(self) -> None:
        """Periodic tick that keeps an eye on in-flight requests.

        The tick does no protocol work and does not keep the process alive
        once stdin closes: end of input ends :meth:`serve`, the task is
        cancelled in :meth:`disconnect` and the process exits 0. It runs
        only for the lifetime of the served session.
        """
        while True:
            await asyncio.sleep(self.settings.keepalive_interval)
            self.report_stale()

    def diagnostics(self) -> Dict[str, Any]:
        """Snapshot of the session for troubleshooting.

        Returns:
            Dict[str, Any]: Connection state, pending count and retry status.
        """
        snapshot = self.state.snapshot()
        snapshot.update(
            {
                "endpoint": self.remote.endpoint,
                "pending_requests": len(self.pending),
                "retry_attempts_made": self.reconnect.attempts_made,
                "retry_pending": self.reconnect.retry_pending,
            }
        )
        return snapshot
