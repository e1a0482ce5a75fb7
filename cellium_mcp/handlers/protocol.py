# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/handlers/protocol.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Local Protocol Adapter.

Presents the client to the local MCP host as a protocol server. Inbound
messages arrive from the transport, are checked against the JSON-RPC
envelope rules, parsed into a typed request for their method and handed to
the registered handler. Responses carry the inbound id.

Handled methods:
- ``initialize``: answered locally, never forwarded
- ``notifications/initialized``: bookkeeping only, never answered
- ``tools/list``, ``tools/call``, ``resources/list``, ``resources/read``,
  ``ping``: forwarded to the remote server through the error boundary

Protocol errors:
- batch or malformed envelope -> -32600
- unsupported method          -> -32601
- params of the wrong shape   -> -32602
"""

# Standard
import asyncio
from contextlib import suppress
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

# First-Party
from cellium_mcp import __version__
from cellium_mcp.config import Settings
from cellium_mcp.errors import RequestParseError, TransportClosedError
from cellium_mcp.handlers.error_boundary import ErrorBoundary
from cellium_mcp.models import ConnectionState, PendingRequestRegistry
from cellium_mcp.schemas import InitializedNotification, InitializeRequest, parse_local_request, SUPPORTED_METHODS
from cellium_mcp.services.remote_client import RemoteClient
from cellium_mcp.transports.base import Message, Transport
from cellium_mcp.types import Implementation, InitializeResult, ServerCapabilities, to_wire
from cellium_mcp.validation.jsonrpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    is_notification,
    JSONRPCError,
    make_error,
    make_result,
    METHOD_NOT_FOUND,
    safe_id,
    validate_request,
)

logger = logging.getLogger(__name__)

FORWARDED_METHODS = ("tools/list", "tools/call", "resources/list", "resources/read", "ping")

LocalHandler = Callable[..., Awaitable[Any]]


class LocalProtocolAdapter:
    """Routes local JSON-RPC messages to their handlers.

    Attributes:
        transport: Local transport messages are read from and written to.
        remote: Remote transcoder used by forwarded methods.
        state: Shared connection state.
        settings: Client configuration.
        boundary: Error boundary wrapping the forwarded handlers.
    """

    def __init__(
        self,
        transport: Transport,
        remote: RemoteClient,
        state: ConnectionState,
        pending: PendingRequestRegistry,
        settings: Settings,
    ):
        """Create the adapter and register every handler once.

        Args:
            transport: Local transport.
            remote: Remote transcoder.
            state: Shared connection state.
            pending: Registry of in-flight invocations.
            settings: Client configuration.
        """
        self.transport = transport
        self.remote = remote
        self.state = state
        self.settings = settings
        self.boundary = ErrorBoundary(state, pending)

        self._handlers: Dict[str, LocalHandler] = {
            "initialize": self._handle_initialize,
            "notifications/initialized": self._handle_initialized,
        }
        for method in FORWARDED_METHODS:
            self._handlers[method] = self.boundary.guard(method, self._forwarder(method))

        self._tasks: Set[asyncio.Task] = set()
        self._lost: Optional[asyncio.Future] = None
        self._closed = False

    @property
    def methods(self) -> Set[str]:
        """Methods with a registered handler.

        Returns:
            Set[str]: Method names.
        """
        return set(self._handlers)

    def _forwarder(self, method: str) -> Callable[[Any], Awaitable[Any]]:
        """Build the core handler that relays ``method`` to the remote server.

        Args:
            method: Local method name, also used remotely.

        Returns:
            Callable: Coroutine function taking the parsed request.
        """

        async def forward(request: Any) -> Any:
            return await self.remote.forward(method, request.params.to_params())

        forward.__name__ = f"forward_{method.replace('/', '_')}"
        return forward

    async def _handle_initialize(self, request: InitializeRequest, request_id: Optional[Any] = None) -> Dict[str, Any]:
        """Answer the handshake locally, whatever the remote state.

        Args:
            request: Parsed ``initialize`` request.
            request_id: Inbound id.

        Returns:
            Dict[str, Any]: ``{protocolVersion, capabilities, serverInfo}``.
        """
        requested = request.params.protocol_version
        if requested and requested != self.settings.protocol_version:
            logger.warning(f"Client requested protocol version {requested}, continuing with {self.settings.protocol_version}")

        client_info = request.params.client_info or {}
        logger.info(f"Initialize from client: {client_info.get('name', 'unknown')} {client_info.get('version', '')}".rstrip())

        result = InitializeResult(
            protocol_version=self.settings.protocol_version,
            capabilities=ServerCapabilities(tools={}, resources={}),
            server_info=Implementation(name=self.settings.client_name, version=__version__),
        )
        return to_wire(result)

    async def _handle_initialized(self, request: InitializedNotification, request_id: Optional[Any] = None) -> None:
        """Record that the local client finished its handshake.

        Args:
            request: Parsed notification.
            request_id: Always None for notifications.
        """
        self.state.client_initialized = True
        self.state.touch()
        logger.info("Client initialized")

    async def dispatch(self, message: Message) -> Optional[Dict[str, Any]]:
        """Handle one inbound message and build its response.

        Args:
            message: Decoded JSON value read from the transport.

        Returns:
            Optional[Dict[str, Any]]: The response, or None for notifications
            and for stray responses from the host.
        """
        if isinstance(message, list):
            return make_error("Invalid Request: batch requests are not supported", INVALID_REQUEST)
        if not isinstance(message, dict):
            return make_error("Invalid Request", INVALID_REQUEST)
        if "method" not in message and ("result" in message or "error" in message):
            logger.debug(f"Ignoring response message from client: id={message.get('id')}")
            return None

        notification = is_notification(message)
        request_id = safe_id(message)
        try:
            validate_request(message)
            method = message["method"]
            if method not in SUPPORTED_METHODS:
                raise JSONRPCError(METHOD_NOT_FOUND, f"Method not found: {method}", request_id=request_id)
            try:
                request = parse_local_request(message)
            except RequestParseError as e:
                raise JSONRPCError(INVALID_PARAMS, str(e), request_id=request_id) from e
            result = await self._handlers[method](request, request_id=request_id)
        except JSONRPCError as e:
            if notification:
                logger.debug(f"Dropping invalid notification: {e.message}")
                return None
            logger.warning(f"Rejected request: id={request_id} code={e.code} message={e.message}")
            return e.to_dict()

        if notification:
            return None
        return make_result(result, request_id)

    async def _process(self, message: Message) -> None:
        """Dispatch one message and write its response, if any.

        Args:
            message: Decoded inbound message.
        """
        try:
            response = await self.dispatch(message)
        except Exception as e:
            logger.exception(f"Unexpected error while handling message: {e}")
            request_id = safe_id(message) if isinstance(message, dict) else None
            response = make_error("Internal error", INTERNAL_ERROR, str(e), request_id)

        if response is None:
            return
        if self._closed:
            logger.debug(f"Discarding response after close: id={response.get('id')}")
            return
        try:
            await self.transport.send_message(response)
        except TransportClosedError as e:
            self._transport_closed(e)
        except (RuntimeError, ConnectionError) as e:
            logger.warning(f"Could not deliver response id={response.get('id')}: {e}")

    def _transport_closed(self, error: TransportClosedError) -> None:
        """Signal :meth:`serve` that the local channel has ended.

        Args:
            error: The failure reported by the transport.
        """
        if self._lost is not None and not self._lost.done():
            logger.warning(f"Local transport closed: {error}")
            self._lost.set_result(None)

    async def _read_loop(self) -> None:
        """Spawn one task per inbound message until end of input."""
        try:
            async for message in self.transport.receive_message():
                task = asyncio.create_task(self._process(message))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
        except TransportClosedError as e:
            self._transport_closed(e)

    async def serve(self) -> None:
        """Read messages until the transport reaches end of input.

        Each message is dispatched as its own task, so slow remote calls do
        not hold up later requests. Outstanding handlers are awaited before
        returning. If the transport reports it can no longer write, the
        session ends at once and outstanding handlers are cancelled.
        """
        self._lost = asyncio.get_running_loop().create_future()
        reader = asyncio.create_task(self._read_loop())
        try:
            await asyncio.wait({reader, self._lost}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not reader.done():
                reader.cancel()
                with suppress(asyncio.CancelledError):
                    await reader

        if self._lost.done():
            await self._cancel_tasks()
            return
        reader.result()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Stop writing responses and cancel outstanding handlers."""
        self._closed = True
        await self._cancel_tasks()

    async def _cancel_tasks(self) -> None:
        """Cancel and reap every outstanding handler task."""
        tasks = [task for task in self._tasks if task is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
