# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/handlers/error_boundary.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Error Boundary.

Every local request handler is wrapped once, at registration time, by
:meth:`ErrorBoundary.guard`. The wrapped handler always returns normally:
an exception escaping into the stdio loop would end the host's session, so
failures are logged and replaced by a method-specific fallback payload that
still matches the method's success shape.

Fallbacks:
- ``tools/list``      -> ``{"tools": []}``
- ``resources/list``  -> ``{"resources": []}``
- ``tools/call``      -> one text item describing the error, ``isError: true``
- ``resources/read``  -> one text item for the requested URI describing the error
- ``ping``            -> ``{}``
- anything else       -> ``{"error": "<message>"}``

Examples:
    >>> fallback_for("tools/list", None, RuntimeError("down"))
    {'tools': []}
    >>> fallback_for("tools/call", None, RuntimeError("Remote server error: boom"))
    {'content': [{'type': 'text', 'text': 'Error calling tool: Remote server error: boom'}], 'isError': True}
    >>> fallback_for("sampling/createMessage", None, RuntimeError("nope"))
    {'error': 'nope'}
"""

# Standard
import functools
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

# First-Party
from cellium_mcp.models import ConnectionState, PendingRequestRegistry
from cellium_mcp.schemas import ReadResourceRequest
from cellium_mcp.types import (
    CallToolResult,
    EmptyResult,
    ListResourcesResult,
    ListToolsResult,
    ReadResourceResult,
    TextContent,
    TextResourceContents,
    to_wire,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[Any]]
SafeHandler = Callable[..., Awaitable[Any]]


def _tools_list_fallback(request: Any, error: BaseException) -> Dict[str, Any]:
    return to_wire(ListToolsResult(tools=[]))


def _resources_list_fallback(request: Any, error: BaseException) -> Dict[str, Any]:
    return to_wire(ListResourcesResult(resources=[]))


def _tools_call_fallback(request: Any, error: BaseException) -> Dict[str, Any]:
    return to_wire(CallToolResult(content=[TextContent(text=f"Error calling tool: {error}")], is_error=True))


def _resources_read_fallback(request: Any, error: BaseException) -> Dict[str, Any]:
    uri = request.params.uri if isinstance(request, ReadResourceRequest) else ""
    contents = TextResourceContents(uri=uri, mime_type="text/plain", text=f"Error reading resource: {error}")
    return to_wire(ReadResourceResult(contents=[contents]))


def _ping_fallback(request: Any, error: BaseException) -> Dict[str, Any]:
    return to_wire(EmptyResult())


FALLBACKS: Dict[str, Callable[[Any, BaseException], Dict[str, Any]]] = {
    "tools/list": _tools_list_fallback,
    "resources/list": _resources_list_fallback,
    "tools/call": _tools_call_fallback,
    "resources/read": _resources_read_fallback,
    "ping": _ping_fallback,
}


def fallback_for(method: str, request: Any, error: BaseException) -> Dict[str, Any]:
    """Build the safe payload returned when ``method`` fails.

    Args:
        method: Local method name.
        request: The parsed request, or None if unavailable.
        error: The failure being absorbed.

    Returns:
        Dict[str, Any]: A result matching the method's success shape.

    Examples:
        >>> fallback_for("ping", None, RuntimeError("x"))
        {}
        >>> fallback_for("resources/read", None, RuntimeError("x"))["contents"][0]["uri"]
        ''
    """
    builder = FALLBACKS.get(method)
    if builder is None:
        return {"error": str(error)}
    return builder(request, error)


class ErrorBoundary:
    """Wraps handlers so they always produce a schema-valid result.

    The boundary also does the per-invocation bookkeeping: a
    :class:`~cellium_mcp.models.PendingRequest` is registered on entry and
    removed on exit, and failures bump ``error_count``.

    Attributes:
        state: Shared connection state.
        pending: Registry of in-flight invocations.
    """

    def __init__(self, state: ConnectionState, pending: PendingRequestRegistry):
        """Create a boundary over the shared state records.

        Args:
            state: Shared connection state.
            pending: Registry of in-flight invocations.
        """
        self.state = state
        self.pending = pending

    def guard(self, method: str, handler: Handler) -> SafeHandler:
        """Wrap ``handler`` so that it never raises.

        Args:
            method: Local method name, selects the fallback.
            handler: Coroutine function taking the parsed request.

        Returns:
            SafeHandler: Coroutine function ``(request, request_id=None)``.

        Examples:
            >>> import asyncio
            >>> from cellium_mcp.models import ConnectionState, PendingRequestRegistry
            >>> boundary = ErrorBoundary(ConnectionState(), PendingRequestRegistry())
            >>> async def broken(request):
            ...     raise RuntimeError("remote down")
            >>> safe = boundary.guard("tools/list", broken)
            >>> asyncio.run(safe(None))
            {'tools': []}
            >>> boundary.state.error_count, len(boundary.pending)
            (1, 0)
        """

        @functools.wraps(handler)
        async def safe_handler(request: Any, request_id: Optional[Any] = None) -> Any:
            entry = self.pending.begin(method, request_id=request_id)
            try:
                result = await handler(request)
            except Exception as e:
                self.state.record_error()
                elapsed_ms = entry.elapsed() * 1000
                logger.error(f"Handler failed: method={method} pending_id={entry.id} request_id={request_id} duration_ms={elapsed_ms:.1f} error={e}")
                return fallback_for(method, request, e)
            finally:
                self.pending.complete(entry.id)
            logger.debug(f"Handler completed: method={method} pending_id={entry.id} duration_ms={entry.elapsed() * 1000:.1f}")
            return result

        return safe_handler
