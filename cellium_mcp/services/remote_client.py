# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/services/remote_client.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Remote Transcoder.

Turns a local method call into a JSON-RPC POST against the remote Cellium
server and turns the reply back into a result value or a
:class:`~cellium_mcp.errors.RemoteCallError`.

Outbound requests carry:
- a fresh random request id
- ``Authorization: Bearer <token>``
- ``Content-Type: application/json``
- ``User-Agent: cellium-mcp-client/<version>``

Failure mapping:
- network error            -> CONNECTION_UNAVAILABLE
- non-2xx status           -> HTTP_STATUS ("HTTP <code>: <reason>")
- 2xx with an error object -> PROTOCOL_ERROR ("Remote server error: <message>")
- 2xx with an unusable body -> MALFORMED_RESPONSE

Any failure of :meth:`RemoteClient.forward` marks the connection as down, so
the next call re-validates it with a liveness check first.
"""

# Standard
import logging
from typing import Any, Dict, Optional
import uuid

# Third-Party
import httpx
from pydantic import ValidationError

# First-Party
from cellium_mcp.config import Settings
from cellium_mcp.errors import RemoteCallError, RemoteErrorKind
from cellium_mcp.models import ConnectionState
from cellium_mcp.schemas import RemoteEnvelope, RemoteResponse
from cellium_mcp.services.connection_service import ConnectionTracker

logger = logging.getLogger(__name__)


def new_request_id() -> str:
    """Generate an opaque id for an outbound request.

    Returns:
        str: 32 hex characters.

    Examples:
        >>> len(new_request_id())
        32
        >>> new_request_id() != new_request_id()
        True
    """
    return uuid.uuid4().hex


def parse_response(response: httpx.Response) -> Any:
    """Extract the result from a remote HTTP response.

    Args:
        response: The remote server's HTTP response.

    Returns:
        Any: The JSON-RPC ``result`` value.

    Raises:
        RemoteCallError: ``HTTP_STATUS``, ``PROTOCOL_ERROR`` or ``MALFORMED_RESPONSE``.

    Examples:
        >>> parse_response(httpx.Response(200, json={"jsonrpc": "2.0", "id": "1", "result": {"tools": []}}))
        {'tools': []}
        >>> try:
        ...     parse_response(httpx.Response(200, json={"error": {"code": -32000, "message": "boom"}}))
        ... except RemoteCallError as e:
        ...     print(e.kind.name, e)
        PROTOCOL_ERROR Remote server error: boom
        >>> try:
        ...     parse_response(httpx.Response(502))
        ... except RemoteCallError as e:
        ...     print(e.kind.name, e.status_code, e)
        HTTP_STATUS 502 HTTP 502: Bad Gateway
        >>> try:
        ...     parse_response(httpx.Response(200, text="<html>"))
        ... except RemoteCallError as e:
        ...     print(e.kind.name)
        MALFORMED_RESPONSE
    """
    if not response.is_success:
        raise RemoteCallError(
            RemoteErrorKind.HTTP_STATUS,
            f"HTTP {response.status_code}: {response.reason_phrase}",
            status_code=response.status_code,
        )

    try:
        body = response.json()
    except ValueError as e:
        raise RemoteCallError(RemoteErrorKind.MALFORMED_RESPONSE, f"Malformed response from remote server: {e}") from e
    if not isinstance(body, dict):
        raise RemoteCallError(RemoteErrorKind.MALFORMED_RESPONSE, "Malformed response from remote server: expected a JSON object")

    try:
        envelope = RemoteResponse.model_validate(body)
    except ValidationError as e:
        raise RemoteCallError(RemoteErrorKind.MALFORMED_RESPONSE, f"Malformed response from remote server: {e.error_count()} validation error(s)") from e

    if envelope.error is not None:
        raise RemoteCallError(RemoteErrorKind.PROTOCOL_ERROR, f"Remote server error: {envelope.error.message}", code=envelope.error.code)
    return envelope.result


class RemoteClient:
    """JSON-RPC-over-HTTP client for the remote Cellium server.

    Attributes:
        settings: Immutable client configuration.
        state: Shared connection state.
        endpoint: Rewritten URL requests are POSTed to.
        tracker: Liveness tracker whose probe is :meth:`ping`.

    Examples:
        >>> from cellium_mcp.config import Settings
        >>> from cellium_mcp.models import ConnectionState
        >>> remote = RemoteClient(Settings(token="user:a:1f", endpoint="http://h/sse"), ConnectionState())
        >>> remote.endpoint
        'http://h/mcp'
        >>> remote.headers()["Authorization"]
        'Bearer user:a:1f'
    """

    def __init__(self, settings: Settings, state: ConnectionState, client: Optional[httpx.AsyncClient] = None):
        """Create the remote client.

        Args:
            settings: Client configuration.
            state: Shared connection state, owned by the lifecycle controller.
            client: HTTP client to use; one is created (and owned) when omitted.
        """
        self.settings = settings
        self.state = state
        self.endpoint = settings.rpc_endpoint
        if client is None:
            timeout = httpx.Timeout(
                connect=settings.connect_timeout,
                read=settings.response_timeout,
                write=settings.response_timeout,
                pool=settings.response_timeout,
            )
            client = httpx.AsyncClient(timeout=timeout)
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client
        self.tracker = ConnectionTracker(state, probe=self.ping)

    def headers(self) -> Dict[str, str]:
        """Headers sent with every outbound request.

        Returns:
            Dict[str, str]: Authorization, content type and user agent.
        """
        return {
            "Authorization": f"Bearer {self.settings.token}",
            "Content-Type": "application/json",
            "User-Agent": self.settings.user_agent,
        }

    async def forward(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Forward a local call to the remote server.

        Runs a liveness check first when the connection is down.

        Args:
            method: JSON-RPC method name.
            params: Method params.

        Returns:
            Any: The remote ``result``.

        Raises:
            RemoteCallError: On any failure; the connection is marked down first.
        """
        try:
            await self.tracker.ensure_live()
            return await self.post(method, params or {})
        except Exception as e:
            self.tracker.mark_disconnected(e)
            logger.warning(f"HTTP request to remote server failed: method={method} error={e}")
            raise

    async def ping(self) -> Any:
        """Issue the raw ``ping`` liveness call, without a liveness preamble.

        Returns:
            Any: The remote ``result`` (normally ``{}``).
        """
        return await self.post("ping", {})

    async def post(self, method: str, params: Dict[str, Any]) -> Any:
        """Send one JSON-RPC request and decode the reply.

        Args:
            method: JSON-RPC method name.
            params: Method params.

        Returns:
            Any: The remote ``result``.

        Raises:
            RemoteCallError: On network, HTTP, protocol or decoding failure.
        """
        envelope = RemoteEnvelope(id=new_request_id(), method=method, params=params)
        self.state.record_request()
        logger.debug(f"Making HTTP request to remote server: method={method} id={envelope.id} endpoint={self.endpoint}")
        try:
            response = await self._client.post(self.endpoint, json=envelope.model_dump(), headers=self.headers())
        except httpx.RequestError as e:
            raise RemoteCallError(RemoteErrorKind.CONNECTION_UNAVAILABLE, f"Request to remote server failed: {e!r}") from e
        return parse_response(response)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
