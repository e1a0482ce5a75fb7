# -*- coding: utf-8 -*-
"""Location: ./tests/unit/cellium_mcp/handlers/test_protocol.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Tests for the local protocol adapter: handler registration, local
handshake, forwarding, and JSON-RPC error replies.
"""

# Standard
import asyncio
import logging
from typing import Any, Dict, List
from unittest.mock import AsyncMock

# Third-Party
import pytest

# First-Party
from cellium_mcp.errors import RemoteCallError, RemoteErrorKind, TransportClosedError
from cellium_mcp.handlers.protocol import LocalProtocolAdapter
from cellium_mcp.transports.base import Transport


class _MemoryTransport(Transport):
    """Transport fed from a list, recording everything sent."""

    def __init__(self, inbound: List[Any] = None):
        self.inbound = list(inbound or [])
        self.sent: List[Dict[str, Any]] = []
        self.connected = True

    async def connect(self):
        self.connected = True

    async def close(self):
        self.connected = False

    async def send_message(self, message):
        self.sent.append(message)

    async def receive_message(self):
        for message in self.inbound:
            await asyncio.sleep(0)
            yield message

    async def is_connected(self):
        return self.connected


@pytest.fixture
def remote_mock():
    remote = AsyncMock()
    remote.forward = AsyncMock(return_value={"ok": True})
    return remote


@pytest.fixture
def adapter(settings, state, pending, remote_mock):
    return LocalProtocolAdapter(_MemoryTransport(), remote_mock, state, pending, settings)


def _req(method, params=None, request_id=1):
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


def test_all_methods_registered(adapter):
    assert adapter.methods == {
        "initialize",
        "tools/list",
        "tools/call",
        "resources/list",
        "resources/read",
        "ping",
        "notifications/initialized",
    }


# --------------------------------------------------------------------------- #
# initialize                                                                   #
# --------------------------------------------------------------------------- #
async def test_initialize_answered_locally(adapter, remote_mock):
    response = await adapter.dispatch(_req("initialize", {"protocolVersion": "2025-03-26", "capabilities": {}, "clientInfo": {"name": "editor", "version": "1"}}))

    assert response == {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {
            "protocolVersion": "2025-03-26",
            "capabilities": {"tools": {}, "resources": {}},
            "serverInfo": {"name": "cellium-mcp-client", "version": "1.1.1"},
        },
    }
    remote_mock.forward.assert_not_awaited()


async def test_initialize_version_mismatch_only_warns(adapter, caplog):
    with caplog.at_level(logging.WARNING, logger="cellium_mcp"):
        response = await adapter.dispatch(_req("initialize", {"protocolVersion": "2024-11-05"}))

    assert response["result"]["protocolVersion"] == "2025-03-26"
    assert any("2024-11-05" in r.message for r in caplog.records)


async def test_initialize_ignores_remote_state(adapter, remote_mock, state):
    remote_mock.forward.side_effect = RemoteCallError(RemoteErrorKind.CONNECTION_UNAVAILABLE, "down")
    response = await adapter.dispatch(_req("initialize", {}))
    assert "result" in response
    assert state.connected is False


# --------------------------------------------------------------------------- #
# notifications/initialized                                                    #
# --------------------------------------------------------------------------- #
async def test_initialized_notification_updates_state(adapter, remote_mock, state):
    response = await adapter.dispatch({"jsonrpc": "2.0", "method": "notifications/initialized"})

    assert response is None
    assert state.client_initialized is True
    assert state.last_activity_at is not None
    remote_mock.forward.assert_not_awaited()


# --------------------------------------------------------------------------- #
# Forwarded methods                                                            #
# --------------------------------------------------------------------------- #
@pytest.mark.parametrize(
    "method,params,forwarded",
    [
        ("tools/list", None, {}),
        ("tools/list", {"cursor": "next"}, {"cursor": "next"}),
        ("tools/call", {"name": "echo", "arguments": {"a": 1}}, {"name": "echo", "arguments": {"a": 1}}),
        ("resources/list", {}, {}),
        ("resources/read", {"uri": "cellium://x"}, {"uri": "cellium://x"}),
        ("ping", None, {}),
    ],
)
async def test_forwarded_methods(adapter, remote_mock, method, params, forwarded):
    response = await adapter.dispatch(_req(method, params, request_id="abc"))

    remote_mock.forward.assert_awaited_once_with(method, forwarded)
    assert response == {"jsonrpc": "2.0", "id": "abc", "result": {"ok": True}}


async def test_remote_result_passes_through_untouched(adapter, remote_mock):
    # Tools without an inputSchema are relayed as-is
    remote_mock.forward.return_value = {"tools": [{"name": "bare"}]}
    response = await adapter.dispatch(_req("tools/list"))
    assert response["result"] == {"tools": [{"name": "bare"}]}


async def test_forwarded_failure_returns_fallback(adapter, remote_mock, state):
    remote_mock.forward.side_effect = RemoteCallError(RemoteErrorKind.HTTP_STATUS, "HTTP 500: Internal Server Error", status_code=500)

    response = await adapter.dispatch(_req("tools/call", {"name": "x"}, request_id=5))

    assert response["id"] == 5
    assert response["result"] == {"content": [{"type": "text", "text": "Error calling tool: HTTP 500: Internal Server Error"}], "isError": True}
    assert state.error_count == 1


# --------------------------------------------------------------------------- #
# JSON-RPC errors                                                              #
# --------------------------------------------------------------------------- #
async def test_unknown_method(adapter):
    response = await adapter.dispatch(_req("sampling/createMessage", {}, request_id=3))
    assert response["id"] == 3
    assert response["error"]["code"] == -32601


async def test_invalid_params(adapter, remote_mock):
    response = await adapter.dispatch(_req("resources/read", {}, request_id=4))
    assert response["error"]["code"] == -32602
    remote_mock.forward.assert_not_awaited()


async def test_invalid_envelope(adapter):
    response = await adapter.dispatch({"jsonrpc": "1.0", "id": 7, "method": "ping"})
    assert response["id"] == 7
    assert response["error"]["code"] == -32600


async def test_batch_rejected(adapter):
    response = await adapter.dispatch([_req("ping")])
    assert response["id"] is None
    assert response["error"]["code"] == -32600


async def test_non_object_rejected(adapter):
    response = await adapter.dispatch("ping")
    assert response["error"]["code"] == -32600


async def test_unknown_notification_is_silent(adapter):
    assert await adapter.dispatch({"jsonrpc": "2.0", "method": "notifications/cancelled", "params": {"requestId": 1}}) is None


async def test_responses_from_client_are_ignored(adapter):
    assert await adapter.dispatch({"jsonrpc": "2.0", "id": 9, "result": {}}) is None


# --------------------------------------------------------------------------- #
# serve / close                                                                #
# --------------------------------------------------------------------------- #
async def test_serve_answers_each_request(settings, state, pending, remote_mock):
    transport = _MemoryTransport(
        [
            _req("initialize", {}, request_id=1),
            {"jsonrpc": "2.0", "method": "notifications/initialized"},
            _req("tools/list", request_id=2),
            _req("nope", request_id=3),
        ]
    )
    adapter = LocalProtocolAdapter(transport, remote_mock, state, pending, settings)

    await adapter.serve()

    by_id = {m["id"]: m for m in transport.sent}
    assert set(by_id) == {1, 2, 3}
    assert "serverInfo" in by_id[1]["result"]
    assert by_id[2]["result"] == {"ok": True}
    assert by_id[3]["error"]["code"] == -32601


async def test_serve_runs_handlers_concurrently(settings, state, pending, remote_mock):
    release = asyncio.Event()
    started = 0

    async def slow_forward(method, params):
        nonlocal started
        started += 1
        await release.wait()
        return {"method": method}

    remote_mock.forward = slow_forward
    transport = _MemoryTransport([_req("tools/list", request_id=1), _req("resources/list", request_id=2)])
    adapter = LocalProtocolAdapter(transport, remote_mock, state, pending, settings)

    serve_task = asyncio.create_task(adapter.serve())
    for _ in range(50):
        await asyncio.sleep(0)
    assert started == 2
    assert len(pending) == 2

    release.set()
    await serve_task
    assert {m["id"] for m in transport.sent} == {1, 2}


async def test_responses_after_close_are_discarded(settings, state, pending, remote_mock):
    transport = _MemoryTransport()
    adapter = LocalProtocolAdapter(transport, remote_mock, state, pending, settings)
    await adapter.close()

    await adapter._process(_req("ping"))

    assert transport.sent == []


async def test_close_cancels_outstanding_handlers(settings, state, pending, remote_mock):
    async def hang(method, params):
        await asyncio.Event().wait()

    remote_mock.forward = hang
    transport = _MemoryTransport([_req("tools/call", {"name": "x"})])
    adapter = LocalProtocolAdapter(transport, remote_mock, state, pending, settings)

    serve_task = asyncio.create_task(adapter.serve())
    for _ in range(20):
        await asyncio.sleep(0)
    assert len(pending) == 1

    await adapter.close()
    await serve_task

    assert len(pending) == 0
    assert transport.sent == []


class _UnwritableTransport(_MemoryTransport):
    """Peer that keeps stdin open but has stopped reading stdout."""

    async def send_message(self, message):
        raise TransportClosedError("stdout closed by peer")

    async def receive_message(self):
        for message in self.inbound:
            yield message
        await asyncio.Event().wait()


async def test_unwritable_transport_ends_session(settings, state, pending, remote_mock, caplog):
    async def forward(method, params):
        if method == "tools/call":
            await asyncio.Event().wait()
        return {}

    remote_mock.forward = forward
    transport = _UnwritableTransport([_req("tools/call", {"name": "slow"}, request_id=1), _req("ping", request_id=2)])
    adapter = LocalProtocolAdapter(transport, remote_mock, state, pending, settings)

    with caplog.at_level(logging.WARNING, logger="cellium_mcp"):
        await asyncio.wait_for(adapter.serve(), timeout=5)

    assert len(pending) == 0
    assert any("Local transport closed" in r.message for r in caplog.records)


async def test_transport_closing_while_reading_ends_session(settings, state, pending, remote_mock):
    class _ClosedOnRead(_MemoryTransport):
        async def receive_message(self):
            raise TransportClosedError("stdout closed by peer")
            yield  # pragma: no cover

    adapter = LocalProtocolAdapter(_ClosedOnRead(), remote_mock, state, pending, settings)

    await asyncio.wait_for(adapter.serve(), timeout=5)

    remote_mock.forward.assert_not_awaited()
