# -*- coding: utf-8 -*-
"""Location: ./tests/conftest.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Shared fixtures: settings, state records, and a scripted remote server
built on ``httpx.MockTransport``.
"""

# Standard
import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional

# Third-Party
import httpx
import pytest

# First-Party
from cellium_mcp.config import Settings
from cellium_mcp.models import ConnectionState, PendingRequestRegistry
from cellium_mcp.services.remote_client import RemoteClient

TEST_TOKEN = "user:tester:0123abcd"
TEST_ENDPOINT = "http://cellium.test/sse"


class FakeRemote:
    """Scripted JSON-RPC server behind an ``httpx.MockTransport``.

    ``routes`` maps a method to either a JSON body, an ``httpx.Response``,
    an exception instance (raised as a network error) or a callable taking
    the decoded request and returning any of those. Unrouted methods answer
    ``{"result": {}}``.
    """

    def __init__(self):
        self.routes: Dict[str, Any] = {}
        self.requests: List[Dict[str, Any]] = []
        self.headers: List[httpx.Headers] = []
        self.urls: List[str] = []

    def methods(self) -> List[str]:
        return [r["method"] for r in self.requests]

    def route(self, method: str, reply: Any) -> None:
        self.routes[method] = reply

    def fail_everything(self, exc: Optional[Exception] = None) -> None:
        self.routes["*"] = exc or httpx.ConnectError("connection refused")

    def _handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        self.headers.append(request.headers)
        self.urls.append(str(request.url))

        reply = self.routes.get(body["method"], self.routes.get("*", {"jsonrpc": "2.0", "id": body["id"], "result": {}}))
        if callable(reply) and not isinstance(reply, Exception):
            reply = reply(body)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self._handler))


class AsyncHandlerRemote(FakeRemote):
    """Variant whose handler can block on an event, for concurrency tests."""

    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()
        self.blocked_methods: set = set()
        self.entered = 0

    async def _async_handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["method"] in self.blocked_methods:
            self.entered += 1
            await self.release.wait()
        return self._handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self._async_handler))


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Keep host environment variables and .env files out of the tests."""
    for key in ("TOKEN", "ENDPOINT", "RETRY_ATTEMPTS", "RETRY_DELAY", "LOG_LEVEL", "KEEPALIVE_INTERVAL"):
        monkeypatch.delenv(f"CELLIUM_MCP_{key}", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo level and propagation changes made by LoggingService."""
    yield
    root = logging.getLogger("cellium_mcp")
    root.disabled = False
    root.setLevel(logging.NOTSET)
    root.propagate = True


@pytest.fixture
def settings() -> Settings:
    return Settings(token=TEST_TOKEN, endpoint=TEST_ENDPOINT, retry_attempts=3, retry_delay=1000)


@pytest.fixture
def state() -> ConnectionState:
    return ConnectionState()


@pytest.fixture
def pending() -> PendingRequestRegistry:
    return PendingRequestRegistry()


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
async def remote(settings, state, fake_remote):
    client = RemoteClient(settings, state, client=fake_remote.client())
    yield client
    await client._client.aclose()


@pytest.fixture
def rpc_result() -> Callable[[Any], Callable[[Dict[str, Any]], Dict[str, Any]]]:
    """Build a route that echoes the request id with the given result."""

    def make(result: Any) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
        return lambda body: {"jsonrpc": "2.0", "id": body["id"], "result": result}

    return make


@pytest.fixture
def blocking_remote() -> AsyncHandlerRemote:
    return AsyncHandlerRemote()
