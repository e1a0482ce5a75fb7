# -*- coding: utf-8 -*-
"""Location: ./tests/unit/cellium_mcp/services/test_connection_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Tests for the connection state tracker.
"""

# Standard
import asyncio
from unittest.mock import AsyncMock, MagicMock

# Third-Party
import pytest

# First-Party
from cellium_mcp.errors import RemoteCallError, RemoteErrorKind
from cellium_mcp.models import ConnectionState
from cellium_mcp.services.connection_service import ConnectionTracker


@pytest.fixture
def state():
    return ConnectionState()


async def test_check_success_sets_connected_and_notifies(state):
    probe = AsyncMock(return_value={})
    listener = MagicMock()
    tracker = ConnectionTracker(state, probe=probe)
    tracker.add_connected_listener(listener)

    await tracker.check()

    assert state.connected is True
    probe.assert_awaited_once()
    listener.assert_called_once_with()


async def test_check_failure_raises_connection_unavailable(state):
    state.connected = True
    cause = OSError("refused")
    tracker = ConnectionTracker(state, probe=AsyncMock(side_effect=cause))

    with pytest.raises(RemoteCallError) as exc_info:
        await tracker.check()

    assert exc_info.value.kind is RemoteErrorKind.CONNECTION_UNAVAILABLE
    assert str(exc_info.value) == "Cannot connect to remote Cellium server"
    assert exc_info.value.__cause__ is cause
    assert state.connected is False


async def test_ensure_live_is_noop_when_connected(state):
    state.connected = True
    probe = AsyncMock()
    tracker = ConnectionTracker(state, probe=probe)

    await tracker.ensure_live()

    probe.assert_not_awaited()


async def test_ensure_live_checks_when_disconnected(state):
    probe = AsyncMock(return_value={})
    tracker = ConnectionTracker(state, probe=probe)

    await tracker.ensure_live()

    probe.assert_awaited_once()
    assert state.connected is True


async def test_concurrent_checks_share_one_probe(state):
    release = asyncio.Event()
    calls = 0

    async def slow_probe():
        nonlocal calls
        calls += 1
        await release.wait()
        return {}

    tracker = ConnectionTracker(state, probe=slow_probe)
    waiters = [asyncio.create_task(tracker.ensure_live()) for _ in range(5)]
    await asyncio.sleep(0)
    release.set()
    await asyncio.gather(*waiters)

    assert calls == 1
    assert state.connected is True


async def test_shared_check_failure_reaches_every_waiter(state):
    release = asyncio.Event()

    async def failing_probe():
        await release.wait()
        raise OSError("down")

    tracker = ConnectionTracker(state, probe=failing_probe)
    waiters = [asyncio.create_task(tracker.check()) for _ in range(3)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*waiters, return_exceptions=True)

    assert all(isinstance(r, RemoteCallError) for r in results)


async def test_cancelled_waiter_does_not_cancel_shared_check(state):
    release = asyncio.Event()
    probe_done = asyncio.Event()

    async def slow_probe():
        await release.wait()
        probe_done.set()
        return {}

    tracker = ConnectionTracker(state, probe=slow_probe)
    first = asyncio.create_task(tracker.check())
    await asyncio.sleep(0)
    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first

    second = asyncio.create_task(tracker.check())
    release.set()
    await second
    assert probe_done.is_set()
    assert state.connected is True


async def test_new_check_after_previous_completed(state):
    probe = AsyncMock(return_value={})
    tracker = ConnectionTracker(state, probe=probe)
    await tracker.check()
    await tracker.check()
    assert probe.await_count == 2


def test_mark_disconnected(state):
    state.connected = True
    tracker = ConnectionTracker(state, probe=AsyncMock())
    tracker.mark_disconnected(RuntimeError("boom"))
    assert state.connected is False
