# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/models.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

State records shared by the proxy components.

``ConnectionState`` and ``PendingRequestRegistry`` are created by the
lifecycle controller and handed by reference to the components that mutate
them. All mutation happens on the event-loop thread and never spans an
``await``, so neither record needs a lock.
"""

# Standard
from dataclasses import dataclass, field
from datetime import datetime, timezone
import time
from typing import Any, Dict, Iterator, List, Optional, Union
import uuid


@dataclass
class ConnectionState:
    """Liveness of the remote endpoint plus observability counters.

    Attributes:
        connected: Whether the last liveness check or call succeeded.
        last_activity_at: UTC time of the last outbound call or local notification.
        request_count: Outbound call attempts, success or not.
        error_count: Handler invocations that fell back to a safe payload.
        client_initialized: Whether the local client sent ``notifications/initialized``.

    Examples:
        >>> state = ConnectionState()
        >>> state.connected, state.request_count
        (False, 0)
        >>> state.record_request()
        >>> state.request_count, state.last_activity_at is not None
        (1, True)
    """

    connected: bool = False
    last_activity_at: Optional[datetime] = None
    request_count: int = 0
    error_count: int = 0
    client_initialized: bool = False

    def touch(self) -> None:
        """Stamp ``last_activity_at`` with the current time."""
        self.last_activity_at = datetime.now(timezone.utc)

    def record_request(self) -> None:
        """Count one outbound call attempt."""
        self.request_count += 1
        self.touch()

    def record_error(self) -> None:
        """Count one failed handler invocation."""
        self.error_count += 1

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict view for diagnostics.

        Returns:
            Dict[str, Any]: Current field values.
        """
        return {
            "connected": self.connected,
            "last_activity_at": self.last_activity_at.isoformat() if self.last_activity_at else None,
            "request_count": self.request_count,
            "error_count": self.error_count,
            "client_initialized": self.client_initialized,
        }


@dataclass
class PendingRequest:
    """A local handler invocation that has not completed yet.

    Attributes:
        id: Opaque identifier, unique among in-flight requests.
        method: Local method name.
        started_at: ``time.monotonic()`` when the handler began.
        request_id: Inbound JSON-RPC id, for log correlation.
    """

    id: str
    method: str
    started_at: float = field(default_factory=time.monotonic)
    request_id: Union[str, int, None] = None

    def elapsed(self, now: Optional[float] = None) -> float:
        """Seconds since the handler began.

        Args:
            now: Monotonic timestamp to measure against, defaults to now.

        Returns:
            float: Elapsed seconds.

        Examples:
            >>> PendingRequest(id="a", method="ping", started_at=10.0).elapsed(now=12.5)
            2.5
        """
        return (time.monotonic() if now is None else now) - self.started_at


class PendingRequestRegistry:
    """In-flight handler invocations keyed by opaque id.

    Examples:
        >>> registry = PendingRequestRegistry()
        >>> entry = registry.begin("tools/list", request_id=1)
        >>> len(registry)
        1
        >>> registry.complete(entry.id) is entry
        True
        >>> len(registry), registry.complete(entry.id)
        (0, None)
    """

    def __init__(self) -> None:
        """Create an empty registry."""
        self._entries: Dict[str, PendingRequest] = {}

    def __len__(self) -> int:
        """Number of in-flight requests.

        Returns:
            int: Registry size.
        """
        return len(self._entries)

    def __iter__(self) -> Iterator[PendingRequest]:
        """Iterate over a copy of the in-flight requests.

        Returns:
            Iterator[PendingRequest]: Entries in insertion order.
        """
        return iter(list(self._entries.values()))

    def __contains__(self, pending_id: object) -> bool:
        """Tell whether an id is still in flight.

        Args:
            pending_id: Opaque id.

        Returns:
            bool: True if present.
        """
        return pending_id in self._entries

    def begin(self, method: str, request_id: Union[str, int, None] = None) -> PendingRequest:
        """Register a new in-flight request under a fresh id.

        Args:
            method: Local method name.
            request_id: Inbound JSON-RPC id.

        Returns:
            PendingRequest: The registered entry.
        """
        entry = PendingRequest(id=uuid.uuid4().hex, method=method, request_id=request_id)
        self._entries[entry.id] = entry
        return entry

    def complete(self, pending_id: str) -> Optional[PendingRequest]:
        """Remove an entry; a no-op if it was already cleared.

        Args:
            pending_id: Opaque id.

        Returns:
            Optional[PendingRequest]: The removed entry, or None.
        """
        return self._entries.pop(pending_id, None)

    def drain(self) -> List[PendingRequest]:
        """Remove and return every entry.

        Returns:
            List[PendingRequest]: The entries that were in flight.
        """
        entries = list(self._entries.values())
        self._entries.clear()
        return entries

    def stale(self, threshold: float, now: Optional[float] = None) -> List[PendingRequest]:
        """Entries that have been in flight longer than ``threshold`` seconds.

        Args:
            threshold: Age in seconds.
            now: Monotonic timestamp to measure against.

        Returns:
            List[PendingRequest]: Stale entries.

        Examples:
            >>> registry = PendingRequestRegistry()
            >>> old = registry.begin("tools/call")
            >>> old.started_at = 0.0
            >>> [e.method for e in registry.stale(30, now=45.0)]
            ['tools/call']
            >>> registry.stale(60, now=45.0)
            []
        """
        now = time.monotonic() if now is None else now
        return [entry for entry in self._entries.values() if entry.elapsed(now) > threshold]
