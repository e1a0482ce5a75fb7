# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/utils/retry_manager.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Reconnect controller with fixed-delay retries.

Governs the startup/background connection path only. Per-call forwarding is
never retried here; a failed call degrades through the error boundary
instead.

Policy:
- ``attempts_made`` starts at 0 and returns to 0 on any successful check
- on failure, while ``attempts_made < retry_attempts``: count the attempt and
  schedule exactly one retry after ``retry_delay`` seconds (no backoff growth)
- once the budget is spent and the check fails again, resolve
  :attr:`ReconnectController.exhausted` with a
  :class:`~cellium_mcp.errors.ReconnectExhaustedError`; the process
  supervisor treats that as fatal
- at most one retry timer exists; starting a new probe replaces it

Example Usage:

    >>> import asyncio
    >>> from cellium_mcp.models import ConnectionState
    >>> from cellium_mcp.services.connection_service import ConnectionTracker
    >>> async def ok():
    ...     return {}
    >>> async def demo():
    ...     tracker = ConnectionTracker(ConnectionState(), probe=ok)
    ...     controller = ReconnectController(tracker, retry_attempts=3, retry_delay=1.0)
    ...     return await controller.probe(), controller.attempts_made
    >>> asyncio.run(demo())
    (True, 0)
"""

# Standard
import asyncio
import logging
from typing import Optional

# First-Party
from cellium_mcp.errors import ReconnectExhaustedError, RemoteCallError
from cellium_mcp.services.connection_service import ConnectionTracker

logger = logging.getLogger(__name__)


class ReconnectController:
    """Fixed-delay, capped retry loop around the liveness check.

    Attributes:
        tracker: Liveness tracker whose ``check()`` is retried.
        retry_attempts: Maximum number of scheduled retries.
        retry_delay: Delay before each retry, in seconds.
        attempts_made: Retries scheduled since the last success.
    """

    def __init__(self, tracker: ConnectionTracker, retry_attempts: int, retry_delay: float):
        """Create the controller and subscribe to successful checks.

        Args:
            tracker: Liveness tracker.
            retry_attempts: Maximum number of scheduled retries.
            retry_delay: Delay before each retry, in seconds.
        """
        self.tracker = tracker
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.attempts_made = 0
        self._timer: Optional[asyncio.Task] = None
        self._probe_task: Optional[asyncio.Task] = None
        self._exhausted: Optional[asyncio.Future] = None
        tracker.add_connected_listener(self.reset)

    @property
    def exhausted(self) -> asyncio.Future:
        """Future that fails with ReconnectExhaustedError when retries run out.

        Returns:
            asyncio.Future: Never resolves while connection attempts remain.
        """
        if self._exhausted is None:
            self._exhausted = asyncio.get_running_loop().create_future()
        return self._exhausted

    @property
    def retry_pending(self) -> bool:
        """Whether a retry timer is outstanding.

        Returns:
            bool: True while a scheduled retry has not fired.
        """
        return self._timer is not None and not self._timer.done()

    def start(self) -> asyncio.Task:
        """Launch a background probe without waiting for it.

        Returns:
            asyncio.Task: The probe task.
        """
        self._probe_task = asyncio.create_task(self.probe())
        return self._probe_task

    async def probe(self) -> bool:
        """Run one liveness check, scheduling a retry on failure.

        A retry already pending is cancelled and replaced.

        Returns:
            bool: True if the remote server answered.
        """
        self._cancel_timer()
        try:
            await self.tracker.check()
        except RemoteCallError as e:
            self._on_failure(e)
            return False
        return True

    def reset(self) -> None:
        """Forget past failures and drop any pending retry."""
        if self.attempts_made:
            logger.debug(f"Connection restored, resetting retry counter from {self.attempts_made}")
        self.attempts_made = 0
        self._cancel_timer()

    def cancel(self) -> None:
        """Stop all background activity (pending retry and running probe)."""
        self._cancel_timer()
        if self._probe_task is not None and not self._probe_task.done() and self._probe_task is not asyncio.current_task():
            self._probe_task.cancel()
        self._probe_task = None

    def _on_failure(self, error: RemoteCallError) -> None:
        """Schedule a retry, or declare exhaustion.

        Args:
            error: Failure of the check that just ran.
        """
        if self.attempts_made < self.retry_attempts:
            self.attempts_made += 1
            logger.warning(f"Failed to connect to remote server ({error.__cause__ or error}); retry {self.attempts_made}/{self.retry_attempts} in {self.retry_delay:g}s")
            self._timer = asyncio.create_task(self._retry_after(self.retry_delay))
            return

        logger.error(f"Failed to connect to remote server after {self.retry_attempts} retries, giving up")
        if not self.exhausted.done():
            self.exhausted.set_exception(ReconnectExhaustedError(self.retry_attempts, error.__cause__ or error))

    async def _retry_after(self, delay: float) -> None:
        """Timer body: wait, then probe again.

        Args:
            delay: Seconds to wait.
        """
        await asyncio.sleep(delay)
        # Fired; from here on this task is a probe, not a pending timer
        self._timer = None
        self._probe_task = asyncio.current_task()
        await self.probe()

    def _cancel_timer(self) -> None:
        """Cancel the pending retry timer, if any."""
        timer = self._timer
        self._timer = None
        if timer is not None and not timer.done() and timer is not asyncio.current_task():
            timer.cancel()
