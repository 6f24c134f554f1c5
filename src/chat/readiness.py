"""Readiness tracking for the completion service.

Submissions are only accepted once the service has answered a probe.
Readiness is latched: there is no reconnection handling, so it never
goes back to False.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class ReadinessGate:
    """Polls an async probe until the completion service is available."""

    def __init__(
        self,
        probe: Callable[[], Awaitable[bool]],
        poll_interval: float = 0.1,
    ) -> None:
        """Initialize the gate.

        Args:
            probe: Coroutine function returning True once the service is up.
            poll_interval: Seconds to wait between failed probes.
        """
        self._probe = probe
        self._poll_interval = poll_interval
        self._ready = False
        self._listeners: list[Callable[[], None]] = []
        self._task: asyncio.Task[None] | None = None

    def is_ready(self) -> bool:
        return self._ready

    def add_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback fired once when the gate opens."""
        self._listeners.append(callback)

    def mark_ready(self) -> None:
        if self._ready:
            return
        self._ready = True
        logger.info("Completion service is ready")
        for callback in self._listeners:
            callback()

    async def wait_until_ready(self) -> None:
        """Probe repeatedly until the service answers.

        A probe that raises counts as a failed attempt; polling continues.
        """
        attempts = 0
        while not self._ready:
            attempts += 1
            try:
                ok = await self._probe()
            except Exception as e:
                logger.warning(f"Readiness probe raised: {e}")
                ok = False
            if ok:
                self.mark_ready()
                break
            if attempts == 1:
                logger.info("Waiting for completion service...")
            await asyncio.sleep(self._poll_interval)

    def start(self) -> asyncio.Task[None]:
        """Start polling in the background. Repeated calls reuse the task."""
        if self._task is None:
            self._task = asyncio.create_task(self.wait_until_ready())
        return self._task

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
