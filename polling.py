"""Fixed-interval polling of an async action."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Coroutine
from enum import StrEnum
from typing import Any

logger = logging.getLogger("status_panel.polling")

DEFAULT_POLL_INTERVAL = 30.0


class SchedulerState(StrEnum):
    """Lifecycle of a :class:`PollingScheduler`."""

    IDLE = "idle"
    ACTIVE = "active"
    STOPPED = "stopped"


class PollingScheduler:
    """Runs *action* once on start and then every *interval* seconds.

    Each invocation is spawned as its own task; the timer never waits
    for an earlier invocation, so slow actions may overlap.  ``stop()``
    cancels only the timer.  Invocations already in flight run to
    completion and are responsible for discarding their own results.
    """

    def __init__(
        self,
        action: Callable[[], Awaitable[Any]],
        interval: float = DEFAULT_POLL_INTERVAL,
        sleep_fn: Callable[[float], Coroutine[Any, Any, None]] = asyncio.sleep,
        name: str = "status",
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._action = action
        self._interval = interval
        self._sleep_fn = sleep_fn
        self._name = name
        self._state = SchedulerState.IDLE
        self._timer_task: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[Any]] = set()
        self._invocations = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state == SchedulerState.ACTIVE

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def invocations(self) -> int:
        """Number of times the action has been spawned."""
        return self._invocations

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def start(self) -> None:
        """Invoke the action immediately and arm the repeating timer.

        Must be called with a running event loop.  Starting an active
        scheduler is a no-op; a stopped scheduler cannot be restarted.
        """
        if self._state == SchedulerState.ACTIVE:
            return
        if self._state == SchedulerState.STOPPED:
            raise RuntimeError(f"Polling scheduler '{self._name}' already stopped")

        self._state = SchedulerState.ACTIVE
        logger.info("Polling '%s' every %.1fs", self._name, self._interval)
        self._spawn()
        self._timer_task = asyncio.create_task(
            self._run_timer(), name=f"poll-timer-{self._name}"
        )

    def stop(self) -> None:
        """Cancel the timer; in-flight invocations are left to finish."""
        if self._state == SchedulerState.STOPPED:
            return
        self._state = SchedulerState.STOPPED
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None
        logger.info(
            "Polling '%s' stopped after %d invocation(s), %d still in flight",
            self._name,
            self._invocations,
            len(self._in_flight),
        )

    async def drain(self) -> None:
        """Wait for every in-flight invocation to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def __aenter__(self) -> PollingScheduler:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.stop()

    async def _run_timer(self) -> None:
        """Spawn the action every interval until cancelled."""
        with contextlib.suppress(asyncio.CancelledError):
            while self._state == SchedulerState.ACTIVE:
                await self._sleep_fn(self._interval)
                if self._state != SchedulerState.ACTIVE:
                    break
                self._spawn()

    def _spawn(self) -> None:
        self._invocations += 1
        task = asyncio.ensure_future(self._action())
        self._in_flight.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Polling '%s' action failed, will retry next cycle",
                self._name,
                exc_info=exc,
            )
