"""Per-question countdown timer backed by an asyncio task."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

import structlog

LOGGER = structlog.get_logger(__name__)

DEFAULT_TICK_INTERVAL = 1.0


class QuestionTimer:
    """Calls ``on_tick`` once per interval until cancelled.

    Cancellation is final: a timer is never restarted, the engine creates a new one for
    every question. A tick that becomes due in the same loop iteration as :meth:`cancel`
    does not fire.
    """

    def __init__(
        self,
        on_tick: Callable[[], None],
        *,
        interval: float = DEFAULT_TICK_INTERVAL,
        label: Optional[str] = None,
    ) -> None:
        self._on_tick = on_tick
        self._interval = interval
        self._label = label
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._cancelled

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        """Schedule the countdown on the running event loop."""
        if self._task is not None:
            raise RuntimeError("QuestionTimer cannot be started twice")
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())
        LOGGER.debug("timer.started", label=self._label, interval=self._interval)

    def cancel(self) -> None:
        """Stop the countdown. Safe to call repeatedly and from inside a tick."""
        if self._cancelled:
            return
        self._cancelled = True
        task = self._task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()
        LOGGER.debug("timer.cancelled", label=self._label)

    async def _run(self) -> None:
        try:
            while not self._cancelled:
                await asyncio.sleep(self._interval)
                if self._cancelled:
                    break
                self._on_tick()
        except asyncio.CancelledError:
            self._cancelled = True
            raise
