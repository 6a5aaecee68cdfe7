from __future__ import annotations

import asyncio
from typing import Any, Coroutine, Optional


class TaskHandle:
    """Owned handle for one background loop. ``cancel()`` is idempotent."""

    def __init__(self, task: "asyncio.Task[Any]", name: str = "") -> None:
        self._task = task
        self._name = name or task.get_name()
        self._cancel_requested = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def active(self) -> bool:
        return not self._cancel_requested and not self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested

    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> bool:
        """Request cancellation. Returns True only for the call that cancelled."""
        if self._cancel_requested or self._task.done():
            return False
        self._cancel_requested = True
        self._task.cancel()
        return True

    async def wait(self) -> None:
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._cancel_requested:
                raise


def spawn(coro: Coroutine[Any, Any, Any], name: str = "", loop: Optional[asyncio.AbstractEventLoop] = None) -> TaskHandle:
    running = loop or asyncio.get_running_loop()
    task = running.create_task(coro, name=name or None)
    return TaskHandle(task, name=name)
