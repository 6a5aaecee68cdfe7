"""Recurring re-fetch of tab telemetry while a consumer is watching it.

Two states: ``idle`` and ``polling``. ``start()`` moves to polling and is a
no-op when already polling, so there is never more than one timer.
``stop()`` cancels the loop and waits for it to finish, so no tick can fire
after it returns.

Each tick awaits its fetch and publishes before the next interval starts,
which keeps snapshots in issuance order. A failing tick is logged and the
loop carries on.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from exocore_console.observability.structured_log import log_json
from exocore_console.services.tasks import TaskHandle, spawn

logger = logging.getLogger(__name__)

T = TypeVar("T")

STATE_IDLE = "idle"
STATE_POLLING = "polling"

DEFAULT_POLL_INTERVAL_SEC = 5.0


class RefreshScheduler(Generic[T]):
    def __init__(
        self,
        fetch_fn: Callable[[], Awaitable[T]],
        publish_fn: Callable[[T], None],
        interval_sec: float = DEFAULT_POLL_INTERVAL_SEC,
        name: str = "tab-refresh",
    ) -> None:
        self._fetch_fn = fetch_fn
        self._publish_fn = publish_fn
        self._interval = max(0.001, float(interval_sec))
        self._name = name
        self._handle: Optional[TaskHandle] = None
        self.ticks = 0
        self.failures = 0

    @property
    def interval_sec(self) -> float:
        return self._interval

    @property
    def state(self) -> str:
        return STATE_POLLING if self._handle is not None and self._handle.active else STATE_IDLE

    @property
    def pending_ticks(self) -> int:
        return 1 if self.state == STATE_POLLING else 0

    async def start(self) -> TaskHandle:
        if self._handle is not None and self._handle.active:
            return self._handle
        self._handle = spawn(self._run_loop(), name=self._name)
        log_json(logger, "refresh.start", scheduler=self._name, interval_sec=self._interval)
        return self._handle

    async def stop(self) -> None:
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        if handle.cancel():
            log_json(logger, "refresh.stop", scheduler=self._name, ticks=self.ticks)
        await handle.wait()

    async def tick_once(self) -> bool:
        try:
            value = await self._fetch_fn()
            self._publish_fn(value)
        except asyncio.CancelledError:
            raise
        except Exception:
            self.failures += 1
            logger.exception("refresh tick failed scheduler=%s", self._name)
            return False
        self.ticks += 1
        return True

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.tick_once()
