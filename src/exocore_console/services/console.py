"""Telemetry console: the boundary the rendering layer talks to.

Reads
  ``get_extensions``, ``get_tabs``, ``get_threat_index``, ``get_resource_impact``
Commands
  ``set_extension_enabled``, ``set_all_extensions_enabled``, ``close_tab``,
  ``focus_tab``, ``start_audit``, ``set_view``
Streams
  ``subscribe_tab_snapshots`` and ``subscribe_audit_reveal`` (or
  ``EventBus.listen`` for ``async for`` consumers)

All mutable state lives in one :class:`ConsoleState` value that is replaced
wholesale on every transition, so readers never see a half-applied update.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from exocore_console.domain.audit import AuditState
from exocore_console.domain.console_state import ConsoleState, TelemetrySnapshot
from exocore_console.domain.extensions import ExtensionRecord
from exocore_console.domain.metrics import ResourceImpactEntry
from exocore_console.domain.tabs import TabRecord
from exocore_console.errors import NotFound
from exocore_console.events.event_bus import TOPIC_AUDIT_REVEAL, TOPIC_TAB_SNAPSHOT, EventBus, TelemetryEvent
from exocore_console.observability.structured_log import log_json, log_json_warning
from exocore_console.providers.capability import CapabilityProvider
from exocore_console.services import metrics
from exocore_console.services.audit import DEFAULT_REVEAL_CHUNK_CHARS, DEFAULT_REVEAL_INTERVAL_SEC, AuditPipeline
from exocore_console.services.normalizer import normalize_extensions, normalize_tabs
from exocore_console.services.refresh_scheduler import DEFAULT_POLL_INTERVAL_SEC, RefreshScheduler
from exocore_console.services.sampling import Sampler, UniformSampler
from exocore_console.services.tasks import TaskHandle

logger = logging.getLogger(__name__)


class TelemetryConsole:
    def __init__(
        self,
        provider: CapabilityProvider,
        event_bus: Optional[EventBus] = None,
        sampler: Optional[Sampler] = None,
        poll_interval_sec: float = DEFAULT_POLL_INTERVAL_SEC,
        reveal_interval_sec: float = DEFAULT_REVEAL_INTERVAL_SEC,
        reveal_chunk_chars: int = DEFAULT_REVEAL_CHUNK_CHARS,
    ) -> None:
        self._provider = provider
        self._bus = event_bus or EventBus()
        self._sampler = sampler or UniformSampler()
        self._state = ConsoleState()
        self._scheduler: RefreshScheduler[Tuple[TabRecord, ...]] = RefreshScheduler(
            fetch_fn=self._fetch_tabs,
            publish_fn=self._apply_tabs,
            interval_sec=poll_interval_sec,
        )
        self._audit = AuditPipeline(
            publish_fn=self._on_audit_state,
            interval_sec=reveal_interval_sec,
            chunk_chars=reveal_chunk_chars,
        )

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConsoleState:
        return self._state

    @property
    def snapshot(self) -> TelemetrySnapshot:
        return self._state.snapshot

    @property
    def provider(self) -> CapabilityProvider:
        return self._provider

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    @property
    def audit(self) -> AuditPipeline:
        return self._audit

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def load(self) -> TelemetrySnapshot:
        """One-shot startup fetch of extensions and tabs together."""
        raw_extensions, raw_tabs = await asyncio.gather(
            self._provider.list_extensions(),
            self._provider.list_tabs(),
        )
        extensions = normalize_extensions(raw_extensions)
        tabs = metrics.tab_heuristics(normalize_tabs(raw_tabs), self._sampler)
        snapshot = TelemetrySnapshot(extensions=extensions, tabs=tabs)
        state = self._state.with_snapshot(snapshot)
        if state.selected_extension_id is None and extensions:
            state = state.with_selection(extensions[0].id)
        self._state = state
        log_json(
            logger,
            "console.loaded",
            provider=self._provider.resolve().name,
            extensions=len(extensions),
            tabs=len(tabs),
        )
        return snapshot

    async def get_extensions(self) -> Tuple[ExtensionRecord, ...]:
        extensions = normalize_extensions(await self._provider.list_extensions())
        self._state = self._state.with_snapshot(self._state.snapshot.with_extensions(extensions))
        return extensions

    async def get_tabs(self) -> Tuple[TabRecord, ...]:
        tabs = await self._fetch_tabs()
        self._state = self._state.with_snapshot(self._state.snapshot.with_tabs(tabs))
        return tabs

    def get_threat_index(self) -> int:
        return metrics.threat_index(self._state.snapshot.extensions)

    def get_resource_impact(self) -> Tuple[ResourceImpactEntry, ...]:
        snapshot = self._state.snapshot
        return metrics.resource_impact(snapshot.extensions, snapshot.tabs, self._sampler)

    def total_memory_estimate(self) -> int:
        return metrics.total_memory_estimate(self._state.snapshot.extensions)

    def heaviest_tabs(self) -> List[TabRecord]:
        return metrics.heaviest_first(self._state.snapshot.tabs)

    def summary(self) -> Dict[str, Any]:
        extensions = self._state.snapshot.extensions
        return {
            "provider": self._provider.resolve().name,
            "view": self._state.view,
            "extensions": len(extensions),
            "active_extensions": metrics.active_extension_count(extensions),
            "tabs": len(self._state.snapshot.tabs),
            "threat_index": self.get_threat_index(),
            "total_memory_estimate": self.total_memory_estimate(),
            "selected_extension_id": self._state.selected_extension_id,
            "audit_in_flight": self._state.audit_in_flight,
            "polling": self._scheduler.state,
        }

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def set_extension_enabled(self, extension_id: str, enabled: bool) -> None:
        try:
            self._require_extension(extension_id)
            await self._provider.set_enabled(extension_id, enabled)
        except Exception as exc:
            log_json_warning(logger, "command.failed", command="set_enabled", target=extension_id, error=str(exc))
            raise
        self._apply_enabled({extension_id}, enabled)
        log_json(logger, "command.ok", command="set_enabled", target=extension_id, enabled=enabled)

    async def set_all_extensions_enabled(self, enabled: bool) -> None:
        ids = [extension.id for extension in self._state.snapshot.extensions]
        results = await asyncio.gather(
            *(self._provider.set_enabled(extension_id, enabled) for extension_id in ids),
            return_exceptions=True,
        )
        succeeded = {extension_id for extension_id, result in zip(ids, results) if not isinstance(result, BaseException)}
        self._apply_enabled(succeeded, enabled)
        failures = [result for result in results if isinstance(result, BaseException)]
        log_json(logger, "command.bulk_set_enabled", enabled=enabled, ok=len(succeeded), failed=len(failures))
        if failures:
            raise failures[0]

    async def close_tab(self, tab_id: int) -> None:
        try:
            self._require_tab(tab_id)
            await self._provider.close_tab(tab_id)
        except Exception as exc:
            log_json_warning(logger, "command.failed", command="close_tab", target=tab_id, error=str(exc))
            raise
        snapshot = self._state.snapshot
        remaining = tuple(tab for tab in snapshot.tabs if tab.id != tab_id)
        self._state = self._state.with_snapshot(snapshot.with_tabs(remaining))
        log_json(logger, "command.ok", command="close_tab", target=tab_id)

    async def focus_tab(self, tab_id: int) -> None:
        try:
            self._require_tab(tab_id)
            await self._provider.focus_tab(tab_id)
        except Exception as exc:
            log_json_warning(logger, "command.failed", command="focus_tab", target=tab_id, error=str(exc))
            raise
        log_json(logger, "command.ok", command="focus_tab", target=tab_id)

    async def start_audit(self, extension_id: str) -> TaskHandle:
        extension = self._state.snapshot.find_extension(extension_id)
        if extension is None:
            raise NotFound("extension", extension_id)
        self._state = self._state.with_selection(extension_id).with_audit_flag(True)
        return self._audit.start(extension, self.get_threat_index())

    async def set_view(self, view: str) -> ConsoleState:
        self._state = self._state.with_view(view)
        if self._state.needs_live_tabs:
            await self._scheduler.start()
        else:
            await self._scheduler.stop()
        return self._state

    async def aclose(self) -> None:
        await self._scheduler.stop()
        await self._audit.aclose()
        self._state = self._state.with_audit_flag(False)

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    def subscribe_tab_snapshots(self, callback: Callable[[Tuple[TabRecord, ...]], None]) -> Callable[[], None]:
        return self._bus.subscribe(TOPIC_TAB_SNAPSHOT, _payload_only(callback))

    def subscribe_audit_reveal(self, callback: Callable[[AuditState], None]) -> Callable[[], None]:
        return self._bus.subscribe(TOPIC_AUDIT_REVEAL, _payload_only(callback))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_extension(self, extension_id: str) -> None:
        # The self entry is filtered out of the snapshot, so it can never be targeted.
        if self._provider.is_live and self._state.snapshot.find_extension(extension_id) is None:
            raise NotFound("extension", extension_id)

    def _require_tab(self, tab_id: int) -> None:
        if not self._provider.is_live:
            return
        if all(tab.id != tab_id for tab in self._state.snapshot.tabs):
            raise NotFound("tab", tab_id)

    async def _fetch_tabs(self) -> Tuple[TabRecord, ...]:
        raw = await self._provider.list_tabs()
        return metrics.tab_heuristics(normalize_tabs(raw), self._sampler)

    def _apply_tabs(self, tabs: Tuple[TabRecord, ...]) -> None:
        self._state = self._state.with_snapshot(self._state.snapshot.with_tabs(tabs))
        self._bus.publish(TOPIC_TAB_SNAPSHOT, tabs)

    def _apply_enabled(self, extension_ids: set, enabled: bool) -> None:
        if not extension_ids:
            return
        snapshot = self._state.snapshot
        updated = tuple(
            replace(extension, enabled=enabled) if extension.id in extension_ids else extension
            for extension in snapshot.extensions
        )
        self._state = self._state.with_snapshot(snapshot.with_extensions(updated))

    def _on_audit_state(self, audit_state: AuditState) -> None:
        if audit_state.complete:
            self._state = self._state.with_audit_flag(False)
        self._bus.publish(TOPIC_AUDIT_REVEAL, audit_state)


def _payload_only(callback: Callable[[Any], None]) -> Callable[[TelemetryEvent], None]:
    def _deliver(event: TelemetryEvent) -> None:
        callback(event.payload)

    return _deliver
