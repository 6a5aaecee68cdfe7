"""Synthetic audit reports and their progressive reveal.

``synthesize`` is a pure function of one extension and the current threat
index. ``AuditPipeline`` then discloses the report a few characters at a
time on a fixed interval, the way a live typing feed would. Starting a new
audit cancels the one in flight first, so only one reveal is ever live.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from exocore_console.domain.audit import AuditState
from exocore_console.domain.extensions import ExtensionRecord
from exocore_console.observability.structured_log import log_json
from exocore_console.services.tasks import TaskHandle, spawn

logger = logging.getLogger(__name__)

DEFAULT_REVEAL_INTERVAL_SEC = 0.035
DEFAULT_REVEAL_CHUNK_CHARS = 6

# A permission above this risk makes the verdict PURGE.
PURGE_RISK_THRESHOLD = 4

VERDICT_PURGE = "PURGE"
VERDICT_KEEP = "KEEP"

_REPORT_TEMPLATE = (
    "# ExoCore Report\n"
    "\n"
    "## Audited extension\n"
    "**{name}** ({version})\n"
    "\n"
    "## Attack surface\n"
    "- Critical permissions: {permissions}\n"
    "- Estimated risk: **{threat_index}/10**\n"
    "\n"
    "## Privacy\n"
    "This extension can observe sensitive traffic if it stays enabled permanently.\n"
    "\n"
    "## Verdict\n"
    "**{verdict}**\n"
)


def verdict_for(extension: ExtensionRecord) -> str:
    if any(p.risk > PURGE_RISK_THRESHOLD for p in extension.permissions):
        return VERDICT_PURGE
    return VERDICT_KEEP


def synthesize(extension: ExtensionRecord, threat_index: int) -> str:
    return _REPORT_TEMPLATE.format(
        name=extension.name,
        version=extension.version,
        permissions=", ".join(extension.permission_names) or "none",
        threat_index=int(threat_index),
        verdict=verdict_for(extension),
    )


AuditPublisher = Callable[[AuditState], None]


class AuditPipeline:
    def __init__(
        self,
        publish_fn: AuditPublisher,
        interval_sec: float = DEFAULT_REVEAL_INTERVAL_SEC,
        chunk_chars: int = DEFAULT_REVEAL_CHUNK_CHARS,
    ) -> None:
        self._publish_fn = publish_fn
        self._interval = max(0.0, float(interval_sec))
        self._chunk = max(1, int(chunk_chars))
        self._handle: Optional[TaskHandle] = None
        self._current: Optional[AuditState] = None
        self._generation = 0

    @property
    def current(self) -> Optional[AuditState]:
        return self._current

    @property
    def active(self) -> bool:
        return self._handle is not None and self._handle.active

    @property
    def handle(self) -> Optional[TaskHandle]:
        return self._handle

    def start(self, extension: ExtensionRecord, threat_index: int) -> TaskHandle:
        previous = self._handle
        if previous is not None and previous.cancel():
            log_json(
                logger,
                "audit.superseded",
                extension_id=self._current.extension_id if self._current else None,
                by=extension.id,
            )
        self._generation += 1
        generation = self._generation
        report = synthesize(extension, threat_index)
        log_json(logger, "audit.start", extension_id=extension.id, chars=len(report), threat_index=threat_index)
        self._emit(generation, AuditState(extension_id=extension.id, content="", complete=False))
        self._handle = spawn(
            self._reveal(generation, extension.id, report),
            name=f"audit-reveal-{extension.id}",
        )
        return self._handle

    async def aclose(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is None:
            return
        handle.cancel()
        await handle.wait()

    async def _reveal(self, generation: int, extension_id: str, report: str) -> None:
        total = len(report)
        if total == 0:
            self._emit(generation, AuditState(extension_id=extension_id, content="", complete=True))
            return
        cursor = 0
        while cursor < total:
            await asyncio.sleep(self._interval)
            cursor = min(total, cursor + self._chunk)
            self._emit(
                generation,
                AuditState(extension_id=extension_id, content=report[:cursor], complete=cursor >= total),
            )
        log_json(logger, "audit.complete", extension_id=extension_id, chars=total)

    def _emit(self, generation: int, state: AuditState) -> None:
        if generation != self._generation:
            return
        self._current = state
        self._publish_fn(state)
