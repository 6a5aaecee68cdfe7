"""Capability detection over the host scope.

The host scope maps global surface names to namespace objects. It is
re-read on every call because host permissions can be granted or revoked
while the console is running. Candidates are probed in a fixed order and
the first one exposing both ``management`` and ``tabs`` wins; when none
does, the bundled dataset stands in.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from exocore_console.domain.contracts import HostCapability, RawExtension, RawTab
from exocore_console.errors import CapabilityUnavailable
from exocore_console.observability.structured_log import log_json
from exocore_console.providers.fallback import FallbackDataset
from exocore_console.providers.host import StandardHost, exposes_required_surfaces

logger = logging.getLogger(__name__)

HostScope = Mapping[str, Any]
HostScopeFactory = Callable[[], HostScope]

SURFACE_PRIORITY: Sequence[str] = ("browser", "chrome")


def empty_scope() -> HostScope:
    return {}


class CapabilityProvider:
    """Uniform read/write interface regardless of which host surface backs it."""

    def __init__(
        self,
        scope_factory: Optional[HostScopeFactory] = None,
        surface_priority: Sequence[str] = SURFACE_PRIORITY,
        fallback: Optional[FallbackDataset] = None,
    ) -> None:
        self._scope_factory = scope_factory or empty_scope
        self._priority = tuple(surface_priority)
        self._fallback = fallback or FallbackDataset()
        self._last_selected = ""

    def detect(self) -> Optional[StandardHost]:
        try:
            scope = self._scope_factory() or {}
        except Exception:
            logger.exception("host scope lookup failed")
            return None
        for name in self._priority:
            namespace = scope.get(name)
            if exposes_required_surfaces(namespace):
                return StandardHost(namespace, surface_name=name)
        return None

    def require(self) -> StandardHost:
        host = self.detect()
        if host is None:
            raise CapabilityUnavailable(
                f"No host surface among {list(self._priority)} exposes management and tabs."
            )
        return host

    def resolve(self) -> HostCapability:
        try:
            selected: HostCapability = self.require()
        except CapabilityUnavailable as exc:
            selected = self._fallback
            reason = str(exc)
        else:
            reason = ""
        if selected.name != self._last_selected:
            log_json(
                logger,
                "capability.selected",
                previous=self._last_selected or None,
                selected=selected.name,
                reason=reason or None,
            )
            self._last_selected = selected.name
        return selected

    @property
    def is_live(self) -> bool:
        return self.detect() is not None

    def describe(self) -> Dict[str, Any]:
        return self.resolve().capabilities()

    async def list_extensions(self) -> List[RawExtension]:
        return await self.resolve().list_extensions()

    async def set_enabled(self, extension_id: str, enabled: bool) -> None:
        await self.resolve().set_enabled(extension_id, enabled)

    async def list_tabs(self) -> List[RawTab]:
        return await self.resolve().list_tabs()

    async def close_tab(self, tab_id: int) -> None:
        await self.resolve().close_tab(tab_id)

    async def focus_tab(self, tab_id: int) -> None:
        await self.resolve().focus_tab(tab_id)
