"""Host-backed capability over a browser automation namespace.

The namespace is whatever object the host runtime exposes under a global
name such as ``browser`` or ``chrome``. Only two sub-surfaces are used:

  - ``management``: ``get_all()`` and ``set_enabled(id, enabled)``
  - ``tabs``: ``query(query_info)``, ``remove(tab_id)`` and
    ``update(tab_id, properties)``

Host calls may be plain functions or return awaitables; both are accepted.
Every host failure is re-raised as :class:`HostRejected` so callers see one
error type regardless of how the host reports problems.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, Dict, List

from exocore_console.domain.contracts import RawExtension, RawTab
from exocore_console.errors import HostRejected, NotFound
from exocore_console.observability.structured_log import log_json

logger = logging.getLogger(__name__)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def exposes_required_surfaces(namespace: Any) -> bool:
    if namespace is None:
        return False
    return getattr(namespace, "management", None) is not None and getattr(namespace, "tabs", None) is not None


class StandardHost:
    """Capability backed by a live host namespace."""

    def __init__(self, namespace: Any, surface_name: str) -> None:
        self._namespace = namespace
        self.name = surface_name

    @property
    def namespace(self) -> Any:
        return self._namespace

    async def list_extensions(self) -> List[RawExtension]:
        items = await self._call("management.get_all", self._namespace.management.get_all)
        return list(items or [])

    async def set_enabled(self, extension_id: str, enabled: bool) -> None:
        known = {str(item.get("id")) for item in await self.list_extensions()}
        if extension_id not in known:
            raise NotFound("extension", extension_id)
        await self._call(
            "management.set_enabled",
            self._namespace.management.set_enabled,
            extension_id,
            bool(enabled),
        )
        log_json(logger, "host.extension.set_enabled", surface=self.name, extension_id=extension_id, enabled=enabled)

    async def list_tabs(self) -> List[RawTab]:
        items = await self._call("tabs.query", self._namespace.tabs.query, {})
        return list(items or [])

    async def close_tab(self, tab_id: int) -> None:
        await self._require_tab(tab_id)
        await self._call("tabs.remove", self._namespace.tabs.remove, tab_id)
        log_json(logger, "host.tab.closed", surface=self.name, tab_id=tab_id)

    async def focus_tab(self, tab_id: int) -> None:
        await self._require_tab(tab_id)
        await self._call("tabs.update", self._namespace.tabs.update, tab_id, {"active": True})
        log_json(logger, "host.tab.focused", surface=self.name, tab_id=tab_id)

    def capabilities(self) -> Dict[str, Any]:
        return {
            "provider": self.name,
            "live": True,
            "supports_writes": True,
        }

    async def _require_tab(self, tab_id: int) -> None:
        known = {item.get("id") for item in await self.list_tabs()}
        if tab_id not in known:
            raise NotFound("tab", tab_id)

    async def _call(self, operation: str, fn: Any, *args: Any) -> Any:
        try:
            return await _maybe_await(fn(*args))
        except (HostRejected, NotFound):
            raise
        except Exception as exc:
            logger.warning("host call %s failed on %s: %s", operation, self.name, exc)
            raise HostRejected(operation, str(exc)) from exc
