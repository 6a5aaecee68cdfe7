import asyncio
import logging
from contextlib import aclosing
from dataclasses import asdict
from typing import Any, Callable, Dict, List

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from exocore_console import __version__
from exocore_console.errors import ConsoleError
from exocore_console.events.event_bus import TOPIC_AUDIT_REVEAL, TOPIC_TAB_SNAPSHOT, EventBus
from exocore_console.services.console import TelemetryConsole
from exocore_console.services.error_codes import ERROR_CATALOG, detect_error_code, get_catalog_entry

logger = logging.getLogger(__name__)


class EnabledRequest(BaseModel):
    enabled: bool


class AuditRequest(BaseModel):
    extension_id: str


class ViewRequest(BaseModel):
    view: str


def _error_response(exc: ConsoleError) -> HTTPException:
    entry = get_catalog_entry(detect_error_code(exc))
    return HTTPException(
        status_code=entry.http_status,
        detail={
            "code": entry.code,
            "title": entry.title,
            "message": str(exc),
            "actions": [asdict(action) for action in entry.actions],
        },
    )


def _tabs_payload(tabs) -> List[Dict[str, Any]]:
    return [dict(asdict(tab), load_percent=tab.load_percent) for tab in tabs]


def create_app(console: TelemetryConsole) -> FastAPI:
    app = FastAPI(title="ExoCore Control Center", version=__version__)

    @app.on_event("startup")
    async def _startup() -> None:
        await console.load()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await console.aclose()

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "version": __version__,
            "capability": console.provider.describe(),
        }

    @app.get("/api/extensions")
    async def list_extensions() -> List[Dict[str, Any]]:
        return [asdict(e) for e in await console.get_extensions()]

    @app.get("/api/tabs")
    async def list_tabs() -> List[Dict[str, Any]]:
        await console.get_tabs()
        return _tabs_payload(console.heaviest_tabs())

    @app.get("/api/summary")
    async def summary() -> Dict[str, Any]:
        return console.summary()

    @app.get("/api/resource-impact")
    async def resource_impact() -> List[Dict[str, Any]]:
        return [asdict(entry) for entry in console.get_resource_impact()]

    @app.get("/api/error-catalog")
    async def error_catalog() -> List[Dict[str, Any]]:
        return [asdict(entry) for entry in ERROR_CATALOG]

    @app.post("/api/extensions/enabled")
    async def set_all_enabled(req: EnabledRequest) -> Dict[str, Any]:
        try:
            await console.set_all_extensions_enabled(req.enabled)
        except ConsoleError as exc:
            raise _error_response(exc)
        return {"ok": True, "enabled": req.enabled}

    @app.post("/api/extensions/{extension_id}/enabled")
    async def set_enabled(extension_id: str, req: EnabledRequest) -> Dict[str, Any]:
        try:
            await console.set_extension_enabled(extension_id, req.enabled)
        except ConsoleError as exc:
            raise _error_response(exc)
        return {"ok": True, "extension_id": extension_id, "enabled": req.enabled}

    @app.post("/api/tabs/{tab_id}/close")
    async def close_tab(tab_id: int) -> Dict[str, Any]:
        try:
            await console.close_tab(tab_id)
        except ConsoleError as exc:
            raise _error_response(exc)
        return {"ok": True, "tab_id": tab_id}

    @app.post("/api/tabs/{tab_id}/focus")
    async def focus_tab(tab_id: int) -> Dict[str, Any]:
        try:
            await console.focus_tab(tab_id)
        except ConsoleError as exc:
            raise _error_response(exc)
        return {"ok": True, "tab_id": tab_id}

    @app.post("/api/audits")
    async def start_audit(req: AuditRequest) -> Dict[str, Any]:
        try:
            await console.start_audit(req.extension_id)
        except ConsoleError as exc:
            raise _error_response(exc)
        return {"ok": True, "extension_id": req.extension_id}

    @app.put("/api/view")
    async def set_view(req: ViewRequest) -> Dict[str, Any]:
        try:
            state = await console.set_view(req.view)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        return {"view": state.view, "polling": console.scheduler.state}

    @app.websocket("/ws/tabs")
    async def ws_tabs(websocket: WebSocket) -> None:
        await websocket.accept()
        try:
            await websocket.send_json({"type": "tabs", "tabs": _tabs_payload(console.heaviest_tabs())})
        except WebSocketDisconnect:
            return
        await forward_until_disconnect(websocket, console.event_bus, TOPIC_TAB_SNAPSHOT, _render_tabs)

    @app.websocket("/ws/audit")
    async def ws_audit(websocket: WebSocket) -> None:
        await websocket.accept()
        current = console.audit.current
        if current is not None:
            try:
                await websocket.send_json(_render_audit(current))
            except WebSocketDisconnect:
                return
        await forward_until_disconnect(websocket, console.event_bus, TOPIC_AUDIT_REVEAL, _render_audit)

    return app


def _render_tabs(tabs) -> Dict[str, Any]:
    ordered = sorted(tabs, key=lambda t: t.memory, reverse=True)
    return {"type": "tabs", "tabs": _tabs_payload(ordered)}


def _render_audit(state) -> Dict[str, Any]:
    return {"type": "audit", **asdict(state)}


async def forward_until_disconnect(
    websocket: WebSocket,
    event_bus: EventBus,
    topic: str,
    render: Callable[[Any], Dict[str, Any]],
) -> None:
    """Push topic payloads to the socket until the client goes away.

    The receive side is watched alongside the stream, so a closed socket
    drops its bus subscription even when nothing is being published.
    """

    async def _forward() -> None:
        async with aclosing(event_bus.listen(topic)) as stream:
            async for payload in stream:
                await websocket.send_json(render(payload))

    async def _until_disconnect() -> None:
        while True:
            message = await websocket.receive()
            if message.get("type") == "websocket.disconnect":
                return

    tasks = [asyncio.ensure_future(_forward()), asyncio.ensure_future(_until_disconnect())]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
    for result in results:
        if isinstance(result, Exception) and not isinstance(result, WebSocketDisconnect):
            logger.warning("websocket stream %s closed with error: %s", topic, result)
