from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from nexithra.orchestrator.events import UIEvent
from nexithra.telemetry.logging import get_logger

SnapshotProvider = Callable[[], dict[str, Any]]


class FloatingUIBridge:
    """Fan-out of assistant events to every connected host tab.

    New clients receive a ``STATUS`` snapshot first when a snapshot provider
    is attached; clients whose send fails are dropped.
    """

    def __init__(self) -> None:
        self._clients: set[WebSocket] = set()
        self._router = APIRouter()
        self._router.add_api_websocket_route("/ws/state", self._websocket_handler)
        self._lock = asyncio.Lock()
        self._snapshot: SnapshotProvider | None = None
        self._logger = get_logger(__name__)

    @property
    def router(self) -> APIRouter:
        return self._router

    def attach_snapshot(self, provider: SnapshotProvider | None) -> None:
        self._snapshot = provider

    async def _websocket_handler(self, websocket: WebSocket) -> None:
        await websocket.accept()
        if self._snapshot is not None:
            await websocket.send_json({"event": "STATUS", "payload": self._snapshot()})
        async with self._lock:
            self._clients.add(websocket)
        self._logger.info("ui.client.connected", count=len(self._clients))
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            async with self._lock:
                self._clients.discard(websocket)
            self._logger.info("ui.client.disconnected", count=len(self._clients))

    async def publish_state(self, state: UIEvent, payload: dict[str, Any] | None = None) -> None:
        message = {"event": state, "payload": payload or {}}
        async with self._lock:
            clients = list(self._clients)
        if not clients:
            return
        results = await asyncio.gather(*(client.send_json(message) for client in clients), return_exceptions=True)
        failed = [client for client, result in zip(clients, results) if isinstance(result, Exception)]
        if failed:
            async with self._lock:
                self._clients.difference_update(failed)
            self._logger.warning("ui.client.dropped", count=len(failed), ui_event=state)


__all__ = ["FloatingUIBridge", "SnapshotProvider"]
