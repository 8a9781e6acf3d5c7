"""Internal event relay: HTTP ingest fanned out to WebSocket subscribers."""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from typing import Any, Dict, Optional, Set

from fastapi import APIRouter, Header, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..contracts import now_ms

logger = logging.getLogger(__name__)


class RunEventHub:
    """Tracks which sockets watch which run and broadcasts to them."""

    def __init__(self) -> None:
        self._subscriptions: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._socket_runs: Dict[WebSocket, Set[str]] = defaultdict(set)

    def subscribe(self, socket: WebSocket, run_id: str) -> None:
        self._subscriptions[run_id].add(socket)
        self._socket_runs[socket].add(run_id)

    def unsubscribe(self, socket: WebSocket, run_id: str) -> None:
        sockets = self._subscriptions.get(run_id)
        if sockets is not None:
            sockets.discard(socket)
            if not sockets:
                del self._subscriptions[run_id]
        runs = self._socket_runs.get(socket)
        if runs is not None:
            runs.discard(run_id)
            if not runs:
                del self._socket_runs[socket]

    def remove(self, socket: WebSocket) -> None:
        for run_id in list(self._socket_runs.get(socket, ())):
            self.unsubscribe(socket, run_id)

    def subscribers(self, run_id: str) -> int:
        return len(self._subscriptions.get(run_id, ()))

    async def broadcast(self, run_id: str, payload: Dict[str, Any]) -> int:
        """Send ``payload`` to every subscriber of ``run_id``; returns the count reached."""
        body = {**payload, "runId": run_id}
        delivered = 0
        for socket in list(self._subscriptions.get(run_id, ())):
            try:
                await socket.send_json(body)
                delivered += 1
            except Exception as e:
                logger.debug(f"Dropping subscriber of run {run_id}: {e}")
                self.unsubscribe(socket, run_id)
        return delivered


def _event_ts(payload: Dict[str, Any]) -> int | float:
    ts = payload.get("ts")
    if isinstance(ts, (int, float)) and not isinstance(ts, bool):
        return ts
    return now_ms()


def create_relay_router(hub: RunEventHub, secret: Optional[str] = None) -> APIRouter:
    router = APIRouter()

    @router.post("/internal/runs/{run_id}/events", status_code=202)
    async def relay_event(
        run_id: str, request: Request, authorization: Optional[str] = Header(default=None)
    ):
        if secret and authorization != f"Bearer {secret}":
            return JSONResponse(status_code=401, content={"error": "unauthorized"})
        try:
            body = await request.json()
        except ValueError:
            body = {}
        payload = body if isinstance(body, dict) else {}
        await hub.broadcast(run_id, {**payload, "runId": run_id, "ts": _event_ts(payload)})
        return {"ok": True}

    @router.websocket("/ws")
    async def subscribe_events(websocket: WebSocket):
        await websocket.accept()
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    message = json.loads(raw)
                except ValueError:
                    continue
                if not isinstance(message, dict):
                    continue
                kind = message.get("type")
                if kind == "ping":
                    await websocket.send_json({"type": "pong", "ts": now_ms()})
                    continue
                run_id = message.get("runId")
                if not isinstance(run_id, str) or not run_id:
                    continue
                if kind == "subscribe":
                    hub.subscribe(websocket, run_id)
                    await websocket.send_json({"type": "subscribed", "runId": run_id})
                elif kind == "unsubscribe":
                    hub.unsubscribe(websocket, run_id)
        except WebSocketDisconnect:
            logger.debug("Event subscriber disconnected")
        finally:
            hub.remove(websocket)

    return router
