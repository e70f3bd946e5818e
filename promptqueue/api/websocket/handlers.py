"""
WebSocket endpoint for the queue panel.

Endpoint: WS /ws

Incoming message types (client -> server):
  {"type": "submit", "text": "..."}
  {"type": "edit", "index": 0}
  {"type": "delete", "index": 0}
  {"type": "send"}
  {"type": "debug", "enabled": true}   <- omit "enabled" to toggle
  {"type": "expand"} / {"type": "collapse"}
  {"type": "ping"}

Outgoing event types (server -> client):
  {"type": "queue", "view": {...}}
  {"type": "dispatched", "text": "...", "remaining": 0}
  {"type": "warning", "message": "..."}
  {"type": "state", "verdict": "busy" | "idle"}
  {"type": "result", ...ActionResult}    <- reply to submit/edit/delete/send/debug
  {"type": "system", "text": "..."}      <- server messages (pong, keepalive)
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...core.events import QueueEvent
from ...core.models import ActionResult
from .manager import get_connection_manager

router = APIRouter()
log = logging.getLogger("promptqueue.server")


def _index(msg: dict) -> int | None:
    try:
        return int(msg.get("index"))
    except (TypeError, ValueError):
        return None


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    manager = get_connection_manager()
    await manager.connect(ws)
    controller = ws.app.state.controller
    presenter = ws.app.state.presenter

    try:
        # Initial render
        view = presenter.render(controller.items, controller.debug)
        await ws.send_json(QueueEvent(view=view).model_dump())

        while True:
            try:
                msg = await asyncio.wait_for(ws.receive_json(), timeout=30.0)
            except asyncio.TimeoutError:
                # Send keepalive
                try:
                    await ws.send_json({"type": "system", "text": "keepalive"})
                except Exception:
                    break
                continue

            msg_type = msg.get("type")
            result = None

            if msg_type == "ping":
                await ws.send_json({"type": "system", "text": "pong"})

            elif msg_type == "submit":
                result = await controller.submit(str(msg.get("text", "")))

            elif msg_type in ("edit", "delete"):
                index = _index(msg)
                if index is None:
                    result = ActionResult(ok=False, reason="out_of_range", length=len(controller.items))
                elif msg_type == "edit":
                    result = await controller.edit_requested(index)
                else:
                    result = await controller.delete_requested(index)

            elif msg_type == "send":
                result = await controller.dispatch_next()

            elif msg_type == "debug":
                if "enabled" in msg:
                    result = await controller.set_debug(bool(msg["enabled"]))
                else:
                    result = await controller.toggle_debug()

            elif msg_type == "expand":
                await presenter.expand()

            elif msg_type == "collapse":
                await presenter.collapse()

            else:
                log.debug("Unknown WS message type: %s", msg_type)

            if result is not None:
                await ws.send_json({"type": "result", **result.model_dump()})

    except WebSocketDisconnect:
        log.debug("WS client disconnected")
    except Exception as e:
        log.error("WS error  error=%s", e, exc_info=True)
    finally:
        manager.disconnect(ws)
