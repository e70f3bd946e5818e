"""Queue panel routes: read the queue, submit, edit, delete, resend, expand/collapse."""

from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ...core.models import ActionResult, QueueView, StateView

router = APIRouter()


class SubmitBody(BaseModel):
    text: str


class DebugBody(BaseModel):
    enabled: bool


def _controller(request: Request):
    return request.app.state.controller


def _presenter(request: Request):
    return request.app.state.presenter


@router.get("/queue", response_model=QueueView)
async def get_queue(request: Request):
    controller = _controller(request)
    return _presenter(request).render(controller.items, controller.debug)


@router.post("/queue", response_model=ActionResult)
async def submit(body: SubmitBody, request: Request):
    return await _controller(request).submit(body.text)


@router.post("/queue/send", response_model=ActionResult)
async def send_next(request: Request):
    return await _controller(request).dispatch_next()


@router.post("/queue/{index}/edit", response_model=ActionResult)
async def edit_item(index: int, request: Request):
    return await _controller(request).edit_requested(index)


@router.delete("/queue/{index}", response_model=ActionResult)
async def delete_item(index: int, request: Request):
    return await _controller(request).delete_requested(index)


@router.post("/panel/expand", response_model=QueueView)
async def expand(request: Request):
    return await _presenter(request).expand()


@router.post("/panel/collapse", response_model=QueueView)
async def collapse(request: Request):
    return await _presenter(request).collapse()


@router.get("/state", response_model=StateView)
async def get_state(request: Request):
    controller = _controller(request)
    monitor = controller.monitor
    return StateView(verdict=monitor.state, pending_edge=monitor.pending, queued=len(controller.items))


@router.post("/debug", response_model=ActionResult)
async def set_debug(body: DebugBody, request: Request):
    return await _controller(request).set_debug(body.enabled)
