"""
Event protocol for promptqueue.

BecameIdleEvent is internal: emitted by the GenerationMonitor and consumed
by the DispatchController. The panel events are pushed over the WebSocket.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel

from .models import QueueView


class BecameIdleEvent(BaseModel):
    """Internal only. Busy→idle edge, emitted once the settle delay has passed."""
    type: Literal["became_idle"] = "became_idle"
    observed_at: float                # clock time the idle verdict was first seen
    fired_at: float                   # observed_at + settle delay


class QueueEvent(BaseModel):
    type: Literal["queue"] = "queue"
    view: QueueView


class DispatchedEvent(BaseModel):
    type: Literal["dispatched"] = "dispatched"
    text: str
    remaining: int = 0


class WarningEvent(BaseModel):
    """Non-fatal problem the user should see, e.g. a queue change that was not saved."""
    type: Literal["warning"] = "warning"
    message: str


class StateEvent(BaseModel):
    type: Literal["state"] = "state"
    verdict: Literal["busy", "idle"]


# What goes over the wire to the panel.
PanelEvent = Union[QueueEvent, DispatchedEvent, WarningEvent, StateEvent]
