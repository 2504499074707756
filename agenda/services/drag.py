# agenda/services/drag.py
"""
Drag-to-reschedule as an explicit state machine.

    idle -> dragging -> committed | cancelled

Pointer positions are vertical timeline coordinates in grid pixels. The
machine only computes the new interval; writing it is the scheduler's job.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from agenda.core.logging import get_logger
from agenda.core.policy import (
    DRAG_ROUNDING_MINUTES,
    PIXELS_PER_MINUTE,
    VISIBLE_START_HOUR,
    VISIBLE_WINDOW_MINUTES,
)
from agenda.services.time_grid import at_local, to_local

logger = get_logger(__name__)

class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTED = "committed"
    CANCELLED = "cancelled"

@dataclass(frozen=True)
class DragCommit:
    appointment_id: str
    start: datetime
    end: datetime

def round_half_up(value: float, step: int) -> int:
    # 2.5 -> 5, not banker's rounding
    return int(math.floor(value / step + 0.5) * step)

def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))

def snap_start(start: datetime, step_minutes: int = DRAG_ROUNDING_MINUTES) -> datetime:
    """Round a dropped start to the drag step and keep it inside the visible window of its day."""
    local = to_local(start)
    window_start = at_local(local, VISIBLE_START_HOUR)
    minutes = (local - window_start).total_seconds() / 60
    minutes = clamp(round_half_up(minutes, step_minutes), 0, VISIBLE_WINDOW_MINUTES - step_minutes)
    return window_start + timedelta(minutes=minutes)

class DragRescheduler:
    def __init__(self, window_start_hour: int = VISIBLE_START_HOUR,
                 window_minutes: int = VISIBLE_WINDOW_MINUTES,
                 step_minutes: int = DRAG_ROUNDING_MINUTES,
                 pixels_per_minute: float = PIXELS_PER_MINUTE):
        self.window_start_hour = window_start_hour
        self.window_minutes = window_minutes
        self.step_minutes = step_minutes
        self.pixels_per_minute = pixels_per_minute
        self._reset()
        self.state = DragState.IDLE

    def _reset(self) -> None:
        self.appointment_id: Optional[str] = None
        self.pointer_id: Optional[int] = None
        self.original_start: Optional[datetime] = None
        self.original_end: Optional[datetime] = None
        self.origin_y: float = 0.0
        self.candidate_start: Optional[datetime] = None

    @property
    def active(self) -> bool:
        return self.state == DragState.DRAGGING

    def pointer_down(self, appointment_id: str, pointer_id: int,
                     start: datetime, end: datetime, y: float) -> None:
        if self.state == DragState.DRAGGING:
            raise RuntimeError("a drag is already in progress")
        self._reset()
        self.appointment_id = appointment_id
        self.pointer_id = pointer_id
        self.original_start = to_local(start)
        self.original_end = to_local(end)
        self.origin_y = y
        self.candidate_start = self.original_start
        self.state = DragState.DRAGGING
        logger.debug("drag_started", appointment_id=appointment_id, pointer_id=pointer_id)

    def _minutes_at(self, y: float, rounded: bool) -> float:
        window_start = at_local(self.original_start, self.window_start_hour)
        original_offset = (self.original_start - window_start).total_seconds() / 60
        minutes = original_offset + (y - self.origin_y) / self.pixels_per_minute
        if rounded:
            minutes = round_half_up(minutes, self.step_minutes)
        return clamp(minutes, 0, self.window_minutes - self.step_minutes)

    def _start_at(self, minutes: float) -> datetime:
        window_start = at_local(self.original_start, self.window_start_hour)
        return window_start + timedelta(minutes=minutes)

    def pointer_move(self, pointer_id: int, y: float) -> Optional[datetime]:
        """Live preview of the new start; None for a pointer we don't own."""
        if not self.active or pointer_id != self.pointer_id:
            return None
        self.candidate_start = self._start_at(self._minutes_at(y, rounded=False))
        return self.candidate_start

    def pointer_up(self, pointer_id: int, y: float) -> Optional[DragCommit]:
        if not self.active or pointer_id != self.pointer_id:
            return None
        new_start = self._start_at(self._minutes_at(y, rounded=True))
        if new_start == self.original_start:
            self.cancel()
            return None
        duration = self.original_end - self.original_start
        commit = DragCommit(
            appointment_id=self.appointment_id,
            start=new_start,
            end=new_start + duration,
        )
        self.candidate_start = new_start
        self.state = DragState.COMMITTED
        logger.debug("drag_committed", appointment_id=self.appointment_id, start=new_start.isoformat())
        return commit

    def cancel(self) -> None:
        if self.state == DragState.DRAGGING:
            logger.debug("drag_cancelled", appointment_id=self.appointment_id)
        self.state = DragState.CANCELLED
