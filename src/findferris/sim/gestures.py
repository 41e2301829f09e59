from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from findferris.sim.roads import Vec2, distance_between


@dataclass(frozen=True)
class GestureIdle:
    pass


@dataclass(frozen=True)
class GestureDetecting:
    origin: Vec2
    started_at: float
    pointer_id: int | None = None


@dataclass(frozen=True)
class GestureDragging:
    last_pos: Vec2
    pointer_id: int | None = None


GestureState = GestureIdle | GestureDetecting | GestureDragging


@dataclass(frozen=True)
class GestureClick:
    screen_pos: Vec2


@dataclass(frozen=True)
class GesturePan:
    """World-space offset to add to the camera center."""

    delta: Vec2


GestureOutput = GestureClick | GesturePan


class GestureClassifier:
    """Turns one pointer stream into either a click or a drag.

    A press starts in ``GestureDetecting``; it escalates to ``GestureDragging``
    once the pointer strays further than ``min_drag_distance`` screen pixels or
    stays down longer than ``drag_start_timer`` seconds. Releasing while still
    detecting produces a click.

    Only one pointer is tracked. While a gesture is active, events carrying a
    different ``pointer_id`` (a second finger) are ignored.
    """

    def __init__(self, min_drag_distance: float, drag_start_timer: float) -> None:
        self.min_drag_distance = min_drag_distance
        self.drag_start_timer = drag_start_timer
        self.state: GestureState = GestureIdle()

    def _is_foreign(self, pointer_id: int | None) -> bool:
        if isinstance(self.state, GestureIdle):
            return False
        return pointer_id != self.state.pointer_id

    def pointer_down(self, pos: Vec2, now: float, pointer_id: int | None = None) -> list[GestureOutput]:
        if self._is_foreign(pointer_id):
            return []
        self.state = GestureDetecting(origin=pos, started_at=now, pointer_id=pointer_id)
        return []

    def pointer_move(
        self,
        pos: Vec2,
        to_world: Callable[[Vec2], Vec2],
        pointer_id: int | None = None,
    ) -> list[GestureOutput]:
        if self._is_foreign(pointer_id):
            return []
        state = self.state
        if isinstance(state, GestureDetecting):
            if distance_between(state.origin, pos) <= self.min_drag_distance:
                return []
            state = GestureDragging(last_pos=state.origin, pointer_id=state.pointer_id)
        if not isinstance(state, GestureDragging):
            return []
        previous_world = to_world(state.last_pos)
        current_world = to_world(pos)
        self.state = GestureDragging(last_pos=pos, pointer_id=state.pointer_id)
        return [GesturePan(delta=(previous_world[0] - current_world[0], previous_world[1] - current_world[1]))]

    def pointer_up(self, pos: Vec2, pointer_id: int | None = None) -> list[GestureOutput]:
        if self._is_foreign(pointer_id):
            return []
        was_detecting = isinstance(self.state, GestureDetecting)
        self.state = GestureIdle()
        if was_detecting:
            return [GestureClick(screen_pos=pos)]
        return []

    def poll(self, now: float) -> None:
        """Escalate a long press to a drag; called once per frame."""
        state = self.state
        if isinstance(state, GestureDetecting) and self._dwell_elapsed(state, now):
            self.state = GestureDragging(last_pos=state.origin, pointer_id=state.pointer_id)

    def reset(self) -> None:
        self.state = GestureIdle()

    def _dwell_elapsed(self, state: GestureDetecting, now: float) -> bool:
        return now - state.started_at > self.drag_start_timer
