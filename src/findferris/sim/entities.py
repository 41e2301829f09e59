from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from findferris.sim.roads import Position


@dataclass
class Crab:
    variant_index: int
    position: Position
    animation_time: float = 0.0
    left_hand: int | None = None
    right_hand: int | None = None

    @property
    def is_moving(self) -> bool:
        return self.position.to_node is not None

    def carried_kinds(self) -> list[int]:
        return [kind for kind in (self.left_hand, self.right_hand) if kind is not None]

    def to_dict(self) -> dict[str, Any]:
        return {
            "variant_index": self.variant_index,
            "position": self.position.to_dict(),
            "animation_time": self.animation_time,
            "left_hand": self.left_hand,
            "right_hand": self.right_hand,
        }


@dataclass
class Item:
    """Ground collectible occupying one placement slot."""

    kind: int
    slot_index: int
    rotation: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "slot_index": self.slot_index, "rotation": self.rotation}


@dataclass
class EditorState:
    shown: bool = False
    drag_from: int | None = None
