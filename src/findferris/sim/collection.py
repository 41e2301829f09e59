from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Collection, MutableSequence, Sequence

from findferris.content.config import GameConfig
from findferris.sim.entities import Crab, Item
from findferris.sim.roads import RoadGraph, Vec2, distance_between

LEFT_HAND = "left"
RIGHT_HAND = "right"


@dataclass(frozen=True)
class CrabTransform:
    """Translation plus rotation of a crab sprite, including the hop animation."""

    x: float
    y: float
    angle: float = 0.0

    def apply(self, local: Vec2) -> Vec2:
        cos_a = math.cos(self.angle)
        sin_a = math.sin(self.angle)
        return (
            self.x + local[0] * cos_a - local[1] * sin_a,
            self.y + local[0] * sin_a + local[1] * cos_a,
        )


@dataclass(frozen=True)
class HandPickup:
    crab_index: int
    hand: str
    kind: int


@dataclass
class CollectionResult:
    ground_item: Item | None = None
    hand_pickups: list[HandPickup] = field(default_factory=list)

    @property
    def collected(self) -> bool:
        return self.ground_item is not None or bool(self.hand_pickups)


def crab_transform(graph: RoadGraph, crab: Crab, config: GameConfig) -> CrabTransform:
    x, y = graph.world_position(crab.position)
    hop = abs(math.cos(crab.animation_time)) * config.jump_height
    angle = math.sin(crab.animation_time) * config.jump_rotation_amplitude if crab.is_moving else 0.0
    return CrabTransform(x=x, y=y + hop, angle=angle)


def hand_position(transform: CrabTransform, offset: Vec2) -> Vec2:
    return transform.apply(offset)


def hand_positions(graph: RoadGraph, crab: Crab, config: GameConfig) -> tuple[Vec2, Vec2]:
    transform = crab_transform(graph, crab, config)
    return (
        hand_position(transform, config.crab_left_hand_pos),
        hand_position(transform, config.crab_right_hand_pos),
    )


def resolve_click(
    graph: RoadGraph,
    crabs: Sequence[Crab],
    items: MutableSequence[Item],
    item_positions: Sequence[Vec2],
    target_set: Collection[int],
    config: GameConfig,
    world_pos: Vec2,
) -> CollectionResult:
    """Collect target-set items under ``world_pos`` from the ground and from crab hands.

    At most one ground item is taken, the first in storage order. Every crab is
    then checked, newest first, and loses at most one held item; the left hand
    wins when both hands are in reach.
    """
    radius = config.click_radius
    result = CollectionResult()

    for index, item in enumerate(items):
        if item.kind in target_set and distance_between(item_positions[item.slot_index], world_pos) < radius:
            result.ground_item = items.pop(index)
            break

    for crab_index in range(len(crabs) - 1, -1, -1):
        crab = crabs[crab_index]
        left, right = hand_positions(graph, crab, config)
        if crab.left_hand in target_set and distance_between(left, world_pos) < radius:
            result.hand_pickups.append(HandPickup(crab_index=crab_index, hand=LEFT_HAND, kind=crab.left_hand))
            crab.left_hand = None
        elif crab.right_hand in target_set and distance_between(right, world_pos) < radius:
            result.hand_pickups.append(HandPickup(crab_index=crab_index, hand=RIGHT_HAND, kind=crab.right_hand))
            crab.right_hand = None
    return result


def remaining_count(crabs: Sequence[Crab], items: Sequence[Item], kind: int) -> int:
    ground = sum(1 for item in items if item.kind == kind)
    carried = sum(1 for crab in crabs for held in (crab.left_hand, crab.right_hand) if held == kind)
    return ground + carried
