from __future__ import annotations

import math
import random
from typing import Sequence

from findferris.content.config import GameConfig
from findferris.sim.entities import Crab, Item
from findferris.sim.rng import WeightedSampler
from findferris.sim.roads import Position, RoadGraph


def choose_target_set(item_kind_count: int, types_to_find: int, rng: random.Random) -> tuple[int, ...]:
    """Sample the kinds the player has to find, without replacement."""
    return tuple(rng.sample(range(item_kind_count), types_to_find))


def free_slots(items: Sequence[Item], slot_count: int) -> list[int]:
    occupied = {item.slot_index for item in items}
    return [index for index in range(slot_count) if index not in occupied]


def spawn_item(items: Sequence[Item], slot_count: int, item_kind_count: int, rng: random.Random) -> Item | None:
    candidates = free_slots(items, slot_count)
    if not candidates:
        return None
    return Item(
        slot_index=rng.choice(candidates),
        kind=rng.randrange(item_kind_count),
        rotation=rng.uniform(0.0, 2.0 * math.pi),
    )


def crab_start_candidates(graph: RoadGraph, crabs: Sequence[Crab]) -> list[int]:
    """Connected nodes, plus dead ends that no crab starts from yet."""
    occupied = {crab.position.from_node for crab in crabs}
    return [index for index in range(len(graph)) if graph.neighbors(index) or index not in occupied]


def _random_hands(config: GameConfig, rng: random.Random) -> tuple[int | None, int | None]:
    if rng.random() >= config.crab_hold_item_probability:
        return (None, None)
    if rng.random() < config.crab_hold_double_item_probability:
        return (rng.randrange(config.item_kind_count), rng.randrange(config.item_kind_count))
    if rng.random() < 0.5:
        return (rng.randrange(config.item_kind_count), None)
    return (None, rng.randrange(config.item_kind_count))


def spawn_crab(
    graph: RoadGraph,
    crabs: Sequence[Crab],
    config: GameConfig,
    variant_sampler: WeightedSampler,
    rng: random.Random,
) -> Crab | None:
    candidates = crab_start_candidates(graph, crabs)
    if not candidates:
        return None
    from_node = rng.choice(candidates)
    neighbors = graph.neighbors(from_node)
    if neighbors:
        to_node: int | None = rng.choice(neighbors)
        distance = rng.random() * graph.edge_length(from_node, to_node)
    else:
        to_node = None
        distance = 0.0
    left_hand, right_hand = _random_hands(config, rng)
    return Crab(
        variant_index=variant_sampler.sample(rng),
        position=Position(from_node=from_node, to_node=to_node, distance=distance),
        animation_time=rng.random(),
        left_hand=left_hand,
        right_hand=right_hand,
    )
