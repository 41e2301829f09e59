from __future__ import annotations

import random
from typing import Sequence

from findferris.content.config import GameConfig
from findferris.sim.entities import Crab
from findferris.sim.roads import Position, RoadGraph, Vec2, distance_between


def lookahead_point(graph: RoadGraph, position: Position, lookahead_offset: float) -> Vec2:
    """Point ``lookahead_offset`` further along the current edge; may overshoot the edge end."""
    return graph.world_position(
        Position(
            from_node=position.from_node,
            to_node=position.to_node,
            distance=position.distance + lookahead_offset,
        )
    )


def slow_down_multiplier(graph: RoadGraph, crabs: Sequence[Crab], crab_index: int, config: GameConfig) -> float:
    front = lookahead_point(graph, crabs[crab_index].position, config.collision_check_distance)
    multiplier = 1.0
    for other_index, other in enumerate(crabs):
        if other_index == crab_index:
            continue
        if distance_between(front, graph.world_position(other.position)) < config.collision_check_radius:
            multiplier *= config.collision_slow_down
    return multiplier


def advance_crab(
    graph: RoadGraph,
    crabs: Sequence[Crab],
    crab_index: int,
    config: GameConfig,
    delta_time: float,
    rng: random.Random,
) -> None:
    crab = crabs[crab_index]
    position = crab.position
    if position.to_node is not None:
        speed = config.crab_speed * slow_down_multiplier(graph, crabs, crab_index, config)
        position.distance += speed * delta_time
        if position.distance > graph.edge_length(position.from_node, position.to_node):
            # Overshoot is dropped; the crab restarts at the node it just reached.
            arrived = position.to_node
            neighbors = graph.neighbors(arrived)
            crab.position = Position(
                from_node=arrived,
                to_node=rng.choice(neighbors) if neighbors else None,
                distance=0.0,
            )
    crab.animation_time += config.animation_speed * delta_time


def advance_crabs(
    graph: RoadGraph,
    crabs: Sequence[Crab],
    config: GameConfig,
    delta_time: float,
    rng: random.Random,
) -> None:
    for crab_index in range(len(crabs)):
        advance_crab(graph, crabs, crab_index, config, delta_time, rng)
