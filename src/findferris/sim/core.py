from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any

from findferris.content.config import GameConfig
from findferris.sim.camera import Camera2d
from findferris.sim.collection import CollectionResult, CrabTransform, crab_transform, remaining_count, resolve_click
from findferris.sim.entities import Crab, EditorState, Item
from findferris.sim.motion import advance_crabs
from findferris.sim.rng import WeightedSampler, derive_stream_seed
from findferris.sim.roads import Position, RoadGraph, Vec2
from findferris.sim.spawner import choose_target_set, spawn_crab, spawn_item

RNG_SPAWN_STREAM_NAME = "rng_spawn"
RNG_MOTION_STREAM_NAME = "rng_motion"
RNG_SESSION_STREAM_NAME = "rng_session"

COMMAND_TYPES = {
    "spawn_item",
    "spawn_crab",
    "clear_crabs",
    "add_node",
    "add_placement_slot",
    "delete_node",
    "add_edge",
    "remove_edge",
    "toggle_editor",
}


@dataclass
class SimCommand:
    tick: int
    command_type: str
    params: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.tick, int) or self.tick < 0:
            raise ValueError("command tick must be a non-negative integer")
        if not isinstance(self.command_type, str) or not self.command_type:
            raise ValueError("command_type must be a non-empty string")
        if not isinstance(self.params, dict):
            raise ValueError("params must be a dict")

    def to_dict(self) -> dict[str, Any]:
        return {"tick": self.tick, "command_type": self.command_type, "params": dict(self.params)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimCommand":
        return cls(
            tick=int(data["tick"]),
            command_type=str(data["command_type"]),
            params=dict(data.get("params", {})),
        )


@dataclass
class SimulationState:
    roads: RoadGraph
    item_positions: list[Vec2]
    target_set: tuple[int, ...] = ()
    tick: int = 0
    time: float = 0.0
    crabs: list[Crab] = field(default_factory=list)
    items: list[Item] = field(default_factory=list)


class Simulation:
    """Owns the road graph, the crabs, the ground items and the camera.

    Components get these by reference for the duration of a call; nothing else
    holds on to them.
    """

    def __init__(self, config: GameConfig, roads: RoadGraph, item_positions: list[Vec2], seed: int) -> None:
        self.config = config
        self.seed = seed
        self.state = SimulationState(roads=roads, item_positions=list(item_positions))
        self.rng_spawn = random.Random(derive_stream_seed(master_seed=seed, stream_name=RNG_SPAWN_STREAM_NAME))
        self.rng_motion = random.Random(derive_stream_seed(master_seed=seed, stream_name=RNG_MOTION_STREAM_NAME))
        self.rng_session = random.Random(derive_stream_seed(master_seed=seed, stream_name=RNG_SESSION_STREAM_NAME))
        self.variant_sampler = WeightedSampler(config.variant_weights())
        self.camera = Camera2d(center=(0.0, 0.0), fov=config.default_fov)
        self.editor = EditorState()
        self.input_log: list[SimCommand] = []
        self.state.target_set = choose_target_set(config.item_kind_count, config.types_to_find, self.rng_session)

    @property
    def roads(self) -> RoadGraph:
        return self.state.roads

    @property
    def crabs(self) -> list[Crab]:
        return self.state.crabs

    @property
    def items(self) -> list[Item]:
        return self.state.items

    @property
    def target_set(self) -> tuple[int, ...]:
        return self.state.target_set

    def start(self) -> None:
        for _ in range(self.config.crabs):
            self.spawn_crab()
        for _ in range(self.config.free_items):
            self.spawn_item()

    def spawn_item(self) -> Item | None:
        item = spawn_item(self.items, len(self.state.item_positions), self.config.item_kind_count, self.rng_spawn)
        if item is not None:
            self.items.append(item)
        return item

    def spawn_crab(self) -> Crab | None:
        crab = spawn_crab(self.roads, self.crabs, self.config, self.variant_sampler, self.rng_spawn)
        if crab is not None:
            self.crabs.append(crab)
        return crab

    def advance(self, delta_time: float) -> None:
        advance_crabs(self.roads, self.crabs, self.config, delta_time, self.rng_motion)
        self.state.time += delta_time
        self.state.tick += 1

    def click(self, world_pos: Vec2) -> CollectionResult:
        return resolve_click(
            self.roads,
            self.crabs,
            self.items,
            self.state.item_positions,
            self.target_set,
            self.config,
            world_pos,
        )

    def remaining_by_target(self) -> list[tuple[int, int]]:
        return [(kind, remaining_count(self.crabs, self.items, kind)) for kind in self.target_set]

    def crab_draw_order(self) -> list[int]:
        """Crab indices back to front: higher on the map is further away."""
        return sorted(range(len(self.crabs)), key=lambda index: -self.roads.world_position(self.crabs[index].position)[1])

    def crab_transforms(self) -> list[CrabTransform]:
        return [crab_transform(self.roads, crab, self.config) for crab in self.crabs]

    def clamp_camera(self, screen_size: Vec2) -> None:
        self.camera.clamp(self.config.map_size, screen_size)

    def zoom_camera(self, cursor: Vec2, wheel_delta: float, screen_size: Vec2) -> None:
        self.camera.zoom_at(
            cursor,
            wheel_delta,
            screen_size,
            zoom_speed=self.config.zoom_speed,
            min_fov=self.config.min_fov,
            max_fov=self.config.max_fov,
        )

    def hovered_node(self, world_pos: Vec2) -> int | None:
        return self.roads.nearest_node(world_pos, self.config.road_node_ui_radius)

    def add_placement_slot(self, pos: Vec2) -> int:
        self.state.item_positions.append((float(pos[0]), float(pos[1])))
        return len(self.state.item_positions) - 1

    def delete_road_node(self, index: int) -> None:
        """Delete a node and rewrite every crab position in the same step.

        Crabs walking away from the deleted node jump ahead to their destination
        and crabs walking toward it restart from their current node, both with a
        fresh destination. Only a crab standing still on the deleted node is
        removed, together with anything it carries.
        """
        remap = self.roads.delete_node(index)
        survivors: list[Crab] = []
        for crab in self.crabs:
            position = crab.position
            from_node = remap[position.from_node]
            to_node = remap[position.to_node] if position.to_node is not None else None
            if from_node is None and to_node is None:
                continue
            if from_node is None or (position.to_node is not None and to_node is None):
                restart = to_node if from_node is None else from_node
                neighbors = self.roads.neighbors(restart)
                crab.position = Position(
                    from_node=restart,
                    to_node=self.rng_motion.choice(neighbors) if neighbors else None,
                    distance=0.0,
                )
            elif to_node is None:
                crab.position = Position(from_node=from_node)
            else:
                crab.position = Position(
                    from_node=from_node,
                    to_node=to_node,
                    distance=position.distance,
                )
            survivors.append(crab)
        self.state.crabs[:] = survivors
        if self.editor.drag_from is not None:
            self.editor.drag_from = remap[self.editor.drag_from]

    def append_command(self, command: SimCommand | dict[str, Any]) -> None:
        normalized = command if isinstance(command, SimCommand) else SimCommand.from_dict(command)
        self.input_log.append(normalized)
        self.execute_command(normalized)

    def execute_command(self, command: SimCommand) -> None:
        if command.command_type not in COMMAND_TYPES:
            raise ValueError(f"unknown command_type: {command.command_type}")
        params = command.params
        if command.command_type == "spawn_item":
            self.spawn_item()
        elif command.command_type == "spawn_crab":
            self.spawn_crab()
        elif command.command_type == "clear_crabs":
            self.crabs.clear()
        elif command.command_type == "toggle_editor":
            self.editor.shown = not self.editor.shown
        elif command.command_type == "add_node":
            self.roads.add_node((float(params["x"]), float(params["y"])))
        elif command.command_type == "add_placement_slot":
            self.add_placement_slot((float(params["x"]), float(params["y"])))
        elif command.command_type == "delete_node":
            self.delete_road_node(int(params["node"]))
        elif command.command_type == "add_edge":
            self.roads.add_edge(int(params["from"]), int(params["to"]))
        elif command.command_type == "remove_edge":
            self.roads.remove_edge(int(params["from"]), int(params["to"]))
