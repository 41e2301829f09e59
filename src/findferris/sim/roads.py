from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

Vec2 = tuple[float, float]


def normalized_vector(x: float, y: float) -> Vec2:
    length = math.hypot(x, y)
    if length == 0.0:
        return (0.0, 0.0)
    return (x / length, y / length)


def distance_between(a: Vec2, b: Vec2) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


@dataclass
class Position:
    """Placement of a crab on the road network.

    ``to_node`` of ``None`` means the crab stands still on ``from_node`` and
    ``distance`` is ignored.
    """

    from_node: int
    to_node: int | None = None
    distance: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"from": self.from_node, "to": self.to_node, "distance": self.distance}


@dataclass
class RoadNode:
    pos: Vec2
    connected: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"position": [self.pos[0], self.pos[1]], "connected": list(self.connected)}


@dataclass
class RoadGraph:
    """Directed waypoint graph; node identity is the index into ``nodes``."""

    nodes: list[RoadNode] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.strip_self_loops()

    def __len__(self) -> int:
        return len(self.nodes)

    def neighbors(self, index: int) -> list[int]:
        return self.nodes[index].connected

    def edge_length(self, from_node: int, to_node: int) -> float:
        return distance_between(self.nodes[from_node].pos, self.nodes[to_node].pos)

    def world_position(self, position: Position) -> Vec2:
        origin = self.nodes[position.from_node].pos
        if position.to_node is None:
            return origin
        target = self.nodes[position.to_node].pos
        dir_x, dir_y = normalized_vector(target[0] - origin[0], target[1] - origin[1])
        return (origin[0] + dir_x * position.distance, origin[1] + dir_y * position.distance)

    def nearest_node(self, point: Vec2, radius: float) -> int | None:
        for index, node in enumerate(self.nodes):
            if distance_between(node.pos, point) < radius:
                return index
        return None

    def strip_self_loops(self) -> None:
        for index, node in enumerate(self.nodes):
            node.connected = [other for other in node.connected if other != index]

    def add_node(self, pos: Vec2) -> int:
        self.nodes.append(RoadNode(pos=(float(pos[0]), float(pos[1]))))
        return len(self.nodes) - 1

    def move_node(self, index: int, pos: Vec2) -> None:
        self.nodes[index].pos = (float(pos[0]), float(pos[1]))

    def add_edge(self, from_node: int, to_node: int) -> bool:
        self._require_index(from_node)
        self._require_index(to_node)
        if from_node == to_node or to_node in self.nodes[from_node].connected:
            return False
        self.nodes[from_node].connected.append(to_node)
        return True

    def remove_edge(self, from_node: int, to_node: int) -> bool:
        self._require_index(from_node)
        connected = self.nodes[from_node].connected
        if to_node not in connected:
            return False
        self.nodes[from_node].connected = [other for other in connected if other != to_node]
        return True

    def delete_node(self, index: int) -> list[int | None]:
        """Remove ``index`` and renumber every reference above it.

        Returns the remap from old index to new index (``None`` for the removed
        node) so other holders of node indices can be rewritten in step.
        """
        self._require_index(index)
        remap: list[int | None] = [
            None if old == index else (old - 1 if old > index else old) for old in range(len(self.nodes))
        ]
        del self.nodes[index]
        for node in self.nodes:
            node.connected = [remap[other] for other in node.connected if other != index]
        self.strip_self_loops()
        return remap

    def to_dict(self) -> dict[str, Any]:
        return {"nodes": [node.to_dict() for node in self.nodes]}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RoadGraph":
        if not isinstance(payload, dict):
            raise ValueError("roads payload must be an object")
        rows = payload.get("nodes")
        if not isinstance(rows, list):
            raise ValueError("roads must contain list field: nodes")

        nodes: list[RoadNode] = []
        for index, row in enumerate(rows):
            if not isinstance(row, dict):
                raise ValueError(f"nodes[{index}] must be an object")
            pos = parse_vec2(row.get("position"), field_name=f"nodes[{index}].position")
            connected = row.get("connected", [])
            if not isinstance(connected, list):
                raise ValueError(f"nodes[{index}].connected must be a list")
            neighbors: list[int] = []
            for slot, other in enumerate(connected):
                if isinstance(other, bool) or not isinstance(other, int):
                    raise ValueError(f"nodes[{index}].connected[{slot}] must be an integer")
                if other < 0 or other >= len(rows):
                    raise ValueError(f"nodes[{index}].connected[{slot}] references missing node {other}")
                neighbors.append(other)
            nodes.append(RoadNode(pos=pos, connected=neighbors))
        return cls(nodes=nodes)

    def _require_index(self, index: int) -> None:
        if index < 0 or index >= len(self.nodes):
            raise IndexError(f"road node index out of range: {index}")


def parse_vec2(value: Any, *, field_name: str) -> Vec2:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"{field_name} must be a [x, y] pair")
    for component in value:
        if isinstance(component, bool) or not isinstance(component, (int, float)):
            raise ValueError(f"{field_name} must contain numbers")
    return (float(value[0]), float(value[1]))
