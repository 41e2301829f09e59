from __future__ import annotations

import json
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from findferris.content.config import GameConfig, load_config_json
from findferris.sim.core import Simulation
from findferris.sim.roads import RoadGraph, Vec2, parse_vec2

CANONICAL_JSON_INDENT = 2
CANONICAL_JSON_SEPARATORS = (",", ": ")
DEFAULT_ROADS_PATH = "content/roads.json"
DEFAULT_ITEM_POSITIONS_PATH = "content/item_positions.json"


def _canonical_json(payload: Any) -> str:
    return json.dumps(
        payload,
        indent=CANONICAL_JSON_INDENT,
        separators=CANONICAL_JSON_SEPARATORS,
        sort_keys=True,
    )


def _write_atomic_json(path: str | Path, payload: Any) -> None:
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    serialized = _canonical_json(payload)

    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=destination.parent,
            delete=False,
            suffix=".tmp",
        ) as temp_file:
            temp_file.write(serialized)
            temp_file.flush()
            os.fsync(temp_file.fileno())
            temp_path = Path(temp_file.name)
        os.replace(temp_path, destination)
    except Exception:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


def item_positions_from_payload(payload: Any) -> list[Vec2]:
    if not isinstance(payload, list):
        raise ValueError("item positions payload must be a list")
    return [parse_vec2(row, field_name=f"item_positions[{index}]") for index, row in enumerate(payload)]


def load_roads_json(path: str | Path) -> RoadGraph:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return RoadGraph.from_dict(payload)


def save_roads_json(path: str | Path, roads: RoadGraph) -> None:
    _write_atomic_json(path, roads.to_dict())


def load_item_positions_json(path: str | Path) -> list[Vec2]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return item_positions_from_payload(payload)


def save_item_positions_json(path: str | Path, positions: list[Vec2]) -> None:
    _write_atomic_json(path, [[x, y] for x, y in positions])


def build_simulation(
    *,
    config: GameConfig | str | Path,
    roads_path: str | Path,
    item_positions_path: str | Path,
    seed: int,
    start: bool = True,
) -> Simulation:
    """Load config, roads and placement slots and assemble a simulation."""
    game_config = config if isinstance(config, GameConfig) else load_config_json(config)
    simulation = Simulation(
        config=game_config,
        roads=load_roads_json(roads_path),
        item_positions=load_item_positions_json(item_positions_path),
        seed=seed,
    )
    if start:
        simulation.start()
    return simulation


def save_editor_data(simulation: Simulation, *, roads_path: str | Path, item_positions_path: str | Path) -> None:
    save_roads_json(roads_path, simulation.roads)
    save_item_positions_json(item_positions_path, simulation.state.item_positions)
