import json
from pathlib import Path

import pytest

from findferris.content.io import (
    build_simulation,
    load_item_positions_json,
    load_roads_json,
    save_editor_data,
    save_item_positions_json,
    save_roads_json,
)
from findferris.sim.core import SimCommand
from findferris.sim.hash import roads_hash


def test_roads_round_trip_preserves_graph(tmp_path: Path) -> None:
    roads = load_roads_json("content/roads.json")
    out_path = tmp_path / "roads.json"

    save_roads_json(out_path, roads)
    loaded = load_roads_json(out_path)

    assert loaded.to_dict() == roads.to_dict()
    assert roads_hash(loaded) == roads_hash(roads)


def test_saved_roads_use_node_list_format(tmp_path: Path) -> None:
    roads = load_roads_json("content/examples/basic_roads.json")
    out_path = tmp_path / "nested" / "roads.json"

    save_roads_json(out_path, roads)
    payload = json.loads(out_path.read_text(encoding="utf-8"))

    assert payload["nodes"][1] == {"position": [100.0, 0.0], "connected": [2, 3]}
    assert list(tmp_path.joinpath("nested").glob("*.tmp")) == []


def test_self_loops_in_file_are_dropped_on_load(tmp_path: Path) -> None:
    path = tmp_path / "roads.json"
    path.write_text(
        json.dumps({"nodes": [{"position": [0, 0], "connected": [0, 1]}, {"position": [5, 5], "connected": [0]}]}),
        encoding="utf-8",
    )

    roads = load_roads_json(path)

    assert roads.neighbors(0) == [1]
    assert roads.neighbors(1) == [0]


def test_dangling_edge_in_file_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "roads.json"
    path.write_text(json.dumps({"nodes": [{"position": [0, 0], "connected": [3]}]}), encoding="utf-8")

    with pytest.raises(ValueError, match="references missing node 3"):
        load_roads_json(path)


def test_item_positions_round_trip(tmp_path: Path) -> None:
    positions = load_item_positions_json("content/examples/basic_item_positions.json")
    out_path = tmp_path / "item_positions.json"

    save_item_positions_json(out_path, positions)

    assert load_item_positions_json(out_path) == positions
    assert json.loads(out_path.read_text(encoding="utf-8"))[0] == [0.0, 50.0]


def test_malformed_item_positions_are_rejected(tmp_path: Path) -> None:
    path = tmp_path / "item_positions.json"
    path.write_text(json.dumps([[0, 0], [1, "x"]]), encoding="utf-8")

    with pytest.raises(ValueError, match=r"item_positions\[1\] must contain numbers"):
        load_item_positions_json(path)

    path.write_text(json.dumps({"slots": []}), encoding="utf-8")
    with pytest.raises(ValueError, match="must be a list"):
        load_item_positions_json(path)


def test_editor_changes_survive_save_and_reload(tmp_path: Path) -> None:
    simulation = build_simulation(
        config="content/examples/basic_config.json",
        roads_path="content/examples/basic_roads.json",
        item_positions_path="content/examples/basic_item_positions.json",
        seed=5,
    )
    simulation.append_command(SimCommand(tick=0, command_type="add_node", params={"x": 300.0, "y": 20.0}))
    simulation.append_command(SimCommand(tick=0, command_type="add_edge", params={"from": 3, "to": 4}))
    simulation.append_command(SimCommand(tick=0, command_type="add_placement_slot", params={"x": -20.0, "y": -20.0}))
    roads_path = tmp_path / "roads.json"
    slots_path = tmp_path / "item_positions.json"

    save_editor_data(simulation, roads_path=roads_path, item_positions_path=slots_path)
    reloaded = build_simulation(
        config="content/examples/basic_config.json",
        roads_path=roads_path,
        item_positions_path=slots_path,
        seed=5,
        start=False,
    )

    assert roads_hash(reloaded.roads) == roads_hash(simulation.roads)
    assert reloaded.roads.neighbors(3) == [4]
    assert reloaded.state.item_positions[-1] == (-20.0, -20.0)
    assert reloaded.crabs == []
