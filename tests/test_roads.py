import pytest

from findferris.content.io import load_roads_json
from findferris.sim.roads import Position, RoadGraph


def test_world_position_interpolates_along_edge_and_holds_on_node() -> None:
    roads = load_roads_json("content/examples/basic_roads.json")

    assert roads.world_position(Position(from_node=0, to_node=1, distance=25.0)) == (25.0, 0.0)
    assert roads.world_position(Position(from_node=1, to_node=2, distance=50.0)) == (100.0, 50.0)
    assert roads.world_position(Position(from_node=3, to_node=None, distance=17.0)) == (200.0, 0.0)


def test_edge_length_and_neighbors_follow_loaded_graph() -> None:
    roads = load_roads_json("content/examples/basic_roads.json")

    assert len(roads) == 4
    assert roads.neighbors(1) == [2, 3]
    assert roads.neighbors(3) == []
    assert roads.edge_length(1, 2) == pytest.approx(100.0)


def test_self_loops_are_stripped_on_load() -> None:
    roads = RoadGraph.from_dict(
        {
            "nodes": [
                {"position": [0.0, 0.0], "connected": [0, 1]},
                {"position": [10.0, 0.0], "connected": [1]},
            ]
        }
    )

    assert roads.neighbors(0) == [1]
    assert roads.neighbors(1) == []


def test_add_edge_ignores_self_and_duplicate_edges() -> None:
    roads = load_roads_json("content/examples/basic_roads.json")

    assert roads.add_edge(2, 2) is False
    assert roads.add_edge(0, 1) is False
    assert roads.add_edge(3, 0) is True
    assert roads.neighbors(3) == [0]


def test_add_edge_rejects_unknown_node() -> None:
    roads = load_roads_json("content/examples/basic_roads.json")

    with pytest.raises(IndexError, match="road node index out of range"):
        roads.add_edge(0, 9)


def test_remove_edge_reports_whether_edge_existed() -> None:
    roads = load_roads_json("content/examples/basic_roads.json")

    assert roads.remove_edge(1, 3) is True
    assert roads.remove_edge(1, 3) is False
    assert roads.neighbors(1) == [2]


def test_delete_node_renumbers_references_and_returns_remap() -> None:
    roads = load_roads_json("content/examples/basic_roads.json")

    remap = roads.delete_node(1)

    assert remap == [0, None, 1, 2]
    assert [node.pos for node in roads.nodes] == [(0.0, 0.0), (100.0, 100.0), (200.0, 0.0)]
    assert roads.neighbors(0) == []
    assert roads.neighbors(1) == [0]
    assert roads.neighbors(2) == []


def test_delete_node_keeps_every_reference_in_range() -> None:
    roads = load_roads_json("content/roads.json")

    while len(roads) > 1:
        roads.delete_node(len(roads) // 2)
        for index, node in enumerate(roads.nodes):
            assert all(0 <= other < len(roads) for other in node.connected)
            assert index not in node.connected


def test_add_node_returns_new_index() -> None:
    roads = RoadGraph()

    assert roads.add_node((3, 4)) == 0
    assert roads.add_node((5.5, -1)) == 1
    assert roads.nodes[1].pos == (5.5, -1.0)


def test_move_node_changes_edge_geometry() -> None:
    roads = load_roads_json("content/examples/basic_roads.json")

    roads.move_node(1, (0, 30))

    assert roads.edge_length(0, 1) == pytest.approx(30.0)
    assert roads.world_position(Position(from_node=0, to_node=1, distance=10.0)) == pytest.approx((0.0, 10.0))


def test_nearest_node_uses_strict_radius() -> None:
    roads = load_roads_json("content/examples/basic_roads.json")

    assert roads.nearest_node((3.0, 0.0), 6.0) == 0
    assert roads.nearest_node((106.0, 0.0), 6.0) is None
    assert roads.nearest_node((50.0, 50.0), 6.0) is None


def test_malformed_roads_payload_is_rejected() -> None:
    with pytest.raises(ValueError, match="references missing node 5"):
        RoadGraph.from_dict({"nodes": [{"position": [0, 0], "connected": [5]}]})
    with pytest.raises(ValueError, match=r"nodes\[0\]\.position must be a \[x, y\] pair"):
        RoadGraph.from_dict({"nodes": [{"position": [0], "connected": []}]})
    with pytest.raises(ValueError, match=r"nodes\[0\]\.connected\[0\] must be an integer"):
        RoadGraph.from_dict({"nodes": [{"position": [0, 0], "connected": ["1"]}]})
    with pytest.raises(ValueError, match="list field: nodes"):
        RoadGraph.from_dict({"roads": []})
