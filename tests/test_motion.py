import random
from dataclasses import replace

import pytest

from findferris.content.config import load_config_json
from findferris.content.io import load_roads_json
from findferris.sim.entities import Crab
from findferris.sim.motion import advance_crab, advance_crabs, lookahead_point, slow_down_multiplier
from findferris.sim.roads import Position


def _fixtures():
    return load_config_json("content/examples/basic_config.json"), load_roads_json("content/examples/basic_roads.json")


def test_stationary_crab_only_advances_animation() -> None:
    config, roads = _fixtures()
    crabs = [Crab(variant_index=0, position=Position(from_node=3))]

    advance_crabs(roads, crabs, config, 1.0, random.Random(1))

    assert crabs[0].position == Position(from_node=3, to_node=None, distance=0.0)
    assert crabs[0].animation_time == pytest.approx(10.0)


def test_crab_moves_along_edge_at_crab_speed() -> None:
    config, roads = _fixtures()
    crabs = [Crab(variant_index=0, position=Position(from_node=0, to_node=1, distance=10.0))]

    advance_crabs(roads, crabs, config, 0.5, random.Random(1))

    assert crabs[0].position.distance == pytest.approx(15.0)
    assert roads.world_position(crabs[0].position) == pytest.approx((15.0, 0.0))


def test_passing_edge_end_picks_next_edge_from_arrived_node() -> None:
    config, roads = _fixtures()
    crabs = [Crab(variant_index=0, position=Position(from_node=0, to_node=1, distance=95.0))]

    advance_crabs(roads, crabs, config, 1.0, random.Random(4))

    position = crabs[0].position
    assert position.from_node == 1
    assert position.to_node in (2, 3)
    assert position.distance == 0.0


def test_dead_end_arrival_becomes_stationary_and_stays() -> None:
    config, roads = _fixtures()
    crabs = [Crab(variant_index=0, position=Position(from_node=1, to_node=3, distance=95.0))]
    rng = random.Random(2)

    advance_crabs(roads, crabs, config, 1.0, rng)
    assert crabs[0].position == Position(from_node=3, to_node=None, distance=0.0)
    assert crabs[0].is_moving is False

    for _ in range(10):
        advance_crabs(roads, crabs, config, 1.0, rng)
    assert crabs[0].position == Position(from_node=3, to_node=None, distance=0.0)


def test_lookahead_may_extend_past_edge_end() -> None:
    _, roads = _fixtures()

    point = lookahead_point(roads, Position(from_node=1, to_node=3, distance=98.0), 5.0)

    assert point == pytest.approx((203.0, 0.0))


def test_slow_down_compounds_per_crab_in_front() -> None:
    config, roads = _fixtures()
    walker = Crab(variant_index=0, position=Position(from_node=0, to_node=1, distance=0.0))
    blockers = [Crab(variant_index=1, position=Position(from_node=0, to_node=1, distance=5.0)) for _ in range(2)]
    far_away = Crab(variant_index=1, position=Position(from_node=3))

    assert slow_down_multiplier(roads, [walker, far_away], 0, config) == 1.0
    assert slow_down_multiplier(roads, [walker, blockers[0]], 0, config) == pytest.approx(0.5)
    assert slow_down_multiplier(roads, [walker, *blockers], 0, config) == pytest.approx(0.25)


def test_more_crabs_in_front_never_speed_a_crab_up() -> None:
    config, roads = _fixtures()
    travelled: list[float] = []
    for blocker_count in range(4):
        crabs = [Crab(variant_index=0, position=Position(from_node=0, to_node=1, distance=0.0))]
        crabs.extend(
            Crab(variant_index=1, position=Position(from_node=0, to_node=1, distance=6.0)) for _ in range(blocker_count)
        )
        advance_crab(roads, crabs, 0, config, 0.1, random.Random(0))
        travelled.append(crabs[0].position.distance)

    assert travelled[0] == pytest.approx(1.0)
    assert all(later <= earlier for earlier, later in zip(travelled, travelled[1:]))
    assert travelled[-1] < travelled[0]


def test_slow_down_uses_configured_factor() -> None:
    config, roads = _fixtures()
    config = replace(config, collision_slow_down=1.0)
    crabs = [
        Crab(variant_index=0, position=Position(from_node=0, to_node=1, distance=0.0)),
        Crab(variant_index=0, position=Position(from_node=0, to_node=1, distance=5.0)),
    ]

    advance_crab(roads, crabs, 0, config, 1.0, random.Random(0))

    assert crabs[0].position.distance == pytest.approx(10.0)


def test_zero_delta_time_changes_nothing() -> None:
    config, roads = _fixtures()
    crabs = [Crab(variant_index=0, position=Position(from_node=0, to_node=1, distance=40.0), animation_time=0.3)]

    advance_crabs(roads, crabs, config, 0.0, random.Random(0))

    assert crabs[0].position == Position(from_node=0, to_node=1, distance=40.0)
    assert crabs[0].animation_time == pytest.approx(0.3)
