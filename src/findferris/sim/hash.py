from __future__ import annotations

import hashlib
import json

from findferris.sim.core import Simulation
from findferris.sim.roads import RoadGraph


def roads_hash(roads: RoadGraph) -> str:
    encoded = json.dumps(roads.to_dict(), sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def simulation_hash(simulation: Simulation) -> str:
    payload = {
        "seed": simulation.seed,
        "tick": simulation.state.tick,
        "time": round(simulation.state.time, 8),
        "roads": simulation.roads.to_dict(),
        "item_positions": [list(pos) for pos in simulation.state.item_positions],
        "target_set": list(simulation.target_set),
        "crabs": [
            {
                **crab.to_dict(),
                "animation_time": round(crab.animation_time, 8),
                "position": {**crab.position.to_dict(), "distance": round(crab.position.distance, 8)},
            }
            for crab in simulation.crabs
        ],
        "items": [{**item.to_dict(), "rotation": round(item.rotation, 8)} for item in simulation.items],
        "input_log": [command.to_dict() for command in simulation.input_log],
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()
