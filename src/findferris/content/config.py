from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from findferris.sim.roads import Vec2, parse_vec2

CONFIG_SCHEMA_VERSION = 1
DEFAULT_CONFIG_PATH = "content/config.json"

_FLOAT_FIELDS = (
    "click_radius",
    "min_drag_distance",
    "default_fov",
    "drag_start_timer",
    "crab_speed",
    "road_node_ui_radius",
    "zoom_speed",
    "min_fov",
    "max_fov",
    "animation_speed",
    "jump_height",
    "jump_rotation_amplitude",
    "collision_check_distance",
    "collision_check_radius",
    "collision_slow_down",
    "crab_hold_item_probability",
    "crab_hold_double_item_probability",
)
_COUNT_FIELDS = ("crabs", "free_items", "types_to_find")
_VEC2_FIELDS = ("crab_left_hand_pos", "crab_right_hand_pos", "map_size")
_PROBABILITY_FIELDS = ("crab_hold_item_probability", "crab_hold_double_item_probability")
_POSITIVE_FIELDS = ("default_fov", "min_fov", "max_fov", "zoom_speed", "click_radius")


@dataclass(frozen=True)
class CrabVariant:
    name: str
    spawn_weight: float


@dataclass(frozen=True)
class GameConfig:
    click_radius: float
    crabs: int
    free_items: int
    min_drag_distance: float
    default_fov: float
    drag_start_timer: float
    crab_speed: float
    road_node_ui_radius: float
    zoom_speed: float
    min_fov: float
    max_fov: float
    animation_speed: float
    jump_height: float
    jump_rotation_amplitude: float
    collision_check_distance: float
    collision_check_radius: float
    collision_slow_down: float
    crab_hold_item_probability: float
    crab_hold_double_item_probability: float
    crab_left_hand_pos: Vec2
    crab_right_hand_pos: Vec2
    types_to_find: int
    map_size: Vec2
    item_kinds: tuple[str, ...]
    crab_variants: tuple[CrabVariant, ...]

    @property
    def item_kind_count(self) -> int:
        return len(self.item_kinds)

    def variant_weights(self) -> list[float]:
        return [variant.spawn_weight for variant in self.crab_variants]


def load_config_json(path: str | Path) -> GameConfig:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return config_from_payload(payload)


def config_from_payload(payload: dict[str, Any]) -> GameConfig:
    if not isinstance(payload, dict):
        raise ValueError("config payload must be an object")

    schema_version = payload.get("schema_version")
    if not isinstance(schema_version, int):
        raise ValueError("config must contain integer field: schema_version")
    if schema_version != CONFIG_SCHEMA_VERSION:
        raise ValueError(f"unsupported config schema_version: {schema_version}")

    values: dict[str, Any] = {}
    for name in _FLOAT_FIELDS:
        values[name] = _require_number(payload, name)
    for name in _COUNT_FIELDS:
        values[name] = _require_count(payload, name)
    for name in _VEC2_FIELDS:
        values[name] = parse_vec2(payload.get(name), field_name=name)

    for name in _PROBABILITY_FIELDS:
        if not 0.0 <= values[name] <= 1.0:
            raise ValueError(f"{name} must be within [0, 1]")
    for name in _POSITIVE_FIELDS:
        if values[name] <= 0.0:
            raise ValueError(f"{name} must be > 0")
    if not 0.0 < values["collision_slow_down"] <= 1.0:
        raise ValueError("collision_slow_down must be within (0, 1]")
    if not values["min_fov"] <= values["default_fov"] <= values["max_fov"]:
        raise ValueError("default_fov must be within [min_fov, max_fov]")
    if values["map_size"][0] <= 0.0 or values["map_size"][1] <= 0.0:
        raise ValueError("map_size components must be > 0")

    item_kinds = _parse_item_kinds(payload.get("item_kinds"))
    if values["types_to_find"] > len(item_kinds):
        raise ValueError(
            f"types_to_find ({values['types_to_find']}) exceeds the number of item_kinds ({len(item_kinds)})"
        )
    crab_variants = _parse_crab_variants(payload.get("crab_variants"))

    return GameConfig(item_kinds=item_kinds, crab_variants=crab_variants, **values)


def _require_number(payload: dict[str, Any], name: str) -> float:
    value = payload.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"config must contain numeric field: {name}")
    return float(value)


def _require_count(payload: dict[str, Any], name: str) -> int:
    value = payload.get(name)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"config must contain integer field: {name}")
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


def _parse_item_kinds(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise ValueError("config must contain non-empty list field: item_kinds")
    seen: set[str] = set()
    for index, kind in enumerate(value):
        if not isinstance(kind, str) or not kind:
            raise ValueError(f"item_kinds[{index}] must be a non-empty string")
        if kind in seen:
            raise ValueError(f"duplicate item kind: {kind}")
        seen.add(kind)
    return tuple(value)


def _parse_crab_variants(value: Any) -> tuple[CrabVariant, ...]:
    if not isinstance(value, list) or not value:
        raise ValueError("config must contain non-empty list field: crab_variants")
    variants: list[CrabVariant] = []
    for index, row in enumerate(value):
        if not isinstance(row, dict):
            raise ValueError(f"crab_variants[{index}] must be an object")
        name = row.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"crab_variants[{index}].name must be a non-empty string")
        weight = row.get("spawn_weight")
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise ValueError(f"crab_variants[{index}].spawn_weight must be a number")
        if weight < 0:
            raise ValueError(f"crab_variants[{index}].spawn_weight must be >= 0")
        variants.append(CrabVariant(name=name, spawn_weight=float(weight)))
    if sum(variant.spawn_weight for variant in variants) <= 0:
        raise ValueError("crab_variants spawn_weight values must have a positive sum")
    return tuple(variants)
