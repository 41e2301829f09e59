from __future__ import annotations

import argparse
import importlib.metadata
import math
import os
import platform
import sys
import time
from dataclasses import dataclass
from typing import Any, Sequence

from findferris.content.config import DEFAULT_CONFIG_PATH
from findferris.content.io import (
    DEFAULT_ITEM_POSITIONS_PATH,
    DEFAULT_ROADS_PATH,
    build_simulation,
    save_editor_data,
)
from findferris.sim.core import SimCommand, Simulation
from findferris.sim.gestures import GestureClassifier, GestureClick, GestureOutput, GesturePan
from findferris.sim.hash import roads_hash
from findferris.sim.roads import Vec2

WINDOW_SIZE = (1280, 800)
DEFAULT_SEED = 7
FRAME_RATE = 60
MAX_FRAME_SECONDS = 0.1
HUD_SLOT_WIDTH = 64
HAND_ITEM_RADIUS = 5
CRAB_RADIUS = 12
ITEM_RADIUS = 9

GROUND_COLOR = (226, 204, 150)
BACKDROP_COLOR = (22, 40, 58)
ROAD_FROM_COLOR = (70, 110, 255)
ROAD_TO_COLOR = (235, 70, 70)
NODE_COLOR = (60, 200, 90)
SLOT_COLOR = (70, 110, 255)
HOVER_COLOR = (255, 255, 255)
HUD_BACKGROUND_COLOR = (250, 240, 215)
HUD_TEXT_COLOR = (18, 18, 18)

CRAB_COLORS: tuple[tuple[int, int, int], ...] = (
    (222, 76, 52),
    (240, 146, 60),
    (200, 60, 120),
    (150, 90, 60),
    (250, 210, 70),
)
ITEM_COLORS: tuple[tuple[int, int, int], ...] = (
    (250, 250, 250),
    (255, 140, 0),
    (200, 200, 255),
    (60, 160, 90),
    (240, 210, 40),
    (140, 80, 40),
    (40, 120, 60),
    (90, 90, 110),
)

pygame: Any | None = None


@dataclass
class ViewerPaths:
    config_path: str = DEFAULT_CONFIG_PATH
    roads_path: str = DEFAULT_ROADS_PATH
    item_positions_path: str = DEFAULT_ITEM_POSITIONS_PATH


def _item_color(kind: int) -> tuple[int, int, int]:
    return ITEM_COLORS[kind % len(ITEM_COLORS)]


def _crab_color(variant_index: int) -> tuple[int, int, int]:
    return CRAB_COLORS[variant_index % len(CRAB_COLORS)]


def _handle_key_down(sim: Simulation, key_name: str, *, ctrl: bool, cursor_world: Vec2) -> str | None:
    """Apply an editor/gameplay key; returns ``"save"`` when the caller should persist editor data."""
    tick = sim.state.tick
    if key_name == "tab":
        sim.append_command(SimCommand(tick=tick, command_type="toggle_editor"))
    elif key_name == "n":
        sim.append_command(SimCommand(tick=tick, command_type="add_node", params={"x": cursor_world[0], "y": cursor_world[1]}))
    elif key_name == "i":
        sim.append_command(
            SimCommand(tick=tick, command_type="add_placement_slot", params={"x": cursor_world[0], "y": cursor_world[1]})
        )
    elif key_name == "e":
        # key repeat sends extra key-downs; keep the first anchor
        if sim.editor.drag_from is None:
            sim.editor.drag_from = sim.hovered_node(cursor_world)
    elif key_name == "delete":
        hovered = sim.hovered_node(cursor_world)
        if hovered is not None:
            sim.append_command(SimCommand(tick=tick, command_type="delete_node", params={"node": hovered}))
    elif key_name == "space":
        sim.append_command(SimCommand(tick=tick, command_type="spawn_crab" if ctrl else "spawn_item"))
    elif key_name == "r":
        sim.append_command(SimCommand(tick=tick, command_type="clear_crabs"))
    elif key_name == "s" and ctrl:
        return "save"
    return None


def _handle_key_up(sim: Simulation, key_name: str, *, cursor_world: Vec2) -> None:
    if key_name != "e" or sim.editor.drag_from is None:
        return
    drag_from = sim.editor.drag_from
    sim.editor.drag_from = None
    target = sim.hovered_node(cursor_world)
    if target is not None:
        sim.append_command(SimCommand(tick=sim.state.tick, command_type="add_edge", params={"from": drag_from, "to": target}))


def _apply_gesture_outputs(sim: Simulation, outputs: Sequence[GestureOutput], screen_size: Vec2) -> str | None:
    status: str | None = None
    for output in outputs:
        if isinstance(output, GesturePan):
            sim.camera.pan(output.delta)
        elif isinstance(output, GestureClick):
            world_pos = sim.camera.screen_to_world(screen_size, output.screen_pos)
            result = sim.click(world_pos)
            if result.collected:
                taken = len(result.hand_pickups) + (1 if result.ground_item is not None else 0)
                status = f"collected {taken} item(s)"
    return status


def _release_gesture(classifier: GestureClassifier, *, focus_lost: bool) -> None:
    """Drop a gesture whose release event may never arrive.

    Losing focus ends any gesture. Leaving the window only ends finger gestures;
    the mouse keeps reporting its button release after leaving.
    """
    if focus_lost or getattr(classifier.state, "pointer_id", None) is not None:
        classifier.reset()


def _hud_lines(sim: Simulation) -> list[str]:
    return [f"{sim.config.item_kinds[kind]}: {count}" for kind, count in sim.remaining_by_target()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="findferris",
        description="Run the Find Ferris pygame viewer.",
    )
    parser.add_argument("--config-path", default=DEFAULT_CONFIG_PATH, help="Path to game config JSON.")
    parser.add_argument("--roads-path", default=DEFAULT_ROADS_PATH, help="Path to road network JSON.")
    parser.add_argument(
        "--item-positions-path",
        default=DEFAULT_ITEM_POSITIONS_PATH,
        help="Path to item placement slots JSON.",
    )
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Master seed for spawning and motion.")
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Force SDL dummy video driver for CI/testing and exit without opening a real window.",
    )
    return parser


def _env_flag_enabled(var_name: str) -> bool:
    return os.environ.get(var_name, "").strip().lower() in {"1", "true", "yes", "on"}


def _print_startup_banner() -> None:
    try:
        pygame_version = importlib.metadata.version("pygame")
    except importlib.metadata.PackageNotFoundError:
        pygame_version = "not-installed"
    print(
        "[findferris.viewer] startup "
        f"python={platform.python_version()} "
        f"pygame={pygame_version} "
        f"platform={platform.platform()}"
    )
    for name in ("SDL_VIDEODRIVER", "SDL_AUDIODRIVER"):
        value = os.environ.get(name, "<unset>")
        print(f"[findferris.viewer] env {name}={value}")


def _ensure_pygame_imported() -> Any:
    global pygame
    if pygame is None:
        import pygame as pygame_module

        pygame = pygame_module
    return pygame


def _build_viewer_simulation(paths: ViewerPaths, *, seed: int) -> Simulation:
    sim = build_simulation(
        config=paths.config_path,
        roads_path=paths.roads_path,
        item_positions_path=paths.item_positions_path,
        seed=seed,
    )
    print(
        "[findferris.viewer] loaded "
        f"roads={paths.roads_path} nodes={len(sim.roads)} slots={len(sim.state.item_positions)} "
        f"crabs={len(sim.crabs)} items={len(sim.items)} roads_hash={roads_hash(sim.roads)}"
    )
    return sim


def _save_viewer_data(sim: Simulation, paths: ViewerPaths) -> None:
    save_editor_data(sim, roads_path=paths.roads_path, item_positions_path=paths.item_positions_path)
    print(
        "[findferris.viewer] saved "
        f"roads={paths.roads_path} item_positions={paths.item_positions_path} "
        f"roads_hash={roads_hash(sim.roads)}"
    )


def _to_pixel(sim: Simulation, screen_size: Vec2, world_pos: Vec2) -> tuple[int, int]:
    x, y = sim.camera.world_to_screen(screen_size, world_pos)
    return (int(round(x)), int(round(y)))


def _draw_world(screen: pygame.Surface, sim: Simulation, screen_size: Vec2) -> None:
    half_w = sim.config.map_size[0] / 2.0
    half_h = sim.config.map_size[1] / 2.0
    top_left = _to_pixel(sim, screen_size, (-half_w, half_h))
    bottom_right = _to_pixel(sim, screen_size, (half_w, -half_h))
    pygame.draw.rect(
        screen,
        GROUND_COLOR,
        pygame.Rect(top_left[0], top_left[1], bottom_right[0] - top_left[0], bottom_right[1] - top_left[1]),
    )
    scale = sim.camera.pixels_per_unit(screen_size)

    transforms = sim.crab_transforms()
    for index in sim.crab_draw_order():
        crab = sim.crabs[index]
        transform = transforms[index]
        center = _to_pixel(sim, screen_size, (transform.x, transform.y))
        radius = max(2, int(CRAB_RADIUS * scale))
        pygame.draw.circle(screen, _crab_color(crab.variant_index), center, radius)
        pygame.draw.circle(screen, (30, 20, 20), center, radius, 1)
        for held, offset in ((crab.left_hand, sim.config.crab_left_hand_pos), (crab.right_hand, sim.config.crab_right_hand_pos)):
            if held is None:
                continue
            hand = _to_pixel(sim, screen_size, transform.apply(offset))
            pygame.draw.circle(screen, _item_color(held), hand, max(2, int(HAND_ITEM_RADIUS * scale)))

    for item in sim.items:
        center = _to_pixel(sim, screen_size, sim.state.item_positions[item.slot_index])
        radius = max(2, int(ITEM_RADIUS * scale))
        pygame.draw.circle(screen, _item_color(item.kind), center, radius)
        tip = (
            center[0] + int(math.cos(item.rotation) * radius),
            center[1] - int(math.sin(item.rotation) * radius),
        )
        pygame.draw.line(screen, (30, 30, 30), center, tip, 1)


def _draw_editor(screen: pygame.Surface, sim: Simulation, screen_size: Vec2, cursor_world: Vec2) -> None:
    scale = sim.camera.pixels_per_unit(screen_size)
    ui_radius = max(2, int(sim.config.road_node_ui_radius * scale))
    for position in sim.state.item_positions:
        pygame.draw.circle(screen, SLOT_COLOR, _to_pixel(sim, screen_size, position), ui_radius, 1)
    for node in sim.roads.nodes:
        start = _to_pixel(sim, screen_size, node.pos)
        for other in node.connected:
            end = _to_pixel(sim, screen_size, sim.roads.nodes[other].pos)
            middle = ((start[0] + end[0]) // 2, (start[1] + end[1]) // 2)
            pygame.draw.line(screen, ROAD_FROM_COLOR, start, middle, max(1, ui_radius // 2))
            pygame.draw.line(screen, ROAD_TO_COLOR, middle, end, max(1, ui_radius // 2))
    for node in sim.roads.nodes:
        pygame.draw.circle(screen, NODE_COLOR, _to_pixel(sim, screen_size, node.pos), ui_radius)
    hovered = sim.hovered_node(cursor_world)
    if hovered is not None:
        pygame.draw.circle(screen, HOVER_COLOR, _to_pixel(sim, screen_size, sim.roads.nodes[hovered].pos), int(ui_radius * 1.2), 2)
    if sim.editor.drag_from is not None:
        anchor = _to_pixel(sim, screen_size, sim.roads.nodes[sim.editor.drag_from].pos)
        pygame.draw.line(screen, HOVER_COLOR, anchor, _to_pixel(sim, screen_size, cursor_world), 1)


def _draw_hud(screen: pygame.Surface, sim: Simulation, font: pygame.font.Font, status_message: str | None) -> None:
    remaining = sim.remaining_by_target()
    if remaining:
        width = HUD_SLOT_WIDTH * (len(remaining) + 1)
        rect = pygame.Rect((screen.get_width() - width) // 2, screen.get_height() - 84, width, 72)
        pygame.draw.rect(screen, HUD_BACKGROUND_COLOR, rect, border_radius=12)
        for index, (kind, count) in enumerate(remaining):
            slot_x = rect.x + HUD_SLOT_WIDTH * (index + 1)
            pygame.draw.circle(screen, _item_color(kind), (slot_x, rect.y + 46), 12)
            label = font.render(str(count), True, HUD_TEXT_COLOR)
            screen.blit(label, (slot_x - label.get_width() // 2, rect.y + 6))
    lines = ["drag pan | wheel zoom | click collect | Tab editor", "find: " + ", ".join(_hud_lines(sim))]
    if sim.editor.shown:
        lines.append("N node | I slot | E edge | Del node | Space item | Ctrl+Space crab | R clear | Ctrl+S save")
    if status_message:
        lines.append(f"status: {status_message}")
    y = 10
    for line in lines:
        screen.blit(font.render(line, True, (240, 240, 240)), (12, y))
        y += 22


def _finger_pixel(event: Any, screen_size: Vec2) -> Vec2:
    return (event.x * screen_size[0], event.y * screen_size[1])


def run_pygame_viewer(
    paths: ViewerPaths | None = None,
    *,
    seed: int = DEFAULT_SEED,
    headless: bool = False,
) -> int:
    paths = paths or ViewerPaths()
    if headless:
        os.environ["SDL_VIDEODRIVER"] = "dummy"
        print("[findferris.viewer] warning: headless mode active; no window will open.")

    _print_startup_banner()
    pygame_module = _ensure_pygame_imported()

    try:
        pygame_module.init()
    except Exception as exc:
        print(
            "[findferris.viewer] failed during pygame.init(): "
            f"{exc}. Hint: verify a working SDL video driver (set SDL_VIDEODRIVER=dummy for headless mode).",
            file=sys.stderr,
        )
        return 1

    try:
        sim = _build_viewer_simulation(paths, seed=seed)
    except Exception as exc:
        print(f"[findferris.viewer] failed to initialize simulation: {exc}", file=sys.stderr)
        pygame_module.quit()
        return 1

    try:
        pygame_module.display.set_caption("Find Ferris")
        screen = pygame_module.display.set_mode(WINDOW_SIZE, pygame_module.RESIZABLE)
    except Exception as exc:
        print(
            "[findferris.viewer] failed during pygame.display.set_mode(...): "
            f"{exc}. Hint: GUI sessions require a valid display; use --headless or FINDFERRIS_HEADLESS=1.",
            file=sys.stderr,
        )
        pygame_module.quit()
        return 1

    print(f"[findferris.viewer] display initialized: {pygame_module.display.get_driver()}, window size={WINDOW_SIZE}")

    if headless:
        sim.advance(1.0 / FRAME_RATE)
        sim.clamp_camera((float(WINDOW_SIZE[0]), float(WINDOW_SIZE[1])))
        pygame_module.quit()
        return 0

    classifier = GestureClassifier(
        min_drag_distance=sim.config.min_drag_distance,
        drag_start_timer=sim.config.drag_start_timer,
    )
    clock = pygame_module.time.Clock()
    font = pygame_module.font.SysFont("consolas", 18)
    status_message: str | None = None
    running = True

    while running:
        delta_time = min(clock.tick(FRAME_RATE) / 1000.0, MAX_FRAME_SECONDS)
        now = time.monotonic()
        screen_size = (float(screen.get_width()), float(screen.get_height()))
        mouse_pos = pygame_module.mouse.get_pos()
        cursor_world = sim.camera.screen_to_world(screen_size, (float(mouse_pos[0]), float(mouse_pos[1])))

        def to_world(pos: Vec2) -> Vec2:
            return sim.camera.screen_to_world(screen_size, pos)

        for event in pygame_module.event.get():
            outputs: list[GestureOutput] = []
            if event.type == pygame_module.QUIT:
                running = False
            elif event.type == pygame_module.WINDOWFOCUSLOST:
                _release_gesture(classifier, focus_lost=True)
            elif event.type == pygame_module.WINDOWLEAVE:
                _release_gesture(classifier, focus_lost=False)
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_ESCAPE:
                running = False
            elif event.type == pygame_module.KEYDOWN:
                ctrl = bool(event.mod & pygame_module.KMOD_CTRL)
                action = _handle_key_down(sim, pygame_module.key.name(event.key), ctrl=ctrl, cursor_world=cursor_world)
                if action == "save":
                    try:
                        _save_viewer_data(sim, paths)
                        status_message = f"saved {paths.roads_path}"
                    except OSError as exc:
                        status_message = f"save failed: {exc}"
                        print(f"[findferris.viewer] save failed: {exc}", file=sys.stderr)
            elif event.type == pygame_module.KEYUP:
                _handle_key_up(sim, pygame_module.key.name(event.key), cursor_world=cursor_world)
            elif event.type == pygame_module.MOUSEWHEEL:
                sim.zoom_camera((float(mouse_pos[0]), float(mouse_pos[1])), float(event.y), screen_size)
            elif getattr(event, "touch", False):
                # SDL mirrors touches as mouse events; the FINGER* events below handle them
                continue
            elif event.type == pygame_module.MOUSEBUTTONDOWN and event.button == 1:
                outputs = classifier.pointer_down((float(event.pos[0]), float(event.pos[1])), now)
            elif event.type == pygame_module.MOUSEMOTION:
                outputs = classifier.pointer_move((float(event.pos[0]), float(event.pos[1])), to_world)
            elif event.type == pygame_module.MOUSEBUTTONUP and event.button == 1:
                outputs = classifier.pointer_up((float(event.pos[0]), float(event.pos[1])))
            elif event.type == pygame_module.FINGERDOWN:
                outputs = classifier.pointer_down(_finger_pixel(event, screen_size), now, pointer_id=event.finger_id)
            elif event.type == pygame_module.FINGERMOTION:
                outputs = classifier.pointer_move(_finger_pixel(event, screen_size), to_world, pointer_id=event.finger_id)
            elif event.type == pygame_module.FINGERUP:
                outputs = classifier.pointer_up(_finger_pixel(event, screen_size), pointer_id=event.finger_id)
            status_message = _apply_gesture_outputs(sim, outputs, screen_size) or status_message

        classifier.poll(now)
        sim.advance(delta_time)
        sim.clamp_camera(screen_size)

        screen.fill(BACKDROP_COLOR)
        _draw_world(screen, sim, screen_size)
        if sim.editor.shown:
            _draw_editor(screen, sim, screen_size, cursor_world)
        _draw_hud(screen, sim, font, status_message)
        pygame_module.display.flip()

    pygame_module.quit()
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    headless = args.headless or _env_flag_enabled("FINDFERRIS_HEADLESS")
    raise SystemExit(
        run_pygame_viewer(
            ViewerPaths(
                config_path=args.config_path,
                roads_path=args.roads_path,
                item_positions_path=args.item_positions_path,
            ),
            seed=args.seed,
            headless=headless,
        )
    )


if __name__ == "__main__":
    main()
