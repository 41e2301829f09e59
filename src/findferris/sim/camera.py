from __future__ import annotations

from dataclasses import dataclass

from findferris.sim.roads import Vec2


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def aspect_ratio(screen_size: Vec2) -> float:
    return screen_size[0] / screen_size[1]


@dataclass
class Camera2d:
    """2D camera; ``fov`` is the visible world height.

    Screen coordinates grow rightward and downward from the top-left pixel,
    world coordinates grow rightward and upward.
    """

    center: Vec2 = (0.0, 0.0)
    fov: float = 1.0

    def screen_to_world(self, screen_size: Vec2, screen_pos: Vec2) -> Vec2:
        aspect = aspect_ratio(screen_size)
        ndc_x = screen_pos[0] / screen_size[0] * 2.0 - 1.0
        ndc_y = 1.0 - screen_pos[1] / screen_size[1] * 2.0
        return (
            self.center[0] + ndc_x * self.fov / 2.0 * aspect,
            self.center[1] + ndc_y * self.fov / 2.0,
        )

    def world_to_screen(self, screen_size: Vec2, world_pos: Vec2) -> Vec2:
        aspect = aspect_ratio(screen_size)
        ndc_x = (world_pos[0] - self.center[0]) / (self.fov / 2.0 * aspect)
        ndc_y = (world_pos[1] - self.center[1]) / (self.fov / 2.0)
        return ((ndc_x + 1.0) / 2.0 * screen_size[0], (1.0 - ndc_y) / 2.0 * screen_size[1])

    def pixels_per_unit(self, screen_size: Vec2) -> float:
        return screen_size[1] / self.fov

    def visible_rect(self, screen_size: Vec2) -> tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) of the world area on screen."""
        half_width = self.fov / 2.0 * aspect_ratio(screen_size)
        half_height = self.fov / 2.0
        return (
            self.center[0] - half_width,
            self.center[1] - half_height,
            self.center[0] + half_width,
            self.center[1] + half_height,
        )

    def pan(self, delta: Vec2) -> None:
        self.center = (self.center[0] + delta[0], self.center[1] + delta[1])

    def clamp(self, map_size: Vec2, screen_size: Vec2) -> None:
        """Keep the visible rectangle inside the map rectangle centered at the origin."""
        aspect = aspect_ratio(screen_size)
        self.fov = min(self.fov, map_size[1], map_size[0] / aspect)
        slack_x = max(0.0, map_size[0] / 2.0 - self.fov / 2.0 * aspect)
        slack_y = max(0.0, map_size[1] / 2.0 - self.fov / 2.0)
        self.center = (clamp(self.center[0], -slack_x, slack_x), clamp(self.center[1], -slack_y, slack_y))

    def zoom_at(
        self,
        cursor: Vec2,
        wheel_delta: float,
        screen_size: Vec2,
        *,
        zoom_speed: float,
        min_fov: float,
        max_fov: float,
    ) -> None:
        """Zoom by ``zoom_speed ** -wheel_delta`` keeping the world point under ``cursor`` fixed."""
        before = self.screen_to_world(screen_size, cursor)
        self.fov = clamp(self.fov * zoom_speed ** (-wheel_delta), min_fov, max_fov)
        after = self.screen_to_world(screen_size, cursor)
        self.pan((before[0] - after[0], before[1] - after[1]))
