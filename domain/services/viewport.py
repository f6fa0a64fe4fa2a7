from __future__ import annotations

from dataclasses import dataclass

from domain.models import Point, Size, ViewWindow

ZOOM_IN_FACTOR = 0.9
ZOOM_OUT_FACTOR = 1.1


@dataclass(frozen=True)
class ZoomConfig:
    zoom_in_factor: float = ZOOM_IN_FACTOR
    zoom_out_factor: float = ZOOM_OUT_FACTOR


class Viewport:
    """Maps screen pixels to model space through a movable window.

    The screen size is fixed; panning moves the window origin and zooming
    scales the window, so the model-to-screen scale is ``screen / window`` on
    each axis. Zoom is not clamped.
    """

    def __init__(
        self,
        screen: Size,
        window: ViewWindow | None = None,
        config: ZoomConfig | None = None,
    ) -> None:
        if screen.width <= 0 or screen.height <= 0:
            msg = f"Screen size must be positive, got {screen.width}x{screen.height}"
            raise ValueError(msg)
        self.screen = screen
        self.window = window or ViewWindow(0.0, 0.0, screen.width, screen.height)
        self.config = config or ZoomConfig()

    def screen_to_model(self, point: Point) -> Point:
        return Point(
            self.window.x + point.x * self.window.width / self.screen.width,
            self.window.y + point.y * self.window.height / self.screen.height,
        )

    def model_to_screen(self, point: Point) -> Point:
        return Point(
            (point.x - self.window.x) * self.screen.width / self.window.width,
            (point.y - self.window.y) * self.screen.height / self.window.height,
        )

    def panned(self, start: ViewWindow, screen_dx: float, screen_dy: float) -> ViewWindow:
        return ViewWindow(
            x=start.x - screen_dx * (start.width / self.screen.width),
            y=start.y - screen_dy * (start.height / self.screen.height),
            width=start.width,
            height=start.height,
        )

    def pan_by(self, screen_dx: float, screen_dy: float) -> None:
        self.window = self.panned(self.window, screen_dx, screen_dy)

    def zoom_at(self, screen_point: Point, delta_sign: float) -> None:
        factor = self.config.zoom_in_factor if delta_sign < 0 else self.config.zoom_out_factor
        anchor = self.screen_to_model(screen_point)
        current = self.window
        new_width = current.width * factor
        new_height = current.height * factor
        self.window = ViewWindow(
            x=anchor.x - (anchor.x - current.x) * (new_width / current.width),
            y=anchor.y - (anchor.y - current.y) * (new_height / current.height),
            width=new_width,
            height=new_height,
        )
