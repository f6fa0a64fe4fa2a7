from __future__ import annotations

import math

from domain.models import GRID_SIZE, Point


def snap_value(value: float, grid_size: float = GRID_SIZE) -> float:
    # Half steps round up so snapping commutes with whole-step translation.
    return math.floor(value / grid_size + 0.5) * grid_size


def snap(point: Point, grid_size: float = GRID_SIZE) -> Point:
    return Point(snap_value(point.x, grid_size), snap_value(point.y, grid_size))
