"""Routes a relationship between two people into drawable segments.

A connector is two vertical stems hanging from each endpoint plus a
horizontal bridge joining the stem bottoms at the left endpoint's depth.
Couple markers (separation slash, divorce double slash, remarriage cross)
are drawn as short glyphs centred on the bridge.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from domain.models import (
    Point,
    RelationshipFamily,
    RelationshipType,
)

OVERLAY_SPACING = 8.0
OVERLAY_SIZE = 12.0
HIT_THRESHOLD = 5.0

SLASH = "/"
BACKSLASH = "\\"
CROSS = "X"


@dataclass(frozen=True)
class LineStyle:
    dash: Tuple[float, ...] = ()
    overlays: Tuple[str, ...] = ()

    @property
    def solid(self) -> bool:
        return not self.dash


SOLID = LineStyle()

COUPLE_STYLES: Dict[RelationshipType, LineStyle] = {
    RelationshipType.MARRIED: SOLID,
    RelationshipType.LEGAL_SEPARATION: LineStyle(overlays=(SLASH,)),
    RelationshipType.DIVORCED: LineStyle(overlays=(SLASH, SLASH)),
    RelationshipType.DIVORCED_REMARRIED: LineStyle(overlays=(SLASH, CROSS)),
    RelationshipType.SEPARATION_IN_FACT: LineStyle(overlays=(BACKSLASH,)),
    RelationshipType.ENGAGEMENT: LineStyle(dash=(8, 4)),
    RelationshipType.SHORT_TERM: LineStyle(dash=(2, 4)),
    RelationshipType.TEMPORARY: LineStyle(dash=(8, 4, 2, 4)),
    RelationshipType.OTHER_UNKNOWN: LineStyle(dash=(2, 4, 2, 10)),
}

CHILD_STYLES: Dict[RelationshipType, LineStyle] = {
    RelationshipType.BIOLOGICAL_CHILD: SOLID,
    RelationshipType.FOSTER_CHILD: LineStyle(dash=(2, 4)),
    RelationshipType.ADOPTED_CHILD: LineStyle(dash=(4, 2, 4, 2)),
    RelationshipType.FRATERNAL_TWINS: SOLID,
    RelationshipType.IDENTICAL_TWINS: SOLID,
}


@dataclass(frozen=True)
class Segment:
    start: Point
    end: Point


@dataclass(frozen=True)
class Glyph:
    kind: str
    center: Point
    strokes: Tuple[Segment, ...]


@dataclass(frozen=True)
class RoutedRelationship:
    left: Point
    right: Point
    stems: Tuple[Segment, Segment]
    bridge: Segment
    style: LineStyle
    glyphs: Tuple[Glyph, ...] = field(default_factory=tuple)

    def segments(self) -> List[Segment]:
        return [*self.stems, self.bridge]

    def midpoint(self) -> Point:
        return Point((self.bridge.start.x + self.bridge.end.x) / 2, self.bridge.start.y)


def style_for(relationship_type: RelationshipType) -> LineStyle:
    if relationship_type.family == RelationshipFamily.COUPLE:
        return COUPLE_STYLES[relationship_type]
    return CHILD_STYLES[relationship_type]


def route(
    first: Point,
    second: Point,
    relationship_type: RelationshipType,
    drop: float,
    overlay_spacing: float = OVERLAY_SPACING,
    overlay_size: float = OVERLAY_SIZE,
) -> RoutedRelationship:
    left, right = (second, first) if first.x > second.x else (first, second)
    bridge_y = left.y + drop
    stems = (
        Segment(left, Point(left.x, left.y + drop)),
        Segment(right, Point(right.x, right.y + drop)),
    )
    bridge = Segment(Point(left.x, bridge_y), Point(right.x, bridge_y))
    style = style_for(relationship_type)

    center = Point((left.x + right.x) / 2, bridge_y)
    count = len(style.overlays)
    glyphs = tuple(
        _glyph(kind, Point(center.x + (idx - count / 2) * overlay_spacing, center.y), overlay_size)
        for idx, kind in enumerate(style.overlays)
    )
    return RoutedRelationship(
        left=left,
        right=right,
        stems=stems,
        bridge=bridge,
        style=style,
        glyphs=glyphs,
    )


def _glyph(kind: str, center: Point, size: float) -> Glyph:
    half = size / 2
    top_left = Point(center.x - half, center.y - half)
    top_right = Point(center.x + half, center.y - half)
    bottom_left = Point(center.x - half, center.y + half)
    bottom_right = Point(center.x + half, center.y + half)
    if kind == SLASH:
        strokes: Tuple[Segment, ...] = (Segment(bottom_left, top_right),)
    elif kind == BACKSLASH:
        strokes = (Segment(top_left, bottom_right),)
    else:
        strokes = (Segment(top_left, bottom_right), Segment(top_right, bottom_left))
    return Glyph(kind=kind, center=center, strokes=strokes)


def distance_to_segment(point: Point, segment: Segment) -> float:
    dx = segment.end.x - segment.start.x
    dy = segment.end.y - segment.start.y
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return math.hypot(point.x - segment.start.x, point.y - segment.start.y)
    t = ((point.x - segment.start.x) * dx + (point.y - segment.start.y) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    proj_x = segment.start.x + t * dx
    proj_y = segment.start.y + t * dy
    return math.hypot(point.x - proj_x, point.y - proj_y)


def hit_test(
    routed: RoutedRelationship, point: Point, threshold: float = HIT_THRESHOLD
) -> bool:
    distance = min(distance_to_segment(point, segment) for segment in routed.segments())
    return distance < threshold
