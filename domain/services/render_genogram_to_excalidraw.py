from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from domain.errors import DanglingReferenceError
from domain.genogram import Genogram
from domain.models import (
    CUSTOM_DATA_KEY,
    ExcalidrawDocument,
    GRID_SIZE,
    Gender,
    METADATA_SCHEMA_VERSION,
    Person,
    Point,
    Relationship,
    SelectionState,
    SexualOrientation,
    Size,
    ViewWindow,
)
from domain.services.relationship_router import (
    LineStyle,
    OVERLAY_SIZE,
    OVERLAY_SPACING,
    RoutedRelationship,
    Segment,
    route,
)

logger = logging.getLogger(__name__)

STROKE_COLOR = "#1e1e1e"
SELECTED_COLOR = "#1971c2"
GLYPH_COLOR = "#888888"
NODE_FILL = "#ffffff"

SHAPE_BY_GENDER: Dict[Gender, str] = {
    Gender.MALE: "rectangle",
    Gender.FEMALE: "ellipse",
    Gender.NON_BINARY: "diamond",
    Gender.OTHER: "diamond",
}


@dataclass(frozen=True)
class RenderConfig:
    grid_size: float = GRID_SIZE
    node_size: float = 40.0
    overlay_spacing: float = OVERLAY_SPACING
    overlay_size: float = OVERLAY_SIZE
    orientation_marker_size: float = 20.0
    label_gap: float = 8.0
    screen: Size = Size(1200.0, 800.0)


class GenogramToExcalidrawRenderer:
    """Draws a genogram as an Excalidraw scene.

    Relationships are drawn first so people sit on top of their connectors.
    Every element carries ``customData.genogram`` with its role and the id of
    the person or relationship it belongs to, which is how a click on the
    scene is mapped back to the model.
    """

    def __init__(self, config: RenderConfig | None = None) -> None:
        self.config = config or RenderConfig()
        self.namespace = uuid.uuid5(uuid.NAMESPACE_DNS, "genogram-editor")

    def render(
        self,
        genogram: Genogram,
        selection: SelectionState | None = None,
        window: ViewWindow | None = None,
    ) -> ExcalidrawDocument:
        selection = selection or SelectionState()
        elements: List[dict] = []
        base_metadata = {"schema_version": METADATA_SCHEMA_VERSION}

        def add_element(element: dict) -> None:
            elements.append(element)

        for relationship in genogram.get_relationships():
            try:
                first, second = genogram.endpoints(relationship)
            except DanglingReferenceError as exc:
                logger.warning("Skipping relationship %s: %s", relationship.id, exc)
                continue
            routed = route(
                first.position,
                second.position,
                relationship.type,
                relationship.drop,
                overlay_spacing=self.config.overlay_spacing,
                overlay_size=self.config.overlay_size,
            )
            self._build_relationship(
                relationship,
                routed,
                selected=relationship.id == selection.relationship,
                add_element=add_element,
                base_metadata=base_metadata,
            )

        for person in genogram.get_people():
            self._build_person(
                person,
                selected=person.id in selection.people,
                add_element=add_element,
                base_metadata=base_metadata,
            )

        return ExcalidrawDocument(
            elements=elements, app_state=self._app_state(window), files={}
        )

    def _app_state(self, window: ViewWindow | None) -> dict:
        app_state: dict = {
            "viewBackgroundColor": "#ffffff",
            "gridSize": self.config.grid_size,
            "currentItemFontFamily": 1,
            "currentItemFontSize": 16,
            "currentItemStrokeColor": STROKE_COLOR,
        }
        if window is not None:
            # Excalidraw: scene = client / zoom - scroll.
            app_state["zoom"] = {"value": self.config.screen.width / window.width}
            app_state["scrollX"] = -window.x
            app_state["scrollY"] = -window.y
            app_state["viewWindow"] = {
                "x": window.x,
                "y": window.y,
                "width": window.width,
                "height": window.height,
            }
        return app_state

    def _build_relationship(
        self,
        relationship: Relationship,
        routed: RoutedRelationship,
        selected: bool,
        add_element: Callable[[dict], None],
        base_metadata: dict,
    ) -> None:
        group_id = self._stable_id("relationship-group", relationship.id)
        meta = self._with_base_metadata(
            {
                "relationship_id": relationship.id,
                "relationship_type": relationship.type.value,
                "family": relationship.family.value,
                "people": list(relationship.people),
            },
            base_metadata,
        )
        color = SELECTED_COLOR if selected else STROKE_COLOR
        for idx, stem in enumerate(routed.stems):
            add_element(
                self._line_element(
                    element_id=self._stable_id("stem", relationship.id, str(idx)),
                    segments=[stem],
                    style=routed.style,
                    color=color,
                    group_ids=[group_id],
                    metadata={**meta, "role": "stem"},
                )
            )
        add_element(
            self._line_element(
                element_id=self._stable_id("bridge", relationship.id),
                segments=[routed.bridge],
                style=routed.style,
                color=color,
                group_ids=[group_id],
                metadata={**meta, "role": "bridge"},
            )
        )
        for idx, glyph in enumerate(routed.glyphs):
            for stroke_idx, stroke in enumerate(glyph.strokes):
                add_element(
                    self._line_element(
                        element_id=self._stable_id(
                            "glyph", relationship.id, str(idx), str(stroke_idx)
                        ),
                        segments=[stroke],
                        style=LineStyle(),
                        color=GLYPH_COLOR,
                        group_ids=[group_id],
                        metadata={**meta, "role": "glyph", "glyph": glyph.kind},
                        stroke_width=2,
                    )
                )

    def _build_person(
        self,
        person: Person,
        selected: bool,
        add_element: Callable[[dict], None],
        base_metadata: dict,
    ) -> None:
        size = self.config.node_size
        group_id = self._stable_id("person-group", person.id)
        meta = self._with_base_metadata(
            {
                "person_id": person.id,
                "gender": person.gender.value,
                "sexual_orientation": person.sexual_orientation.value,
                "alive": person.alive,
            },
            base_metadata,
        )
        shape_id = self._stable_id("person", person.id)
        add_element(
            self._base_shape(
                element_id=shape_id,
                type_name=SHAPE_BY_GENDER[person.gender],
                position=Point(person.position.x - size / 2, person.position.y - size / 2),
                width=size,
                height=size,
                group_ids=[group_id],
                metadata={**meta, "role": "person"},
                extra={
                    "strokeColor": SELECTED_COLOR if selected else STROKE_COLOR,
                    "strokeWidth": 3 if selected else 1,
                    "backgroundColor": NODE_FILL,
                    "fillStyle": "solid",
                },
            )
        )
        if person.sexual_orientation != SexualOrientation.STRAIGHT:
            add_element(
                self._orientation_marker(person, group_id, {**meta, "role": "orientation"})
            )
        label = person.display_name()
        add_element(
            self._text_element(
                element_id=self._stable_id("person-label", person.id),
                text=label,
                center=Point(
                    person.position.x,
                    person.position.y + size / 2 + self.config.label_gap + 10,
                ),
                group_ids=[group_id],
                metadata={**meta, "role": "person_label"},
            )
        )

    def _orientation_marker(self, person: Person, group_id: str, metadata: dict) -> dict:
        half = self.config.orientation_marker_size / 2
        x, y = person.position.x, person.position.y
        # Downward triangle centred on the node.
        points = [Point(x, y + half), Point(x + half, y - half), Point(x - half, y - half)]
        element = self._line_element(
            element_id=self._stable_id("orientation", person.id),
            segments=[
                Segment(points[0], points[1]),
                Segment(points[1], points[2]),
                Segment(points[2], points[0]),
            ],
            style=LineStyle(),
            color=GLYPH_COLOR,
            group_ids=[group_id],
            metadata=metadata,
        )
        element["backgroundColor"] = GLYPH_COLOR
        element["fillStyle"] = "solid"
        return element

    def _line_element(
        self,
        element_id: str,
        segments: List[Segment],
        style: LineStyle,
        color: str,
        group_ids: List[str],
        metadata: dict,
        stroke_width: int = 1,
    ) -> dict:
        origin = segments[0].start
        points: List[List[float]] = [[0.0, 0.0]]
        for segment in segments:
            points.append([segment.end.x - origin.x, segment.end.y - origin.y])
        xs = [point[0] for point in points]
        ys = [point[1] for point in points]
        return self._base_shape(
            element_id=element_id,
            type_name="line",
            position=origin,
            width=max(xs) - min(xs),
            height=max(ys) - min(ys),
            group_ids=group_ids,
            metadata={**metadata, "dash": list(style.dash)},
            extra={
                "strokeColor": color,
                "backgroundColor": "transparent",
                "fillStyle": "solid",
                "strokeWidth": stroke_width,
                "strokeStyle": _stroke_style(style),
                "points": points,
                "lastCommittedPoint": None,
                "startBinding": None,
                "endBinding": None,
                "startArrowhead": None,
                "endArrowhead": None,
            },
        )

    def _text_element(
        self,
        element_id: str,
        text: str,
        center: Point,
        group_ids: List[str],
        metadata: dict,
        font_size: float = 16.0,
    ) -> dict:
        width = max(40.0, len(text) * font_size * 0.55)
        height = font_size * 1.25
        return self._base_shape(
            element_id=element_id,
            type_name="text",
            position=Point(center.x - width / 2, center.y - height / 2),
            width=width,
            height=height,
            group_ids=group_ids,
            metadata=metadata,
            extra={
                "strokeColor": STROKE_COLOR,
                "backgroundColor": "transparent",
                "fillStyle": "solid",
                "text": text,
                "originalText": text,
                "fontSize": font_size,
                "fontFamily": 1,
                "textAlign": "center",
                "verticalAlign": "top",
                "baseline": height * 0.8,
                "containerId": None,
                "lineHeight": 1.25,
            },
        )

    def _base_shape(
        self,
        element_id: str,
        type_name: str,
        position: Point,
        width: float,
        height: float,
        metadata: dict,
        group_ids: List[str] | None = None,
        extra: dict | None = None,
    ) -> dict:
        return {
            "id": element_id,
            "type": type_name,
            "x": position.x,
            "y": position.y,
            "width": width,
            "height": height,
            "angle": 0,
            "strokeWidth": 1,
            "strokeStyle": "solid",
            "roughness": 0,
            "opacity": 100,
            "groupIds": group_ids or [],
            "frameId": None,
            "roundness": None,
            "seed": self._rand_seed(),
            "version": 1,
            "versionNonce": self._rand_seed(),
            "isDeleted": False,
            "boundElements": [],
            "locked": False,
            "customData": {CUSTOM_DATA_KEY: metadata},
            **(extra or {}),
        }

    def _stable_id(self, *parts: str) -> str:
        return str(uuid.uuid5(self.namespace, "|".join(parts)))

    def _rand_seed(self) -> int:
        return random.randint(1, 2**31 - 1)

    def _with_base_metadata(self, metadata: dict, base: dict) -> dict:
        merged = dict(base)
        merged.update(metadata)
        return merged


def _stroke_style(style: LineStyle) -> str:
    # Excalidraw only knows solid, dashed and dotted; short leading dashes
    # read as dots.
    if style.solid:
        return "solid"
    if style.dash[0] <= 2:
        return "dotted"
    return "dashed"


def element_owner(element: dict) -> Tuple[str | None, str | None]:
    """Returns ``(kind, id)`` for a rendered element, e.g. ``("person", "p_x")``."""
    meta = element.get("customData", {}).get(CUSTOM_DATA_KEY, {})
    if "person_id" in meta:
        return "person", meta["person_id"]
    if "relationship_id" in meta:
        return "relationship", meta["relationship_id"]
    return None, None


def scene_bounds(genogram: Genogram, margin: float = 80.0) -> ViewWindow:
    people = genogram.get_people()
    if not people:
        return ViewWindow(0.0, 0.0, 1200.0, 800.0)
    xs = [person.position.x for person in people]
    ys = [person.position.y for person in people]
    return ViewWindow(
        x=min(xs) - margin,
        y=min(ys) - margin,
        width=max(xs) - min(xs) + margin * 2,
        height=max(ys) - min(ys) + margin * 2,
    )
