"""Pointer and keyboard state machine for the genogram canvas.

One gesture is active between pointer-down and pointer-up. The kind is fixed
at pointer-down and every pointer-move recomputes the gesture's effect from
the recorded anchor and the current pointer, so nothing accumulates between
moves. Positions changed during a drag are applied live and are not rolled
back when the gesture ends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from domain.errors import DanglingReferenceError
from domain.genogram import Genogram
from domain.models import (
    DEFAULT_COUPLE_TYPE,
    DEFAULT_DROP,
    ExcalidrawDocument,
    GRID_SIZE,
    Gender,
    MIN_DROP,
    Person,
    Point,
    Relationship,
    RelationshipFamily,
    SelectionState,
    ViewWindow,
)
from domain.ports.rendering import DetailPanel, SceneRenderer
from domain.services.detail_form import build_detail_form
from domain.services.grid_snap import snap, snap_value
from domain.services.relationship_router import HIT_THRESHOLD, hit_test, route
from domain.services.viewport import Viewport

logger = logging.getLogger(__name__)

PERSON_HIT_RADIUS = 20.0
LEFT_BUTTON = 0

LINK_KEYS = {"l"}
DELETE_KEYS = {"delete", "backspace"}
CANCEL_KEYS = {"escape", "esc"}


@dataclass(frozen=True)
class Modifiers:
    shift: bool = False
    ctrl: bool = False
    alt: bool = False
    meta: bool = False


NO_MODIFIERS = Modifiers()


@dataclass(frozen=True)
class PointerEvent:
    screen: Point
    button: int = LEFT_BUTTON
    modifiers: Modifiers = NO_MODIFIERS


@dataclass(frozen=True)
class WheelEvent:
    screen: Point
    delta_y: float


@dataclass(frozen=True)
class KeyEvent:
    key: str
    modifiers: Modifiers = NO_MODIFIERS


@dataclass(frozen=True)
class ScreenRect:
    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class InteractionConfig:
    grid_size: float = GRID_SIZE
    default_drop: float = DEFAULT_DROP
    min_drop: float = MIN_DROP
    person_hit_radius: float = PERSON_HIT_RADIUS
    relationship_hit_threshold: float = HIT_THRESHOLD


@dataclass(frozen=True)
class AddMenu:
    screen_anchor: Point
    target: Point


@dataclass(frozen=True)
class NoGesture:
    kind: str = "none"


@dataclass(frozen=True)
class AddMenuGesture:
    menu: AddMenu
    kind: str = "add_menu"


@dataclass(frozen=True)
class MarqueeGesture:
    model_anchor: Point
    screen_anchor: Point
    kind: str = "marquee"


@dataclass(frozen=True)
class NodeDragGesture:
    offsets: Dict[str, Point]
    kind: str = "node_drag"


@dataclass(frozen=True)
class RelationshipDragGesture:
    relationship_id: str
    model_anchor: Point
    start_positions: Dict[str, Point]
    start_drop: float
    kind: str = "relationship_drag"


@dataclass(frozen=True)
class PanGesture:
    screen_anchor: Point
    start_window: ViewWindow
    kind: str = "pan"


Gesture = Union[
    NoGesture,
    AddMenuGesture,
    MarqueeGesture,
    NodeDragGesture,
    RelationshipDragGesture,
    PanGesture,
]


class Selection:
    """Selected people (in selection order) and at most one relationship."""

    def __init__(self) -> None:
        self._people: Dict[str, None] = {}
        self.relationship: Optional[str] = None

    @property
    def people(self) -> List[str]:
        return list(self._people)

    def has_person(self, person_id: str) -> bool:
        return person_id in self._people

    def clear(self) -> None:
        self._people.clear()
        self.relationship = None

    def select_person(self, person_id: str, append: bool = False) -> None:
        if not append:
            self._people.clear()
        self.relationship = None
        self._people[person_id] = None

    def select_people(self, person_ids: List[str]) -> None:
        self.clear()
        for person_id in person_ids:
            self._people[person_id] = None

    def toggle_person(self, person_id: str) -> None:
        if person_id in self._people:
            del self._people[person_id]
        else:
            self._people[person_id] = None

    def select_relationship(self, relationship_id: str) -> None:
        self._people.clear()
        self.relationship = relationship_id

    def snapshot(self) -> SelectionState:
        return SelectionState(people=frozenset(self._people), relationship=self.relationship)


class InteractionController:
    def __init__(
        self,
        genogram: Genogram,
        viewport: Viewport,
        renderer: SceneRenderer | None = None,
        detail_panel: DetailPanel | None = None,
        config: InteractionConfig | None = None,
    ) -> None:
        self.genogram = genogram
        self.viewport = viewport
        self.renderer = renderer
        self.detail_panel = detail_panel
        self.config = config or InteractionConfig()
        self.selection = Selection()
        self.gesture: Gesture = NoGesture()
        self.add_menu: AddMenu | None = None
        self.marquee_overlay: ScreenRect | None = None
        self.scene: ExcalidrawDocument | None = None
        self.refresh()

    # Pointer events

    def pointer_down(self, event: PointerEvent) -> None:
        point = self.viewport.screen_to_model(event.screen)
        self.add_menu = None

        person_id = self.person_at(point)
        relationship_id = None if person_id else self.relationship_at(point)
        on_canvas = person_id is None and relationship_id is None

        if on_canvas and event.modifiers.ctrl:
            menu = AddMenu(screen_anchor=event.screen, target=snap(point, self.config.grid_size))
            self.add_menu = menu
            self._begin(AddMenuGesture(menu=menu))
            return

        if on_canvas and event.modifiers.shift and event.button == LEFT_BUTTON:
            self.marquee_overlay = ScreenRect(event.screen.x, event.screen.y, 0.0, 0.0)
            self._begin(MarqueeGesture(model_anchor=point, screen_anchor=event.screen))
            return

        if person_id is not None:
            self._begin_node_drag(person_id, point, toggle=event.modifiers.shift)
            return

        if relationship_id is not None:
            self._begin_relationship_drag(relationship_id, point)
            return

        self.selection.clear()
        self._begin(PanGesture(screen_anchor=event.screen, start_window=self.viewport.window))
        self.refresh()

    def pointer_move(self, event: PointerEvent) -> None:
        gesture = self.gesture
        if isinstance(gesture, MarqueeGesture):
            self.marquee_overlay = _rect_between(gesture.screen_anchor, event.screen)
        elif isinstance(gesture, NodeDragGesture):
            self._move_nodes(gesture, self.viewport.screen_to_model(event.screen))
        elif isinstance(gesture, RelationshipDragGesture):
            self._move_relationship(gesture, self.viewport.screen_to_model(event.screen))
        elif isinstance(gesture, PanGesture):
            self.viewport.window = self.viewport.panned(
                gesture.start_window,
                event.screen.x - gesture.screen_anchor.x,
                event.screen.y - gesture.screen_anchor.y,
            )
            self.refresh()

    def pointer_up(self, event: PointerEvent) -> None:
        gesture = self.gesture
        if isinstance(gesture, MarqueeGesture):
            self._finish_marquee(gesture, self.viewport.screen_to_model(event.screen))
        self._end()

    def wheel(self, event: WheelEvent) -> None:
        self.viewport.zoom_at(event.screen, event.delta_y)
        self.refresh()

    # Keyboard

    def key_down(self, event: KeyEvent) -> None:
        key = event.key.lower()
        if key in LINK_KEYS:
            self.link_selected()
        elif key in DELETE_KEYS:
            self.delete_selected()
        elif key in CANCEL_KEYS:
            self.cancel()

    def link_selected(self) -> Relationship | None:
        people = self.selection.people
        if len(people) != 2 or self.selection.relationship is not None:
            return None
        relationship = Relationship(
            type=DEFAULT_COUPLE_TYPE,
            people=people,
            meta={"drop": self.config.default_drop},
        )
        self.genogram.add_relationship(relationship)
        logger.debug("Linked %s and %s as %s", people[0], people[1], relationship.type.value)
        self.refresh()
        return relationship

    def delete_selected(self) -> None:
        for person_id in self.selection.people:
            self.genogram.remove_person(person_id)
        if self.selection.relationship is not None:
            self.genogram.remove_relationship(self.selection.relationship)
        self.selection.clear()
        self.refresh()

    def cancel(self) -> None:
        self.add_menu = None
        self.selection.clear()
        self.refresh()

    # Add menu

    def choose_add_gender(self, gender: Gender | str) -> Person | None:
        menu = self.add_menu
        if menu is None:
            return None
        person = Person(gender=Gender(gender), position=menu.target)
        self.genogram.add_person(person)
        self.add_menu = None
        self.selection.select_person(person.id)
        self.refresh()
        return person

    # Selection helpers for the detail panel

    def select_parent_child(self, person_id: str, relationship_id: str) -> None:
        relationship = self.genogram.relationships.get(relationship_id)
        if relationship is None or relationship.family != RelationshipFamily.PARENT_CHILD:
            msg = f"Relationship {relationship_id} is not a parent-child relationship"
            raise ValueError(msg)
        if not relationship.involves(person_id):
            msg = f"Person {person_id} is not part of relationship {relationship_id}"
            raise ValueError(msg)
        self.selection.select_person(person_id)
        self.selection.relationship = relationship_id
        self.refresh()

    # Document load/save

    def load_document(self, payload: object) -> None:
        genogram = Genogram.from_snapshot(payload)
        self.genogram = genogram
        self.selection.clear()
        self.add_menu = None
        self.marquee_overlay = None
        self.gesture = NoGesture()
        logger.info(
            "Loaded genogram with %d people and %d relationships",
            len(genogram.people),
            len(genogram.relationships),
        )
        self.refresh()

    def export_document(self) -> dict:
        return self.genogram.to_snapshot()

    # Hit-testing

    def person_at(self, point: Point) -> str | None:
        radius_sq = self.config.person_hit_radius ** 2
        # People are drawn in insertion order, so the last one is on top.
        for person in reversed(self.genogram.get_people()):
            dx = point.x - person.position.x
            dy = point.y - person.position.y
            if dx * dx + dy * dy <= radius_sq:
                return person.id
        return None

    def relationship_at(self, point: Point) -> str | None:
        for relationship in reversed(self.genogram.get_relationships()):
            try:
                first, second = self.genogram.endpoints(relationship)
            except DanglingReferenceError:
                continue
            routed = route(first.position, second.position, relationship.type, relationship.drop)
            if hit_test(routed, point, self.config.relationship_hit_threshold):
                return relationship.id
        return None

    def refresh(self) -> None:
        if self.renderer is not None:
            self.scene = self.renderer.render(
                self.genogram, self.selection.snapshot(), self.viewport.window
            )
        if self.detail_panel is not None:
            self.detail_panel.show(build_detail_form(self.genogram, self.selection.snapshot()))

    # Gesture internals

    def _begin(self, gesture: Gesture) -> None:
        logger.debug("Gesture %s started", gesture.kind)
        self.gesture = gesture

    def _end(self) -> None:
        if not isinstance(self.gesture, NoGesture):
            logger.debug("Gesture %s finished", self.gesture.kind)
        self.gesture = NoGesture()
        self.marquee_overlay = None

    def _begin_node_drag(self, person_id: str, point: Point, toggle: bool) -> None:
        if toggle:
            self.selection.toggle_person(person_id)
            self.refresh()
            return

        selected = self.selection.people
        if self.selection.has_person(person_id) and len(selected) > 1:
            dragged = [pid for pid in selected if pid in self.genogram.people]
            self.selection.relationship = None
        else:
            self.selection.select_person(person_id)
            dragged = [person_id]

        offsets = {
            pid: point - self.genogram.people[pid].position for pid in dragged
        }
        self._begin(NodeDragGesture(offsets=offsets))
        self.refresh()

    def _begin_relationship_drag(self, relationship_id: str, point: Point) -> None:
        relationship = self.genogram.relationships[relationship_id]
        first, second = self.genogram.endpoints(relationship)
        self.selection.select_relationship(relationship_id)
        self._begin(
            RelationshipDragGesture(
                relationship_id=relationship_id,
                model_anchor=point,
                start_positions={first.id: first.position, second.id: second.position},
                start_drop=relationship.drop,
            )
        )
        self.refresh()

    def _move_nodes(self, gesture: NodeDragGesture, point: Point) -> None:
        for person_id, offset in gesture.offsets.items():
            person = self.genogram.people.get(person_id)
            if person is None:
                continue
            person.position = snap(point - offset, self.config.grid_size)
        self.refresh()

    def _move_relationship(self, gesture: RelationshipDragGesture, point: Point) -> None:
        relationship = self.genogram.relationships.get(gesture.relationship_id)
        if relationship is None:
            return
        dx = point.x - gesture.model_anchor.x
        dy = point.y - gesture.model_anchor.y
        grid = self.config.grid_size
        # Horizontal wins ties. The other quantity is held at its start value
        # so each move depends only on anchor and pointer.
        if abs(dx) >= abs(dy):
            shift = snap_value(dx, grid)
            for person_id, start in gesture.start_positions.items():
                self._place(person_id, Point(start.x + shift, start.y))
            relationship.set_drop(gesture.start_drop)
        else:
            for person_id, start in gesture.start_positions.items():
                self._place(person_id, start)
            relationship.set_drop(
                max(self.config.min_drop, snap_value(gesture.start_drop + dy, grid))
            )
        self.refresh()

    def _place(self, person_id: str, position: Point) -> None:
        person = self.genogram.people.get(person_id)
        if person is not None:
            person.position = position

    def _finish_marquee(self, gesture: MarqueeGesture, point: Point) -> None:
        anchor = gesture.model_anchor
        min_x, max_x = sorted((anchor.x, point.x))
        min_y, max_y = sorted((anchor.y, point.y))
        inside = [
            person.id
            for person in self.genogram.get_people()
            if min_x <= person.position.x <= max_x and min_y <= person.position.y <= max_y
        ]
        self.selection.select_people(inside)
        logger.debug("Marquee selected %d people", len(inside))
        self.refresh()


def _rect_between(anchor: Point, current: Point) -> ScreenRect:
    return ScreenRect(
        left=min(anchor.x, current.x),
        top=min(anchor.y, current.y),
        width=abs(current.x - anchor.x),
        height=abs(current.y - anchor.y),
    )

