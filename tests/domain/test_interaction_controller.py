from __future__ import annotations

import pytest

from domain.errors import MalformedDocumentError
from domain.genogram import Genogram
from domain.models import DEFAULT_DROP, Gender, Point, RelationshipType, Size, ViewWindow
from domain.services.interaction import (
    AddMenuGesture,
    InteractionConfig,
    InteractionController,
    KeyEvent,
    MarqueeGesture,
    Modifiers,
    NodeDragGesture,
    NoGesture,
    PanGesture,
    PointerEvent,
    RelationshipDragGesture,
    WheelEvent,
)
from domain.services.viewport import Viewport
from tests.helpers.genogram_fixtures import build_genogram, person, relationship

SHIFT = Modifiers(shift=True)
CTRL = Modifiers(ctrl=True)


def press(x: float, y: float, modifiers: Modifiers = Modifiers(), button: int = 0) -> PointerEvent:
    return PointerEvent(screen=Point(x, y), button=button, modifiers=modifiers)


def make_controller(genogram: Genogram, **config: float) -> InteractionController:
    return InteractionController(
        genogram,
        Viewport(screen=Size(1200, 800)),
        config=InteractionConfig(**config),
    )


def couple_genogram(drop: float = 20) -> Genogram:
    return build_genogram(
        [person("A", 0, 0), person("B", 200, 0)],
        [relationship("R", "A", "B", drop=drop)],
    )


def test_ctrl_click_on_canvas_opens_add_menu_at_snapped_point() -> None:
    controller = make_controller(Genogram())
    controller.pointer_down(press(333, 127, CTRL))

    assert isinstance(controller.gesture, AddMenuGesture)
    assert controller.add_menu is not None
    assert controller.add_menu.target == Point(340, 120)
    assert controller.add_menu.screen_anchor == Point(333, 127)

    controller.pointer_up(press(333, 127))
    assert isinstance(controller.gesture, NoGesture)

    created = controller.choose_add_gender("male")
    assert created is not None
    assert created.gender == Gender.MALE
    assert created.position == Point(340, 120)
    assert controller.selection.people == [created.id]
    assert controller.add_menu is None


def test_any_pointer_down_closes_add_menu() -> None:
    controller = make_controller(Genogram())
    controller.pointer_down(press(10, 10, CTRL))
    controller.pointer_up(press(10, 10))
    controller.pointer_down(press(500, 500))
    assert controller.add_menu is None
    assert controller.choose_add_gender(Gender.FEMALE) is None


def test_ctrl_click_on_person_drags_instead_of_adding() -> None:
    controller = make_controller(build_genogram([person("A", 100, 100)]))
    controller.pointer_down(press(100, 100, CTRL))
    assert isinstance(controller.gesture, NodeDragGesture)
    assert controller.add_menu is None


def test_marquee_selects_people_inside_inclusive_rectangle() -> None:
    genogram = build_genogram(
        [person("P0", 0, 0), person("P1", 100, 100), person("P2", 300, 300)],
        [relationship("R", "P0", "P1")],
    )
    controller = make_controller(genogram)
    controller.viewport.window = ViewWindow(-600, -400, 1200, 800)

    controller.pointer_down(press(750, 550, SHIFT))
    assert isinstance(controller.gesture, MarqueeGesture)
    controller.pointer_move(press(700, 450))
    assert controller.marquee_overlay is not None
    assert controller.marquee_overlay.left == 700
    assert controller.marquee_overlay.width == 50
    controller.pointer_up(press(590, 390))

    assert sorted(controller.selection.people) == ["P0", "P1"]
    assert controller.selection.relationship is None
    assert controller.marquee_overlay is None
    assert isinstance(controller.gesture, NoGesture)


def test_marquee_bounds_are_inclusive_and_direction_free() -> None:
    genogram = build_genogram([person("edge", 100, 100), person("out", 99, 100)])
    controller = make_controller(genogram)
    controller.pointer_down(press(200, 200, SHIFT))
    controller.pointer_up(press(100, 100))
    assert controller.selection.people == ["edge"]


def test_marquee_needs_left_button() -> None:
    controller = make_controller(Genogram())
    controller.pointer_down(press(10, 10, SHIFT, button=2))
    assert isinstance(controller.gesture, PanGesture)


def test_single_node_drag_snaps_and_preserves_offset() -> None:
    controller = make_controller(build_genogram([person("A", 100, 100)]))
    controller.pointer_down(press(105, 95))
    controller.pointer_move(press(147, 161))
    assert controller.genogram.people["A"].position == Point(140, 160)
    controller.pointer_move(press(105, 95))
    assert controller.genogram.people["A"].position == Point(100, 100)
    controller.pointer_up(press(105, 95))
    assert isinstance(controller.gesture, NoGesture)


def test_clicking_unselected_node_collapses_selection() -> None:
    genogram = build_genogram([person("A", 0, 0), person("B", 60, 0), person("C", 300, 0)])
    controller = make_controller(genogram)
    controller.selection.select_people(["A", "B"])
    controller.pointer_down(press(300, 0))
    assert controller.selection.people == ["C"]
    controller.pointer_move(press(340, 0))
    assert genogram.people["A"].position == Point(0, 0)
    assert genogram.people["C"].position == Point(340, 0)


def test_multi_node_drag_preserves_relative_offsets() -> None:
    genogram = build_genogram([person("A", 0, 0), person("B", 60, 0)])
    controller = make_controller(genogram)
    controller.viewport.window = ViewWindow(-100, -100, 1200, 800)
    controller.selection.select_people(["A", "B"])

    controller.pointer_down(press(100, 100))
    assert isinstance(controller.gesture, NodeDragGesture)
    controller.pointer_move(press(200, 100))

    assert genogram.people["A"].position == Point(100, 0)
    assert genogram.people["B"].position == Point(160, 0)
    assert sorted(controller.selection.people) == ["A", "B"]


def test_shift_click_toggles_membership_without_dragging() -> None:
    genogram = build_genogram([person("A", 0, 0), person("B", 100, 0)])
    controller = make_controller(genogram)
    controller.viewport.window = ViewWindow(-100, -100, 1200, 800)

    controller.pointer_down(press(100, 100))
    controller.pointer_up(press(100, 100))
    controller.pointer_down(press(200, 100, SHIFT))
    assert isinstance(controller.gesture, NoGesture)
    assert sorted(controller.selection.people) == ["A", "B"]

    controller.pointer_move(press(260, 160))
    assert genogram.people["B"].position == Point(100, 0)

    controller.pointer_down(press(100, 100, SHIFT))
    assert controller.selection.people == ["B"]


def test_relationship_drag_horizontal_moves_both_endpoints() -> None:
    genogram = couple_genogram(drop=20)
    controller = make_controller(genogram)

    controller.pointer_down(press(100, 20))
    assert isinstance(controller.gesture, RelationshipDragGesture)
    assert controller.selection.relationship == "R"
    assert controller.selection.people == []

    controller.pointer_move(press(140, 25))

    assert genogram.people["A"].position == Point(40, 0)
    assert genogram.people["B"].position == Point(240, 0)
    assert genogram.relationships["R"].drop == 20


def test_relationship_drag_vertical_changes_drop_only() -> None:
    genogram = couple_genogram(drop=20)
    controller = make_controller(genogram)

    controller.pointer_down(press(100, 20))
    controller.pointer_move(press(105, 80))

    assert genogram.people["A"].position == Point(0, 0)
    assert genogram.people["B"].position == Point(200, 0)
    assert genogram.relationships["R"].drop == 80


def test_relationship_drag_clamps_drop_to_minimum() -> None:
    genogram = couple_genogram(drop=20)
    controller = make_controller(genogram, min_drop=100)
    controller.pointer_down(press(100, 20))
    controller.pointer_move(press(105, 80))
    assert genogram.relationships["R"].drop == 100

    controller.pointer_move(press(100, -200))
    assert genogram.relationships["R"].drop == 100


def test_relationship_drag_tie_goes_horizontal_and_is_recomputed_from_anchor() -> None:
    genogram = couple_genogram(drop=40)
    controller = make_controller(genogram)
    controller.pointer_down(press(100, 40))

    controller.pointer_move(press(100, 100))
    assert genogram.relationships["R"].drop == 100

    controller.pointer_move(press(120, 60))
    assert genogram.relationships["R"].drop == 40
    assert genogram.people["A"].position == Point(20, 0)


def test_dangling_relationship_is_never_hit() -> None:
    genogram = build_genogram([person("A", 0, 0)], [relationship("R", "A", "ghost", drop=60)])
    controller = make_controller(genogram)
    controller.pointer_down(press(0, 40))
    assert isinstance(controller.gesture, PanGesture)


def test_pan_clears_selection_and_moves_window_from_snapshot() -> None:
    genogram = build_genogram([person("A", 0, 0)])
    controller = make_controller(genogram)
    controller.selection.select_person("A")

    controller.pointer_down(press(600, 400))
    assert controller.selection.people == []
    controller.pointer_move(press(650, 380))
    controller.pointer_move(press(700, 400))
    assert controller.viewport.window == ViewWindow(-100, 0, 1200, 800)
    controller.pointer_up(press(700, 400))
    assert isinstance(controller.gesture, NoGesture)


def test_move_without_gesture_is_noop() -> None:
    genogram = build_genogram([person("A", 0, 0)])
    controller = make_controller(genogram)
    controller.pointer_move(press(500, 500))
    controller.pointer_up(press(500, 500))
    assert genogram.people["A"].position == Point(0, 0)
    assert controller.viewport.window == ViewWindow(0, 0, 1200, 800)


def test_wheel_zooms_about_cursor() -> None:
    controller = make_controller(Genogram())
    controller.wheel(WheelEvent(screen=Point(300, 200), delta_y=-120))
    assert controller.viewport.window.width == pytest.approx(1080)
    assert controller.viewport.screen_to_model(Point(300, 200)).x == pytest.approx(300)


def test_link_key_creates_married_relationship_for_two_people() -> None:
    genogram = build_genogram([person("A", 0, 0), person("B", 100, 0)])
    controller = make_controller(genogram)
    controller.selection.select_people(["A", "B"])

    controller.key_down(KeyEvent(key="L"))

    [created] = genogram.get_relationships()
    assert created.type == RelationshipType.MARRIED
    assert created.people == ["A", "B"]
    assert created.drop == DEFAULT_DROP


@pytest.mark.parametrize("selected", [["A"], ["A", "B", "C"]])
def test_link_key_needs_exactly_two_people(selected: list[str]) -> None:
    genogram = build_genogram([person("A", 0, 0), person("B", 100, 0), person("C", 200, 0)])
    controller = make_controller(genogram)
    controller.selection.select_people(selected)
    controller.key_down(KeyEvent(key="l"))
    assert genogram.relationships == {}


def test_link_key_ignored_when_relationship_selected() -> None:
    genogram = couple_genogram()
    controller = make_controller(genogram)
    controller.selection.select_people(["A", "B"])
    controller.selection.relationship = "R"
    assert controller.link_selected() is None
    assert len(genogram.relationships) == 1


def test_delete_removes_people_with_cascade_and_selected_relationship() -> None:
    genogram = build_genogram(
        [person("A", 0, 0), person("B", 100, 0), person("C", 200, 0), person("D", 300, 0)],
        [relationship("AB", "A", "B"), relationship("CD", "C", "D")],
    )
    controller = make_controller(genogram)
    controller.selection.select_person("A")
    controller.key_down(KeyEvent(key="Delete"))
    assert set(genogram.people) == {"B", "C", "D"}
    assert set(genogram.relationships) == {"CD"}

    controller.selection.select_relationship("CD")
    controller.key_down(KeyEvent(key="Backspace"))
    assert genogram.relationships == {}
    assert set(genogram.people) == {"B", "C", "D"}
    assert controller.selection.snapshot().is_empty()


def test_cancel_clears_selection_without_deleting() -> None:
    genogram = couple_genogram()
    controller = make_controller(genogram)
    controller.selection.select_people(["A", "B"])
    controller.key_down(KeyEvent(key="Escape"))
    assert controller.selection.snapshot().is_empty()
    assert len(genogram.people) == 2


def test_parent_child_combination_selection() -> None:
    genogram = build_genogram(
        [person("parent", 0, 0), person("kid", 0, 200)],
        [relationship("R", "parent", "kid", RelationshipType.BIOLOGICAL_CHILD)],
    )
    controller = make_controller(genogram)
    controller.select_parent_child("kid", "R")
    state = controller.selection.snapshot()
    assert state.people == frozenset({"kid"})
    assert state.relationship == "R"


def test_parent_child_combination_rejects_couples() -> None:
    controller = make_controller(couple_genogram())
    with pytest.raises(ValueError):
        controller.select_parent_child("A", "R")


def test_renderer_and_detail_panel_are_called_after_mutations() -> None:
    shown: list[object] = []

    class RecordingPanel:
        def show(self, form: object) -> None:
            shown.append(form)

    class CountingRenderer:
        calls = 0

        def render(self, genogram, selection, window):  # type: ignore[no-untyped-def]
            CountingRenderer.calls += 1
            return None

    controller = InteractionController(
        couple_genogram(),
        Viewport(screen=Size(1200, 800)),
        renderer=CountingRenderer(),
        detail_panel=RecordingPanel(),
    )
    initial = CountingRenderer.calls
    controller.pointer_down(press(100, 20))
    controller.pointer_move(press(160, 20))
    assert CountingRenderer.calls == initial + 2
    assert len(shown) == CountingRenderer.calls


def test_load_document_replaces_model_and_resets_state() -> None:
    controller = make_controller(couple_genogram())
    controller.selection.select_person("A")
    controller.load_document(
        {"people": [{"id": "Z", "position": {"x": 40, "y": 40}}], "relationships": []}
    )
    assert set(controller.genogram.people) == {"Z"}
    assert controller.selection.snapshot().is_empty()
    assert controller.export_document()["people"][0]["id"] == "Z"


def test_failed_load_leaves_model_untouched() -> None:
    genogram = couple_genogram()
    controller = make_controller(genogram)
    controller.selection.select_person("A")
    with pytest.raises(MalformedDocumentError):
        controller.load_document({"people": [{"id": "Z", "gender": "robot"}]})
    assert controller.genogram is genogram
    assert controller.selection.people == ["A"]
