import polars as pl

from gridselect.ranges import Point, Rectangle
from gridselect.selection import (
    DRAGGING,
    HELD,
    IDLE,
    SelectionController,
    SelectionState,
    extract_rows,
)


def test_pointer_down_selects_single_cell(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_down(Point(1, 2))

    assert sel.phase == DRAGGING
    assert sel.is_selected(Point(1, 2))
    assert not sel.is_selected(Point(1, 1))
    assert sel.get_selected_data() == [{"due": None}]


def test_drag_then_release_holds_rectangle(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_down(Point(0, 0))
    sel.on_pointer_enter(Point(2, 1))
    sel.on_pointer_up()

    assert sel.phase == HELD
    assert sel.bounds() == Rectangle(0, 2, 0, 1)
    assert sel.dimensions() == (3, 2)
    data = sel.get_selected_data()
    assert len(data) == 3
    assert all(list(row) == ["task", "status"] for row in data)
    assert [row["task"] for row in data] == ["A", "B", "C"]


def test_drag_follows_pointer_back_up_left(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_down(Point(2, 3))
    sel.on_pointer_enter(Point(2, 2))
    sel.on_pointer_enter(Point(1, 1))

    assert sel.state.anchor == Point(2, 3)
    assert sel.state.cursor == Point(1, 1)
    assert sel.get_selected_data() == [
        {"status": {"id": 2, "name": "Done"}, "due": None, "notes": "second"},
        {"status": {"id": 1, "name": "Open"}, "due": task_rows[2]["due"], "notes": "third"},
    ]


def test_pointer_enter_while_idle_is_noop(task_rows) -> None:
    changes = []
    sel = SelectionController(task_rows, on_change=changes.append)
    sel.on_pointer_enter(Point(1, 1))

    assert sel.phase == IDLE
    assert sel.state == SelectionState()
    assert sel.get_selected_data() == []
    assert changes == []


def test_pointer_enter_after_release_is_noop(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_down(Point(0, 0))
    sel.on_pointer_up()
    sel.on_pointer_enter(Point(2, 3))

    assert sel.phase == HELD
    assert sel.bounds() == Rectangle(0, 0, 0, 0)
    assert sel.get_selected_data() == [{"task": "A"}]


def test_pointer_up_outside_drag_is_noop(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_up()
    assert sel.phase == IDLE


def test_new_pointer_down_replaces_held_selection(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_down(Point(0, 0))
    sel.on_pointer_enter(Point(2, 3))
    sel.on_pointer_up()
    sel.on_pointer_down(Point(1, 0))

    assert sel.phase == DRAGGING
    assert sel.get_selected_data() == [{"task": "B"}]
    assert not sel.is_selected(Point(0, 0))


def test_click_without_drag_holds_single_cell(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_click_without_drag(Point(2, 0))

    assert sel.phase == HELD
    assert sel.get_selected_data() == [{"task": "C"}]

    # A click that is part of an ongoing drag does not move the anchor.
    sel.on_pointer_down(Point(0, 0))
    sel.on_click_without_drag(Point(2, 2))
    assert sel.state.anchor == Point(0, 0)
    assert sel.phase == DRAGGING


def test_extend_keeps_anchor(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.extend(Point(1, 1))
    assert sel.phase == HELD
    assert sel.dimensions() == (1, 1)

    sel.extend(Point(2, 3))
    assert sel.state.anchor == Point(1, 1)
    assert sel.bounds() == Rectangle(1, 2, 1, 3)
    assert len(sel.get_selected_data()) == 2


def test_reset_clears_everything(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_down(Point(0, 0))
    sel.on_pointer_enter(Point(2, 3))
    sel.reset()

    assert sel.phase == IDLE
    assert sel.state == SelectionState()
    assert sel.get_selected_data() == []
    assert sel.dimensions() == (0, 0)
    assert not any(sel.is_selected(Point(r, c)) for r in range(3) for c in range(4))

    # Drag events after a reset need a fresh pointer down.
    sel.on_pointer_enter(Point(1, 1))
    assert sel.get_selected_data() == []


def test_reset_when_idle_does_not_notify(task_rows) -> None:
    changes = []
    sel = SelectionController(task_rows, on_change=changes.append)
    sel.reset()
    assert changes == []


def test_on_change_fires_per_transition(task_rows) -> None:
    phases = []
    sel = SelectionController(task_rows, on_change=lambda c: phases.append(c.phase))
    sel.on_pointer_down(Point(0, 0))
    sel.on_pointer_enter(Point(1, 1))
    sel.on_pointer_up()
    sel.reset()
    assert phases == [DRAGGING, DRAGGING, HELD, IDLE]


def test_queries_are_idempotent(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_down(Point(0, 1))
    sel.on_pointer_enter(Point(1, 2))

    first = sel.get_selected_data()
    assert sel.get_selected_data() == first
    assert [sel.is_selected(Point(1, 1)) for _ in range(3)] == [True, True, True]
    assert sel.state == sel.state


def test_returned_data_is_a_copy(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_down(Point(0, 0))
    sel.get_selected_data().clear()
    assert sel.get_selected_data() == [{"task": "A"}]


def test_returned_rows_are_copies(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_down(Point(0, 0))
    sel.get_selected_data()[0]["task"] = "changed"
    assert sel.get_selected_data() == [{"task": "A"}]
    assert task_rows[0]["task"] == "A"


def test_out_of_range_points_shrink_extraction(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_down(Point(2, 3))
    sel.on_pointer_enter(Point(9, 9))

    assert sel.get_selected_data() == [{"notes": "third"}]
    assert sel.is_selected(Point(8, 8))

    sel.on_pointer_down(Point(10, 0))
    assert sel.get_selected_data() == []


def test_extract_rows_clamps_negative_start(task_rows) -> None:
    assert extract_rows(task_rows, Rectangle(-2, 0, -1, 0)) == [{"task": "A"}]
    assert extract_rows(task_rows, Rectangle(-3, -1, 0, 0)) == []


def test_set_rows_resets_selection(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_down(Point(0, 0))
    sel.set_rows(task_rows[1:])

    assert sel.phase == IDLE
    sel.on_pointer_down(Point(0, 0))
    assert sel.get_selected_data() == [{"task": "B"}]


def test_accepts_polars_dataframe() -> None:
    df = pl.DataFrame({"name": ["Bob Johnson", "Alice Williams"], "age": ["45", "29"]})
    sel = SelectionController(df)
    sel.on_pointer_down(Point(1, 0))
    sel.on_pointer_enter(Point(1, 1))
    assert sel.get_selected_data() == [{"name": "Alice Williams", "age": "29"}]


def test_accepts_tuple_coordinates(task_rows) -> None:
    sel = SelectionController(task_rows)
    sel.on_pointer_down((0, 0))
    sel.on_pointer_enter((1, 0))
    assert sel.is_selected((1, 0))
    assert sel.state.cursor == Point(1, 0)
