import pytest

from measure_app.core import commands as cmd
from measure_app.core.controller import MeasureController
from measure_app.core.model import LineKind, ToolMode


@pytest.fixture
def walls(state):
    controller = MeasureController(state=state)
    controller.dispatch(cmd.SelectTool(ToolMode.WALLS))
    return controller


def _wall(controller, a, b, length=None):
    controller.dispatch(cmd.AddPoint(*a))
    controller.dispatch(cmd.AddPoint(*b))
    if length is None:
        controller.dispatch(cmd.CancelLength())
    else:
        controller.dispatch(cmd.SubmitLength(length))


def test_new_wall_asks_for_length(walls):
    state = walls.state
    walls.dispatch(cmd.AddPoint(100, 100))
    walls.dispatch(cmd.AddPoint(300, 100))
    pending = state.pending_length
    assert pending is not None and not pending.is_calibration
    group = pending.group
    # no reference line yet: the nominal 100 px/m applies
    assert group.length_m == pytest.approx(2.0)
    assert state.graph.lines[0].kind is LineKind.WALL
    assert state.calibration is None


def test_submitted_length_moves_end_point(walls, messages):
    state = walls.state
    _wall(walls, (100, 100), (300, 100), length="3")
    group = next(iter(state.graph.groups.values()))
    assert group.end.xy == pytest.approx((400, 100))
    assert group.length_m == 3.0
    assert state.graph.lines[0].length_m == 3.0
    assert state.pending_length is None
    assert messages[-1] == "Length set to 3.00 m"
    assert [a.kind for a in state.history] == ["add_wall"]


def test_invalid_length_keeps_prompt_open(walls, messages):
    state = walls.state
    walls.dispatch(cmd.AddPoint(100, 100))
    walls.dispatch(cmd.AddPoint(300, 100))
    walls.dispatch(cmd.SubmitLength("-1"))
    assert state.pending_length is not None
    assert messages[-1] == "Please enter a valid length"


def test_pending_prompt_blocks_clicks(walls):
    state = walls.state
    walls.dispatch(cmd.AddPoint(100, 100))
    walls.dispatch(cmd.AddPoint(300, 100))
    assert walls.dispatch(cmd.AddPoint(500, 500)) is False
    assert len(state.graph.points) == 2


def test_four_walls_make_a_room(walls):
    state = walls.state
    corners = [(100, 100), (300, 100), (300, 300), (100, 300)]
    for i, a in enumerate(corners):
        _wall(walls, a, corners[(i + 1) % 4])
    assert len(state.polygons) == 1
    room = state.polygons[0]
    assert room.name == "Room 1"
    assert room.area_m2 == pytest.approx(4.0)
    assert len(room.lines) == 4


def test_window_is_three_segments(walls):
    state = walls.state
    walls.dispatch(cmd.SelectTool(ToolMode.WINDOW))
    _wall(walls, (100, 100), (300, 100))
    assert len(state.graph.lines) == 3
    assert {line.kind for line in state.graph.lines} == {LineKind.WINDOW}
    assert len(state.graph.groups) == 1


def test_double_click_edits_length(walls):
    state = walls.state
    _wall(walls, (100, 100), (300, 100))
    group = next(iter(state.graph.groups.values()))
    walls.dispatch(cmd.DoubleClick(200, 105))
    assert state.pending_length.group is group
    assert state.pending_length.editing

    walls.dispatch(cmd.SubmitLength("1"))
    assert group.end.xy == pytest.approx((200, 100))
    assert state.history[-1].kind == "edit_wall"

    walls.dispatch(cmd.Undo())
    assert group.end.xy == pytest.approx((300, 100))
    assert group.length_m == pytest.approx(2.0)
    assert len(state.graph.lines) == 1


def test_double_click_away_from_walls(walls):
    _wall(walls, (100, 100), (300, 100))
    walls.dispatch(cmd.DoubleClick(200, 300))
    assert walls.state.pending_length is None


def test_undo_wall(walls):
    state = walls.state
    _wall(walls, (100, 100), (300, 100))
    walls.dispatch(cmd.Undo())
    assert state.graph.lines == []
    assert state.graph.points == []
    assert state.graph.groups == {}


def _room(controller):
    corners = [(100, 100), (300, 100), (300, 300), (100, 300)]
    for i, a in enumerate(corners):
        _wall(controller, a, corners[(i + 1) % 4])
    return controller.state.polygons[0]


def test_edited_wall_stays_part_of_its_room(walls):
    state = walls.state
    room = _room(walls)
    walls.dispatch(cmd.DoubleClick(200, 100))
    walls.dispatch(cmd.SubmitLength("2"))
    assert all(state.graph.get_line(line.id) is line for line in room.lines)

    walls.dispatch(cmd.SelectTool(ToolMode.SELECT))
    walls.dispatch(cmd.AddPoint(200, 100))
    walls.dispatch(cmd.DeleteSelected())
    assert state.polygons == []
    assert len(state.graph.lines) == 3


def test_undo_edit_relinks_room(walls):
    state = walls.state
    room = _room(walls)
    walls.dispatch(cmd.DoubleClick(200, 100))
    walls.dispatch(cmd.SubmitLength("2"))
    walls.dispatch(cmd.Undo())
    assert all(state.graph.get_line(line.id) is line for line in room.lines)


def test_rejected_length_is_logged_as_warning(walls, caplog):
    walls.dispatch(cmd.AddPoint(100, 100))
    walls.dispatch(cmd.AddPoint(300, 100))
    with caplog.at_level("WARNING", logger="measure_app.features.editing.walls"):
        walls.dispatch(cmd.SubmitLength("abc"))
    assert any(r.levelname == "WARNING" and r.name.endswith("walls") for r in caplog.records)
