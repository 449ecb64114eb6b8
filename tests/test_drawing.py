import pytest

from measure_app.core import commands as cmd
from measure_app.core.area import HOLE_COLOR, POLYGON_COLORS
from measure_app.core.config import AppConfig
from measure_app.core.model import Calibration, LineKind, ToolMode
from measure_app.core.state import AppState
from measure_app.features.editing.draw import draw_on_canvas_click, set_draw_mode


def test_square_becomes_polygon(calibrated_state, draw_square, messages):
    polygon = draw_square(calibrated_state)
    assert polygon is not None
    assert polygon.name == "Polygon 1"
    assert polygon.color == POLYGON_COLORS[0]
    assert polygon.area_m2 == pytest.approx(4.0)
    assert len(polygon.points) == 4
    assert len(polygon.lines) == 4
    assert len(calibrated_state.graph.points) == 4
    assert messages[-1] == "Polygon detected! Area: 4.00 m²"


def test_line_lengths_are_stamped(calibrated_state, draw_line):
    line = draw_line(calibrated_state, (0, 0), (0, 250))
    assert line.length_m == pytest.approx(2.5)
    assert line.kind is LineKind.LINE


def test_gesture_ends_after_each_line(calibrated_state, draw_line):
    draw_line(calibrated_state, (0, 0), (100, 0))
    assert calibrated_state.gesture.is_idle


def test_chained_lines():
    state = AppState(AppConfig(chain_lines=True))
    state.calibration = Calibration.nominal(100.0)
    for xy in [(0, 0), (100, 0), (100, 100)]:
        draw_on_canvas_click(state, *xy)
    assert len(state.graph.lines) == 2
    assert state.gesture.line_start.xy == pytest.approx((100, 100))


def test_zero_length_line_is_ignored(calibrated_state, messages):
    draw_on_canvas_click(calibrated_state, 50, 50)
    draw_on_canvas_click(calibrated_state, 50, 50)
    assert calibrated_state.graph.lines == []
    assert messages[-1] == "Line too short"


def test_pipe_lines(calibrated_state, draw_line):
    set_draw_mode(calibrated_state, ToolMode.PIPE)
    draw_line(calibrated_state, (0, 0), (300, 0))
    draw_line(calibrated_state, (300, 0), (300, 200))
    draw_line(calibrated_state, (300, 200), (0, 0))
    assert [line.kind for line in calibrated_state.graph.lines] == [LineKind.PIPE] * 3
    assert calibrated_state.total_pipe_length() == pytest.approx(3.0 + 2.0 + (300 ** 2 + 200 ** 2) ** 0.5 / 100)
    # pipes never close a polygon
    assert calibrated_state.polygons == []


def test_freeform_hole(calibrated_state, draw_line, draw_square, messages):
    room = draw_square(calibrated_state)
    set_draw_mode(calibrated_state, ToolMode.SUBTRACT)
    corners = [(150, 150), (250, 150), (250, 250), (150, 250)]
    for i, a in enumerate(corners):
        draw_line(calibrated_state, a, corners[(i + 1) % 4])
    assert len(calibrated_state.polygons) == 1
    assert room.area_m2 == pytest.approx(3.0)
    hole = room.subtracts[0]
    assert hole.name == "Subtract 1"
    assert hole.color == HOLE_COLOR
    assert all(line.kind is LineKind.SUBTRACT for line in hole.lines)
    assert messages[-1] == "Area subtracted! Remaining: 3.00 m²"


def test_hole_without_container_is_discarded(calibrated_state, draw_line, messages):
    set_draw_mode(calibrated_state, ToolMode.SUBTRACT)
    corners = [(0, 0), (100, 0), (100, 100), (0, 100)]
    for i, a in enumerate(corners):
        draw_line(calibrated_state, a, corners[(i + 1) % 4])
    assert calibrated_state.graph.lines == []
    assert calibrated_state.graph.points == []
    assert messages[-1].startswith("No polygon found to subtract from")


def test_rectangle_drag(controller, messages):
    state = controller.state
    controller.dispatch(cmd.SelectTool(ToolMode.RECTANGLE))
    controller.dispatch(cmd.BeginDrag(300, 250))
    controller.dispatch(cmd.MoveCursor(200, 200))
    controller.dispatch(cmd.EndDrag(100, 100))
    polygon = state.polygons[0]
    assert polygon.is_rectangle
    assert polygon.name == "Rectangle 1"
    assert polygon.area_m2 == pytest.approx(3.0)
    # the drag start becomes the top-left corner
    assert [p.xy for p in polygon.points] == [(100, 100), (300, 100), (300, 250), (100, 250)]
    assert len(state.graph.lines) == 4
    assert messages[-1] == "Rectangle created! Area: 3.00 m²"


def test_rectangle_too_small(controller, messages):
    state = controller.state
    controller.dispatch(cmd.SelectTool(ToolMode.RECTANGLE))
    controller.dispatch(cmd.BeginDrag(100, 100))
    controller.dispatch(cmd.EndDrag(100, 100))
    assert state.polygons == []
    assert state.graph.points == []
    assert messages[-1] == "Rectangle too small"


def test_subtract_rectangle(controller, draw_square, messages):
    state = controller.state
    room = draw_square(state)
    controller.dispatch(cmd.SelectTool(ToolMode.SUBTRACT))
    controller.dispatch(cmd.BeginDrag(150, 150))
    controller.dispatch(cmd.EndDrag(250, 250))
    assert room.area_m2 == pytest.approx(3.0)
    assert room.subtracts[0].is_rectangle
    assert len(state.polygons) == 1


def test_click_in_subtract_mode_starts_freeform_hole(controller):
    state = controller.state
    controller.dispatch(cmd.SelectTool(ToolMode.SUBTRACT))
    controller.dispatch(cmd.BeginDrag(150, 150))
    controller.dispatch(cmd.EndDrag(150, 150))
    assert state.gesture.rectangle_start is None
    assert state.gesture.line_start.xy == (150, 150)
    assert len(state.graph.points) == 1


def test_escape_cancels_gesture(controller, messages):
    state = controller.state
    controller.dispatch(cmd.AddPoint(10, 10))
    assert state.gesture.line_start is not None
    controller.dispatch(cmd.Cancel())
    assert state.gesture.is_idle
    assert state.graph.points == []
    assert messages[-1] == "Drawing cancelled"


def test_switching_tool_resets_gesture(controller):
    state = controller.state
    controller.dispatch(cmd.AddPoint(10, 10))
    controller.dispatch(cmd.SelectTool(ToolMode.PIPE))
    assert state.gesture.is_idle
    assert state.graph.points == []
    assert state.tool is ToolMode.PIPE
