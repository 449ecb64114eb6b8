import pytest

from measure_app.core import commands as cmd
from measure_app.core.controller import MeasureController
from measure_app.core.model import ToolMode


@pytest.fixture
def square(controller, draw_square):
    polygon = draw_square(controller.state)
    controller.dispatch(cmd.SelectTool(ToolMode.SELECT))
    return polygon


def test_click_selects_point(controller, square):
    state = controller.state
    controller.dispatch(cmd.AddPoint(104, 97))
    assert state.selected_points == [square.points[0].id]
    assert state.selected_lines == []


def test_additive_click_toggles(controller, square):
    state = controller.state
    a, b = square.points[0], square.points[1]
    controller.dispatch(cmd.AddPoint(*a.xy))
    controller.dispatch(cmd.AddPoint(*b.xy, additive=True))
    assert state.selected_points == [a.id, b.id]
    controller.dispatch(cmd.AddPoint(*a.xy, additive=True))
    assert state.selected_points == [b.id]


def test_click_selects_line(controller, square):
    state = controller.state
    controller.dispatch(cmd.AddPoint(200, 105))
    assert len(state.selected_lines) == 1
    line = state.graph.get_line(state.selected_lines[0])
    assert line.start.y == pytest.approx(100)
    assert line.end.y == pytest.approx(100)


def test_click_on_empty_space_clears(controller, square):
    state = controller.state
    controller.dispatch(cmd.AddPoint(100, 100))
    controller.dispatch(cmd.AddPoint(600, 500))
    assert state.selected_points == []


def test_region_select(controller, square):
    state = controller.state
    controller.dispatch(cmd.BeginDrag(90, 90))
    controller.dispatch(cmd.MoveCursor(150, 150))
    controller.dispatch(cmd.EndDrag(210, 210))
    assert state.selected_points == [square.points[0].id]
    # the two edges leaving the top-left corner cross the region
    assert len(state.selected_lines) == 2
    assert state.gesture.region_start is None


def test_window_selects_as_one(state):
    controller = MeasureController(state=state)
    controller.dispatch(cmd.SelectTool(ToolMode.WINDOW))
    controller.dispatch(cmd.AddPoint(100, 100))
    controller.dispatch(cmd.AddPoint(300, 100))
    controller.dispatch(cmd.CancelLength())
    controller.dispatch(cmd.SelectTool(ToolMode.SELECT))
    controller.dispatch(cmd.AddPoint(200, 100))
    assert len(state.selected_lines) == 3


def test_delete_point_removes_polygon(controller, square, messages):
    state = controller.state
    controller.dispatch(cmd.AddPoint(100, 100))
    controller.dispatch(cmd.DeleteSelected())
    assert state.polygons == []
    assert len(state.graph.lines) == 2
    assert len(state.graph.points) == 3
    assert state.selected_points == []
    assert messages[-1] == "Deleted 3 element(s)"


def test_undo_delete(controller, square):
    state = controller.state
    controller.dispatch(cmd.AddPoint(100, 100))
    controller.dispatch(cmd.DeleteSelected())
    controller.dispatch(cmd.Undo())
    assert state.polygons == [square]
    assert len(state.graph.lines) == 4
    assert len(state.graph.points) == 4


def test_delete_nothing(controller, square, messages):
    controller.dispatch(cmd.DeleteSelected())
    assert messages[-1] == "Nothing selected"
    assert len(controller.state.polygons) == 1


def test_escape_clears_selection(controller, square):
    state = controller.state
    controller.dispatch(cmd.AddPoint(100, 100))
    controller.dispatch(cmd.Cancel())
    assert state.selected_points == []


def test_delete_hole_edge_restores_container(controller, square, draw_line):
    state = controller.state
    controller.dispatch(cmd.SelectTool(ToolMode.SUBTRACT))
    corners = [(150, 150), (250, 150), (250, 250), (150, 250)]
    for i, a in enumerate(corners):
        draw_line(state, a, corners[(i + 1) % 4])
    assert square.area_m2 == pytest.approx(3.0)
    hole = square.subtracts[0]

    controller.dispatch(cmd.SelectTool(ToolMode.SELECT))
    controller.dispatch(cmd.AddPoint(250, 200))
    controller.dispatch(cmd.DeleteSelected())
    assert state.polygons == [square]
    assert square.subtracts == []
    assert square.area_m2 == pytest.approx(4.0)

    controller.dispatch(cmd.Undo())
    assert square.subtracts == [hole]
    assert square.area_m2 == pytest.approx(3.0)


def test_delete_clamped_hole_gives_back_what_it_took(controller, square, draw_line):
    state = controller.state
    square.area_m2 = 0.5
    controller.dispatch(cmd.SelectTool(ToolMode.SUBTRACT))
    corners = [(150, 150), (250, 150), (250, 250), (150, 250)]
    for i, a in enumerate(corners):
        draw_line(state, a, corners[(i + 1) % 4])
    assert square.area_m2 == 0.0

    controller.dispatch(cmd.SelectTool(ToolMode.SELECT))
    controller.dispatch(cmd.AddPoint(250, 200))
    controller.dispatch(cmd.DeleteSelected())
    assert square.area_m2 == pytest.approx(0.5)


def test_delete_merged_polygon_edge(controller):
    state = controller.state
    controller.dispatch(cmd.SelectTool(ToolMode.RECTANGLE))
    for a, b in (((0, 0), (100, 100)), ((200, 0), (400, 100))):
        controller.dispatch(cmd.BeginDrag(*a))
        controller.dispatch(cmd.EndDrag(*b))
    target = state.polygons[0]
    controller.dispatch(cmd.Merge())
    assert target.area_m2 == pytest.approx(3.0)

    controller.dispatch(cmd.SelectTool(ToolMode.SELECT))
    controller.dispatch(cmd.AddPoint(400, 50))
    controller.dispatch(cmd.DeleteSelected())
    assert state.polygons == [target]
    assert target.merged_polygons == []
    assert target.area_m2 == pytest.approx(1.0)

    controller.dispatch(cmd.Undo())
    assert len(target.merged_polygons) == 1
    assert target.area_m2 == pytest.approx(3.0)
