from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from ...core.area import HOLE_COLOR, build_polygon, find_containing_polygon, next_color, subtract
from ...core.calibration import line_length_m
from ...core.model import Line, LineKind, Polygon, ToolMode
from ...core.snap import SnapResult
from .. import history

if TYPE_CHECKING:
    from ...core.state import AppState

logger = logging.getLogger(__name__)

RECTANGLE_TOOLS: tuple[ToolMode, ...] = (ToolMode.RECTANGLE, ToolMode.SUBTRACT)
MIN_RECTANGLE_SIDE: float = 1e-6


def rectangle_on_press(state: "AppState", screen_x: float, screen_y: float) -> bool:
    if state.pending_length is not None or state.tool not in RECTANGLE_TOOLS:
        return False
    if state.gesture.line_start is not None:
        return False
    x, y = state.to_drawing(screen_x, screen_y)
    start = state.graph.add_point(state.new_point(x, y))
    state.gesture.rectangle_start = start
    state.gesture.cursor = SnapResult(x, y)
    return True


def rectangle_on_motion(state: "AppState", screen_x: float, screen_y: float) -> bool:
    if state.gesture.rectangle_start is None:
        return False
    x, y = state.to_drawing(screen_x, screen_y)
    state.gesture.cursor = SnapResult(x, y)
    return True


def rectangle_on_release(state: "AppState", screen_x: float, screen_y: float) -> Optional[Polygon]:
    """Finish a drag: four corners, four lines and one polygon (or hole in subtract mode)."""
    start = state.gesture.rectangle_start
    if start is None:
        return None
    x, y = state.to_drawing(screen_x, screen_y)
    try:
        if abs(x - start.x) < MIN_RECTANGLE_SIDE or abs(y - start.y) < MIN_RECTANGLE_SIDE:
            state.notify("Rectangle too small")
            return None
        return _complete_rectangle(state, start.x, start.y, x, y)
    finally:
        state.gesture.reset()
        state.prune_orphans()


def _complete_rectangle(state: "AppState", x1: float, y1: float, x2: float, y2: float) -> Optional[Polygon]:
    left, right = min(x1, x2), max(x1, x2)
    top, bottom = min(y1, y2), max(y1, y2)

    # the drag start keeps its id and becomes the top-left corner
    top_left = state.gesture.rectangle_start
    top_left.move_to(left, top)
    top_right = state.graph.add_point(state.new_point(right, top))
    bottom_right = state.graph.add_point(state.new_point(right, bottom))
    bottom_left = state.graph.add_point(state.new_point(left, bottom))
    corners = [top_left, top_right, bottom_right, bottom_left]

    is_subtract = state.tool is ToolMode.SUBTRACT
    kind = LineKind.SUBTRACT if is_subtract else LineKind.LINE
    lines: List[Line] = []
    for i, a in enumerate(corners):
        b = corners[(i + 1) % 4]
        line = state.graph.connect(state.new_id("line"), a, b, kind=kind)
        line.length_m = line_length_m(line.pixel_length, state.calibration)
        lines.append(line)

    if is_subtract:
        container = find_containing_polygon([p.xy for p in corners], state.polygons)
        if container is None:
            state.graph.remove_lines(line.id for line in lines)
            state.notify("No polygon found to subtract from. Draw rectangle inside an existing polygon.")
            return None
        hole = build_polygon(
            state.new_id("subtract"),
            corners,
            lines,
            state.calibration,
            name=f"Subtract {len(container.subtracts) + 1}",
            color=HOLE_COLOR,
            is_rectangle=True,
        )
        previous_area = container.area_m2
        remaining = subtract(container, hole)
        history.record(
            state, "add_rectangle", polygon=hole, lines=lines, container=container, previous_area=previous_area
        )
        state.notify(f"Area subtracted! Remaining: {remaining:.2f} m²")
        return hole

    polygon = build_polygon(
        state.new_id("polygon"),
        corners,
        lines,
        state.calibration,
        name=f"Rectangle {len(state.polygons) + 1}",
        color=next_color(len(state.polygons)),
        is_rectangle=True,
    )
    state.polygons.append(polygon)
    history.record(state, "add_rectangle", polygon=polygon, lines=lines, container=None)
    if polygon.area_m2 > 0:
        state.notify(f"Rectangle created! Area: {polygon.area_m2:.2f} m²")
    else:
        state.notify("Rectangle created")
    return polygon
