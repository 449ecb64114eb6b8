from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from ...core.area import HOLE_COLOR, build_polygon, find_containing_polygon, next_color, subtract
from ...core.calibration import line_length_m
from ...core.geometry import distance
from ...core.graph import detect_closed_polygon
from ...core.model import Calibration, Line, LineKind, Point, Polygon, ToolMode
from ...core.snap import SnapResult, resolve_snap
from ...core.state import PendingLength
from .. import history

if TYPE_CHECKING:
    from ...core.state import AppState

logger = logging.getLogger(__name__)

# Tools whose clicks place line endpoints
LINE_TOOLS: tuple[ToolMode, ...] = (ToolMode.LINE, ToolMode.PIPE, ToolMode.SUBTRACT)
CHAINING_TOOLS: tuple[ToolMode, ...] = (ToolMode.LINE, ToolMode.PIPE)

_TOOL_KINDS = {
    ToolMode.LINE: LineKind.LINE,
    ToolMode.PIPE: LineKind.PIPE,
    ToolMode.SUBTRACT: LineKind.SUBTRACT,
    ToolMode.RECTANGLE: LineKind.LINE,
    ToolMode.WALLS: LineKind.WALL,
    ToolMode.WINDOW: LineKind.WINDOW,
}


def line_kind_for(tool: ToolMode) -> LineKind:
    return _TOOL_KINDS.get(tool, LineKind.LINE)


def set_draw_mode(state: "AppState", tool) -> None:
    """Switch tools; any in-progress gesture is dropped."""
    tool = ToolMode(tool)
    state.gesture.reset()
    state.prune_orphans()
    if tool is not ToolMode.SELECT:
        state.clear_selection()
    state.tool = tool
    logger.debug("tool -> %s", tool.value)


def snap_pointer(state: "AppState", screen_x: float, screen_y: float, start: Optional[Point] = None) -> SnapResult:
    candidate = state.to_drawing(screen_x, screen_y)
    cfg = state.config
    result = resolve_snap(
        candidate,
        state.graph.points,
        start.xy if start is not None else None,
        radius_px=cfg.snap_radius_px,
        zoom=state.view.zoom,
        tolerance_deg=cfg.angle_snap_tolerance_deg,
        point_snap=state.point_snap_enabled,
        angle_snap=state.angle_snap_enabled,
    )
    logger.debug("pointer (%.1f, %.1f) -> %s", screen_x, screen_y, result)
    return result


def draw_on_motion(state: "AppState", screen_x: float, screen_y: float) -> Optional[SnapResult]:
    """Update the live cursor used for the preview segment and the hover ring."""
    if state.tool not in LINE_TOOLS + (ToolMode.WALLS, ToolMode.WINDOW):
        state.gesture.cursor = None
        return None
    if state.tool is ToolMode.SUBTRACT and state.gesture.line_start is None:
        state.gesture.cursor = None
        return None
    state.gesture.cursor = snap_pointer(state, screen_x, screen_y, state.gesture.line_start)
    return state.gesture.cursor


def place_point(state: "AppState", snapped: SnapResult) -> Point:
    """The existing point a snap landed on, or a new point at the snapped position."""
    if snapped.point is not None:
        return snapped.point
    return state.graph.add_point(state.new_point(snapped.x, snapped.y))


def draw_on_canvas_click(state: "AppState", screen_x: float, screen_y: float) -> bool:
    if state.pending_length is not None or state.tool not in LINE_TOOLS:
        return False
    start = state.gesture.line_start
    snapped = snap_pointer(state, screen_x, screen_y, start)
    if start is None:
        state.gesture.line_start = place_point(state, snapped)
        state.gesture.cursor = snapped
        return True
    if snapped.point is start or (snapped.x, snapped.y) == start.xy:
        state.notify("Line too short")
        return True
    end = place_point(state, snapped)
    commit_line(state, start, end, line_kind_for(state.tool))
    return True


def commit_line(state: "AppState", start: Point, end: Point, kind: LineKind) -> Optional[Line]:
    """Connect two placed points; the first line ever drawn becomes the calibration prompt."""
    tool = state.tool
    if state.calibration is None:
        line = Line(id=state.new_id("line"), start=start, end=end, kind=LineKind.CALIBRATION)
        state.pending_length = PendingLength(line=line)
        state.gesture.reset()
        logger.info("reference line drawn (%.1f px), waiting for its length", line.pixel_length)
        return None

    line = state.graph.connect(
        state.new_id("line"),
        start,
        end,
        kind=kind,
        length_m=line_length_m(distance(start.xy, end.xy), state.calibration),
    )
    polygon = None
    if kind is not LineKind.PIPE:
        polygon = check_for_closed_polygon(state, line=line)
    else:
        history.record(state, "add_line", line=line)

    if state.config.chain_lines and tool in CHAINING_TOOLS and polygon is None:
        state.gesture.line_start = end
    else:
        state.gesture.reset()
        state.prune_orphans()
    return line


def check_for_closed_polygon(
    state: "AppState",
    line: Optional[Line] = None,
    calibration: Optional[Calibration] = None,
    name_prefix: str = "Polygon",
) -> Optional[Polygon]:
    """Promote the cycle the latest edge closed, if any, and record the action."""
    cycle = detect_closed_polygon(state.graph, claimed=state.claimed_point_ids())
    if cycle is None:
        if line is not None:
            history.record(state, "add_line", line=line)
        return None

    if calibration is None:
        calibration = state.calibration
    lines = _cycle_lines(state, cycle)

    if state.tool is ToolMode.SUBTRACT:
        return _subtract_cycle(state, cycle, lines, line)

    polygon = build_polygon(
        state.new_id("polygon"),
        cycle,
        lines,
        calibration,
        name=f"{name_prefix} {len(state.polygons) + 1}",
        color=next_color(len(state.polygons)),
    )
    state.polygons.append(polygon)
    history.record(state, "add_polygon", line=line, polygon=polygon, container=None)
    state.notify(f"Polygon detected! Area: {polygon.area_m2:.2f} m²")
    return polygon


def _cycle_lines(state: "AppState", cycle: List[Point]) -> List[Line]:
    lines: List[Line] = []
    for i, p in enumerate(cycle):
        q = cycle[(i + 1) % len(cycle)]
        for found in state.graph.lines_between(p.id, q.id):
            if found not in lines:
                lines.append(found)
    return lines


def _subtract_cycle(
    state: "AppState",
    cycle: List[Point],
    lines: List[Line],
    line: Optional[Line],
) -> Optional[Polygon]:
    container = find_containing_polygon([p.xy for p in cycle], state.polygons)
    if container is None:
        # the shape has nothing to cut; discard it so it never becomes a room later
        state.graph.remove_lines(l.id for l in lines)
        state.prune_orphans()
        state.notify("No polygon found to subtract from. Draw polygon inside an existing polygon.")
        return None
    hole = build_polygon(
        state.new_id("subtract"),
        cycle,
        lines,
        state.calibration,
        name=f"Subtract {len(container.subtracts) + 1}",
        color=HOLE_COLOR,
    )
    previous_area = container.area_m2
    remaining = subtract(container, hole)
    history.record(
        state, "add_polygon", line=line, polygon=hole, container=container, previous_area=previous_area
    )
    state.notify(f"Area subtracted! Remaining: {remaining:.2f} m²")
    return hole


def cancel_drawing(state: "AppState") -> bool:
    """Escape: drop the in-progress gesture and its unused start point."""
    if state.gesture.is_idle:
        if state.tool is ToolMode.SELECT and (state.selected_points or state.selected_lines):
            state.clear_selection()
            return True
        return False
    state.gesture.reset()
    state.prune_orphans()
    state.notify("Drawing cancelled")
    return True
