"""Room-layout tools: walls drawn as one segment, windows as three parallel ones.

Each wall or window is a ``WallGroup`` so it counts as a single edge for
cycle detection, length editing and deletion.  A length prompt follows every
new group; committing it slides the end point along the drawn direction.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ...core.calibration import parse_length
from ...core.errors import InvalidLengthError
from ...core.model import LineKind, ToolMode, WallGroup
from ...core.state import PendingLength
from .. import history
from .draw import check_for_closed_polygon, place_point, snap_pointer

if TYPE_CHECKING:
    from ...core.state import AppState

logger = logging.getLogger(__name__)

WALL_TOOLS: tuple[ToolMode, ...] = (ToolMode.WALLS, ToolMode.WINDOW)
ROOM_PREFIX: str = "Room"


def walls_on_canvas_click(state: "AppState", screen_x: float, screen_y: float) -> bool:
    if state.pending_length is not None or state.tool not in WALL_TOOLS:
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
    complete_wall(state, start, end)
    return True


def complete_wall(state: "AppState", start, end) -> WallGroup:
    kind = LineKind.WINDOW if state.tool is ToolMode.WINDOW else LineKind.WALL
    group = state.graph.connect_group(
        state.new_id("group"),
        start,
        end,
        kind,
        state.new_id,
        state.config.window_thickness_px,
    )
    _stamp_length(group, group.pixel_length / state.layout_calibration().pixels_per_meter)
    history.record(state, "add_wall", group=group)
    state.pending_length = PendingLength(group=group)
    state.gesture.reset()
    logger.info("%s drawn: %.2f m", kind.value, group.length_m)
    return group


def _stamp_length(group: WallGroup, length_m: float) -> None:
    group.length_m = length_m
    for seg in group.segments:
        seg.length_m = length_m


def apply_wall_length(state: "AppState", value) -> bool:
    """Resize the pending wall/window so its logical edge is ``value`` meters long."""
    pending = state.pending_length
    if pending is None or pending.group is None:
        return False
    try:
        length = parse_length(value, InvalidLengthError)
    except InvalidLengthError as exc:
        logger.warning("wall length rejected: %s", exc)
        state.notify(str(exc))
        return False

    group = pending.group
    current = group.pixel_length
    if current <= 0:
        state.notify("Cannot resize a zero-length wall")
        return False
    target = length * state.layout_calibration().pixels_per_meter
    ux = (group.end.x - group.start.x) / current
    uy = (group.end.y - group.start.y) / current

    previous_end = group.end.xy
    previous_segments = list(group.segments)
    previous_length = group.length_m

    group.end.move_to(group.start.x + ux * target, group.start.y + uy * target)
    state.graph.rebuild_group(group, state.new_id, state.config.window_thickness_px)
    state.relink_lines(group.segments)
    _stamp_length(group, length)
    if pending.editing:
        history.record(
            state,
            "edit_wall",
            group=group,
            previous_end=previous_end,
            previous_segments=previous_segments,
            previous_length=previous_length,
        )
    state.pending_length = None
    state.notify(f"Length set to {length:.2f} m")
    check_for_closed_polygon(state, calibration=state.layout_calibration(), name_prefix=ROOM_PREFIX)
    return True


def cancel_wall_length(state: "AppState") -> None:
    """Close the prompt; a new wall keeps its drawn length."""
    pending = state.pending_length
    state.pending_length = None
    if pending is not None and not pending.editing:
        check_for_closed_polygon(state, calibration=state.layout_calibration(), name_prefix=ROOM_PREFIX)


def edit_wall_length(state: "AppState", screen_x: float, screen_y: float) -> Optional[WallGroup]:
    """Double-click on a wall/window segment re-opens its length prompt."""
    if state.pending_length is not None:
        return None
    xy = state.to_drawing(screen_x, screen_y)
    line = state.graph.find_nearest_line(xy, state.config.line_hit_radius_px / state.view.zoom)
    group = state.graph.group_of(line) if line is not None else None
    if group is None:
        return None
    state.gesture.reset()
    state.pending_length = PendingLength(group=group, editing=True)
    return group
