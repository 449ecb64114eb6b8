from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Set, Tuple

from ...core.coords import normalize_region
from ...core.geometry import point_in_rect, segment_intersects_rect
from ...core.model import ToolMode
from ...core.snap import find_nearest_point
from .. import history

if TYPE_CHECKING:
    from ...core.model import Polygon
    from ...core.state import AppState

logger = logging.getLogger(__name__)


def _toggle(selected: List[str], ids: List[str]) -> None:
    if all(i in selected for i in ids):
        for i in ids:
            selected.remove(i)
    else:
        for i in ids:
            if i not in selected:
                selected.append(i)


def select_on_canvas_click(state: "AppState", screen_x: float, screen_y: float, additive: bool = False) -> bool:
    """Pick the point or line under the pointer; returns True when something was hit."""
    if state.tool is not ToolMode.SELECT:
        return False
    xy = state.to_drawing(screen_x, screen_y)
    zoom = state.view.zoom
    # selection ignores the point-snap toggle
    point = find_nearest_point(xy, state.graph.points, state.config.selection_radius_px, zoom, enabled=True)
    if point is not None:
        if not additive:
            state.clear_selection()
        _toggle(state.selected_points, [point.id])
        return True
    line = state.graph.find_nearest_line(xy, state.config.line_hit_radius_px / zoom)
    if line is not None:
        ids = sorted(state.graph.expand_groups([line.id]))
        if not additive:
            state.clear_selection()
        _toggle(state.selected_lines, ids)
        return True
    if not additive:
        state.clear_selection()
    return False


def select_on_press(state: "AppState", screen_x: float, screen_y: float) -> None:
    if state.tool is ToolMode.SELECT:
        state.gesture.region_start = state.to_drawing(screen_x, screen_y)


def select_on_release(state: "AppState", screen_x: float, screen_y: float, additive: bool = False) -> int:
    start = state.gesture.region_start
    state.gesture.region_start = None
    if start is None:
        return 0
    end = state.to_drawing(screen_x, screen_y)
    return select_region(state, start, end, additive)


def select_region(
    state: "AppState",
    corner1: Tuple[float, float],
    corner2: Tuple[float, float],
    additive: bool = False,
) -> int:
    """Select points inside the drawing-space rectangle and lines crossing it."""
    x, y, w, h = normalize_region(corner1, corner2)
    c1, c2 = (x, y), (x + w, y + h)
    if not additive:
        state.clear_selection()
    points = [p.id for p in state.graph.points if point_in_rect(p.xy, c1, c2)]
    hit = [
        line.id
        for line in state.graph.lines
        if segment_intersects_rect(line.start.xy, line.end.xy, c1, c2)
        or (point_in_rect(line.start.xy, c1, c2) and point_in_rect(line.end.xy, c1, c2))
    ]
    line_ids = state.graph.expand_groups(hit)
    for pid in points:
        if pid not in state.selected_points:
            state.selected_points.append(pid)
    for line in state.graph.lines:
        if line.id in line_ids and line.id not in state.selected_lines:
            state.selected_lines.append(line.id)
    logger.debug("region select: %d point(s), %d line(s)", len(points), len(line_ids))
    return len(points) + len(line_ids)


def _touches(polygon: "Polygon", line_ids: Set[str], point_ids: Set[str]) -> bool:
    return any(polygon.uses_line(lid) for lid in line_ids) or any(pt.id in point_ids for pt in polygon.points)


def _detach_members(container: "Polygon", line_ids: Set[str], point_ids: Set[str]) -> None:
    """Drop holes and merged polygons of ``container`` that lost a line or point."""
    for hole in [h for h in container.subtracts if _touches(h, line_ids, point_ids)]:
        container.subtracts.remove(hole)
        container.area_m2 += hole.deducted_m2
        for member in container.merged_polygons:
            if hole in member.subtracts:
                member.subtracts.remove(hole)
                member.area_m2 += hole.deducted_m2
        logger.info("hole %s removed from %s", hole.name, container.name)
    for member in [m for m in container.merged_polygons if _touches(m, line_ids, point_ids)]:
        container.merged_polygons.remove(member)
        container.area_m2 = max(0.0, container.area_m2 - member.area_m2)
        container.subtracts = [h for h in container.subtracts if h not in member.subtracts]
        logger.info("merged polygon %s removed from %s", member.name, container.name)


def delete_selected(state: "AppState") -> bool:
    """Remove selected lines, lines at selected points, the points and any polygon built on them."""
    if not state.selected_points and not state.selected_lines:
        state.notify("Nothing selected")
        return False
    graph = state.graph
    point_ids: Set[str] = set(state.selected_points)
    line_ids = set(state.selected_lines)
    for pid in point_ids:
        line_ids.update(line.id for line in graph.lines_at(pid))
    line_ids = graph.expand_groups(line_ids)

    groups = [g for g in graph.groups.values() if any(seg.id in line_ids for seg in g.segments)]
    polygons = [(i, p) for i, p in enumerate(state.polygons) if _touches(p, line_ids, point_ids)]
    removed_polygons = {id(p) for _, p in polygons}
    state.polygons = [p for p in state.polygons if id(p) not in removed_polygons]

    # containers that keep living but lose a hole or a merged polygon
    members = []
    for container in state.polygons:
        family = list(container.iter_family())
        if any(_touches(m, line_ids, point_ids) for m in family[1:]):
            members.extend((m, m.area_m2, list(m.subtracts), list(m.merged_polygons)) for m in family)
            _detach_members(container, line_ids, point_ids)

    removed_lines = graph.remove_lines(line_ids)
    removed_points = [p for p in graph.points if p.id in point_ids]
    graph.points = [p for p in graph.points if p.id not in point_ids]
    removed_points += state.prune_orphans()

    history.record(
        state,
        "delete_elements",
        points=removed_points,
        lines=[line for line in removed_lines if line.group_id is None],
        groups=groups,
        polygons=polygons,
        members=members,
    )
    state.clear_selection()
    count = len(removed_lines) + len(point_ids)
    state.notify(f"Deleted {count} element(s)")
    return True
