from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict

from ..core.state import Action

if TYPE_CHECKING:
    from ..core.state import AppState

logger = logging.getLogger(__name__)


def record(state: "AppState", kind: str, **data) -> Action:
    action = Action(kind, data)
    state.history.append(action)
    logger.debug("recorded %s", kind)
    return action


def undo(state: "AppState") -> bool:
    if not state.history:
        state.notify("Nothing to undo")
        return False
    action = state.history.pop()
    handler = _HANDLERS.get(action.kind)
    if handler is None:
        logger.warning("no undo handler for %s", action.kind)
    else:
        handler(state, action.data)
    state.gesture.reset()
    state.pending_length = None
    state.clear_selection()
    state.prune_orphans()
    state.notify("Undo completed")
    return True


def _drop_polygon(state: "AppState", data: Dict) -> None:
    polygon = data["polygon"]
    container = data.get("container")
    if container is not None:
        if polygon in container.subtracts:
            container.subtracts.remove(polygon)
        container.area_m2 = data["previous_area"]
    elif polygon in state.polygons:
        state.polygons.remove(polygon)


def _undo_add_line(state: "AppState", data: Dict) -> None:
    line = data["line"]
    state.graph.remove_lines([line.id])
    state.polygons = [p for p in state.polygons if not p.uses_line(line.id)]


def _undo_add_polygon(state: "AppState", data: Dict) -> None:
    _drop_polygon(state, data)
    if data.get("line") is not None:
        state.graph.remove_lines([data["line"].id])


def _undo_add_rectangle(state: "AppState", data: Dict) -> None:
    _drop_polygon(state, data)
    state.graph.remove_lines(line.id for line in data["lines"])


def _undo_set_calibration(state: "AppState", data: Dict) -> None:
    state.calibration = data.get("previous")
    state.graph.remove_lines([data["line"].id])
    if state.calibration is None:
        for line in state.graph.lines:
            line.length_m = None


def _undo_add_wall(state: "AppState", data: Dict) -> None:
    state.graph.remove_group(data["group"].id)


def _undo_edit_wall(state: "AppState", data: Dict) -> None:
    group = data["group"]
    state.graph.detach_segments(group)
    group.end.move_to(*data["previous_end"])
    group.segments = list(data["previous_segments"])
    group.length_m = data["previous_length"]
    state.graph.add_group(group)
    state.relink_lines(group.segments)


def _undo_delete(state: "AppState", data: Dict) -> None:
    for point in data["points"]:
        state.graph.add_point(point)
    for line in data["lines"]:
        if line.group_id is None:
            state.graph.add_line(line)
    for group in data["groups"]:
        state.graph.add_group(group)
    for index, polygon in sorted(data["polygons"], key=lambda item: item[0]):
        state.polygons.insert(index, polygon)
    for member, area, subtracts, merged in data.get("members", ()):
        member.area_m2 = area
        member.subtracts = subtracts
        member.merged_polygons = merged


def _undo_merge(state: "AppState", data: Dict) -> None:
    target = data["target"]
    absorbed = data["absorbed"]
    if absorbed in target.merged_polygons:
        target.merged_polygons.remove(absorbed)
    target.area_m2 = data["previous_area"]
    del target.subtracts[data["subtract_count"]:]
    absorbed.color = data["previous_color"]
    state.polygons.append(absorbed)


_HANDLERS: Dict[str, Callable[["AppState", Dict], None]] = {
    "add_line": _undo_add_line,
    "add_polygon": _undo_add_polygon,
    "add_rectangle": _undo_add_rectangle,
    "set_calibration": _undo_set_calibration,
    "add_wall": _undo_add_wall,
    "edit_wall": _undo_edit_wall,
    "delete_elements": _undo_delete,
    "merge": _undo_merge,
}
