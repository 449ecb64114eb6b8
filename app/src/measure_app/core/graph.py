"""Points and lines the user has drawn, plus closed-cycle detection."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from .geometry import Coord, perpendicular_offset, point_segment_distance
from .model import Line, LineKind, Point, WallGroup

logger = logging.getLogger(__name__)

WINDOW_THICKNESS_PX: float = 15.0
DEFAULT_EXCLUDED_KINDS: Tuple[LineKind, ...] = (LineKind.PIPE,)

Edge = Tuple[Point, Point]


class DrawingGraph:
    def __init__(self) -> None:
        self.points: List[Point] = []
        self.lines: List[Line] = []
        self.groups: Dict[str, WallGroup] = {}

    # ----- Points -----
    def get_point(self, point_id: str) -> Optional[Point]:
        for p in self.points:
            if p.id == point_id:
                return p
        return None

    def add_point(self, point: Point) -> Point:
        """Add ``point`` unless a point with the same id exists; return the stored one."""
        existing = self.get_point(point.id)
        if existing is not None:
            return existing
        self.points.append(point)
        return point

    def lines_at(self, point_id: str) -> List[Line]:
        return [line for line in self.lines if line.touches(point_id)]

    def prune_orphans(self, keep: Iterable[str] = ()) -> List[Point]:
        """Drop points no line references, except ids in ``keep``."""
        keep_ids = set(keep)
        used: Set[str] = set(keep_ids)
        for line in self.lines:
            used.add(line.start.id)
            used.add(line.end.id)
        removed = [p for p in self.points if p.id not in used]
        if removed:
            self.points = [p for p in self.points if p.id in used]
            logger.debug("pruned %d orphan point(s)", len(removed))
        return removed

    # ----- Lines -----
    def get_line(self, line_id: str) -> Optional[Line]:
        for line in self.lines:
            if line.id == line_id:
                return line
        return None

    def connect(
        self,
        line_id: str,
        start: Point,
        end: Point,
        kind: LineKind = LineKind.LINE,
        length_m: Optional[float] = None,
    ) -> Line:
        start = self.add_point(start)
        end = self.add_point(end)
        line = Line(id=line_id, start=start, end=end, kind=kind, length_m=length_m)
        self.lines.append(line)
        return line

    def add_line(self, line: Line) -> Line:
        """Re-insert an existing line object (used by undo)."""
        self.add_point(line.start)
        self.add_point(line.end)
        if self.get_line(line.id) is None:
            self.lines.append(line)
        return line

    def add_group(self, group: WallGroup) -> WallGroup:
        self.add_point(group.start)
        self.add_point(group.end)
        for seg in group.segments:
            seg.group_id = group.id
            self.add_line(seg)
        self.groups[group.id] = group
        return group

    def connect_group(
        self,
        group_id: str,
        start: Point,
        end: Point,
        kind: LineKind,
        new_id: Callable[[str], str],
        window_thickness: float = WINDOW_THICKNESS_PX,
    ) -> WallGroup:
        """Append the 1 (wall) or 3 (window) parallel segments of one logical edge."""
        group = WallGroup(id=group_id, kind=kind, start=start, end=end)
        group.segments = _build_segments(group, new_id, window_thickness)
        return self.add_group(group)

    def rebuild_group(
        self,
        group: WallGroup,
        new_id: Callable[[str], str],
        window_thickness: float = WINDOW_THICKNESS_PX,
    ) -> WallGroup:
        """Regenerate a group's segments after its endpoints moved."""
        self.detach_segments(group)
        group.segments = _build_segments(group, new_id, window_thickness)
        return self.add_group(group)

    def detach_segments(self, group: WallGroup) -> List[Line]:
        """Remove a group's segments and their offset points; the logical endpoints stay."""
        old = list(group.segments)
        old_ids = {seg.id for seg in old}
        self.lines = [line for line in self.lines if line.id not in old_ids]
        keep = {group.start.id, group.end.id}
        stale = {p.id for seg in old for p in (seg.start, seg.end)} - keep
        self.points = [p for p in self.points if p.id not in stale or self.lines_at(p.id)]
        return old

    def expand_groups(self, line_ids: Iterable[str]) -> Set[str]:
        """Widen a set of line ids so grouped segments are always taken together."""
        ids = set(line_ids)
        for group in self.groups.values():
            seg_ids = {seg.id for seg in group.segments}
            if ids & seg_ids:
                ids |= seg_ids
        return ids

    def remove_lines(self, line_ids: Iterable[str]) -> List[Line]:
        ids = self.expand_groups(line_ids)
        removed = [line for line in self.lines if line.id in ids]
        self.lines = [line for line in self.lines if line.id not in ids]
        for gid in [gid for gid, g in self.groups.items() if any(s.id in ids for s in g.segments)]:
            del self.groups[gid]
        return removed

    def remove_group(self, group_id: str) -> Optional[WallGroup]:
        group = self.groups.get(group_id)
        if group is None:
            return None
        self.remove_lines(seg.id for seg in group.segments)
        return group

    def group_of(self, line: Line) -> Optional[WallGroup]:
        if line.group_id is None:
            return None
        return self.groups.get(line.group_id)

    def find_nearest_line(self, candidate: Coord, radius: float) -> Optional[Line]:
        """Closest line within ``radius`` (drawing units) by point-to-segment distance."""
        nearest = None
        best = radius
        for line in self.lines:
            d = point_segment_distance(candidate, line.start.xy, line.end.xy)
            if d < best:
                best = d
                nearest = line
        return nearest

    def clear(self) -> None:
        self.points.clear()
        self.lines.clear()
        self.groups.clear()

    # ----- Logical edges -----
    def logical_edges(self, exclude_kinds: Sequence[LineKind] = DEFAULT_EXCLUDED_KINDS) -> Iterator[Edge]:
        """Ungrouped lines as-is, and one edge per wall/window group."""
        for line in self.lines:
            if line.group_id is None and line.kind not in exclude_kinds:
                yield (line.start, line.end)
        for group in self.groups.values():
            if group.kind not in exclude_kinds:
                yield (group.start, group.end)

    def lines_between(
        self,
        a_id: str,
        b_id: str,
        exclude_kinds: Sequence[LineKind] = DEFAULT_EXCLUDED_KINDS,
    ) -> List[Line]:
        """All lines forming the logical edge a-b, including every segment of a group."""
        found: List[Line] = []
        pair = {a_id, b_id}
        for line in self.lines:
            if line.group_id is None and line.kind not in exclude_kinds:
                if {line.start.id, line.end.id} == pair:
                    found.append(line)
        for group in self.groups.values():
            if group.kind not in exclude_kinds and {group.start.id, group.end.id} == pair:
                found.extend(group.segments)
        return found


def wall_segments(
    start: Point,
    end: Point,
    kind: LineKind,
    new_point: Callable[[float, float], Point],
    window_thickness: float = WINDOW_THICKNESS_PX,
) -> List[Edge]:
    """Endpoint pairs for the parallel segments of a wall (1) or a window (3).

    The window's centre segment reuses the logical endpoints; the outer two sit
    ``window_thickness`` away on either side.
    """
    if kind is not LineKind.WINDOW:
        return [(start, end)]
    edges: List[Edge] = []
    for offset in (-window_thickness, 0.0, window_thickness):
        if offset == 0.0:
            edges.append((start, end))
            continue
        dx, dy = perpendicular_offset(start.xy, end.xy, offset)
        edges.append((new_point(start.x + dx, start.y + dy), new_point(end.x + dx, end.y + dy)))
    return edges


def _adjacency(
    graph: DrawingGraph,
    exclude_kinds: Sequence[LineKind],
) -> Dict[str, List[str]]:
    order = {p.id: i for i, p in enumerate(graph.points)}
    neighbours: Dict[str, Set[str]] = {}
    for a, b in graph.logical_edges(exclude_kinds):
        if a.id == b.id:
            continue
        neighbours.setdefault(a.id, set()).add(b.id)
        neighbours.setdefault(b.id, set()).add(a.id)
    rank = lambda pid: order.get(pid, len(order))  # noqa: E731
    return {pid: sorted(neighbours[pid], key=rank) for pid in sorted(neighbours, key=rank)}


def _find_cycle(adjacency: Dict[str, List[str]], start: str) -> Optional[List[str]]:
    """Iterative DFS for a simple cycle through ``start`` of length >= 3.

    Never steps straight back to the previous node and never revisits a node
    other than ``start``.  Returns the first cycle found in adjacency order.
    """
    path = [start]
    on_path = {start}
    stack = [iter(adjacency.get(start, ()))]
    while stack:
        advanced = False
        prev = path[-2] if len(path) >= 2 else None
        for nxt in stack[-1]:
            if nxt == prev:
                continue
            if nxt == start:
                if len(path) >= 3:
                    return list(path)
                continue
            if nxt in on_path:
                continue
            path.append(nxt)
            on_path.add(nxt)
            stack.append(iter(adjacency.get(nxt, ())))
            advanced = True
            break
        if not advanced:
            stack.pop()
            on_path.discard(path.pop())
    return None


def detect_closed_polygon(
    graph: DrawingGraph,
    claimed: Iterable[str] = (),
    exclude_kinds: Sequence[LineKind] = DEFAULT_EXCLUDED_KINDS,
) -> Optional[List[Point]]:
    """First closed cycle through a point not already claimed by a polygon.

    This is an incremental detector meant to run once per completed edge: the
    first cycle found is the one that edge just closed.
    """
    claimed_ids = set(claimed)
    adjacency = _adjacency(graph, exclude_kinds)
    for pid in adjacency:
        if pid in claimed_ids:
            continue
        cycle = _find_cycle(adjacency, pid)
        if cycle is not None:
            logger.debug("closed cycle through %s: %s", pid, cycle)
            by_id = {p.id: p for p in graph.points}
            return [by_id[c] for c in cycle if c in by_id]
    return None


def _build_segments(
    group: WallGroup,
    new_id: Callable[[str], str],
    window_thickness: float,
) -> List[Line]:
    new_point = lambda x, y: Point(id=new_id("point"), x=x, y=y)  # noqa: E731
    # segment ids derive from the group so polygons keep matching after a rebuild
    return [
        Line(id=f"{group.id}-{index}", start=a, end=b, kind=group.kind, group_id=group.id)
        for index, (a, b) in enumerate(
            wall_segments(group.start, group.end, group.kind, new_point, window_thickness)
        )
    ]
