"""Pure geometry helpers shared by the snap, graph, area and render code.

Coordinates are plain ``(x, y)`` tuples in drawing space.
"""
from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

Coord = Tuple[float, float]


def distance(p1: Coord, p2: Coord) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def signed_area(points: Sequence[Coord]) -> float:
    """Signed shoelace area; positive for counter-clockwise in a y-up frame."""
    n = len(points)
    if n < 3:
        return 0.0
    acc = 0.0
    for i in range(n):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % n]
        acc += x1 * y2 - x2 * y1
    return acc / 2.0


def shoelace_area(points: Sequence[Coord]) -> float:
    """Return the absolute area of a polygon using the shoelace formula."""
    return abs(signed_area(points))


def point_in_polygon(pt: Coord, polygon: Sequence[Coord]) -> bool:
    """Ray casting test; polygons with fewer than three vertices contain nothing."""
    n = len(polygon)
    if n < 3:
        return False
    x, y = pt
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def vertex_centroid(points: Sequence[Coord]) -> Optional[Coord]:
    """Average of the vertices (the 'center' used for containment checks)."""
    if not points:
        return None
    n = len(points)
    return (sum(p[0] for p in points) / n, sum(p[1] for p in points) / n)


def polygon_centroid(points: Sequence[Coord]) -> Optional[Coord]:
    """Return polygon centroid; fall back to vertex average for near-zero area."""
    if not points:
        return None
    area_acc = 0.0
    cx_acc = 0.0
    cy_acc = 0.0
    n = len(points)
    for i in range(n):
        x0, y0 = points[i]
        x1, y1 = points[(i + 1) % n]
        cross = x0 * y1 - x1 * y0
        area_acc += cross
        cx_acc += (x0 + x1) * cross
        cy_acc += (y0 + y1) * cross
    area = area_acc / 2.0
    if abs(area) < 1e-9:
        return vertex_centroid(points)
    return (cx_acc / (6.0 * area), cy_acc / (6.0 * area))


def segments_intersect(a1: Coord, a2: Coord, b1: Coord, b2: Coord) -> bool:
    """True when segments a1-a2 and b1-b2 cross; parallel segments never do."""
    (x1, y1), (x2, y2) = a1, a2
    (x3, y3), (x4, y4) = b1, b2
    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < 1e-10:
        return False
    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom
    return 0.0 <= t <= 1.0 and 0.0 <= u <= 1.0


def rect_corners(c1: Coord, c2: Coord) -> List[Coord]:
    """Axis-aligned rectangle through two opposite corners, clockwise from top-left."""
    min_x, max_x = min(c1[0], c2[0]), max(c1[0], c2[0])
    min_y, max_y = min(c1[1], c2[1]), max(c1[1], c2[1])
    return [(min_x, min_y), (max_x, min_y), (max_x, max_y), (min_x, max_y)]


def point_in_rect(pt: Coord, c1: Coord, c2: Coord) -> bool:
    return (min(c1[0], c2[0]) <= pt[0] <= max(c1[0], c2[0])
            and min(c1[1], c2[1]) <= pt[1] <= max(c1[1], c2[1]))


def segment_intersects_rect(p1: Coord, p2: Coord, c1: Coord, c2: Coord) -> bool:
    """True when the segment crosses any edge of the rectangle spanned by c1/c2."""
    corners = rect_corners(c1, c2)
    for i in range(4):
        if segments_intersect(p1, p2, corners[i], corners[(i + 1) % 4]):
            return True
    return False


def point_segment_distance(pt: Coord, a: Coord, b: Coord) -> float:
    """Distance from pt to the closest point on segment a-b."""
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    len_sq = dx * dx + dy * dy
    if len_sq == 0:
        return distance(pt, a)
    t = ((pt[0] - a[0]) * dx + (pt[1] - a[1]) * dy) / len_sq
    t = max(0.0, min(1.0, t))
    return distance(pt, (a[0] + t * dx, a[1] + t * dy))


def perpendicular_offset(start: Coord, end: Coord, offset: float) -> Coord:
    """Offset vector of length ``offset`` along the left normal of start->end.

    A zero-length segment has no normal, so the zero vector is returned.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length = math.hypot(dx, dy)
    if length == 0:
        return (0.0, 0.0)
    return (offset * -dy / length, offset * dx / length)


def bearing_deg(start: Coord, end: Coord) -> float:
    """Direction of end relative to start in degrees, normalised to [0, 360)."""
    ang = math.degrees(math.atan2(end[1] - start[1], end[0] - start[0]))
    return ang % 360.0
