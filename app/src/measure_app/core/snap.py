from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .geometry import Coord, bearing_deg, distance
from .model import Point

logger = logging.getLogger(__name__)

SNAP_RADIUS_PX: float = 12.0
ANGLE_SNAP_TOLERANCE_DEG: float = 5.0
SNAP_ANGLES: Tuple[int, ...] = (0, 90, 180, 270)


@dataclass(frozen=True)
class AngleSnap:
    x: float
    y: float
    is_angle_snapped: bool = False
    snapped_angle: Optional[int] = None


@dataclass(frozen=True)
class SnapResult:
    """Where a pointer actually lands.

    ``point`` is set when an existing point won; ``angle`` when the position was
    forced onto an axis.  Both are None for a free position.
    """

    x: float
    y: float
    point: Optional[Point] = None
    angle: Optional[int] = None

    @property
    def xy(self) -> Coord:
        return (self.x, self.y)

    @property
    def is_angle_snapped(self) -> bool:
        return self.angle is not None


def find_nearest_point(
    candidate: Coord,
    points: Iterable[Point],
    radius_px: float = SNAP_RADIUS_PX,
    zoom: float = 1.0,
    enabled: bool = True,
) -> Optional[Point]:
    """Closest point strictly within ``radius_px`` screen pixels, or None.

    The radius is converted to drawing space by dividing by zoom.  On equal
    distances the earlier point wins.
    """
    if not enabled:
        return None
    nearest = None
    best = radius_px / zoom
    for p in points:
        d = distance(p.xy, candidate)
        if d < best:
            best = d
            nearest = p
    return nearest


def snap_to_angle(start: Coord, end: Coord, tolerance_deg: float = ANGLE_SNAP_TOLERANCE_DEG) -> AngleSnap:
    """Force ``end`` onto the nearest axis through ``start`` when within tolerance."""
    angle = bearing_deg(start, end)
    target = None
    for snap_angle in SNAP_ANGLES:
        diff = abs(angle - snap_angle)
        if min(diff, 360.0 - diff) <= tolerance_deg:
            target = snap_angle
            break
    if target is None:
        return AngleSnap(end[0], end[1])
    length = distance(start, end)
    rad = math.radians(target)
    return AngleSnap(
        start[0] + length * math.cos(rad),
        start[1] + length * math.sin(rad),
        is_angle_snapped=True,
        snapped_angle=target,
    )


def resolve_snap(
    candidate: Coord,
    points: Iterable[Point],
    start: Optional[Coord] = None,
    *,
    radius_px: float = SNAP_RADIUS_PX,
    zoom: float = 1.0,
    tolerance_deg: float = ANGLE_SNAP_TOLERANCE_DEG,
    point_snap: bool = True,
    angle_snap: bool = True,
) -> SnapResult:
    """Combine point snap and angle snap; an existing point always wins."""
    points = list(points)
    nearest = find_nearest_point(candidate, points, radius_px, zoom, point_snap)
    if nearest is not None:
        return SnapResult(nearest.x, nearest.y, point=nearest)
    if start is None or not angle_snap:
        return SnapResult(candidate[0], candidate[1])
    snapped = snap_to_angle(start, candidate, tolerance_deg)
    if not snapped.is_angle_snapped:
        return SnapResult(candidate[0], candidate[1])
    nearest = find_nearest_point((snapped.x, snapped.y), points, radius_px, zoom, point_snap)
    if nearest is not None:
        logger.debug("angle snap %s landed on point %s", snapped.snapped_angle, nearest.id)
        return SnapResult(nearest.x, nearest.y, point=nearest)
    return SnapResult(snapped.x, snapped.y, angle=snapped.snapped_angle)
