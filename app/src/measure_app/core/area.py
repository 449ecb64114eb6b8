from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .errors import MergeError
from .geometry import Coord, point_in_polygon, shoelace_area, vertex_centroid
from .model import Calibration, Line, Point, Polygon

logger = logging.getLogger(__name__)

# Palette for completed polygon overlays (cycled per polygon)
POLYGON_COLORS: tuple[str, ...] = (
    '#2563eb',  # blue
    '#16a34a',  # green
    '#ea580c',  # orange
    '#9333ea',  # violet
)
HOLE_COLOR: str = '#dc2626'


def polygon_area(points: Sequence[Coord], calibration: Optional[Calibration]) -> float:
    """Area in square meters; 0.0 for fewer than three points or no calibration."""
    if len(points) < 3 or calibration is None:
        return 0.0
    ppm = calibration.pixels_per_meter
    return shoelace_area(points) / (ppm * ppm)


def find_containing_polygon(points: Sequence[Coord], polygons: Sequence[Polygon]) -> Optional[Polygon]:
    """First closed polygon whose boundary contains the vertex average of ``points``.

    This only checks the centre, so a shape that pokes out of the container is
    still accepted.
    """
    center = vertex_centroid(points)
    if center is None:
        return None
    for polygon in polygons:
        if polygon.is_closed and len(polygon.points) >= 3 and point_in_polygon(center, polygon.coords):
            return polygon
    return None


def next_color(index: int) -> str:
    return POLYGON_COLORS[index % len(POLYGON_COLORS)]


def build_polygon(
    polygon_id: str,
    points: List[Point],
    lines: List[Line],
    calibration: Optional[Calibration],
    name: str,
    color: str = POLYGON_COLORS[0],
    is_rectangle: bool = False,
) -> Polygon:
    return Polygon(
        id=polygon_id,
        points=list(points),
        lines=list(lines),
        area_m2=polygon_area([p.xy for p in points], calibration),
        name=name,
        color=color,
        is_rectangle=is_rectangle,
    )


def subtract(container: Polygon, hole: Polygon) -> float:
    """Deduct the hole's area from the container, clamped at zero; returns the new net area."""
    previous = container.area_m2
    container.area_m2 = max(0.0, previous - hole.area_m2)
    hole.deducted_m2 = previous - container.area_m2
    container.subtracts.append(hole)
    logger.debug("subtracted %.4f m2 from %s -> %.4f", hole.area_m2, container.id, container.area_m2)
    return container.area_m2


def merge(polygons: List[Polygon], absorbed_id: str) -> Polygon:
    """Fold the last polygon into its predecessor and drop it from ``polygons``.

    The absorbed polygon keeps being drawn through ``merged_polygons``.
    Raises MergeError unless ``absorbed_id`` names the last polygon.
    """
    if len(polygons) < 2:
        raise MergeError("Need at least 2 polygons to merge")
    if polygons[-1].id != absorbed_id:
        raise MergeError("Can only merge the last polygon")
    absorbed = polygons[-1]
    target = polygons[-2]
    target.area_m2 += absorbed.area_m2
    absorbed.color = target.color
    target.merged_polygons.append(absorbed)
    target.subtracts.extend(absorbed.subtracts)
    polygons.pop()
    return target
