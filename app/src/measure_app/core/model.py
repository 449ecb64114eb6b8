from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, List, Optional, Set, Tuple

from .geometry import distance

ZOOM_MIN: float = 0.1
ZOOM_MAX: float = 5.0


class LineKind(str, Enum):
    LINE = "line"
    PIPE = "pipe"
    SUBTRACT = "subtract"
    WALL = "wall"
    WINDOW = "window"
    CALIBRATION = "calibration"


class ToolMode(str, Enum):
    LINE = "line"
    RECTANGLE = "rectangle"
    PIPE = "pipe"
    SUBTRACT = "subtract"
    WALLS = "walls"
    WINDOW = "window"
    SELECT = "select"


@dataclass(eq=False)
class Point:
    """A vertex in drawing space; shared by identity between lines and polygons."""

    id: str
    x: float
    y: float

    @property
    def xy(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def move_to(self, x: float, y: float) -> None:
        self.x = x
        self.y = y


@dataclass(eq=False)
class Line:
    id: str
    start: Point
    end: Point
    kind: LineKind = LineKind.LINE
    length_m: Optional[float] = None
    group_id: Optional[str] = None

    @property
    def pixel_length(self) -> float:
        return distance(self.start.xy, self.end.xy)

    def touches(self, point_id: str) -> bool:
        return self.start.id == point_id or self.end.id == point_id


@dataclass(eq=False)
class WallGroup:
    """One logical wall or window edge and the parallel segments that draw it.

    ``start``/``end`` are the logical endpoints used for cycle detection and
    length editing; ``segments`` holds one line for a wall and three (outer,
    centre, outer) for a window.
    """

    id: str
    kind: LineKind
    start: Point
    end: Point
    segments: List[Line] = field(default_factory=list)
    length_m: Optional[float] = None

    @property
    def pixel_length(self) -> float:
        return distance(self.start.xy, self.end.xy)


@dataclass(eq=False)
class Polygon:
    id: str
    points: List[Point]
    lines: List[Line]
    area_m2: float
    name: str
    color: str
    is_closed: bool = True
    subtracts: List["Polygon"] = field(default_factory=list)
    merged_polygons: List["Polygon"] = field(default_factory=list)
    is_rectangle: bool = False
    # area actually taken from the container when this polygon is a hole
    deducted_m2: float = 0.0

    @property
    def coords(self) -> List[Tuple[float, float]]:
        return [p.xy for p in self.points]

    def iter_family(self) -> Iterator["Polygon"]:
        """Yield this polygon, its holes and its merged polygons (recursively)."""
        yield self
        for hole in self.subtracts:
            yield from hole.iter_family()
        for merged in self.merged_polygons:
            yield from merged.iter_family()

    def claimed_point_ids(self) -> Set[str]:
        return {p.id for poly in self.iter_family() for p in poly.points}

    def uses_line(self, line_id: str) -> bool:
        return any(l.id == line_id for l in self.lines)


@dataclass(frozen=True)
class Calibration:
    pixel_length: float
    real_length_m: float
    pixels_per_meter: float

    @classmethod
    def nominal(cls, pixels_per_meter: float) -> "Calibration":
        """A fixed scale for the room-layout tools when no reference line exists."""
        return cls(pixel_length=pixels_per_meter, real_length_m=1.0, pixels_per_meter=pixels_per_meter)


@dataclass
class ViewTransform:
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0

    def reset(self) -> None:
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0


@dataclass
class BackgroundImage:
    """A decoded raster as handed over by the loader; ``source`` is a PIL image."""

    width: int
    height: int
    source: Any = None
