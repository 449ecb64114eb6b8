"""Application state for one open document.

Every feature function takes an ``AppState`` as its first argument; nothing
lives in module globals, so two documents never share geometry.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from .config import AppConfig
from .coords import ImagePlacement, image_placement, to_drawing_space, to_screen_space
from .graph import DrawingGraph
from .model import BackgroundImage, Calibration, Line, LineKind, Point, Polygon, ToolMode, ViewTransform, WallGroup
from .snap import SnapResult

logger = logging.getLogger(__name__)

StatusSink = Callable[[str], None]


@dataclass
class Gesture:
    """In-progress drawing gesture: Idle when both starts are None."""

    line_start: Optional[Point] = None
    rectangle_start: Optional[Point] = None
    cursor: Optional[SnapResult] = None
    region_start: Optional[Tuple[float, float]] = None

    @property
    def is_idle(self) -> bool:
        return self.line_start is None and self.rectangle_start is None and self.region_start is None

    def reset(self) -> None:
        self.line_start = None
        self.rectangle_start = None
        self.cursor = None
        self.region_start = None


@dataclass
class PendingLength:
    """A length prompt waiting for the user: calibration of ``line`` or sizing of ``group``."""

    line: Optional[Line] = None
    group: Optional[WallGroup] = None
    editing: bool = False

    @property
    def is_calibration(self) -> bool:
        return self.line is not None


@dataclass
class Action:
    kind: str
    data: Dict[str, Any] = field(default_factory=dict)


class AppState:
    def __init__(self, config: Optional[AppConfig] = None, status_sink: Optional[StatusSink] = None) -> None:
        self.config = config or AppConfig()
        self.status_sink = status_sink
        self.graph = DrawingGraph()
        self.polygons: List[Polygon] = []
        self.calibration: Optional[Calibration] = None
        self.view = ViewTransform()
        self.image: Optional[BackgroundImage] = None
        self.canvas_size: Tuple[int, int] = (800, 600)
        self.tool: ToolMode = ToolMode.LINE
        self.gesture = Gesture()
        self.pending_length: Optional[PendingLength] = None
        self.selected_points: List[str] = []
        self.selected_lines: List[str] = []
        self.show_length_labels: bool = True
        self.angle_snap_enabled: bool = True
        self.point_snap_enabled: bool = True
        self.project_name: str = ""
        self.history: List[Action] = []
        self.last_status: str = ""
        self.pan_anchor: Optional[Tuple[float, float]] = None
        self._ids = itertools.count(1)

    # ----- Identity -----
    def new_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def new_point(self, x: float, y: float) -> Point:
        return Point(id=self.new_id("point"), x=x, y=y)

    # ----- Status -----
    def notify(self, message: str) -> None:
        self.last_status = message
        logger.info(message)
        if self.status_sink is not None:
            self.status_sink(message)

    # ----- Coordinates -----
    def placement(self) -> Optional[ImagePlacement]:
        return image_placement(self.image, self.canvas_size, self.config.image_margin_px)

    def to_drawing(self, screen_x: float, screen_y: float) -> Tuple[float, float]:
        return to_drawing_space(screen_x, screen_y, self.view, self.placement())

    def to_screen(self, x: float, y: float) -> Tuple[float, float]:
        return to_screen_space(x, y, self.view, self.placement())

    # ----- Derived views -----
    @property
    def points(self) -> List[Point]:
        return self.graph.points

    @property
    def lines(self) -> List[Line]:
        return self.graph.lines

    def claimed_point_ids(self) -> Set[str]:
        claimed: Set[str] = set()
        for polygon in self.polygons:
            claimed |= polygon.claimed_point_ids()
        return claimed

    def pipes(self) -> List[Line]:
        return [line for line in self.graph.lines if line.kind is LineKind.PIPE]

    def total_area(self) -> float:
        return sum(p.area_m2 for p in self.polygons)

    def total_pipe_length(self) -> float:
        return sum(line.length_m or 0.0 for line in self.pipes())

    def layout_calibration(self) -> Calibration:
        """Scale for wall/window tools: the real calibration or the nominal one."""
        return self.calibration or Calibration.nominal(self.config.nominal_pixels_per_meter)

    # ----- Housekeeping -----
    def clear_selection(self) -> None:
        self.selected_points.clear()
        self.selected_lines.clear()

    def prune_orphans(self) -> List[Point]:
        keep = [p.id for p in (self.gesture.line_start, self.gesture.rectangle_start) if p is not None]
        return self.graph.prune_orphans(keep)

    def relink_lines(self, lines: List[Line]) -> None:
        """Point every polygon edge at the live line with the same id."""
        live = {line.id: line for line in lines}
        for polygon in self.polygons:
            for member in polygon.iter_family():
                member.lines = [live.get(line.id, line) for line in member.lines]
