"""Discrete commands the UI sends to the core.

Pointer positions are in screen pixels; the controller maps them into
drawing space.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .coords import Region
from .model import ToolMode


@dataclass(frozen=True)
class AddPoint:
    """A click: places a line/wall endpoint or picks in the select tool."""

    x: float
    y: float
    additive: bool = False


@dataclass(frozen=True)
class MoveCursor:
    x: float
    y: float


@dataclass(frozen=True)
class BeginDrag:
    x: float
    y: float


@dataclass(frozen=True)
class EndDrag:
    x: float
    y: float
    additive: bool = False


@dataclass(frozen=True)
class DoubleClick:
    x: float
    y: float


@dataclass(frozen=True)
class SubmitLength:
    """Answer to the length prompt (calibration or wall/window sizing)."""

    value: Union[str, float, None]


@dataclass(frozen=True)
class CancelLength:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class SelectTool:
    tool: ToolMode


@dataclass(frozen=True)
class Merge:
    polygon_id: Optional[str] = None


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class Recalibrate:
    pass


@dataclass(frozen=True)
class ClearAll:
    pass


@dataclass(frozen=True)
class DeleteSelected:
    pass


@dataclass(frozen=True)
class RenamePolygon:
    polygon_id: str
    name: str


@dataclass(frozen=True)
class RecolorPolygon:
    polygon_id: str
    color: str


@dataclass(frozen=True)
class ToggleLengthLabels:
    pass


@dataclass(frozen=True)
class ToggleAngleSnap:
    pass


@dataclass(frozen=True)
class TogglePointSnap:
    pass


@dataclass(frozen=True)
class Zoom:
    """Wheel or button zoom; ``anchor`` defaults to the canvas centre."""

    direction: int
    anchor: Optional[Tuple[float, float]] = None
    wheel: bool = False


@dataclass(frozen=True)
class Pan:
    dx: float
    dy: float


@dataclass(frozen=True)
class ResetView:
    pass


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class Export:
    region: Optional[Region] = None


Command = Union[
    AddPoint, MoveCursor, BeginDrag, EndDrag, DoubleClick, SubmitLength, CancelLength, Cancel,
    SelectTool, Merge, Undo, Recalibrate, ClearAll, DeleteSelected, RenamePolygon, RecolorPolygon,
    ToggleLengthLabels, ToggleAngleSnap, TogglePointSnap, Zoom, Pan, ResetView, Resize, Export,
]
