from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Optional, Union

from .errors import CalibrationError
from .model import Calibration, Line

if TYPE_CHECKING:
    from .state import AppState

logger = logging.getLogger(__name__)


def parse_length(value: Union[str, float, int, None], error=CalibrationError) -> float:
    """Parse a user-entered length in meters; must be a finite number above zero."""
    if value is None or isinstance(value, bool):
        raise error("Please enter a valid length")
    try:
        length = float(value)
    except (TypeError, ValueError):
        raise error("Please enter a valid length") from None
    if not math.isfinite(length) or length <= 0:
        raise error("Please enter a valid length")
    return length


def calibrate(reference: Union[Line, float], real_length_m: Union[str, float]) -> Calibration:
    """Derive pixels-per-meter from a reference line (or its pixel length)."""
    real = parse_length(real_length_m)
    pixel_length = reference.pixel_length if isinstance(reference, Line) else float(reference)
    if pixel_length <= 0:
        raise CalibrationError("Reference line has zero length")
    return Calibration(pixel_length=pixel_length, real_length_m=real, pixels_per_meter=pixel_length / real)


def line_length_m(pixel_length: float, calibration: Optional[Calibration]) -> Optional[float]:
    if calibration is None:
        return None
    return pixel_length / calibration.pixels_per_meter


def recalibrate(state: "AppState") -> None:
    """Forget the scale and everything measured with it."""
    state.calibration = None
    state.graph.clear()
    state.polygons.clear()
    state.pending_length = None
    state.history.clear()
    state.clear_selection()
    state.gesture.reset()
    logger.info("calibration cleared")
