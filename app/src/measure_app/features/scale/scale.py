from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ...core.calibration import calibrate, recalibrate
from ...core.errors import CalibrationError
from ...core.model import Calibration
from .. import history

if TYPE_CHECKING:
    from ...core.state import AppState

logger = logging.getLogger(__name__)


def is_awaiting_scale(state: "AppState") -> bool:
    return state.pending_length is not None and state.pending_length.is_calibration


def submit_calibration(state: "AppState", value) -> Optional[Calibration]:
    """Turn the pending reference line into the document scale.

    Invalid input leaves the prompt open so the user can retry.
    """
    if not is_awaiting_scale(state):
        return None
    line = state.pending_length.line
    try:
        calibration = calibrate(line, value)
    except CalibrationError as exc:
        logger.warning("calibration rejected: %s", exc)
        state.notify(str(exc))
        return None
    line.length_m = calibration.real_length_m
    state.graph.add_line(line)
    previous = state.calibration
    state.calibration = calibration
    state.pending_length = None
    history.record(state, "set_calibration", line=line, previous=previous)
    state.notify(f"Calibration complete. Scale: 1px = {1 / calibration.pixels_per_meter:.4f}m")
    return calibration


def cancel_calibration(state: "AppState") -> None:
    if not is_awaiting_scale(state):
        return
    state.pending_length = None
    state.prune_orphans()
    state.notify("Calibration cancelled")


def reset_scale(state: "AppState") -> None:
    recalibrate(state)
    state.notify("Calibration reset. Draw a new reference line to recalibrate")


def clear_all(state: "AppState") -> None:
    """Remove every drawn element but keep the scale."""
    state.graph.clear()
    state.polygons.clear()
    state.history.clear()
    state.pending_length = None
    state.gesture.reset()
    state.clear_selection()
    state.notify("All measurements cleared")
