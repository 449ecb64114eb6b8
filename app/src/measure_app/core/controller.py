from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from . import commands as cmd
from . import facade
from .calibration import recalibrate
from .config import AppConfig
from .errors import MeasureError
from .model import BackgroundImage, ToolMode
from .snap import SnapResult
from .state import AppState, StatusSink

logger = logging.getLogger(__name__)

# Pointer travel (screen px) below which a press/release pair counts as a click
CLICK_SLOP_PX: float = 3.0

_CLICK_TOOLS = (ToolMode.LINE, ToolMode.PIPE, ToolMode.WALLS, ToolMode.WINDOW)


class MeasureController:
    """Synchronous command sink between the UI and the measurement core.

    Every command runs to completion on the caller's thread.  A
    ``MeasureError`` raised below is turned into a status message and the
    command returns None.
    """

    def __init__(
        self,
        state: Optional[AppState] = None,
        config: Optional[AppConfig] = None,
        status_sink: Optional[StatusSink] = None,
    ) -> None:
        self.state = state or AppState(config, status_sink)
        self._press: Optional[tuple] = None
        self._handlers: Dict[type, Callable[[Any], Any]] = {
            cmd.AddPoint: self._add_point,
            cmd.MoveCursor: self._move_cursor,
            cmd.BeginDrag: self._begin_drag,
            cmd.EndDrag: self._end_drag,
            cmd.DoubleClick: self._double_click,
            cmd.SubmitLength: self._submit_length,
            cmd.CancelLength: self._cancel_length,
            cmd.Cancel: self._cancel,
            cmd.SelectTool: lambda c: facade.draw_set_mode(self.state, c.tool),
            cmd.Merge: lambda c: facade.polygon_merge(self.state, c.polygon_id),
            cmd.Undo: lambda c: facade.history_undo(self.state),
            cmd.Recalibrate: lambda c: facade.scale_reset(self.state),
            cmd.ClearAll: lambda c: facade.scale_clear_all(self.state),
            cmd.DeleteSelected: lambda c: facade.select_delete(self.state),
            cmd.RenamePolygon: lambda c: facade.polygon_rename(self.state, c.polygon_id, c.name),
            cmd.RecolorPolygon: lambda c: facade.polygon_recolor(self.state, c.polygon_id, c.color),
            cmd.ToggleLengthLabels: lambda c: facade.toggle_labels(self.state),
            cmd.ToggleAngleSnap: lambda c: facade.toggle_angle_snap(self.state),
            cmd.TogglePointSnap: lambda c: facade.toggle_point_snap(self.state),
            cmd.Zoom: self._zoom,
            cmd.Pan: lambda c: facade.pan_canvas(self.state, c.dx, c.dy),
            cmd.ResetView: lambda c: facade.zoom_reset(self.state),
            cmd.Resize: self._resize,
            cmd.Export: lambda c: facade.export_png(self.state, c.region),
        }

    def dispatch(self, command: "cmd.Command") -> Any:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unknown command: {command!r}")
        logger.debug("dispatch %s", command)
        try:
            return handler(command)
        except MeasureError as exc:
            logger.warning("%s rejected: %s", type(command).__name__, exc)
            self.state.notify(str(exc))
            return None

    def load_image(self, background: BackgroundImage) -> None:
        """Install a freshly decoded drawing; measurements from the previous one are dropped."""
        state = self.state
        recalibrate(state)
        state.image = background
        state.view.reset()
        state.notify("Drawing loaded. Draw a reference line to calibrate")

    # ----- Pointer -----
    def _add_point(self, c: cmd.AddPoint) -> Any:
        state = self.state
        if state.pending_length is not None:
            return False
        if state.tool is ToolMode.SELECT:
            return facade.select_on_canvas_click(state, c.x, c.y, c.additive)
        if state.tool in (ToolMode.WALLS, ToolMode.WINDOW):
            return facade.walls_on_canvas_click(state, c.x, c.y)
        return facade.draw_on_canvas_click(state, c.x, c.y)

    def _move_cursor(self, c: cmd.MoveCursor) -> Any:
        state = self.state
        if facade.pan_on_move(state, c.x, c.y):
            return True
        if state.gesture.rectangle_start is not None:
            return facade.rectangle_motion(state, c.x, c.y)
        if state.gesture.region_start is not None:
            state.gesture.cursor = SnapResult(*state.to_drawing(c.x, c.y))
            return True
        return facade.draw_on_motion(state, c.x, c.y)

    def _begin_drag(self, c: cmd.BeginDrag) -> Any:
        state = self.state
        self._press = (c.x, c.y)
        if state.pending_length is not None:
            return False
        if state.tool in (ToolMode.RECTANGLE, ToolMode.SUBTRACT):
            return facade.rectangle_press(state, c.x, c.y)
        if state.tool is ToolMode.SELECT:
            facade.select_press(state, c.x, c.y)
            return True
        return False

    def _end_drag(self, c: cmd.EndDrag) -> Any:
        state = self.state
        press, self._press = self._press, None
        moved = press is not None and max(abs(c.x - press[0]), abs(c.y - press[1])) >= CLICK_SLOP_PX
        if state.tool in _CLICK_TOOLS:
            return self._add_point(cmd.AddPoint(c.x, c.y, c.additive))
        if state.tool is ToolMode.SELECT:
            if moved:
                state.gesture.cursor = None
                return facade.select_release(state, c.x, c.y, c.additive)
            state.gesture.region_start = None
            return facade.select_on_canvas_click(state, c.x, c.y, c.additive)
        if state.tool is ToolMode.SUBTRACT and not moved:
            # a plain click in subtract mode traces a freeform hole
            state.gesture.rectangle_start = None
            state.prune_orphans()
            return facade.draw_on_canvas_click(state, c.x, c.y)
        return facade.rectangle_release(state, c.x, c.y)

    def _double_click(self, c: cmd.DoubleClick) -> Any:
        return facade.walls_edit_length(self.state, c.x, c.y)

    # ----- Length prompt -----
    def _submit_length(self, c: cmd.SubmitLength) -> Any:
        state = self.state
        pending = state.pending_length
        if pending is None:
            return None
        if pending.is_calibration:
            return facade.scale_submit(state, c.value)
        return facade.walls_apply_length(state, c.value)

    def _cancel_length(self, c: Any = None) -> Any:
        state = self.state
        pending = state.pending_length
        if pending is None:
            return False
        if pending.is_calibration:
            facade.scale_cancel(state)
        else:
            facade.walls_cancel_length(state)
        return True

    def _cancel(self, c: cmd.Cancel) -> Any:
        if self.state.pending_length is not None:
            return self._cancel_length()
        return facade.draw_cancel(self.state)

    # ----- View -----
    def _zoom(self, c: cmd.Zoom) -> Any:
        state = self.state
        if c.wheel:
            w, h = state.canvas_size
            anchor = c.anchor or (w / 2, h / 2)
            return facade.zoom_wheel(state, c.direction, *anchor)
        if c.direction > 0:
            return facade.zoom_in(state)
        if c.direction < 0:
            return facade.zoom_out(state)
        return False

    def _resize(self, c: cmd.Resize) -> None:
        self.state.canvas_size = (max(1, int(c.width)), max(1, int(c.height)))
