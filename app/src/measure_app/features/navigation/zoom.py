from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ...core.model import ZOOM_MAX, ZOOM_MIN

if TYPE_CHECKING:
    from ...core.state import AppState

ZOOM_STEP: float = 1.2
WHEEL_ZOOM_IN: float = 1.1
WHEEL_ZOOM_OUT: float = 0.9


def clamp_zoom(zoom: float) -> float:
    return max(ZOOM_MIN, min(zoom, ZOOM_MAX))


def zoom_to_point(state: "AppState", factor: float, screen_x: float, screen_y: float) -> bool:
    """Scale the view by ``factor`` keeping whatever is under (screen_x, screen_y) in place."""
    view = state.view
    new_zoom = clamp_zoom(view.zoom * factor)
    if new_zoom == view.zoom:
        return False
    world_x = (screen_x - view.pan_x) / view.zoom
    world_y = (screen_y - view.pan_y) / view.zoom
    view.zoom = new_zoom
    view.pan_x = screen_x - world_x * new_zoom
    view.pan_y = screen_y - world_y * new_zoom
    return True


def _canvas_center(state: "AppState"):
    w, h = state.canvas_size
    return w / 2, h / 2


def zoom_in(state: "AppState") -> bool:
    return zoom_to_point(state, ZOOM_STEP, *_canvas_center(state))


def zoom_out(state: "AppState") -> bool:
    return zoom_to_point(state, 1 / ZOOM_STEP, *_canvas_center(state))


def zoom_on_wheel(state: "AppState", direction: float, screen_x: float, screen_y: float) -> bool:
    """Positive ``direction`` zooms in, negative zooms out."""
    if direction == 0:
        return False
    factor = WHEEL_ZOOM_IN if direction > 0 else WHEEL_ZOOM_OUT
    return zoom_to_point(state, factor, screen_x, screen_y)


def set_zoom(state: "AppState", zoom: float, anchor: Optional[tuple] = None) -> bool:
    anchor = anchor or _canvas_center(state)
    return zoom_to_point(state, clamp_zoom(zoom) / state.view.zoom, *anchor)


def reset_view(state: "AppState") -> None:
    state.view.reset()
