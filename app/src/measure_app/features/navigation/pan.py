from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...core.state import AppState


def pan_canvas(state: "AppState", dx: float, dy: float) -> None:
    state.view.pan_x += dx
    state.view.pan_y += dy


def on_pan_start(state: "AppState", screen_x: float, screen_y: float) -> None:
    state.pan_anchor = (screen_x - state.view.pan_x, screen_y - state.view.pan_y)


def on_pan_move(state: "AppState", screen_x: float, screen_y: float) -> bool:
    if state.pan_anchor is None:
        return False
    state.view.pan_x = screen_x - state.pan_anchor[0]
    state.view.pan_y = screen_y - state.pan_anchor[1]
    return True


def on_pan_end(state: "AppState") -> None:
    state.pan_anchor = None
