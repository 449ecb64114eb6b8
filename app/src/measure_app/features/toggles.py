from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.state import AppState


def toggle_length_labels(state: "AppState") -> bool:
    state.show_length_labels = not state.show_length_labels
    state.notify("Length labels shown" if state.show_length_labels else "Length labels hidden")
    return state.show_length_labels


def toggle_angle_snap(state: "AppState") -> bool:
    state.angle_snap_enabled = not state.angle_snap_enabled
    state.notify(f"90° angle snap {'enabled' if state.angle_snap_enabled else 'disabled'}")
    return state.angle_snap_enabled


def toggle_point_snap(state: "AppState") -> bool:
    state.point_snap_enabled = not state.point_snap_enabled
    state.notify(f"Point snap {'enabled' if state.point_snap_enabled else 'disabled'}")
    return state.point_snap_enabled
