from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from PIL import ImageColor

from ...core.area import merge
from ...core.errors import MergeError
from ...core.model import Polygon
from .. import history

if TYPE_CHECKING:
    from ...core.state import AppState

logger = logging.getLogger(__name__)


def find_polygon(state: "AppState", polygon_id: str) -> Optional[Polygon]:
    for polygon in state.polygons:
        if polygon.id == polygon_id:
            return polygon
    return None


def rename_polygon(state: "AppState", polygon_id: str, name: str) -> bool:
    polygon = find_polygon(state, polygon_id)
    if polygon is None:
        return False
    name = (name or "").strip()
    if not name:
        name = f"Polygon {state.polygons.index(polygon) + 1}"
    polygon.name = name
    logger.debug("renamed %s -> %s", polygon_id, name)
    return True


def recolor_polygon(state: "AppState", polygon_id: str, color: str) -> bool:
    polygon = find_polygon(state, polygon_id)
    if polygon is None:
        return False
    try:
        r, g, b = ImageColor.getrgb(color)[:3]
    except ValueError:
        logger.warning("unknown color %r for %s", color, polygon_id)
        state.notify(f"Unknown color: {color}")
        return False
    polygon.color = f"#{r:02x}{g:02x}{b:02x}"
    for merged in polygon.merged_polygons:
        merged.color = polygon.color
    return True


def merge_polygon(state: "AppState", polygon_id: Optional[str] = None) -> Optional[Polygon]:
    """Fold the newest polygon into the one before it."""
    if polygon_id is None and state.polygons:
        polygon_id = state.polygons[-1].id
    absorbed = state.polygons[-1] if state.polygons else None
    target = state.polygons[-2] if len(state.polygons) >= 2 else None
    snapshot = (target.area_m2, len(target.subtracts)) if target is not None else (0.0, 0)
    previous_color = absorbed.color if absorbed is not None else None
    try:
        target = merge(state.polygons, polygon_id)
    except MergeError as exc:
        logger.warning("merge rejected: %s", exc)
        state.notify(str(exc))
        return None
    history.record(
        state,
        "merge",
        target=target,
        absorbed=absorbed,
        previous_area=snapshot[0],
        subtract_count=snapshot[1],
        previous_color=previous_color,
    )
    state.notify(f"Merged into {target.name}. Total: {target.area_m2:.2f} m²")
    return target
