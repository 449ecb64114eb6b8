from __future__ import annotations

import csv
import io
import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING, Optional, Tuple

from ..core.coords import Region
from ..core.errors import ExportError
from ..ui.render import render_export

if TYPE_CHECKING:
    from ..core.state import AppState

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME: str = "Project"
_UNSAFE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def slugify(project_name: str) -> str:
    """Filesystem-safe lowercase form: every non-alphanumeric becomes '-'."""
    name = (project_name or "").strip() or DEFAULT_PROJECT_NAME
    slug = _UNSAFE.sub("-", name).lower()
    if not slug.strip("-"):
        raise ExportError(f"Project name {project_name!r} has no usable characters")
    return slug


def export_filename(project_name: str, when: Optional[datetime] = None) -> str:
    when = when or datetime.now()
    return f"{slugify(project_name)}-{when.strftime('%Y%m%dT%H%M%S')}.png"


def export_png(
    state: "AppState",
    region: Optional[Region] = None,
    when: Optional[datetime] = None,
    natural_resolution: bool = False,
) -> Tuple[str, bytes]:
    """Render the export raster and encode it; returns (suggested filename, PNG bytes)."""
    when = when or datetime.now()
    filename = export_filename(state.project_name, when)
    image = render_export(state, region, when, natural_resolution)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    logger.info("exported %s (%dx%d)", filename, image.width, image.height)
    return filename, buffer.getvalue()


def save_png(state: "AppState", path: str, region: Optional[Region] = None) -> str:
    filename, data = export_png(state, region)
    try:
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise ExportError(f"Failed to write {path}: {e}") from e
    state.notify("Screenshot saved")
    return filename


def export_csv(state: "AppState", stream) -> int:
    """Write polygon areas and pipe lengths as CSV rows; returns the number of data rows."""
    writer = csv.writer(stream)
    writer.writerow(["type", "id", "name", "value", "unit", "holes", "merged"])
    rows = 0
    for polygon in state.polygons:
        writer.writerow([
            "polygon",
            polygon.id,
            polygon.name,
            f"{polygon.area_m2:.4f}",
            "m2",
            len(polygon.subtracts),
            len(polygon.merged_polygons),
        ])
        rows += 1
    for pipe in state.pipes():
        writer.writerow(["pipe", pipe.id, "", f"{pipe.length_m or 0.0:.4f}", "m", "", ""])
        rows += 1
    return rows


def save_csv(state: "AppState", path: str) -> int:
    if not state.polygons and not state.pipes():
        raise ExportError("No measurements to export.")
    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            rows = export_csv(state, f)
    except OSError as e:
        raise ExportError(f"Failed to export CSV: {e}") from e
    state.notify("Measurements exported successfully.")
    return rows
