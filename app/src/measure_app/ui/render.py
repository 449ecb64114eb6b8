"""Pillow rasterisation of the measurement scene.

``render_scene`` draws the live canvas; ``render_export`` re-projects the same
drawing-space data onto an offscreen image sized to the chosen region and
stacks the information footer underneath.  Coordinates are projected to
pixels before drawing, so marker sizes and stroke widths below are already in
output pixels and do not scale with zoom.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from ..core.coords import Region, clip_region, export_transform, full_image_region
from ..core.errors import ExportError
from ..core.geometry import polygon_centroid
from ..core.model import Line, LineKind, Polygon, ToolMode

if TYPE_CHECKING:
    from ..core.state import AppState

logger = logging.getLogger(__name__)

Project = Callable[[Tuple[float, float]], Tuple[float, float]]

# ---------- Visual Style Configuration ----------
CANVAS_BACKGROUND: str = '#f3f4f6'
LINE_COLOR: str = '#2563eb'
PIPE_COLOR: str = '#16a34a'
RECTANGLE_COLOR: str = '#7c3aed'
SUBTRACT_COLOR: str = '#dc2626'
WALL_COLOR: str = '#374151'
WINDOW_COLOR: str = '#0ea5e9'
CALIBRATION_COLOR: str = '#f59e0b'
SELECTED_COLOR: str = '#f97316'
LINE_WIDTH: int = 3

POLYGON_FILL_ALPHA: int = 64  # 0.25
HOLE_FILL_ALPHA: int = 77  # 0.3
LABEL_ALPHA: int = 230  # 0.9
LABEL_FONT_SIZE: int = 16
LABEL_PADDING: int = 6

POINT_COLOR: str = '#1e40af'
POINT_RADIUS: int = 5
HOVER_RADIUS: int = 7
START_POINT_COLOR: str = '#dc2626'

PREVIEW_COLOR: str = '#64748b'
PREVIEW_SNAPPED_COLOR: str = '#16a34a'
PREVIEW_DASH: Tuple[int, int] = (5, 5)

# Export footer
FOOTER_BACKGROUND: Tuple[int, int, int, int] = (37, 99, 235, 242)  # rgba(37,99,235,0.95)
FOOTER_TEXT: str = '#ffffff'
FOOTER_HEADER_HEIGHT: int = 70  # project name (40) + date/time (30)
FOOTER_STATS_LINE_HEIGHT: int = 22
FOOTER_GAP: int = 15
FOOTER_LIST_HEADING_HEIGHT: int = 25
FOOTER_LIST_ROW_HEIGHT: int = 18
FOOTER_BOTTOM_PADDING: int = 20
FOOTER_TEXT_X: int = 30

_KIND_COLORS = {
    LineKind.LINE: LINE_COLOR,
    LineKind.PIPE: PIPE_COLOR,
    LineKind.SUBTRACT: SUBTRACT_COLOR,
    LineKind.WALL: WALL_COLOR,
    LineKind.WINDOW: WINDOW_COLOR,
    LineKind.CALIBRATION: CALIBRATION_COLOR,
}


@dataclass(frozen=True)
class FooterLayout:
    height: int
    title_y: int
    date_y: int
    stats_y: Tuple[int, ...]
    list_heading_y: Optional[int]
    row_ys: Tuple[int, ...]


def footer_layout(polygon_count: int, has_pipes: bool) -> FooterLayout:
    """Footer geometry as a pure function of the counts (y values relative to the footer top)."""
    stats_height = FOOTER_STATS_LINE_HEIGHT * (2 if has_pipes else 1)
    list_height = FOOTER_LIST_HEADING_HEIGHT + FOOTER_LIST_ROW_HEIGHT * polygon_count if polygon_count > 0 else 0
    height = FOOTER_HEADER_HEIGHT + stats_height + FOOTER_GAP + list_height + FOOTER_BOTTOM_PADDING

    stats_start = FOOTER_HEADER_HEIGHT + FOOTER_GAP
    center = stats_start + stats_height // 2
    half = FOOTER_STATS_LINE_HEIGHT // 2
    stats_y = (center - half, center + half) if has_pipes else (center,)

    list_start = stats_start + stats_height + FOOTER_GAP
    heading_y = list_start + 10 if polygon_count > 0 else None
    rows = tuple(
        list_start + FOOTER_LIST_HEADING_HEIGHT + 9 + FOOTER_LIST_ROW_HEIGHT * i for i in range(polygon_count)
    )
    return FooterLayout(height, 20, 55, stats_y, heading_y, rows)


def _font(size: int, bold: bool = False) -> ImageFont.ImageFont:
    if bold:
        try:
            return ImageFont.truetype("DejaVuSans-Bold.ttf", size)
        except OSError:
            pass
    return ImageFont.load_default(size=size)


def _rgba(color: str, alpha: int = 255) -> Tuple[int, int, int, int]:
    r, g, b = ImageColor.getrgb(color)[:3]
    return (r, g, b, alpha)


def _dashed_line(draw: ImageDraw.ImageDraw, a, b, fill, width: int, dash: Sequence[int] = PREVIEW_DASH) -> None:
    dx, dy = b[0] - a[0], b[1] - a[1]
    length = (dx * dx + dy * dy) ** 0.5
    if length == 0:
        return
    on, off = dash
    pos = 0.0
    while pos < length:
        end = min(pos + on, length)
        draw.line(
            [(a[0] + dx * pos / length, a[1] + dy * pos / length), (a[0] + dx * end / length, a[1] + dy * end / length)],
            fill=fill,
            width=width,
        )
        pos = end + off


def _label(draw: ImageDraw.ImageDraw, center, text: str, background: str, font) -> None:
    left, top, right, bottom = draw.textbbox(center, text, font=font, anchor="mm")
    draw.rounded_rectangle(
        (left - LABEL_PADDING, top - LABEL_PADDING, right + LABEL_PADDING, bottom + LABEL_PADDING),
        radius=6,
        fill=_rgba(background, LABEL_ALPHA),
    )
    draw.text(center, text, fill=FOOTER_TEXT, font=font, anchor="mm")


def _line_color(state: "AppState", line: Line, owners: dict) -> str:
    if line.id in state.selected_lines:
        return SELECTED_COLOR
    if line.kind is LineKind.LINE and line.id in owners:
        return owners[line.id]
    return _KIND_COLORS[line.kind]


def _owner_colors(polygons: Iterable[Polygon]) -> dict:
    owners = {}
    for polygon in polygons:
        color = RECTANGLE_COLOR if polygon.is_rectangle else polygon.color
        for member in polygon.iter_family():
            if member is polygon or member in polygon.merged_polygons:
                for line in member.lines:
                    owners.setdefault(line.id, color)
    return owners


def _hole_line_ids(polygons: Iterable[Polygon]) -> set:
    return {line.id for polygon in polygons for hole in polygon.subtracts for line in hole.lines}


def draw_layers(
    canvas: Image.Image,
    state: "AppState",
    project: Project,
    show_points: bool = True,
) -> Image.Image:
    """Polygons, lines and labels (and optionally points) projected onto ``canvas``."""
    overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    fill = ImageDraw.Draw(overlay)
    for polygon in state.polygons:
        for member in [polygon] + list(polygon.merged_polygons):
            if len(member.points) >= 3:
                fill.polygon([project(p.xy) for p in member.points], fill=_rgba(polygon.color, POLYGON_FILL_ALPHA))
        for hole in polygon.subtracts:
            if len(hole.points) >= 3:
                coords = [project(p.xy) for p in hole.points]
                fill.polygon(coords, fill=_rgba(SUBTRACT_COLOR, HOLE_FILL_ALPHA), outline=SUBTRACT_COLOR, width=LINE_WIDTH)
    canvas = Image.alpha_composite(canvas, overlay)

    draw = ImageDraw.Draw(canvas)
    owners = _owner_colors(state.polygons)
    hole_lines = _hole_line_ids(state.polygons)
    for line in state.graph.lines:
        draw.line([project(line.start.xy), project(line.end.xy)], fill=_line_color(state, line, owners), width=LINE_WIDTH)

    if state.show_length_labels:
        font = _font(LABEL_FONT_SIZE)
        labelled = set()
        for line in state.graph.lines:
            if not line.length_m or line.id in hole_lines:
                continue
            group = state.graph.group_of(line)
            if group is not None:
                # one label per wall/window, on its logical edge
                if group.id in labelled:
                    continue
                labelled.add(group.id)
                a, b = project(group.start.xy), project(group.end.xy)
            else:
                a, b = project(line.start.xy), project(line.end.xy)
            _label(draw, ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2), f"{line.length_m:.2f}m", _KIND_COLORS[line.kind], font)

    if show_points:
        for point in state.graph.points:
            x, y = project(point.xy)
            color = SELECTED_COLOR if point.id in state.selected_points else POINT_COLOR
            draw.ellipse((x - POINT_RADIUS, y - POINT_RADIUS, x + POINT_RADIUS, y + POINT_RADIUS), fill=color)
    return canvas


def _draw_preview(canvas: Image.Image, state: "AppState", project: Project) -> None:
    draw = ImageDraw.Draw(canvas)
    gesture = state.gesture
    cursor = gesture.cursor

    pending = state.pending_length
    if pending is not None and pending.line is not None:
        a, b = project(pending.line.start.xy), project(pending.line.end.xy)
        _dashed_line(draw, a, b, CALIBRATION_COLOR, LINE_WIDTH)

    if gesture.rectangle_start is not None and cursor is not None:
        a, b = project(gesture.rectangle_start.xy), project(cursor.xy)
        corners = [a, (b[0], a[1]), b, (a[0], b[1])]
        color = SUBTRACT_COLOR if state.tool is ToolMode.SUBTRACT else RECTANGLE_COLOR
        for i in range(4):
            _dashed_line(draw, corners[i], corners[(i + 1) % 4], color, LINE_WIDTH)

    if gesture.line_start is not None:
        sx, sy = project(gesture.line_start.xy)
        if cursor is not None:
            end = project(cursor.xy)
            if cursor.is_angle_snapped:
                draw.line([(sx, sy), end], fill=PREVIEW_SNAPPED_COLOR, width=LINE_WIDTH)
                _label(draw, (end[0] + 24, end[1] - 18), f"{cursor.angle}°", PREVIEW_SNAPPED_COLOR, _font(12))
            else:
                _dashed_line(draw, (sx, sy), end, PREVIEW_COLOR, LINE_WIDTH)
        r = POINT_RADIUS + 1
        draw.ellipse((sx - r, sy - r, sx + r, sy + r), fill=START_POINT_COLOR)

    if cursor is not None and cursor.point is not None:
        hx, hy = project(cursor.point.xy)
        draw.ellipse((hx - HOVER_RADIUS, hy - HOVER_RADIUS, hx + HOVER_RADIUS, hy + HOVER_RADIUS), outline=PREVIEW_SNAPPED_COLOR, width=2)

    if gesture.region_start is not None and cursor is not None:
        a, b = project(gesture.region_start), project(cursor.xy)
        x0, x1 = sorted((a[0], b[0]))
        y0, y1 = sorted((a[1], b[1]))
        draw.rectangle((x0, y0, x1, y1), outline=SELECTED_COLOR, width=1)


def _draw_polygon_labels(canvas: Image.Image, state: "AppState", project: Project) -> None:
    """Name and net area at each polygon's centroid, with a one-pixel shadow."""
    draw = ImageDraw.Draw(canvas)
    font = _font(13, bold=True)
    for polygon in state.polygons:
        centroid = polygon_centroid(polygon.coords)
        if centroid is None:
            continue
        cx, cy = project(centroid)
        cy -= 14
        text = f"{polygon.name}\n{polygon.area_m2:.2f} m²"
        draw.multiline_text((cx + 1, cy + 1), text, fill='#ffffff', font=font, anchor="ma", align="center")
        draw.multiline_text((cx, cy), text, fill='#111827', font=font, anchor="ma", align="center")


def render_scene(state: "AppState", size: Optional[Tuple[int, int]] = None) -> Image.Image:
    """Rasterise the live view at the current zoom and pan."""
    size = size or state.canvas_size
    canvas = Image.new("RGBA", size, _rgba(CANVAS_BACKGROUND))
    placement = state.placement()
    if placement is not None and state.image is not None and state.image.source is not None:
        zoom = state.view.zoom
        w = max(1, int(round(placement.width * zoom)))
        h = max(1, int(round(placement.height * zoom)))
        x, y = state.to_screen(0.0, 0.0)
        background = state.image.source.convert("RGBA").resize((w, h), Image.Resampling.LANCZOS)
        canvas.paste(background, (int(round(x)), int(round(y))))
    canvas = draw_layers(canvas, state, lambda xy: state.to_screen(*xy))
    _draw_polygon_labels(canvas, state, lambda xy: state.to_screen(*xy))
    _draw_preview(canvas, state, lambda xy: state.to_screen(*xy))
    return canvas


def render_export(
    state: "AppState",
    region: Optional[Region] = None,
    when: Optional[datetime] = None,
    natural_resolution: bool = False,
) -> Image.Image:
    """Re-project the drawing onto an offscreen raster and append the footer.

    The live view's zoom and pan play no part: everything goes through the
    image placement at zoom 1, so the output is identical at any view state.
    """
    placement = state.placement()
    if placement is None or state.image is None:
        raise ExportError("Please upload a drawing first")
    if region is None:
        region = full_image_region(placement)
    region = clip_region(region, placement)
    min_side = state.config.min_selection_px
    if region[2] < min_side or region[3] < min_side:
        raise ExportError("Selection too small")

    x, y, w, h = region
    factor = 1 / placement.scale if natural_resolution else 1.0
    out_w = max(1, int(round(w * factor)))
    out_h = max(1, int(round(h * factor)))
    transform = export_transform(region, (out_w, out_h))

    canvas = Image.new("RGBA", (out_w, out_h), (255, 255, 255, 255))
    source = state.image.source
    if source is not None:
        s = placement.scale
        crop = source.convert("RGBA").crop((x / s, y / s, (x + w) / s, (y + h) / s))
        canvas.paste(crop.resize((out_w, out_h), Image.Resampling.LANCZOS), (0, 0))
    canvas = draw_layers(canvas, state, transform.apply)
    logger.debug("export raster %dx%d for region %s", out_w, out_h, region)
    return _with_footer(canvas, state, when or datetime.now())


def _with_footer(image: Image.Image, state: "AppState", when: datetime) -> Image.Image:
    polygons = state.polygons
    pipes = state.pipes()
    layout = footer_layout(len(polygons), bool(pipes))
    out = Image.new("RGBA", (image.width, image.height + layout.height), (255, 255, 255, 255))
    out.paste(image, (0, 0))

    top = image.height
    draw = ImageDraw.Draw(out)
    draw.rectangle((0, top, out.width, out.height), fill=FOOTER_BACKGROUND)
    cx = out.width / 2
    name = state.project_name.strip() or "Project"
    draw.text((cx, top + layout.title_y), name, fill=FOOTER_TEXT, font=_font(24, bold=True), anchor="mm")
    draw.text((cx, top + layout.date_y), when.strftime("%d/%m/%Y %H:%M"), fill=FOOTER_TEXT, font=_font(14), anchor="mm")

    stats: List[str] = [f"Total Area: {state.total_area():.2f} m²"]
    if pipes:
        stats.append(f"Total Pipes: {state.total_pipe_length():.2f} m")
    stats_font = _font(16)
    for text, y in zip(stats, layout.stats_y):
        draw.text((FOOTER_TEXT_X, top + y), text, fill=FOOTER_TEXT, font=stats_font, anchor="lm")

    if layout.list_heading_y is not None:
        draw.text((FOOTER_TEXT_X, top + layout.list_heading_y), "Polygons:", fill=FOOTER_TEXT, font=_font(16, bold=True), anchor="lm")
        row_font = _font(14)
        for index, (polygon, y) in enumerate(zip(polygons, layout.row_ys)):
            label = polygon.name or f"Polygon {index + 1}"
            draw.text((FOOTER_TEXT_X, top + y), f"  • {label}: {polygon.area_m2:.2f} m²", fill=FOOTER_TEXT, font=row_font, anchor="lm")
    return out
