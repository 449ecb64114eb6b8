"""Screen <-> drawing space mapping.

Drawing space is anchored to the top-left corner of the background image as
placed at zoom 1, so stored points do not depend on zoom or pan.  The
placement is recomputed from canvas size and image natural size on every
call and never cached across zoom changes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .model import BackgroundImage, ViewTransform

IMAGE_MARGIN_PX: int = 40

Region = Tuple[float, float, float, float]  # x, y, width, height in drawing space


@dataclass(frozen=True)
class ImagePlacement:
    x: float
    y: float
    width: float
    height: float
    scale: float


@dataclass(frozen=True)
class ExportTransform:
    origin_x: float
    origin_y: float
    scale_x: float
    scale_y: float

    def apply(self, xy: Tuple[float, float]) -> Tuple[float, float]:
        return ((xy[0] - self.origin_x) * self.scale_x, (xy[1] - self.origin_y) * self.scale_y)


def image_placement(
    image: Optional[BackgroundImage],
    canvas_size: Tuple[int, int],
    margin: float = IMAGE_MARGIN_PX,
) -> Optional[ImagePlacement]:
    """Centered aspect-fit rectangle of the image at zoom 1; never upscales."""
    if image is None or image.width <= 0 or image.height <= 0:
        return None
    canvas_w, canvas_h = canvas_size
    avail_w = canvas_w - margin
    avail_h = canvas_h - margin
    if avail_w <= 0 or avail_h <= 0:
        # canvas smaller than the margin: fit without it
        avail_w, avail_h = max(canvas_w, 1), max(canvas_h, 1)
    scale = min(avail_w / image.width, avail_h / image.height, 1.0)
    width = image.width * scale
    height = image.height * scale
    return ImagePlacement(
        x=(canvas_w - width) / 2,
        y=(canvas_h - height) / 2,
        width=width,
        height=height,
        scale=scale,
    )


def to_drawing_space(
    screen_x: float,
    screen_y: float,
    view: ViewTransform,
    placement: Optional[ImagePlacement] = None,
) -> Tuple[float, float]:
    x = (screen_x - view.pan_x) / view.zoom
    y = (screen_y - view.pan_y) / view.zoom
    if placement is not None:
        x -= placement.x
        y -= placement.y
    return (x, y)


def to_screen_space(
    x: float,
    y: float,
    view: ViewTransform,
    placement: Optional[ImagePlacement] = None,
) -> Tuple[float, float]:
    if placement is not None:
        x += placement.x
        y += placement.y
    return (x * view.zoom + view.pan_x, y * view.zoom + view.pan_y)


def full_image_region(placement: ImagePlacement) -> Region:
    return (0.0, 0.0, placement.width, placement.height)


def normalize_region(c1: Tuple[float, float], c2: Tuple[float, float]) -> Region:
    x = min(c1[0], c2[0])
    y = min(c1[1], c2[1])
    return (x, y, abs(c2[0] - c1[0]), abs(c2[1] - c1[1]))


def clip_region(region: Region, placement: Optional[ImagePlacement]) -> Region:
    """Clip a drawing-space region to the image rectangle (no-op without an image)."""
    if placement is None:
        return region
    x, y, w, h = region
    left = max(0.0, min(x, placement.width))
    top = max(0.0, min(y, placement.height))
    right = max(0.0, min(x + w, placement.width))
    bottom = max(0.0, min(y + h, placement.height))
    return (left, top, right - left, bottom - top)


def export_transform(region: Region, output_size: Tuple[int, int]) -> ExportTransform:
    """Map drawing space onto an export raster covering ``region``."""
    x, y, w, h = region
    out_w, out_h = output_size
    scale_x = out_w / w if w > 0 else 1.0
    scale_y = out_h / h if h > 0 else 1.0
    return ExportTransform(origin_x=x, origin_y=y, scale_x=scale_x, scale_y=scale_y)
