from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict

from .errors import LoadError

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    snap_radius_px: float = 12.0
    selection_radius_px: float = 20.0
    line_hit_radius_px: float = 15.0
    angle_snap_tolerance_deg: float = 5.0
    image_margin_px: float = 40.0
    window_thickness_px: float = 15.0
    nominal_pixels_per_meter: float = 100.0
    max_upload_bytes: int = 50 * 1024 * 1024
    pdf_render_zoom: float = 2.0
    min_selection_px: float = 10.0
    chain_lines: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        if not isinstance(data, dict):
            raise LoadError("Configuration must be a JSON object")
        known = {f.name: f for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("ignoring unknown config key %r", key)
                continue
            default = getattr(cls, key)
            if isinstance(default, bool):
                ok = isinstance(value, bool)
            elif isinstance(default, (int, float)):
                ok = isinstance(value, (int, float)) and not isinstance(value, bool)
            else:
                ok = isinstance(value, str)
            if not ok:
                raise LoadError(f"Invalid value for {key}: {value!r}")
            values[key] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
