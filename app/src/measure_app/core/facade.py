from __future__ import annotations

"""
Unified facade that re-exports feature functions from modular packages.
The controller and the Tk client call through these names only.
"""

# Scale
from ..features.scale.scale import (
    submit_calibration as scale_submit,
    cancel_calibration as scale_cancel,
    reset_scale as scale_reset,
    clear_all as scale_clear_all,
    is_awaiting_scale as scale_is_pending,
)

# Draw
from ..features.editing.draw import (
    set_draw_mode as draw_set_mode,
    draw_on_canvas_click as draw_on_canvas_click,
    draw_on_motion as draw_on_motion,
    cancel_drawing as draw_cancel,
)

# Rectangle
from ..features.editing.rectangle import (
    rectangle_on_press as rectangle_press,
    rectangle_on_motion as rectangle_motion,
    rectangle_on_release as rectangle_release,
)

# Walls / windows
from ..features.editing.walls import (
    walls_on_canvas_click as walls_on_canvas_click,
    apply_wall_length as walls_apply_length,
    cancel_wall_length as walls_cancel_length,
    edit_wall_length as walls_edit_length,
)

# Selection
from ..features.editing.select import (
    select_on_canvas_click as select_on_canvas_click,
    select_on_press as select_press,
    select_on_release as select_release,
    select_region as select_region,
    delete_selected as select_delete,
)

# Polygons
from ..features.editing.polygons import (
    rename_polygon as polygon_rename,
    recolor_polygon as polygon_recolor,
    merge_polygon as polygon_merge,
)

# History + toggles
from ..features.history import undo as history_undo
from ..features.toggles import (
    toggle_length_labels as toggle_labels,
    toggle_angle_snap as toggle_angle_snap,
    toggle_point_snap as toggle_point_snap,
)

# Navigation
from ..features.navigation.pan import (
    pan_canvas as pan_canvas,
    on_pan_start as pan_on_start,
    on_pan_move as pan_on_move,
    on_pan_end as pan_on_end,
)
from ..features.navigation.zoom import (
    zoom_in as zoom_in,
    zoom_out as zoom_out,
    zoom_on_wheel as zoom_wheel,
    reset_view as zoom_reset,
)

# File I/O
from ..file_io import (
    load_document as file_load_document,
    load_config as file_load_config,
    save_config as file_save_config,
)

# Export + render
from ..app_io.export_mod import (
    export_png as export_png,
    export_csv as export_csv,
)
from ..ui.render import render_scene as render_scene
