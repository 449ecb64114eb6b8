import io
from datetime import datetime

import pytest

from measure_app.app_io.export_mod import export_csv, export_filename, export_png, slugify
from measure_app.core import commands as cmd
from measure_app.core.errors import ExportError
from measure_app.core.model import Calibration, ToolMode
from measure_app.features.editing.draw import set_draw_mode
from measure_app.ui.render import footer_layout, render_export, render_scene

WHEN = datetime(2024, 3, 5, 14, 7, 9)


def test_footer_without_polygons_or_pipes():
    layout = footer_layout(0, False)
    assert layout.height == 127
    assert (layout.title_y, layout.date_y) == (20, 55)
    assert layout.stats_y == (96,)
    assert layout.list_heading_y is None
    assert layout.row_ys == ()


def test_footer_with_polygons_and_pipes():
    layout = footer_layout(3, True)
    assert layout.height == 228
    assert layout.stats_y == (96, 118)
    assert layout.list_heading_y == 154
    assert layout.row_ys == (178, 196, 214)


@pytest.mark.parametrize("count", [1, 2, 7])
def test_footer_grows_by_row(count):
    base = footer_layout(0, False).height
    assert footer_layout(count, False).height == base + 25 + 18 * count
    assert footer_layout(count, True).height == base + 25 + 18 * count + 22


def test_slugify():
    assert slugify("My Flat #2") == "my-flat--2"
    assert slugify("") == "project"
    with pytest.raises(ExportError):
        slugify("%%%")


def test_export_filename():
    assert export_filename("My Flat #2", WHEN) == "my-flat--2-20240305T140709.png"


def test_render_scene_matches_canvas(controller, background):
    state = controller.state
    controller.load_image(background)
    assert render_scene(state).size == (800, 600)
    assert render_scene(state, (320, 240)).size == (320, 240)


def test_render_scene_with_polygons(controller, draw_square):
    state = controller.state
    draw_square(state)
    controller.dispatch(cmd.Zoom(1))
    image = render_scene(state)
    # the top-left corner marker sits where the corner projects to
    x, y = state.to_screen(*state.polygons[0].points[0].xy)
    assert image.getpixel((int(round(x)), int(round(y))))[:3] == (0x1e, 0x40, 0xaf)


def test_export_full_image(controller, background):
    state = controller.state
    controller.load_image(background)
    # 1000x500 fitted into 800x600 with a 40 px margin
    image = render_export(state, when=WHEN)
    assert image.size == (760, 380 + 127)
    image = render_export(state, when=WHEN, natural_resolution=True)
    assert image.size == (1000, 500 + 127)


def test_export_ignores_view_transform(controller, background):
    state = controller.state
    controller.load_image(background)
    plain = render_export(state, when=WHEN)
    state.view.zoom = 3.0
    state.view.pan_x, state.view.pan_y = -120.0, 45.0
    assert render_export(state, when=WHEN).tobytes() == plain.tobytes()


def test_export_region_and_footer_rows(controller, background, draw_square):
    state = controller.state
    controller.load_image(background)
    state.calibration = Calibration.nominal(100.0)
    draw_square(state, origin=(100.0, 100.0))
    image = render_export(state, region=(50, 50, 300, 250), when=WHEN)
    assert image.size == (300, 250 + footer_layout(1, False).height)


def test_export_rejects_tiny_region(controller, background):
    controller.load_image(background)
    with pytest.raises(ExportError, match="too small"):
        render_export(controller.state, region=(10, 10, 5, 300))


def test_export_png_bytes(controller, background):
    controller.load_image(background)
    filename, data = export_png(controller.state, when=WHEN)
    assert filename == "project-20240305T140709.png"
    assert data.startswith(b"\x89PNG")


def test_export_csv(controller, draw_square, draw_line):
    state = controller.state
    draw_square(state)
    set_draw_mode(state, ToolMode.PIPE)
    draw_line(state, (500, 100), (500, 350))
    buffer = io.StringIO()
    assert export_csv(state, buffer) == 2
    rows = buffer.getvalue().splitlines()
    assert rows[0] == "type,id,name,value,unit,holes,merged"
    assert rows[1].startswith("polygon,") and ",Polygon 1,4.0000,m2,0,0" in rows[1]
    assert rows[2].startswith("pipe,") and rows[2].endswith(",2.5000,m,,")
