"""Shared fixtures for the measurement core tests.

No background image is loaded unless a test asks for one, so screen and
drawing coordinates coincide at the default view.
"""
import pytest
from PIL import Image

from measure_app.core.controller import MeasureController
from measure_app.core.model import BackgroundImage, Calibration
from measure_app.core.state import AppState
from measure_app.features.editing.draw import draw_on_canvas_click


@pytest.fixture
def messages():
    """Status strings emitted by the state, in order."""
    return []


@pytest.fixture
def state(messages):
    return AppState(status_sink=messages.append)


@pytest.fixture
def calibrated_state(state):
    """100 px = 1 m."""
    state.calibration = Calibration.nominal(100.0)
    return state


@pytest.fixture
def controller(calibrated_state):
    return MeasureController(state=calibrated_state)


@pytest.fixture
def draw_line():
    """Two clicks with the current tool: returns the state's newest line, if any."""
    def _draw(state, a, b):
        draw_on_canvas_click(state, *a)
        draw_on_canvas_click(state, *b)
        return state.graph.lines[-1] if state.graph.lines else None
    return _draw


@pytest.fixture
def draw_square(draw_line):
    """Closed 200x200 px square with its top-left corner at ``origin``."""
    def _draw(state, origin=(100.0, 100.0), side=200.0):
        x, y = origin
        corners = [(x, y), (x + side, y), (x + side, y + side), (x, y + side)]
        for i, a in enumerate(corners):
            draw_line(state, a, corners[(i + 1) % 4])
        return state.polygons[-1] if state.polygons else None
    return _draw


@pytest.fixture
def background():
    """A 1000x500 white raster as the loader would hand it over."""
    img = Image.new("RGB", (1000, 500), (255, 255, 255))
    return BackgroundImage(width=img.width, height=img.height, source=img)
