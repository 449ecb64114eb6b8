import pytest

from measure_app.core.area import (
    POLYGON_COLORS,
    build_polygon,
    find_containing_polygon,
    merge,
    next_color,
    polygon_area,
    subtract,
)
from measure_app.core.errors import MergeError
from measure_app.core.model import Calibration, Point

CALIBRATION = Calibration.nominal(100.0)
RECT = [(0, 0), (4, 0), (4, 3), (0, 3)]


def _polygon(pid, coords, calibration=CALIBRATION):
    points = [Point(f"{pid}-{i}", x, y) for i, (x, y) in enumerate(coords)]
    return build_polygon(pid, points, [], calibration, name=pid)


def test_polygon_area_literal():
    assert polygon_area(RECT, CALIBRATION) == pytest.approx(0.0012)


def test_polygon_area_rotation_and_reversal():
    shape = [(0, 0), (250, 10), (300, 200), (120, 260), (-40, 130)]
    expected = polygon_area(shape, CALIBRATION)
    for k in range(len(shape)):
        rotated = shape[k:] + shape[:k]
        assert polygon_area(rotated, CALIBRATION) == pytest.approx(expected)
        assert polygon_area(list(reversed(rotated)), CALIBRATION) == pytest.approx(expected)


def test_polygon_area_degenerate():
    assert polygon_area(RECT, None) == 0.0
    assert polygon_area(RECT[:2], CALIBRATION) == 0.0


def test_subtract_clamps_at_zero():
    container = _polygon("room", [(0, 0), (100, 0), (100, 100), (0, 100)])
    hole = _polygon("hole", [(0, 0), (300, 0), (300, 300), (0, 300)])
    assert subtract(container, hole) == 0.0
    assert container.area_m2 == 0.0
    assert container.subtracts == [hole]


def test_subtract_deducts_hole():
    container = _polygon("room", [(0, 0), (200, 0), (200, 200), (0, 200)])
    hole = _polygon("hole", [(50, 50), (150, 50), (150, 150), (50, 150)])
    assert subtract(container, hole) == pytest.approx(3.0)


def test_find_containing_polygon_uses_centre_only():
    room = _polygon("room", [(0, 0), (100, 0), (100, 100), (0, 100)])
    # pokes out on the right but its vertex average is inside
    overhang = [(60, 40), (130, 40), (130, 60), (60, 60)]
    assert find_containing_polygon(overhang, [room]) is room
    assert find_containing_polygon([(200, 200), (210, 200), (210, 210)], [room]) is None
    assert find_containing_polygon([], [room]) is None


def test_merge_rejects_non_last_polygon():
    polygons = [_polygon(f"p{i}", RECT) for i in range(3)]
    before = list(polygons)
    with pytest.raises(MergeError, match="last polygon"):
        merge(polygons, "p0")
    assert polygons == before


def test_merge_folds_last_into_previous():
    polygons = [_polygon(f"p{i}", RECT) for i in range(3)]
    polygons[1].color = "#123456"
    absorbed = polygons[2]
    target = merge(polygons, "p2")
    assert target is polygons[1]
    assert len(polygons) == 2
    assert target.area_m2 == pytest.approx(0.0024)
    assert target.merged_polygons == [absorbed]
    assert absorbed.color == "#123456"


def test_merge_needs_two_polygons():
    with pytest.raises(MergeError):
        merge([_polygon("p0", RECT)], "p0")


def test_colors_cycle():
    assert next_color(0) == POLYGON_COLORS[0]
    assert next_color(len(POLYGON_COLORS)) == POLYGON_COLORS[0]
