import itertools

import pytest

from measure_app.core.graph import DrawingGraph, detect_closed_polygon, wall_segments
from measure_app.core.model import LineKind, Point


def _ids():
    counter = itertools.count(1)
    return lambda prefix: f"{prefix}-{next(counter)}"


@pytest.fixture
def square_with_tail():
    """4-cycle A-B-C-D-A plus a dangling A-E."""
    graph = DrawingGraph()
    a, b, c, d, e = (
        Point("A", 0, 0), Point("B", 10, 0), Point("C", 10, 10), Point("D", 0, 10), Point("E", -10, -10)
    )
    for i, (p, q) in enumerate([(a, b), (b, c), (c, d), (d, a), (a, e)]):
        graph.connect(f"l{i}", p, q)
    return graph


def test_cycle_excludes_dangling_line(square_with_tail):
    cycle = detect_closed_polygon(square_with_tail)
    assert [p.id for p in cycle] == ["A", "B", "C", "D"]


def test_claimed_points_are_not_detected_again(square_with_tail):
    cycle = detect_closed_polygon(square_with_tail)
    assert detect_closed_polygon(square_with_tail, claimed=[p.id for p in cycle]) is None


def test_open_chain_has_no_cycle():
    graph = DrawingGraph()
    a, b, c = Point("a", 0, 0), Point("b", 1, 0), Point("c", 1, 1)
    graph.connect("l1", a, b)
    graph.connect("l2", b, c)
    assert detect_closed_polygon(graph) is None


def test_pipes_never_close_a_polygon():
    graph = DrawingGraph()
    a, b, c = Point("a", 0, 0), Point("b", 10, 0), Point("c", 10, 10)
    graph.connect("l1", a, b)
    graph.connect("l2", b, c)
    graph.connect("l3", c, a, kind=LineKind.PIPE)
    assert detect_closed_polygon(graph) is None


def test_two_point_back_and_forth_is_not_a_cycle():
    graph = DrawingGraph()
    a, b = Point("a", 0, 0), Point("b", 10, 0)
    graph.connect("l1", a, b)
    graph.connect("l2", b, a)
    assert detect_closed_polygon(graph) is None


def test_connect_reuses_existing_point():
    graph = DrawingGraph()
    a = Point("a", 0, 0)
    graph.connect("l1", a, Point("b", 1, 0))
    graph.connect("l2", Point("a", 99, 99), Point("c", 0, 1))
    assert len(graph.points) == 3
    assert graph.lines[1].start is a


def test_prune_orphans_keeps_requested_ids():
    graph = DrawingGraph()
    graph.connect("l1", Point("a", 0, 0), Point("b", 1, 0))
    graph.add_point(Point("lonely", 5, 5))
    graph.add_point(Point("start", 6, 6))
    removed = graph.prune_orphans(keep=["start"])
    assert [p.id for p in removed] == ["lonely"]
    assert [p.id for p in graph.points] == ["a", "b", "start"]


def test_window_has_three_parallel_segments():
    graph = DrawingGraph()
    new_id = _ids()
    start, end = Point("s", 0, 0), Point("e", 100, 0)
    group = graph.connect_group("g1", start, end, LineKind.WINDOW, new_id, window_thickness=15)
    assert len(group.segments) == 3
    assert {seg.group_id for seg in group.segments} == {"g1"}
    ys = sorted(seg.start.y for seg in group.segments)
    assert ys == pytest.approx([-15.0, 0.0, 15.0])
    # the centre segment shares the logical endpoints
    assert any(seg.start is start and seg.end is end for seg in group.segments)


def test_group_counts_as_one_logical_edge():
    graph = DrawingGraph()
    new_id = _ids()
    a, b, c = Point("a", 0, 0), Point("b", 100, 0), Point("c", 100, 100)
    graph.connect_group("g1", a, b, LineKind.WINDOW, new_id)
    graph.connect_group("g2", b, c, LineKind.WALL, new_id)
    graph.connect_group("g3", c, a, LineKind.WALL, new_id)
    cycle = detect_closed_polygon(graph)
    assert [p.id for p in cycle] == ["a", "b", "c"]
    assert len(graph.lines_between("a", "b")) == 3


def test_rebuild_group_moves_offset_segments():
    graph = DrawingGraph()
    new_id = _ids()
    start, end = Point("s", 0, 0), Point("e", 100, 0)
    group = graph.connect_group("g1", start, end, LineKind.WINDOW, new_id)
    end.move_to(200, 0)
    graph.rebuild_group(group, new_id)
    assert len(graph.lines) == 3
    assert all(seg.end.x == pytest.approx(200) for seg in group.segments)
    # 2 logical endpoints + 4 offset points; the stale offsets are gone
    assert len(graph.points) == 6


def test_remove_lines_takes_whole_group():
    graph = DrawingGraph()
    group = graph.connect_group("g1", Point("s", 0, 0), Point("e", 100, 0), LineKind.WINDOW, _ids())
    graph.remove_lines([group.segments[0].id])
    assert graph.lines == []
    assert graph.groups == {}


def test_find_nearest_line():
    graph = DrawingGraph()
    line = graph.connect("l1", Point("a", 0, 0), Point("b", 100, 0))
    assert graph.find_nearest_line((50, 10), radius=15) is line
    assert graph.find_nearest_line((50, 20), radius=15) is None


def test_wall_segments_for_plain_wall():
    s, e = Point("s", 0, 0), Point("e", 1, 1)
    assert wall_segments(s, e, LineKind.WALL, new_point=None) == [(s, e)]
