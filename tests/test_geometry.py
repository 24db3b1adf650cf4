from itertools import permutations

import pytest

from libcolonycount.errors import DegenerateGeometryError
from libcolonycount.geometry import (
    UNDETERMINED_RADIUS,
    Circle,
    Point2D,
    Rect,
    chords_are_solvable,
    circle_bounding_rect,
    circle_from_points,
    clip_rect,
    distance,
    solve_circle,
)

NON_COLLINEAR = [
    ((0, 0), (10, 0), (0, 10)),
    ((0, 0), (10, 0), (3, 7)),
    ((1.5, 2.5), (-4.0, 7.25), (9.0, -3.0)),
    ((512, 312), (712, 512), (512, 712)),
    ((100, 100), (101, 140), (160, 99)),
    ((0, 0), (0, 10), (10, 10)),
    ((-3, -3), (3, -3), (0, 4)),
]

COLLINEAR = [
    ((0, 0), (1, 1), (2, 2)),
    ((0, 0), (5, 0), (9, 0)),
    ((3, 0), (3, 5), (3, -7)),
    ((1, 2), (3, 5), (7, 11)),
    ((4, 4), (4, 4), (9, 1)),
]


@pytest.mark.parametrize("points", NON_COLLINEAR)
def test_center_is_equidistant_for_every_ordering(points):
    for ordering in permutations(points):
        circle = circle_from_points(*ordering)
        assert circle.is_determined
        for point in points:
            assert distance(circle.center, point) == pytest.approx(circle.radius, rel=1e-6)


@pytest.mark.parametrize("points", NON_COLLINEAR)
def test_ordering_does_not_change_circle(points):
    reference = circle_from_points(*points)
    for ordering in permutations(points):
        circle = circle_from_points(*ordering)
        assert circle.center.x == pytest.approx(reference.center.x, rel=1e-6, abs=1e-9)
        assert circle.center.y == pytest.approx(reference.center.y, rel=1e-6, abs=1e-9)
        assert circle.radius == pytest.approx(reference.radius, rel=1e-6)


@pytest.mark.parametrize("points", COLLINEAR)
def test_collinear_points_give_sentinel(points):
    for ordering in permutations(points):
        circle = circle_from_points(*ordering)
        assert circle.radius == UNDETERMINED_RADIUS
        assert not circle.is_determined


def test_axis_aligned_right_angle():
    circle = circle_from_points((0, 0), (0, 10), (10, 10))
    assert circle.center == Point2D(5.0, 5.0)
    assert circle.radius == pytest.approx(50 ** 0.5)


def test_known_circle():
    circle = circle_from_points((512, 312), (712, 512), (512, 712))
    assert circle.center.x == pytest.approx(512, abs=1e-6)
    assert circle.center.y == pytest.approx(512, abs=1e-6)
    assert circle.radius == pytest.approx(200, rel=1e-9)


def test_chords_are_solvable():
    # vertical then horizontal is solved directly
    assert chords_are_solvable((0, 0), (0, 10), (10, 10))
    assert not chords_are_solvable((0, 0), (10, 0), (3, 7))
    assert not chords_are_solvable((0, 0), (3, 7), (3, 9))
    assert chords_are_solvable((0, 0), (3, 7), (10, 0))


def test_solve_circle_raises_on_degenerate_points():
    with pytest.raises(DegenerateGeometryError):
        solve_circle((0, 0), (1, 1), (2, 2))

    circle = solve_circle((0, 0), (10, 0), (0, 10))
    assert circle.center.x == pytest.approx(5)
    assert circle.center.y == pytest.approx(5)


def test_bounding_rect_and_clip():
    rect = circle_bounding_rect(Circle(Point2D(300.0, 300.0), 200.0))
    assert rect == Rect(100, 100, 400, 400)

    assert clip_rect(Rect(-10, 50, 100, 100), 80, 120) == Rect(0, 50, 80, 70)
