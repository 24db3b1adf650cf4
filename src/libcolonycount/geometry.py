import logging
import math
from itertools import permutations
from typing import NamedTuple

from libcolonycount.errors import DegenerateGeometryError

UNDETERMINED_RADIUS = -1.0
"""
radius of a circle that could not be computed (collinear or degenerate points)
"""

NOT_FOUND_RADIUS = 0.0
"""
radius reported by the circle finder when no plate was found
"""

SLOPE_EPS = 1e-9
AXIS_EPS = 1e-7


class Point2D(NamedTuple):
    x: float
    y: float


class Circle(NamedTuple):
    center: Point2D
    radius: float

    @property
    def is_determined(self):
        return self.radius >= 0

    @property
    def found(self):
        return self.radius > 0


class Rect(NamedTuple):
    x: int
    y: int
    width: int
    height: int


def distance(p1, p2):
    return math.hypot(p1[0] - p2[0], p1[1] - p2[1])


def chords_are_solvable(p1, p2, p3):
    """
    checks whether the chords p1->p2 and p2->p3 can be fed into the slope formula

    Both chords need a finite, nonzero slope (we divide by the first one when computing the
    center), unless p1->p2 is vertical and p2->p3 is horizontal, which is solved directly.
    """
    dy_a = p2[1] - p1[1]
    dx_a = p2[0] - p1[0]
    dy_b = p3[1] - p2[1]
    dx_b = p3[0] - p2[0]

    if abs(dx_a) <= SLOPE_EPS and abs(dy_b) <= SLOPE_EPS:
        return True

    if abs(dy_a) <= AXIS_EPS or abs(dy_b) <= AXIS_EPS:
        return False
    if abs(dx_a) <= SLOPE_EPS or abs(dx_b) <= SLOPE_EPS:
        return False
    return True


def _solve_ordered(p1, p2, p3):
    dy_a = p2[1] - p1[1]
    dx_a = p2[0] - p1[0]
    dy_b = p3[1] - p2[1]
    dx_b = p3[0] - p2[0]

    # vertical chord followed by a horizontal one, right angle at p2
    if abs(dx_a) <= SLOPE_EPS and abs(dy_b) <= SLOPE_EPS:
        center = Point2D(0.5 * (p2[0] + p3[0]), 0.5 * (p1[1] + p2[1]))
        return Circle(center, distance(center, p1))

    a = dy_a / dx_a
    b = dy_b / dx_b
    if abs(a - b) <= SLOPE_EPS:
        return Circle(Point2D(0.0, 0.0), UNDETERMINED_RADIUS)

    cx = (a * b * (p1[1] - p3[1]) + b * (p1[0] + p2[0]) - a * (p2[0] + p3[0])) / (2 * (b - a))
    cy = -(cx - (p1[0] + p2[0]) / 2) / a + (p1[1] + p2[1]) / 2
    center = Point2D(cx, cy)
    return Circle(center, distance(center, p1))


def circle_from_points(p1, p2, p3):
    """
    Returns the circle passing through p1, p2 and p3.

    The slope formula can't handle vertical or horizontal chords, so the six orderings of the
    points are tried until one is usable. If none is (or the points are collinear or two of
    them coincide) the returned circle has radius UNDETERMINED_RADIUS.
    """
    points = tuple(Point2D(float(p[0]), float(p[1])) for p in (p1, p2, p3))

    for i, j in ((0, 1), (0, 2), (1, 2)):
        if distance(points[i], points[j]) <= SLOPE_EPS:
            return Circle(Point2D(0.0, 0.0), UNDETERMINED_RADIUS)

    for ordering in permutations(points):
        if chords_are_solvable(*ordering):
            return _solve_ordered(*ordering)

    return Circle(Point2D(0.0, 0.0), UNDETERMINED_RADIUS)


def solve_circle(p1, p2, p3):
    """
    same as circle_from_points but raises DegenerateGeometryError instead of returning the sentinel
    """
    circle = circle_from_points(p1, p2, p3)
    if not circle.is_determined:
        logging.debug("No unique circle through %s, %s, %s", p1, p2, p3)
        raise DegenerateGeometryError(f"No unique circle through {p1}, {p2}, {p3}")
    return circle


def circle_bounding_rect(circle):
    """
    returns the square Rect that fits around a circle
    """
    cx, cy = circle.center
    r = circle.radius
    return Rect(int(cx - r), int(cy - r), int(r * 2), int(r * 2))


def clip_rect(rect, width, height):
    """
    clips a Rect to an image of the given size
    """
    x0 = max(rect.x, 0)
    y0 = max(rect.y, 0)
    x1 = min(rect.x + rect.width, width)
    y1 = min(rect.y + rect.height, height)
    return Rect(x0, y0, max(x1 - x0, 0), max(y1 - y0, 0))
