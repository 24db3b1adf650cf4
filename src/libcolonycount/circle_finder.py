import logging

import cv2
import numpy as np

from libcolonycount.config import CircleFinderConfig
from libcolonycount.errors import ImageDecodeError, PlateNotFoundError
from libcolonycount.geometry import (
    NOT_FOUND_RADIUS,
    Circle,
    Point2D,
    circle_bounding_rect,
    circle_from_points,
)


class CircleFinder:
    """
    Finds the Petri dish in a photo.

    HoughCircles gets confused by the plates: the lid, the dish and the agar all leave nearly
    concentric rims. Instead we randomly sample three points from edge contours, vote for the
    center of the circle through them, then pick a radius from the distances of all contour
    points to that center. Everything outside the circle is thrown away and the search is repeated
    to find the innermost rim.

    Every search draws from a new generator seeded from config.seed, so with a seed set the same image
    always gives the same circle, whatever was searched before and from whichever thread.
    """

    def __init__(self, config=None):
        self.config = config or CircleFinderConfig()

    def find_petri_rect(self, image):
        """
        returns the Rect (in image coordinates) that fits around the plate
        """
        return circle_bounding_rect(self.find_petri_dish(image))

    def find_petri_dish(self, image):
        """
        finds the plate circle in a BGR (or grayscale) image. Raises PlateNotFoundError if there isn't one.
        """
        if image is None or image.size == 0:
            raise ImageDecodeError("Empty image passed to circle finder")

        gray = image if image.ndim == 2 else cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

        scaleby = max(gray.shape[0], gray.shape[1]) / self.config.max_size
        gray = cv2.resize(gray, None, fx=1.0 / scaleby, fy=1.0 / scaleby, interpolation=cv2.INTER_CUBIC)

        edges = self.find_edges(gray)
        contours = self.find_contours(edges)

        circle = self.find_circle(contours, edges.shape)
        if not circle.found:
            logging.error("No plate found in image")
            raise PlateNotFoundError("No plate found in image")

        center = Point2D(circle.center.x * scaleby, circle.center.y * scaleby)
        circle = Circle(center, circle.radius * scaleby)
        logging.info(
            "Plate found at (%.1f, %.1f) with radius %.1f",
            circle.center.x,
            circle.center.y,
            circle.radius,
        )
        return circle

    def find_edges(self, gray):
        size = self.config.blur_size
        sigma = self.config.blur_sigma
        blurred = cv2.GaussianBlur(gray, (size, size), sigma, sigmaY=sigma)
        threshold = self.config.canny_threshold
        return cv2.Canny(blurred, threshold, threshold // 2)

    def find_contours(self, edges):
        contours, _ = cv2.findContours(edges, cv2.RETR_LIST, cv2.CHAIN_APPROX_NONE)
        return [c.reshape(-1, 2) for c in contours]

    def filter_contours(self, contours):
        """
        drops contours that are too small to be part of a rim, or have too few points
        """
        kept = []
        for contour in contours:
            if len(contour) < self.config.min_contour_points:
                continue
            _, _, w, h = cv2.boundingRect(contour.astype(np.int32))
            if w > self.config.min_contour_size or h > self.config.min_contour_size:
                kept.append(contour)
        return kept

    def find_best_center(self, shape, contours, min_radius, rng):
        """
        Votes for circle centers using random triples of points from the contours.

        Returns (confidence, (x, y)): the smoothed vote count at the best center and its location.
        """
        height, width = shape[:2]
        centers = np.zeros((height, width), dtype=np.float32)
        min_dist = self.config.min_point_separation

        sizes = np.array([len(c) for c in contours])
        picks = rng.integers(len(contours), size=self.config.iterations)
        draws = rng.random((self.config.iterations, 3))

        for pick, draw in zip(picks, draws):
            contour = contours[pick]
            idx = (draw * sizes[pick]).astype(int)
            start, end, third = contour[idx[0]], contour[idx[1]], contour[idx[2]]

            # points too close together give unstable circles
            if np.hypot(*(start - end)) < min_dist:
                continue
            if np.hypot(*(third - start)) < min_dist:
                continue
            if np.hypot(*(third - end)) < min_dist:
                continue

            circle = circle_from_points(start, end, third)
            if circle.radius < min_radius:
                continue

            x = int(round(circle.center.x))
            y = int(round(circle.center.y))
            if 0 <= x < width and 0 <= y < height:
                centers[y, x] += 1.0

        size = self.config.blur_size
        sigma = self.config.blur_sigma
        centers = cv2.GaussianBlur(centers, (size, size), sigma, sigmaY=sigma)

        _, max_val, _, max_loc = cv2.minMaxLoc(centers)
        return max_val, max_loc

    def count_quadrants(self, contours, center):
        """
        counts how many of the four quadrants around center contain contour points
        """
        points = np.concatenate(contours) - np.asarray(center)
        quadrant = (points[:, 0] > 0) * 2 + (points[:, 1] > 0)
        return len(np.unique(quadrant))

    def find_best_radius(self, shape, contours, center):
        """
        returns the index of the peak of the (smoothed) histogram of contour point distances from center
        """
        points = np.concatenate(contours) - np.asarray(center)
        dists = np.hypot(points[:, 0], points[:, 1]).astype(int)

        hist = np.bincount(dists, minlength=shape[0] + shape[1]).astype(np.float32)
        hist = cv2.GaussianBlur(hist.reshape(-1, 1), (1, 3), 0, sigmaY=1)
        return int(np.argmax(hist))

    def peel_contours(self, contours, center, limit):
        """
        keeps only contour points no further than limit from center
        """
        peeled = []
        for contour in contours:
            offsets = contour - np.asarray(center)
            inside = contour[np.hypot(offsets[:, 0], offsets[:, 1]) <= limit]
            if len(inside) > 0:
                peeled.append(inside)
        return peeled

    def find_circle(self, contours, shape, rng=None):
        """
        Finds the innermost strong circle in a set of contours.

        Returns a Circle in the contours' coordinates, with radius NOT_FOUND_RADIUS when there
        is no circle at all.
        """
        if rng is None:
            rng = np.random.default_rng(self.config.seed)

        center = Point2D(0.0, 0.0)
        radius = NOT_FOUND_RADIUS
        min_radius = self.config.min_radius
        first_iter = True

        while True:
            contours = self.filter_contours(contours)
            if len(contours) == 0:
                break

            max_val, max_loc = self.find_best_center(shape, contours, min_radius, rng)
            if max_val < self.config.min_center_value:
                logging.debug("Center vote %.2f too weak, stopping", max_val)
                break

            # arcs covering fewer than three quadrants give bad centers
            if self.count_quadrants(contours, max_loc) < self.config.min_quadrants:
                logging.debug("Contours around (%d, %d) are only an arc, stopping", *max_loc)
                break

            best_index = self.find_best_radius(shape, contours, max_loc)
            center = Point2D(float(max_loc[0]), float(max_loc[1]))
            radius = float(best_index - 1)
            logging.debug("Circle at (%d, %d) radius %d, vote %.2f", max_loc[0], max_loc[1], radius, max_val)

            contours = self.peel_contours(contours, max_loc, best_index - self.config.peel_margin)

            if first_iter:
                min_radius = radius * self.config.nested_radius_fraction
                first_iter = False

        if radius <= NOT_FOUND_RADIUS:
            return Circle(center, NOT_FOUND_RADIUS)

        # move inside the rim
        return Circle(center, radius * self.config.radius_shrink)


def score_circle(circle, reference):
    """
    Measures how well a circle matches a hand made reference image.

    The reference is pure green (0, 255, 0) over the area that should be inside the plate and pure
    red (0, 0, 255) over the fringe that is still inside the dish's outer limits. Returns a dict with
    the percentage of green caught, the amount of non green/red area caught (relative to green), the
    percentage of the red fringe caught, and whether the circle passes (all green caught, nothing bad).
    """
    blue, green, red = cv2.split(reference)

    red_mask = (red >= 255) & (green == 0)
    green_mask = (green >= 255) & (red == 0)
    green_mask = cv2.dilate(green_mask.astype(np.uint8), np.ones((3, 3), np.uint8)).astype(bool)

    inside = np.zeros(reference.shape[:2], dtype=np.uint8)
    cv2.circle(
        inside,
        (int(round(circle.center.x)), int(round(circle.center.y))),
        int(round(circle.radius)),
        255,
        -1,
    )
    inside = inside > 0
    bad_mask = ~(red_mask | green_mask)

    green_total = max(int(green_mask.sum()), 1)
    red_total = max(int(red_mask.sum()), 1)
    green_in = int((green_mask & inside).sum())
    bad_in = int((bad_mask & inside).sum())
    red_in = int((red_mask & inside).sum())

    score = {
        "caught": green_in * 100.0 / green_total,
        "bad": bad_in * 100.0 / green_total,
        "fringe": red_in * 100.0 / red_total,
        "ok": green_in >= green_total and bad_in == 0,
    }
    logging.info("%5.3f caught %5.3f bad %5.3f fringe", score["caught"], score["bad"], score["fringe"])
    return score
