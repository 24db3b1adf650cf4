import logging
import math
from typing import NamedTuple

import cv2
import numpy as np

from libcolonycount import constants as CONSTANTS
from libcolonycount.config import CounterConfig


class ColonyRegion(NamedTuple):
    label: int
    contour: np.ndarray
    area: float
    circularity: float


def circularity(area, perimeter):
    """
    4*pi*area/perimeter^2. 1.0 for a perfect disk, lower the more elongated a shape is
    """
    if perimeter <= 0:
        return 0.0
    return 4 * math.pi * area / (perimeter * perimeter)


def clean_mask(labels, label, config=None):
    """
    Binary mask of pixels with the given label, cleaned up for counting.

    An opening with a small cross removes single pixel noise, then a few closes with a bigger
    ellipse merge pieces of one colony that classification split apart.
    """
    config = config or CounterConfig()
    mask = np.where(labels == label, 255, 0).astype(np.uint8)

    size = config.noise_kernel_size
    kernel = cv2.getStructuringElement(cv2.MORPH_CROSS, (size, size))
    mask = cv2.erode(mask, kernel)
    mask = cv2.dilate(mask, kernel)

    size = config.merge_kernel_size
    kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (size, size))
    for _ in range(config.merge_passes):
        mask = cv2.dilate(mask, kernel)
        mask = cv2.erode(mask, kernel)

    return mask


def find_colonies(labels, label, config=None):
    """
    Returns the ColonyRegions of one label in a label map.

    Regions smaller than config.min_area or less round than config.min_circularity are dropped,
    which gets rid of specks and scratches.
    """
    config = config or CounterConfig()
    mask = clean_mask(labels, label, config)
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_NONE)

    regions = []
    too_small = 0
    not_round = 0
    for contour in contours:
        area = cv2.contourArea(contour)
        roundness = circularity(area, cv2.arcLength(contour, True))

        if area < config.min_area:
            too_small += 1
        elif roundness < config.min_circularity:
            not_round += 1
        else:
            regions.append(ColonyRegion(label, contour, area, roundness))

    logging.debug(
        "Label %d: %d regions, %d too small, %d not round enough",
        label,
        len(regions),
        too_small,
        not_round,
    )
    return regions


def count_colonies(labels, label, config=None):
    """
    returns (count, regions) for one label
    """
    regions = find_colonies(labels, label, config)
    return len(regions), regions


REGION_COLORS = {
    CONSTANTS.RED: ((128, 128, 255), (0, 0, 255)),
    CONSTANTS.BLUE: ((255, 125, 128), (255, 0, 0)),
}
"""
fill and outline colors used when drawing counted colonies
"""


def draw_colonies(shape, regions_by_label, image=None):
    """
    Draws counted colonies, filled and outlined in their label's color.

    Draws onto a copy of image if given, otherwise onto a white canvas of the given shape.
    """
    if image is None:
        canvas = np.full(tuple(shape[:2]) + (3,), 255, dtype=np.uint8)
    else:
        canvas = image.copy()

    for label, regions in regions_by_label.items():
        fill, outline = REGION_COLORS.get(label, ((200, 200, 200), (0, 0, 0)))
        contours = [region.contour for region in regions]
        cv2.drawContours(canvas, contours, -1, fill, -1)
        cv2.drawContours(canvas, contours, -1, outline)

    return canvas
