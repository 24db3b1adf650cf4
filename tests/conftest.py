import cv2
import numpy as np
import pytest

from libcolonycount.classifier import LinearClassifier

PLATE_CENTER = (320, 320)
PLATE_RADIUS = 220
RED_COLONIES = [(250, 260), (380, 250), (300, 400)]
BLUE_COLONIES = [(400, 360), (240, 340)]


def make_plate_image(size=640, center=PLATE_CENTER, radius=PLATE_RADIUS, red=RED_COLONIES, blue=BLUE_COLONIES):
    """
    dark background, light gray plate, a few red and blue colonies (BGR)
    """
    image = np.full((size, size, 3), 20, dtype=np.uint8)
    cv2.circle(image, center, radius, (170, 170, 170), -1)
    for colony in red:
        cv2.circle(image, colony, 6, (40, 40, 200), -1)
    for colony in blue:
        cv2.circle(image, colony, 6, (200, 60, 40), -1)
    return image


def make_plate_model():
    """
    Hand made separator over (lightness, red share).

    Normalized background is lightness 1.0, red share 0.5. Normalized red colonies are around
    (0.55, 0.83), blue ones around (0.59, 0.17).
    """
    coef = [[10.0, 0.0], [0.0, 10.0], [0.0, -10.0]]
    intercept = [-8.0, -6.5, 3.5]
    return LinearClassifier(coef, intercept, [0, 1, 2])


@pytest.fixture
def plate_image():
    return make_plate_image()


@pytest.fixture
def plate_model():
    return make_plate_model()
