import cv2
import numpy as np
import pytest

from libcolonycount.background import crop_plate, find_background, masked_low_pass, normalize, plate_mask
from libcolonycount.config import BackgroundConfig
from libcolonycount.geometry import Circle, Point2D, Rect

DOTS = [(60, 60), (140, 70), (100, 100), (70, 140), (130, 130)]


def gray_plate_with_red_dots():
    image = np.full((201, 201, 3), 120, dtype=np.uint8)
    dots = np.zeros((201, 201), dtype=np.uint8)
    for dot in DOTS:
        cv2.circle(image, dot, 3, (0, 0, 255), -1)
        cv2.circle(dots, dot, 3, 255, -1)
    return image, dots


def test_plate_mask_defaults_to_inscribed_circle():
    mask = plate_mask((201, 201, 3))
    assert mask.dtype == np.uint8
    assert mask[100, 100] == 255
    assert mask[100, 0] == 255
    assert mask[0, 0] == 0
    assert mask[200, 200] == 0


def test_low_pass_ignores_pixels_outside_mask():
    image = np.zeros((101, 101, 3), dtype=np.uint8)
    mask = plate_mask(image.shape)
    image[mask > 0] = 100

    blurred = masked_low_pass(image, mask, 21)
    assert np.all(blurred[mask > 0] == 100)


def test_colonies_are_kept_out_of_background():
    image, dots = gray_plate_with_red_dots()
    mask = plate_mask(image.shape)

    background, bgmask = find_background(image, mask, 81, 10)
    assert np.all(bgmask[dots > 0] == 0)
    assert np.all(background[mask > 0] == 120)


def test_normalize_gray_plate_with_red_dots():
    image, dots = gray_plate_with_red_dots()
    mask = plate_mask(image.shape)

    normalized, color = normalize(image, mask)

    plate = (mask > 0) & (dots == 0)
    assert np.all(np.abs(normalized[plate].astype(int) - 200) <= 2)
    assert np.all(normalized[mask == 0] == 200)
    assert color == pytest.approx((120.0, 120.0, 120.0))

    # dots are scaled with the background, not flattened into it
    assert np.all(normalized[dots > 0][:, 2] == 255)
    assert np.all(normalized[dots > 0][:, 0] == 0)


def test_normalize_evens_out_a_gradient():
    ramp = np.linspace(90, 150, 201).astype(np.uint8)
    image = np.repeat(np.repeat(ramp[None, :, None], 201, axis=0), 3, axis=2)
    mask = plate_mask(image.shape)

    normalized, _ = normalize(image, mask)
    deviation = np.abs(normalized.astype(int) - 200).max(axis=2)

    # without normalization the ends of the ramp would be 50 away from the reference
    assert deviation[mask > 0].max() <= 20

    center = plate_mask(image.shape, radius=40)
    assert deviation[center > 0].max() <= 3


def test_reference_level_is_configurable():
    image = np.full((101, 101, 3), 80, dtype=np.uint8)
    normalized, _ = normalize(image, config=BackgroundConfig(reference_level=150))
    assert np.all(normalized == 150)


def test_crop_plate_clips_to_image():
    image = np.zeros((300, 400, 3), dtype=np.uint8)
    cropped, mask, rect = crop_plate(image, Circle(Point2D(350.0, 150.0), 100.0))

    assert rect == Rect(250, 50, 150, 200)
    assert cropped.shape == (200, 150, 3)
    assert mask.shape == (200, 150)
    # circle center is at (100, 100) in crop coordinates
    assert mask[100, 100] == 255
    assert mask[100, 5] == 255
    assert mask[5, 5] == 0
