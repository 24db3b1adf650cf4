import logging

import cv2
import numpy as np

from libcolonycount.config import BackgroundConfig
from libcolonycount.geometry import circle_bounding_rect, clip_rect


def plate_mask(shape, center=None, radius=None):
    """
    Returns a uint8 mask (255 inside) of the plate circle for an image of the given shape.

    Defaults to the circle inscribed in a square crop: centered, radius half the crop height.
    """
    height, width = shape[:2]
    if center is None:
        center = (width // 2, height // 2)
    if radius is None:
        radius = height // 2

    mask = np.zeros((height, width), dtype=np.uint8)
    cv2.circle(mask, (int(round(center[0])), int(round(center[1]))), int(round(radius)), 255, -1)
    return mask


def crop_plate(image, circle):
    """
    Crops image to the square around circle (clipped to the image) and builds the plate mask for
    the crop. Returns (crop, mask, rect).
    """
    rect = clip_rect(circle_bounding_rect(circle), image.shape[1], image.shape[0])
    cropped = image[rect.y : rect.y + rect.height, rect.x : rect.x + rect.width]
    mask = plate_mask(
        cropped.shape,
        (circle.center.x - rect.x, circle.center.y - rect.y),
        circle.radius,
    )
    return cropped, mask, rect


def masked_low_pass(img, mask, size):
    """
    Box blur of img where only pixels inside mask are averaged.

    Each output pixel is divided by the number of mask pixels actually under the kernel, so pixels
    near the mask edge don't get darkened by the outside. Pixels with no mask pixels under the
    kernel come out as 0.
    """
    weights = (mask > 0).astype(np.float64)
    masked = img.astype(np.float64) * weights[..., None]

    total = cv2.boxFilter(masked, -1, (size, size), normalize=False, borderType=cv2.BORDER_CONSTANT)
    count = cv2.boxFilter(weights, -1, (size, size), normalize=False, borderType=cv2.BORDER_CONSTANT)
    if total.ndim == 2:
        total = total[..., None]

    count = count[..., None]
    blurred = np.divide(total, count, out=np.zeros_like(total), where=count > 0)
    return np.clip(np.rint(blurred), 0, 255)


def find_background(img, mask, size, outlier_threshold):
    """
    Estimates the background illumination of the plate.

    A first masked blur is biased by colonies, so every pixel that differs from it by more than
    outlier_threshold in any channel is dropped from the mask and the blur is redone on what's left.
    Returns the background estimate (float, same shape as img) and the refined background mask.
    """
    lowpass = masked_low_pass(img, mask, size)

    diff = np.abs(img.astype(np.float64) - lowpass)
    outliers = np.any(diff > outlier_threshold, axis=2)

    bgmask = mask.copy()
    bgmask[outliers] = 0
    logging.debug(
        "%d of %d plate pixels kept as background",
        np.count_nonzero(bgmask),
        np.count_nonzero(mask),
    )

    return masked_low_pass(img, bgmask, size), bgmask


def background_color(img, bgmask):
    """
    average BGR color of the pixels in bgmask, or None if the mask is empty
    """
    pixels = img[bgmask > 0]
    if len(pixels) == 0:
        return None
    return tuple(float(c) for c in pixels.reshape(-1, img.shape[2]).mean(axis=0))


def normalize(cropped, mask=None, config=None):
    """
    Cleans up and normalizes a plate crop.

    Every channel is divided by the estimated background and scaled so the background comes out at
    config.reference_level. Everything outside the mask is set to the reference level as well, so
    the dish rim can't be mistaken for colonies.

    Returns (normalized image, average background color).
    """
    config = config or BackgroundConfig()
    if mask is None:
        mask = plate_mask(cropped.shape)

    if cropped.ndim == 2:
        cropped = cropped[..., None]

    size = 2 * int(cropped.shape[0] * config.blur_fraction) + 1
    background, bgmask = find_background(cropped, mask, size, config.outlier_threshold)

    reference = float(config.reference_level)
    normalized = np.full(cropped.shape, reference, dtype=np.float64)
    np.divide(cropped.astype(np.float64) * reference, background, out=normalized, where=background > 0)

    normalized[mask == 0] = reference
    normalized = np.clip(np.rint(normalized), 0, 255).astype(np.uint8)

    color = background_color(cropped, bgmask)
    if color is None:
        logging.error("No background pixels left after outlier removal")
    else:
        logging.info("Background color %s", tuple(round(c, 1) for c in color))

    return normalized, color
