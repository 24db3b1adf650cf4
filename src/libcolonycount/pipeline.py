"""
End to end counting of one plate photo.

    counter = ColonyCounter(load_model("svm_params.npz"))
    result = counter.count(load_image("plate.jpg"))
    result.counts_by_label  # {1: red colonies, 2: blue colonies}

A missing plate raises PlateNotFoundError. A counter without a model raises ClassifierNotReadyError
as soon as it gets to classification.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Optional

import cv2
import numpy as np

from libcolonycount import constants as CONSTANTS
from libcolonycount.background import crop_plate, normalize
from libcolonycount.circle_finder import CircleFinder
from libcolonycount.classifier import classify_image, load_model
from libcolonycount.colony_counter import count_colonies, draw_colonies
from libcolonycount.config import CountingConfig
from libcolonycount.context import ConsoleActivityContext
from libcolonycount.errors import AnalysisAborted, ImageDecodeError
from libcolonycount.geometry import Circle, Rect


@dataclass
class CountResult:
    counts_by_label: dict
    plate_found: bool
    plate: Optional[Circle] = None
    rect: Optional[Rect] = None
    background_color: Optional[tuple] = None
    regions_by_label: dict = field(default_factory=dict)
    normalized: Optional[np.ndarray] = field(default=None, repr=False)
    labels: Optional[np.ndarray] = field(default=None, repr=False)

    @property
    def red(self):
        return self.counts_by_label.get(CONSTANTS.RED, 0)

    @property
    def blue(self):
        return self.counts_by_label.get(CONSTANTS.BLUE, 0)

    def to_json(self):
        return json.dumps({"tc": self.red, "ecoli": self.blue, "algorithm": CONSTANTS.ALGORITHM_VERSION})


def load_image(path):
    """
    reads a BGR image, raising ImageDecodeError if it's missing or corrupt
    """
    image = cv2.imread(str(path))
    if image is None:
        logging.error("Could not read image %s", path)
        raise ImageDecodeError(f"Could not read image {path}")
    return image


class ColonyCounter:
    """
    Counting session: holds the config and the (read only) classifier model.

    Loading a different model replaces self.model with a new instance, the old one is never
    modified, so results already being computed with it are unaffected.
    """

    def __init__(self, model=None, config=None):
        self.config = config or CountingConfig()
        self.model = model
        self.finder = CircleFinder(self.config.circle)

    def load_training(self, path):
        self.model = load_model(path)

    def locate_plate(self, image):
        return self.finder.find_petri_dish(image)

    def preprocess(self, image, plate):
        """
        crops image to the plate and normalizes it. Returns (normalized, background color, crop rect)
        """
        cropped, mask, rect = crop_plate(image, plate)
        normalized, color = normalize(cropped, mask, self.config.background)
        return normalized, color, rect

    def classify(self, normalized):
        return classify_image(normalized, self.model, self.config.classifier)

    def count_labels(self, labels):
        counts = {}
        regions_by_label = {}
        for label in self.config.labels:
            counts[label], regions_by_label[label] = count_colonies(labels, label, self.config.counter)
        return counts, regions_by_label

    def count(self, image, context=None):
        """
        Runs the whole pipeline on one BGR image and returns a CountResult.

        Raises PlateNotFoundError if there's no plate, AnalysisAborted if context asks to stop.
        """
        context = context or ConsoleActivityContext()

        plate = self.locate_plate(image)
        check_aborted(context)

        return self.count_plate(image, plate, context)

    def count_plate(self, image, plate, context=None):
        """
        runs the pipeline from an already located plate circle
        """
        context = context or ConsoleActivityContext()

        normalized, color, rect = self.preprocess(image, plate)
        check_aborted(context)
        context.report("Plate normalized")

        labels = self.classify(normalized)
        check_aborted(context)
        context.report("Pixels classified")

        counts, regions_by_label = self.count_labels(labels)
        context.report("Counted colonies: %s", counts)

        return CountResult(
            counts_by_label=counts,
            plate_found=True,
            plate=plate,
            rect=rect,
            background_color=color,
            regions_by_label=regions_by_label,
            normalized=normalized,
            labels=labels,
        )

    def count_path(self, path, context=None):
        return self.count(load_image(path), context)

    def debug_image(self, result):
        """
        image of the counted colonies the same size as the normalized plate
        """
        return draw_colonies(result.labels.shape, result.regions_by_label)


def check_aborted(context):
    if context.is_aborted():
        logging.info("Analysis aborted")
        raise AnalysisAborted("Analysis aborted")


def screen_scale(image_size, screen_size):
    """
    scale that fits an image of image_size (w, h) onto a screen of screen_size (w, h)
    """
    return min(screen_size[0] / image_size[0], screen_size[1] / image_size[1])


def analyse_plate(context, counter):
    """
    Activity entry point.

    Param 0 is the image to count. If given, the colony image is written to param 1 and the
    normalized plate to param 2. If the context has a screen, the located plate is drawn on it in red
    before counting and in green once the counts are done. The counts are returned through
    context.set_return_value as JSON.
    """
    image = load_image(context.get_param(0))

    screen = context.get_screen()
    scale = 1.0
    if screen is not None:
        height, width = image.shape[:2]
        scale = screen_scale((width, height), (screen.shape[1], screen.shape[0]))
        matrix = np.float32([[scale, 0, 0], [0, scale, 0]])
        screen[:] = cv2.warpAffine(image, matrix, (screen.shape[1], screen.shape[0]))
        context.update_screen()

    plate = counter.locate_plate(image)
    if screen is not None:
        center = (int(plate.center.x * scale), int(plate.center.y * scale))
        cv2.circle(screen, center, int(plate.radius * scale), (0, 0, 255), 6)
        context.update_screen()
    check_aborted(context)

    result = counter.count_plate(image, plate, context)

    if screen is not None:
        center = (int(result.plate.center.x * scale), int(result.plate.center.y * scale))
        cv2.circle(screen, center, int(result.plate.radius * scale), (0, 255, 0), 6)
        context.update_screen()

    if context.get_param_count() >= 3:
        cv2.imwrite(context.get_param(2), result.normalized)
    if context.get_param_count() >= 2:
        cv2.imwrite(context.get_param(1), counter.debug_image(result))

    context.set_return_value(result.to_json())
    return result
