"""
Pixel classification.

Every pixel of a normalized plate is reduced to two features, lightness and red vs blue, and
labelled BACKGROUND, RED or BLUE. A trained linear model can be evaluated directly, but evaluating
it for every pixel of every plate is slow, so it can also be baked into a lookup table indexed by
the quantized features (QuantizedClassifier). Both variants share the PixelClassifier interface;
pick one when loading.

Basic usage:

    model = train_classifier(images, label_images, CircleFinder())
    table = QuantizedClassifier.from_classifier(model)
    labels = classify_image(normalized, table)
"""
import logging
from abc import ABC, abstractmethod

import numpy as np
from sklearn.svm import LinearSVC

from libcolonycount import constants as CONSTANTS
from libcolonycount.background import crop_plate, normalize
from libcolonycount.config import ClassifierConfig
from libcolonycount.errors import ClassifierNotReadyError

FEATURE_DIM = 2


def extract_features(image, lightness_scale=CONSTANTS.LIGHTNESS_SCALE):
    """
    Maps BGR pixels (any leading shape, last axis is the channel) to (lightness, red share).

    lightness is the channel sum over lightness_scale clamped to [0, 1], red share is R / (R + B),
    or 0.5 where both are zero.
    """
    pixels = np.asarray(image, dtype=np.float64)
    blue = pixels[..., 0]
    red = pixels[..., 2]

    lightness = np.clip(pixels.sum(axis=-1) / lightness_scale, 0.0, 1.0)
    red_blue = red + blue
    red_share = np.divide(red, red_blue, out=np.full(red.shape, 0.5), where=red_blue > 0)

    return np.stack([lightness, red_share], axis=-1)


class PixelClassifier(ABC):
    """
    Anything that turns feature vectors into labels. Instances are never modified once built, so
    one can be shared between any number of counting calls.
    """

    @abstractmethod
    def predict(self, features):
        """
        features has shape (..., FEATURE_DIM). Returns uint8 labels of shape (...).
        """


class LinearClassifier(PixelClassifier):
    """
    One-vs-rest linear separator: the label is the class with the highest score. A model with a
    single row of weights is binary, its sign picks between the two classes.
    """

    def __init__(self, coef, intercept, classes):
        self.coef = np.array(coef, dtype=np.float64, ndmin=2)
        self.intercept = np.array(intercept, dtype=np.float64, ndmin=1)
        self.classes = np.array(classes, dtype=np.uint8)
        for array in (self.coef, self.intercept, self.classes):
            array.setflags(write=False)

    @classmethod
    def from_estimator(cls, estimator):
        """
        wraps a fitted scikit-learn linear model (anything with coef_, intercept_ and classes_)
        """
        return cls(estimator.coef_, estimator.intercept_, estimator.classes_)

    def decision_function(self, features):
        features = np.asarray(features, dtype=np.float64)
        # elementwise so a feature vector scores the same no matter how many others it comes with
        scores = np.broadcast_to(self.intercept, features.shape[:-1] + self.intercept.shape).copy()
        for i in range(self.coef.shape[1]):
            scores += features[..., i : i + 1] * self.coef[:, i]
        return scores

    def predict(self, features):
        scores = self.decision_function(features)
        if scores.shape[-1] == 1:
            return self.classes[(scores[..., 0] > 0).astype(int)]
        return self.classes[np.argmax(scores, axis=-1)]


class QuantizedClassifier(PixelClassifier):
    """
    Lookup table classifier. Feature i is rounded to one of quants[i] evenly spaced levels
    in [0, 1] and the label is read straight from the table.
    """

    def __init__(self, table, quants=None):
        self.table = np.array(table, dtype=np.uint8)
        self.quants = tuple(int(q) for q in (quants or self.table.shape))
        if self.table.shape != self.quants:
            raise ValueError(f"Lookup table shape {self.table.shape} does not match quants {self.quants}")
        self.table.setflags(write=False)

    @classmethod
    def from_classifier(cls, classifier, quants=CONSTANTS.QUANTS):
        """
        builds the table by evaluating classifier at every grid node
        """
        axes = [np.arange(q) / (q - 1) for q in quants]
        grid = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1)
        logging.info("Building %s lookup table", "x".join(str(q) for q in quants))
        return cls(classifier.predict(grid), quants)

    def buckets(self, features):
        features = np.asarray(features, dtype=np.float64)
        idx = []
        for i, q in enumerate(self.quants):
            idx.append(np.clip(np.rint(features[..., i] * (q - 1)), 0, q - 1).astype(np.intp))
        return tuple(idx)

    def predict(self, features):
        return self.table[self.buckets(features)]


def classify_image(image, model, config=None):
    """
    labels every pixel of a normalized BGR image. Returns a uint8 label map the size of the image.
    """
    if model is None:
        logging.critical("Tried to classify an image before loading a classifier")
        raise ClassifierNotReadyError("No classifier loaded")

    config = config or ClassifierConfig()
    features = extract_features(image, config.lightness_scale)
    return model.predict(features).astype(np.uint8)


def render_labels(labels):
    """
    debug image of a label map: background white, red colonies red, blue colonies blue
    """
    demo = np.full(labels.shape + (3,), 255, dtype=np.uint8)
    demo[labels == CONSTANTS.RED] = (0, 0, 255)
    demo[labels == CONSTANTS.BLUE] = (255, 0, 0)
    return demo


def quantization_agreement(image, model, quantized, config=None):
    """
    fraction of pixels in image where the lookup table agrees with the model it was built from
    """
    direct = classify_image(image, model, config)
    table = classify_image(image, quantized, config)
    agreement = float(np.mean(direct == table))
    logging.info("Quantization %s agrees on %.4f of pixels", quantized.quants, agreement)
    return agreement


def label_image_to_labels(label_image):
    """
    converts a hand painted BGR label image to labels, -1 where the color isn't a label color
    """
    labels = np.full(label_image.shape[:2], -1, dtype=np.int16)
    for color, label in CONSTANTS.LABEL_COLORS.items():
        labels[np.all(label_image == color, axis=-1)] = label
    return labels


def collect_training_samples(train_images, label_images, finder, config=None):
    """
    Extracts (features, labels) from training photos and their label images.

    Each photo is cropped to the plate found by finder and normalized exactly as it would be when
    counting, so the classifier is trained on what it will see.
    """
    config = config or ClassifierConfig()
    features = []
    labels = []

    for image, label_image in zip(train_images, label_images):
        circle = finder.find_petri_dish(image)
        cropped, mask, rect = crop_plate(image, circle)
        normalized, _ = normalize(cropped, mask)
        image_labels = label_image_to_labels(label_image[rect.y : rect.y + rect.height, rect.x : rect.x + rect.width])

        labelled = image_labels >= 0
        features.append(extract_features(normalized[labelled], config.lightness_scale))
        labels.append(image_labels[labelled])
        logging.info("Collected %d labelled pixels", int(labelled.sum()))

    return np.concatenate(features), np.concatenate(labels)


def fit_linear_classifier(features, labels, config=None):
    """
    fits a linear SVM on (features, labels) and wraps it as a LinearClassifier
    """
    config = config or ClassifierConfig()
    counts = {int(label): int(n) for label, n in zip(*np.unique(labels, return_counts=True))}
    logging.info("Training on %d samples: %s", len(labels), counts)

    svm = LinearSVC(C=config.svm_c, max_iter=10000)
    svm.fit(features, labels)
    return LinearClassifier.from_estimator(svm)


def train_classifier(train_images, label_images, finder, config=None):
    """
    trains a LinearClassifier from photos and hand painted label images (see LABEL_COLORS)
    """
    features, labels = collect_training_samples(train_images, label_images, finder, config)
    return fit_linear_classifier(features, labels, config)


def save_model(path, model):
    if isinstance(model, LinearClassifier):
        np.savez(path, kind="linear", coef=model.coef, intercept=model.intercept, classes=model.classes)
    elif isinstance(model, QuantizedClassifier):
        np.savez(path, kind="quantized", table=model.table, quants=np.array(model.quants))
    else:
        raise TypeError(f"Can't save {type(model).__name__}")
    logging.info("Saved %s to %s", type(model).__name__, path)


def load_model(path):
    """
    loads a model written by save_model. The file decides which variant comes back.
    """
    with np.load(path) as data:
        kind = str(data["kind"])
        if kind == "linear":
            model = LinearClassifier(data["coef"], data["intercept"], data["classes"])
        elif kind == "quantized":
            model = QuantizedClassifier(data["table"], tuple(data["quants"]))
        else:
            raise ValueError(f"Unknown model kind {kind!r} in {path}")
    logging.info("Loaded %s from %s", type(model).__name__, path)
    return model
