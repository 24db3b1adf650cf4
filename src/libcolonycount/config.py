from dataclasses import dataclass, field
from typing import Optional, Tuple

from libcolonycount import constants as CONSTANTS


@dataclass(frozen=True)
class CircleFinderConfig:
    """Parameters for locating the plate. Distances are in working resolution pixels."""

    max_size: int = CONSTANTS.MAX_SIZE
    canny_threshold: int = CONSTANTS.CANNY_THRESHOLD
    blur_size: int = CONSTANTS.EDGE_BLUR_SIZE
    blur_sigma: float = CONSTANTS.EDGE_BLUR_SIGMA
    iterations: int = CONSTANTS.VOTING_ITERATIONS
    min_point_separation_fraction: float = CONSTANTS.MIN_POINT_SEPARATION_FRACTION
    min_radius_fraction: float = CONSTANTS.MIN_RADIUS_FRACTION
    nested_radius_fraction: float = CONSTANTS.NESTED_RADIUS_FRACTION
    min_contour_size_fraction: float = CONSTANTS.MIN_CONTOUR_SIZE_FRACTION
    min_contour_points: int = CONSTANTS.MIN_CONTOUR_POINTS
    min_center_value: float = CONSTANTS.MIN_CENTER_VALUE
    min_quadrants: int = CONSTANTS.MIN_QUADRANTS
    peel_margin: int = CONSTANTS.PEEL_MARGIN
    radius_shrink: float = CONSTANTS.RADIUS_SHRINK
    seed: Optional[int] = None

    @property
    def min_radius(self):
        return self.max_size * self.min_radius_fraction

    @property
    def min_point_separation(self):
        return self.max_size * self.min_point_separation_fraction

    @property
    def min_contour_size(self):
        return self.max_size * self.min_contour_size_fraction


@dataclass(frozen=True)
class BackgroundConfig:
    blur_fraction: float = CONSTANTS.BACKGROUND_BLUR_FRACTION
    outlier_threshold: int = CONSTANTS.OUTLIER_THRESHOLD
    reference_level: int = CONSTANTS.REFERENCE_LEVEL


@dataclass(frozen=True)
class ClassifierConfig:
    lightness_scale: float = CONSTANTS.LIGHTNESS_SCALE
    quants: Tuple[int, int] = CONSTANTS.QUANTS
    svm_c: float = CONSTANTS.SVM_C


@dataclass(frozen=True)
class CounterConfig:
    noise_kernel_size: int = CONSTANTS.NOISE_KERNEL_SIZE
    merge_kernel_size: int = CONSTANTS.MERGE_KERNEL_SIZE
    merge_passes: int = CONSTANTS.MERGE_PASSES
    min_area: float = CONSTANTS.MIN_COLONY_AREA
    min_circularity: float = CONSTANTS.MIN_COLONY_CIRCULARITY


@dataclass(frozen=True)
class CountingConfig:
    """
    Everything one counting session needs. Stages only ever see their own section.
    """

    circle: CircleFinderConfig = field(default_factory=CircleFinderConfig)
    background: BackgroundConfig = field(default_factory=BackgroundConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    counter: CounterConfig = field(default_factory=CounterConfig)
    labels: Tuple[int, ...] = CONSTANTS.COLONY_LABELS
