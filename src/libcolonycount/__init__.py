__version__ = "0.1.0"

from libcolonycount.circle_finder import CircleFinder
from libcolonycount.background import normalize, plate_mask
from libcolonycount.classifier import (
    LinearClassifier,
    QuantizedClassifier,
    classify_image,
    load_model,
    save_model,
    train_classifier,
)
from libcolonycount.colony_counter import count_colonies
from libcolonycount.config import CountingConfig
from libcolonycount.errors import (
    ClassifierNotReadyError,
    ImageDecodeError,
    PlateNotFoundError,
)
from libcolonycount.pipeline import ColonyCounter, CountResult, analyse_plate, load_image
