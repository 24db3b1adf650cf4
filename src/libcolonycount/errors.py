class ColonyCountError(Exception):
    """
    base class for everything libcolonycount raises on purpose
    """


class PlateNotFoundError(ColonyCountError):
    """
    no plate circle could be found in the image. Only the current image is affected.
    """


class DegenerateGeometryError(ColonyCountError):
    """
    three points do not define a unique circle (collinear, coincident, or numerically unusable)
    """


class ClassifierNotReadyError(ColonyCountError):
    """
    classification was attempted before a model was loaded. This is a bug in the caller.
    """


class ImageDecodeError(ColonyCountError):
    """
    an image file is missing or could not be decoded
    """


class AnalysisAborted(ColonyCountError):
    """
    the activity context asked for the analysis to stop
    """
