BACKGROUND = 0
RED = 1
BLUE = 2
"""
Pixel labels used in label maps. RED colonies are total coliforms, BLUE colonies are E. coli.
"""

COLONY_LABELS = (RED, BLUE)
"""
Labels that get counted. BACKGROUND is never counted.
"""

LABEL_COLORS = {
    (0, 255, 0): BACKGROUND,
    (0, 0, 255): RED,
    (255, 255, 0): BLUE,
}
"""
BGR colors used in hand painted training label images. Green is background, red is red
colonies, cyan is blue colonies. Any other color is unlabelled and ignored during training.
"""

MAX_SIZE = 1024
"""
Longest side (px) of the working image the circle finder runs on. Bigger images are scaled down,
smaller ones scaled up.
"""

CANNY_THRESHOLD = 30
"""
Upper Canny threshold used to find plate edges. The lower threshold is half of this.
"""

EDGE_BLUR_SIZE = 9
EDGE_BLUR_SIGMA = 1
"""
Gaussian kernel used before edge detection and for smoothing the center voting accumulator
"""

VOTING_ITERATIONS = 10000
"""
Number of random three point samples taken per circle search
"""

MIN_POINT_SEPARATION_FRACTION = 40 / 1024
"""
Minimum distance between any two of the three sampled points, as a fraction of MAX_SIZE (40 px at
1024). Points closer than this give wildly unstable circles.
"""

MIN_RADIUS_FRACTION = 0.1
"""
Minimum plate radius as a fraction of MAX_SIZE for the outermost circle search
"""

NESTED_RADIUS_FRACTION = 0.8
"""
After the first circle is found, nested circles must be at least this fraction of its radius
"""

MIN_CONTOUR_SIZE_FRACTION = 120 / 1024
"""
A contour's bounding box must be wider or taller than this fraction of MAX_SIZE (120 px at 1024)
to be used
"""

MIN_CONTOUR_POINTS = 15
"""
Minimum number of points in a contour for it to be used
"""

MIN_CENTER_VALUE = 1.0
"""
Minimum smoothed vote count at the best center. Anything lower means no circle was found.
"""

MIN_QUADRANTS = 3
"""
Contour points must cover at least this many quadrants around the center. Short arcs give bad centers.
"""

PEEL_MARGIN = 4
"""
Points further out than (radius peak - PEEL_MARGIN) are removed before looking for a nested circle
"""

RADIUS_SHRINK = 0.975
"""
Final radius is multiplied by this to move inside the detected rim
"""

BACKGROUND_BLUR_FRACTION = 0.2
"""
Half width of the background box filter as a fraction of the plate crop height
"""

OUTLIER_THRESHOLD = 10
"""
Pixels differing from the local average by more than this (0-255) in any channel are not background
"""

REFERENCE_LEVEL = 200
"""
Background is normalized to this value in every channel. Pixels outside the plate are set to it as well.
"""

LIGHTNESS_SCALE = 600.0
"""
Sum of the three channels is divided by this to get the lightness feature
"""

QUANTS = (256, 256)
"""
Number of buckets per feature in the quantized lookup table
"""

SVM_C = 10.0
"""
Regularization parameter for the linear SVM
"""

NOISE_KERNEL_SIZE = 3
"""
Cross shaped kernel used to open the label mask and get rid of single pixel noise
"""

MERGE_KERNEL_SIZE = 5
MERGE_PASSES = 2
"""
Elliptical kernel and number of close passes used to merge fragments of one colony
"""

MIN_COLONY_AREA = 5.0
"""
Minimum contour area (px) for a region to be counted as a colony
"""

MIN_COLONY_CIRCULARITY = 0.4
"""
Minimum 4*pi*area/perimeter^2 for a region to be counted. Scratches and smears fall below this.
"""

COUNT_TOLERANCE = 0.2
"""
When checking counts against hand counts, a count within this fraction of the hand count is ok
"""

ALGORITHM_VERSION = "2013-02-14"
"""
Reported alongside counts so results can be traced to the algorithm that produced them
"""

SCREEN_SIZE = (800, 480)
"""
Width, height of the desktop activity screen
"""
