# pixeltrack/__init__.py
"""
Pixel-buffer processing and region tracking for object counting.

Dependencies: numpy, scipy, opencv, imutils
"""

from . import config
from .colorspace import (
    ab_to_hue,
    compare_rgb,
    lab_distance,
    lab_to_lch,
    rgb_to_lab,
    rgb_to_xyz,
    srgb_decode,
    xyz_to_lab,
)
from .luma import to_gray
from .convolution import (
    convolve_1d,
    gaussian_blur,
    separable_convolve,
    sobel,
)
from .integral import IntegralImageSet, build_integral_images
from .preprocess import equalize_histogram, prepare_edges
from .tracker import (
    BoundingRect,
    Region,
    TrackerConfig,
    TrackingMode,
    track,
)
from .counter import process_frame, process_image, process_video
from .cli import main as run_cli

__all__ = [
    "config",
    # Colour
    "ab_to_hue",
    "compare_rgb",
    "lab_distance",
    "lab_to_lch",
    "rgb_to_lab",
    "rgb_to_xyz",
    "srgb_decode",
    "xyz_to_lab",
    # Filters
    "to_gray",
    "convolve_1d",
    "separable_convolve",
    "gaussian_blur",
    "sobel",
    "equalize_histogram",
    "prepare_edges",
    # Integral images
    "IntegralImageSet",
    "build_integral_images",
    # Tracking
    "BoundingRect",
    "Region",
    "TrackerConfig",
    "TrackingMode",
    "track",
    # Coordinator
    "process_frame",
    "process_image",
    "process_video",
    "run_cli",
]

import logging
log = logging.getLogger(__name__)
log.debug("pixeltrack package loaded")
