"""
pixeltrack/config.py  –  central configuration & logging

1.  Tracker tunables (colour threshold, no-match cutoff, edge / contour gates)
2.  Frame-relative group-size fractions, resolved per frame by
    `get_adaptive_parameters`
3.  CLI / evaluation constants and overlay styling
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Any

# --------------------------------------------------------------------------- #
# Luma weights – BT.709 scaled by 2**16 (0.2126, 0.7152, 0.0722)
# --------------------------------------------------------------------------- #
LUMA_R: int = 13933
LUMA_G: int = 46871
LUMA_B: int = 4732
LUMA_SHIFT: int = 16

# --------------------------------------------------------------------------- #
# Colour-similarity flood fill
# --------------------------------------------------------------------------- #
COLOR_DISTANCE_THRESHOLD: float = 40.0   # Lab units; accepted if distance < this
NO_MATCH_DEPTH_LIMIT    : int   = 8      # rejections tolerated per layer

# ---- Group sizes, as a fraction of width*height -------------------------- #
MIN_GROUP_FRACTION: float = 0.0005
MAX_GROUP_FRACTION: float = 0.2

# ---- Edge-contour tracer ------------------------------------------------- #
EDGE_CHANNEL_THRESHOLD: int = 200   # R, G and B must all exceed this
MIN_CONTOUR_LENGTH    : int = 100   # shorter walks are noise

# ---- Frame preparation --------------------------------------------------- #
DEFAULT_BLUR_DIAMETER: float = 3.0  # blur before Sobel in contour mode; 0 disables

# Global veto used by counter.py
MAX_REASONABLE_COUNT: int = 400

# --------------------------------------------------------------------------- #
# CLI / evaluation
# --------------------------------------------------------------------------- #
IMAGE_GLOB_PATTERN   : str = "*.[jp][pn]g"
VIDEO_SUFFIXES       : tuple[str, ...] = (".mp4", ".avi", ".mov", ".mkv", ".webm")
GROUND_TRUTH_FILENAME: str = "ground_truth.json"
DEFAULT_RESIZE_WIDTH : int = 320    # frames are downscaled before tracking

# ---- Overlay rendering --------------------------------------------------- #
OVERLAY_ALPHA           : float = 0.6
OVERLAY_SATURATION      : int   = 200
OVERLAY_VALUE           : int   = 255
HUE_GOLDEN_RATIO_DEGREES: float = 137.508

# --------------------------------------------------------------------------- #
# Logging
# --------------------------------------------------------------------------- #
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )


# --------------------------------------------------------------------------- #
# Adaptive parameter provider
# --------------------------------------------------------------------------- #
def get_adaptive_parameters(width: int, height: int) -> Dict[str, Any]:
    """
    Return the numeric knobs that depend on the frame size.

    Returns a dict that *always* contains:
        • min_group_size / max_group_size   (pixel counts)
        • total_px
    """
    total_px = max(width, 0) * max(height, 0)
    return {
        "total_px": total_px,
        "min_group_size": MIN_GROUP_FRACTION * total_px,
        "max_group_size": MAX_GROUP_FRACTION * total_px,
    }
