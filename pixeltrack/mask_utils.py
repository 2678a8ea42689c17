"""
pixeltrack/mask_utils.py
------------------------
Region lists → int32 label maps, tinted overlays for visual inspection and
binary masks. Overlay colours come from OpenCV's HSV conversion.
"""

from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np

from . import config
from .tracker import Region


# --------------------------------------------------------------------------- #
# 1. regions → label map
# --------------------------------------------------------------------------- #
def regions_to_markers(regions: Sequence[Region], width: int, height: int) -> np.ndarray:
    """
    Paint every region's members with its position in *regions* (1-based).

    Returns
    -------
    np.ndarray
        int32 ``(height, width)`` label matrix, 0 = background.
    """
    markers = np.zeros(width * height, dtype=np.int32)
    for label, region in enumerate(regions, 1):
        if region.members:
            markers[np.asarray(region.members, dtype=np.int64) // 4] = label
    return markers.reshape(height, width)


# --------------------------------------------------------------------------- #
# 2. region overlay                                                            #
# --------------------------------------------------------------------------- #
def _label_palette(count: int) -> np.ndarray:
    """BGR colour for ranks 0..count; rank 0 is black, hues step by the golden angle."""
    hsv = np.empty((1, count + 1, 3), dtype=np.uint8)
    hsv[0, :, 0] = (np.arange(count + 1) * config.HUE_GOLDEN_RATIO_DEGREES % 180).astype(np.uint8)
    hsv[0, :, 1] = config.OVERLAY_SATURATION
    hsv[0, :, 2] = config.OVERLAY_VALUE
    palette = cv2.cvtColor(hsv, cv2.COLOR_HSV2BGR)[0]
    palette[0] = 0
    return palette


def create_coloured_overlay(
    bgr: np.ndarray, markers: np.ndarray, alpha: float = config.OVERLAY_ALPHA
) -> np.ndarray:
    """
    Tint every labelled pixel of a BGR frame.

    Labels are ranked in ascending order and each rank gets its own palette
    colour, added on top of the frame with weight *alpha*. Pixels labelled
    0 are returned unchanged.
    """
    labels = np.unique(markers[markers > 0])
    rank = np.where(markers > 0, np.searchsorted(labels, markers) + 1, 0)
    tint = _label_palette(labels.size)[rank]
    return cv2.addWeighted(bgr, 1.0, tint, alpha, 0.0)


# --------------------------------------------------------------------------- #
# 3. label map → mask                                                          #
# --------------------------------------------------------------------------- #
def labels_to_binary(markers: np.ndarray) -> np.ndarray:
    """255 wherever a region was painted, 0 elsewhere."""
    return ((markers > 0) * 255).astype(np.uint8)
