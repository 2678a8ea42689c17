"""
pixeltrack/preprocess.py
========================

Frame conditioning ahead of the tracker:

1.  `equalize_histogram` stretches a grayscale buffer over 0..255 through
    its cumulative histogram.
2.  `prepare_edges` turns an RGBA frame into the byte Sobel edge frame the
    contour tracer walks, with an optional Gaussian blur first.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .config import DEFAULT_BLUR_DIAMETER, EDGE_CHANNEL_THRESHOLD
from .convolution import gaussian_blur, sobel
from .luma import as_rgba

log = logging.getLogger(__name__)


def equalize_histogram(gray: ArrayLike, width: int, height: int) -> NDArray[np.uint8]:
    """
    Equalise the histogram of a single-channel grayscale buffer.

    Each value ``v`` is remapped to ``round(cdf[v] * 255 / N)`` where ``cdf``
    is the cumulative 256-bin histogram and ``N`` the pixel count.

    Args:
        gray: ``width * height`` intensities (0..255).
        width, height: Frame size.

    Returns:
        A new flat uint8 array of the same length.
    """
    values = np.asarray(gray).reshape(-1)
    if values.size != width * height:
        raise ValueError(
            f"grayscale buffer of {values.size} values does not match {width}x{height}"
        )
    if values.size == 0:
        return np.zeros(0, dtype=np.uint8)

    values = np.clip(values, 0, 255).astype(np.intp)
    cdf = np.cumsum(np.bincount(values, minlength=256))
    lut = np.floor(cdf * 255.0 / values.size + 0.5).astype(np.uint8)
    return lut[values]


def prepare_edges(
    pixels: ArrayLike,
    width: int,
    height: int,
    blur_diameter: Optional[float] = DEFAULT_BLUR_DIAMETER,
) -> NDArray[np.uint8]:
    """
    Build the edge-filtered frame the contour tracer consumes.

    Args:
        pixels: RGBA frame; left untouched.
        width, height: Frame size.
        blur_diameter: Gaussian blur applied before Sobel to suppress sensor
            noise. ``None`` or 0 skips the blur; values in (0, 1] are
            rejected by `gaussian_blur`.

    Returns:
        A flat uint8 RGBA buffer holding the Sobel magnitude (clamped to
        0..255) in R, G and B with alpha 255.
    """
    frame = np.array(as_rgba(pixels, width, height), dtype=np.uint8).reshape(-1)

    if blur_diameter:
        blurred = gaussian_blur(frame, width, height, blur_diameter)
        frame = np.clip(np.rint(blurred), 0, 255).astype(np.uint8)

    # sobel overwrites `frame` with the byte-clamped magnitude
    sobel(frame, width, height)
    log.debug(
        "Edge frame %dx%d: %.2f%% strong-edge pixels",
        width,
        height,
        100.0 * float((frame.reshape(-1, 4)[:, 0] > EDGE_CHANNEL_THRESHOLD).mean()) if frame.size else 0.0,
    )
    return frame
