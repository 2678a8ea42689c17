"""
pixeltrack/convolution.py
-------------------------
Separable convolution engine over RGBA buffers: 1-D passes along either
axis, their composition, Gaussian blur and Sobel edge magnitude.

Taps that fall outside the frame are clamped to the nearest valid
coordinate (edge replication), which is exactly
``scipy.ndimage.correlate1d(mode="nearest")``. Results are float32 and are
not clamped to the byte range.
"""

from __future__ import annotations

import logging
import math
from typing import Union

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.ndimage import correlate1d

from .luma import as_rgba, to_gray

log = logging.getLogger(__name__)

SOBEL_SIGN = (-1.0, 0.0, 1.0)
SOBEL_SCALE = (1.0, 2.0, 1.0)

_AXES = {"horizontal": 1, "vertical": 0, 1: 1, 0: 0}


def _axis(axis: Union[str, int]) -> int:
    try:
        return _AXES[axis]
    except KeyError:
        raise ValueError(f"axis must be 'horizontal' or 'vertical', got {axis!r}") from None


def _kernel(weights: ArrayLike) -> NDArray[np.float32]:
    kernel = np.asarray(weights, dtype=np.float32)
    if kernel.ndim != 1 or kernel.size % 2 == 0:
        raise ValueError(f"kernel must be 1-D with an odd length, got shape {kernel.shape}")
    return kernel


# --------------------------------------------------------------------------- #
# 1-D passes
# --------------------------------------------------------------------------- #
def convolve_1d(
    pixels: ArrayLike,
    width: int,
    height: int,
    weights: ArrayLike,
    axis: Union[str, int],
    opaque: bool = False,
) -> NDArray[np.float32]:
    """
    Slide *weights* along one axis of every channel.

    ``out[x] = sum(weights[k] * in[clamp(x + k - len // 2)])``

    Parameters
    ----------
    axis : "horizontal" | "vertical" (or 1 | 0)
    opaque : bool
        Force output alpha to 255 instead of convolving it.

    Returns
    -------
    np.ndarray
        Flat float32 RGBA buffer.
    """
    kernel = _kernel(weights)
    img = as_rgba(pixels, width, height).astype(np.float32)
    out = correlate1d(img, kernel, axis=_axis(axis), mode="nearest")
    if opaque:
        out[..., 3] = 255.0
    return out.reshape(-1)


def horizontal_convolve(pixels, width, height, weights, opaque=False):
    return convolve_1d(pixels, width, height, weights, "horizontal", opaque)


def vertical_convolve(pixels, width, height, weights, opaque=False):
    return convolve_1d(pixels, width, height, weights, "vertical", opaque)


def separable_convolve(
    pixels: ArrayLike,
    width: int,
    height: int,
    horiz_weights: ArrayLike,
    vert_weights: ArrayLike,
    opaque: bool = False,
) -> NDArray[np.float32]:
    """Vertical pass with *vert_weights*, then horizontal with *horiz_weights*."""
    vertical = vertical_convolve(pixels, width, height, vert_weights, opaque)
    return horizontal_convolve(vertical, width, height, horiz_weights, opaque)


# --------------------------------------------------------------------------- #
# Gaussian blur
# --------------------------------------------------------------------------- #
def gaussian_kernel(diameter: float) -> NDArray[np.float32]:
    """
    Odd-length normalised Gaussian with ``rho = (diameter / 2 + 0.5) / 3``.

    Raises
    ------
    ValueError
        If ``|diameter| <= 1``.
    """
    diameter = abs(diameter)
    if diameter <= 1:
        raise ValueError("Diameter should be greater than 1.")

    size = math.ceil(diameter) + (1 - math.ceil(diameter) % 2)
    rho = (diameter / 2 + 0.5) / 3
    x = np.arange(size, dtype=np.float64) - size // 2
    weights = np.exp(-(x * x) / (2 * rho * rho))
    return (weights / weights.sum()).astype(np.float32)


def gaussian_blur(
    pixels: ArrayLike, width: int, height: int, diameter: float
) -> NDArray[np.float32]:
    kernel = gaussian_kernel(diameter)
    log.debug("Gaussian blur: diameter=%.2f taps=%d", diameter, kernel.size)
    return separable_convolve(pixels, width, height, kernel, kernel, opaque=False)


# --------------------------------------------------------------------------- #
# Sobel
# --------------------------------------------------------------------------- #
def sobel(pixels: np.ndarray, width: int, height: int) -> NDArray[np.float32]:
    """
    Sobel edge magnitude.

    The frame is grayscaled, convolved with the ``([-1,0,1], [1,2,1])`` and
    ``([1,2,1], [-1,0,1])`` kernel pairs, and ``sqrt(gx**2 + gy**2)`` is
    written into R, G and B with alpha 255.

    The magnitude image is returned as a new float32 buffer **and** written
    back into *pixels*. Integer buffers receive the magnitude rounded and
    clamped to 0..255; float buffers receive it unchanged.

    Raises
    ------
    TypeError
        If *pixels* is not a NumPy array.
    ValueError
        If *pixels* is read-only or cannot be viewed as RGBA without a copy.
    """
    if not isinstance(pixels, np.ndarray):
        raise TypeError("sobel writes its result back into `pixels`; pass a numpy array")
    if not pixels.flags.writeable:
        raise ValueError("sobel needs a writable pixel buffer")
    target = as_rgba(pixels, width, height)
    if not np.shares_memory(target, pixels):
        raise ValueError("pixel buffer must be contiguous for the in-place write")

    gray = to_gray(pixels, width, height, fill_rgba=True)
    gx = separable_convolve(gray, width, height, SOBEL_SIGN, SOBEL_SCALE)
    gy = separable_convolve(gray, width, height, SOBEL_SCALE, SOBEL_SIGN)
    gx = gx.reshape(height, width, 4)[..., 0]
    gy = gy.reshape(height, width, 4)[..., 0]
    magnitude = np.sqrt(gx * gx + gy * gy)

    output = np.empty((height, width, 4), dtype=np.float32)
    output[..., :3] = magnitude[..., None]
    output[..., 3] = 255.0

    if np.issubdtype(pixels.dtype, np.integer):
        np.copyto(target, np.clip(np.rint(output), 0, 255).astype(pixels.dtype))
    else:
        np.copyto(target, output, casting="unsafe")
    return output.reshape(-1)
