"""
pixeltrack/luma.py
------------------
RGBA buffer helpers and grayscale (luma) reduction.

Buffers are row-major ``[r, g, b, a, r, g, b, a, ...]`` NumPy arrays of
``width * height * 4`` bytes, either flat or shaped ``(height, width, 4)``.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .config import LUMA_B, LUMA_G, LUMA_R, LUMA_SHIFT


def as_rgba(pixels: ArrayLike, width: int, height: int) -> NDArray:
    """
    View *pixels* as an ``(height, width, 4)`` array (no copy when possible).

    Raises
    ------
    ValueError
        If the buffer does not hold exactly ``width * height * 4`` values.
    """
    arr = np.asarray(pixels)
    if arr.size != width * height * 4:
        raise ValueError(
            f"buffer of {arr.size} values does not match {width}x{height} RGBA"
        )
    return arr.reshape(height, width, 4)


def _byte_channels(img: NDArray) -> NDArray[np.int64]:
    # byte semantics for float buffers: clamp, then truncate
    if img.dtype == np.uint8:
        return img.astype(np.int64)
    return np.clip(img, 0, 255).astype(np.int64)


def luma_plane(pixels: ArrayLike, width: int, height: int) -> NDArray[np.int64]:
    """
    Integer BT.709 luma, ``(R*13933 + G*46871 + B*4732) >> 16``, as an
    ``(height, width)`` int64 array.
    """
    rgb = _byte_channels(as_rgba(pixels, width, height)[..., :3])
    return (
        rgb[..., 0] * LUMA_R + rgb[..., 1] * LUMA_G + rgb[..., 2] * LUMA_B
    ) >> LUMA_SHIFT


def to_gray(
    pixels: ArrayLike, width: int, height: int, fill_rgba: bool = False
) -> NDArray[np.uint8]:
    """
    Reduce an RGBA buffer to luminance.

    Parameters
    ----------
    pixels : array_like
        RGBA buffer.
    width, height : int
        Frame size.
    fill_rgba : bool
        If True, return an RGBA buffer with the gray value replicated into
        R, G and B and the input alpha preserved. Otherwise return one value
        per pixel.

    Returns
    -------
    np.ndarray
        A new flat uint8 array; the input is never aliased.
    """
    img = as_rgba(pixels, width, height)
    gray = luma_plane(img, width, height).astype(np.uint8)
    if not fill_rgba:
        return gray.reshape(-1)

    out = np.empty((height, width, 4), dtype=np.uint8)
    out[..., :3] = gray[..., None]
    out[..., 3] = _byte_channels(img[..., 3])
    return out.reshape(-1)
