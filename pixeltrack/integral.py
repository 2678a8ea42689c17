"""
pixeltrack/integral.py
----------------------
Summed-area tables built from one RGBA frame: plain sum, squared sum,
45°-tilted sum and Sobel-magnitude sum. Each table answers a windowed sum
query in O(1), which is what windowed mean / variance / edge-density
evaluation needs.

Recurrences (references outside the frame read as 0):

    SAT(x, y)  = SAT(x, y-1) + SAT(x-1, y) + I(x, y) - SAT(x-1, y-1)
    RSAT(x, y) = RSAT(x-1, y-1) + RSAT(x+1, y-1) - RSAT(x, y-2)
                 + I(x, y) + I(x, y-1)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .convolution import sobel
from .luma import as_rgba, luma_plane

log = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# queries
# --------------------------------------------------------------------------- #
def rect_sum(table: NDArray, x0: int, y0: int, x1: int, y1: int) -> float:
    """Sum over the inclusive rectangle ``(x0, y0)-(x1, y1)`` of an SAT."""
    total = table[y1, x1]
    if x0 > 0:
        total -= table[y1, x0 - 1]
    if y0 > 0:
        total -= table[y0 - 1, x1]
    if x0 > 0 and y0 > 0:
        total += table[y0 - 1, x0 - 1]
    return total.item()


@dataclass
class IntegralImageSet:
    """Accumulator tables of shape ``(height, width)``; unrequested ones are None."""

    width: int
    height: int
    sum: Optional[NDArray[np.int64]] = None
    square_sum: Optional[NDArray[np.int64]] = None
    tilted_sum: Optional[NDArray[np.int64]] = None
    sobel_sum: Optional[NDArray[np.float64]] = None

    def _require(self, name: str) -> NDArray:
        table = getattr(self, name)
        if table is None:
            raise ValueError(f"integral image set was built without the {name!r} table")
        return table

    def window_sum(self, x0: int, y0: int, x1: int, y1: int) -> float:
        return rect_sum(self._require("sum"), x0, y0, x1, y1)

    def window_mean(self, x0: int, y0: int, x1: int, y1: int) -> float:
        area = (x1 - x0 + 1) * (y1 - y0 + 1)
        return self.window_sum(x0, y0, x1, y1) / area

    def window_variance(self, x0: int, y0: int, x1: int, y1: int) -> float:
        """Luma variance in the window, ``E[I²] - E[I]²``."""
        area = (x1 - x0 + 1) * (y1 - y0 + 1)
        mean = self.window_mean(x0, y0, x1, y1)
        square = rect_sum(self._require("square_sum"), x0, y0, x1, y1) / area
        return square - mean * mean

    def edge_density(self, x0: int, y0: int, x1: int, y1: int) -> float:
        """Mean Sobel magnitude in the window."""
        area = (x1 - x0 + 1) * (y1 - y0 + 1)
        return rect_sum(self._require("sobel_sum"), x0, y0, x1, y1) / area


# --------------------------------------------------------------------------- #
# builders
# --------------------------------------------------------------------------- #
def _sat(values: NDArray) -> NDArray:
    return np.cumsum(np.cumsum(values, axis=0), axis=1)


def _rsat(luma: NDArray[np.int64]) -> NDArray[np.int64]:
    height, width = luma.shape
    rsat = np.zeros((height, width), dtype=np.int64)
    above = np.zeros_like(luma)
    above[1:] = luma[:-1]

    for y in range(height):
        row = luma[y] + above[y]
        if y >= 1:
            prev = rsat[y - 1]
            row[1:] += prev[:-1]     # RSAT(x-1, y-1)
            row[:-1] += prev[1:]     # RSAT(x+1, y-1)
        if y >= 2:
            row -= rsat[y - 2]
        rsat[y] = row
    return rsat


def build_integral_images(
    pixels: ArrayLike,
    width: int,
    height: int,
    *,
    compute_sum: bool = False,
    compute_square: bool = False,
    compute_tilted: bool = False,
    compute_sobel: bool = False,
) -> IntegralImageSet:
    """
    Build the requested summed-area tables from one RGBA frame.

    Luma is the BT.709 integer luma truncated to an integer. The Sobel table
    runs a single `sobel` pass over a private copy of the frame, so the
    caller's buffer is left untouched and the other tables still see the
    source luma.

    Raises
    ------
    ValueError
        If no table is requested.
    """
    if not (compute_sum or compute_square or compute_tilted or compute_sobel):
        raise ValueError(
            "You should request at least one table: sum, square, tilted or sobel."
        )

    img = as_rgba(pixels, width, height)
    luma = luma_plane(img, width, height)
    tables = IntegralImageSet(width=width, height=height)

    if compute_sum:
        tables.sum = _sat(luma)
    if compute_square:
        tables.square_sum = _sat(luma * luma)
    if compute_tilted:
        tables.tilted_sum = _rsat(luma)
    if compute_sobel:
        edges = sobel(np.array(img, copy=True), width, height)
        magnitude = edges.reshape(height, width, 4)[..., 0].astype(np.float64)
        tables.sobel_sum = _sat(magnitude)

    log.debug(
        "Integral images %dx%d: sum=%s square=%s tilted=%s sobel=%s",
        width,
        height,
        compute_sum,
        compute_square,
        compute_tilted,
        compute_sobel,
    )
    return tables
