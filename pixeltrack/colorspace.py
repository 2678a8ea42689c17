"""
pixeltrack/colorspace.py
------------------------
Colour science helpers: sRGB → linear RGB → CIE XYZ → CIE L*a*b* → LCH, and
the Lab Euclidean distance used as the perceptual colour-difference metric
everywhere else in the package.

Every function is vectorised with NumPy over a trailing axis of length 3, so
the same call converts one colour or a whole frame. Single samples come back
as plain floats (scalars) or length-3 arrays.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

# BT.709 primaries, D65 white
RGB_TO_XYZ = np.array([
    [0.4124, 0.3576, 0.1805],
    [0.2126, 0.7152, 0.0722],
    [0.0193, 0.1192, 0.9505],
])

# X, Y, Z of the D65 reference white (scaled like rgb_to_xyz output)
D65_WHITE = np.array([95.047, 100.0, 108.883])

LAB_EPSILON = 0.008856
LAB_KAPPA_SLOPE = 7.787


def _unwrap(arr: NDArray) -> NDArray | float:
    return float(arr) if np.ndim(arr) == 0 else arr


def _channels(rgb: ArrayLike) -> NDArray[np.float64]:
    arr = np.asarray(rgb, dtype=np.float64)
    if arr.ndim == 0 or arr.shape[-1] < 3:
        raise ValueError(f"expected a trailing colour axis of length >= 3, got shape {arr.shape}")
    # RGBA input is accepted; alpha plays no part in colour
    return arr[..., :3]


# --------------------------------------------------------------------------- #
# sRGB decoding
# --------------------------------------------------------------------------- #
def srgb_decode(c: ArrayLike) -> NDArray | float:
    """
    Linearise a gamma-encoded sRGB channel in ``[0, 1]``.

    The transfer function is linear near black and a 2.4 power curve above
    ``0.04045``.
    """
    c = np.asarray(c, dtype=np.float64)
    linear = np.where(c <= 0.04045, c / 12.92, ((c + 0.055) / 1.055) ** 2.4)
    return _unwrap(linear)


def rgb_to_linear(rgb: ArrayLike) -> NDArray[np.float64]:
    """Byte RGB (0..255) to linear RGB (0..1)."""
    return np.asarray(srgb_decode(_channels(rgb) / 255.0))


# --------------------------------------------------------------------------- #
# XYZ / Lab
# --------------------------------------------------------------------------- #
def rgb_to_xyz(rgb: ArrayLike) -> NDArray[np.float64]:
    """Byte RGB to CIE 1931 XYZ, scaled so that white has Y = 100."""
    return rgb_to_linear(rgb) @ RGB_TO_XYZ.T * 100.0


def _lab_f(t: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.where(t > LAB_EPSILON, np.cbrt(t), LAB_KAPPA_SLOPE * t + 16.0 / 116.0)


def xyz_to_lab(xyz: ArrayLike) -> NDArray[np.float64]:
    """
    CIE XYZ (D65, 2° observer) to CIE L*a*b*.

    Parameters
    ----------
    xyz : array_like
        ``(..., 3)`` XYZ values on the 0..100 scale.

    Returns
    -------
    np.ndarray
        ``(..., 3)`` array of ``(L, a, b)``.
    """
    f = _lab_f(_channels(xyz) / D65_WHITE)
    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]
    return np.stack([116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)], axis=-1)


def rgb_to_lab(rgb: ArrayLike) -> NDArray[np.float64]:
    return xyz_to_lab(rgb_to_xyz(rgb))


def lab_distance(a: ArrayLike, b: ArrayLike) -> NDArray | float:
    """Euclidean distance in (L, a, b) – the CIE76 ΔE."""
    diff = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return _unwrap(np.sqrt(np.sum(diff * diff, axis=-1)))


# --------------------------------------------------------------------------- #
# LCH
# --------------------------------------------------------------------------- #
def ab_to_hue(a: ArrayLike, b: ArrayLike) -> NDArray | float:
    """
    Hue angle in degrees ``[0, 360)`` from the a/b chroma axes.

    Points on the axes are exact (0, 90, 180, 270). Elsewhere the result is
    ``degrees(atan(b / a))`` plus a quadrant bias: 0 for ``a > 0, b > 0``,
    180 for ``a < 0`` and 360 for ``a > 0, b < 0``.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        angle = np.degrees(np.arctan(b / a))

    bias = np.select(
        [(a > 0) & (b > 0), a < 0, (a > 0) & (b < 0)],
        [0.0, 180.0, 360.0],
        default=0.0,
    )
    hue = np.select(
        [
            (a >= 0) & (b == 0),
            (a < 0) & (b == 0),
            (a == 0) & (b > 0),
            (a == 0) & (b < 0),
        ],
        [0.0, 180.0, 90.0, 270.0],
        default=angle + bias,
    )
    return _unwrap(hue)


def lab_to_lch(lab: ArrayLike) -> NDArray[np.float64]:
    """CIE L*a*b* to ``(L, C, H)`` with ``H`` from :func:`ab_to_hue`."""
    lab = _channels(lab)
    a, b = lab[..., 1], lab[..., 2]
    chroma = np.sqrt(a * a + b * b)
    return np.stack([lab[..., 0], chroma, np.asarray(ab_to_hue(a, b))], axis=-1)


def rgb_hue(rgb: ArrayLike) -> NDArray | float:
    lab = rgb_to_lab(rgb)
    return ab_to_hue(lab[..., 1], lab[..., 2])


# --------------------------------------------------------------------------- #
# comparison
# --------------------------------------------------------------------------- #
def compare_rgb(a: ArrayLike, b: ArrayLike) -> NDArray | float:
    """Perceptual distance between two byte RGB colours (Lab ΔE)."""
    return lab_distance(rgb_to_lab(a), rgb_to_lab(b))
