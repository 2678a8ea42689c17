"""Tests for 1-D / separable convolution, Gaussian blur and Sobel."""

import numpy as np
import pytest

from pixeltrack.convolution import (
    convolve_1d,
    gaussian_blur,
    gaussian_kernel,
    horizontal_convolve,
    separable_convolve,
    sobel,
    vertical_convolve,
)


def _row_frame(values):
    """1-row frame whose R channel holds *values*."""
    img = np.zeros((1, len(values), 4), dtype=np.uint8)
    img[0, :, 0] = values
    img[..., 3] = 255
    return img.reshape(-1)


def test_identity_kernel(rng):
    frame = rng.integers(0, 256, size=6 * 5 * 4).astype(np.uint8)
    out = convolve_1d(frame, 6, 5, [0, 1, 0], "horizontal")
    assert out.dtype == np.float32
    np.testing.assert_array_equal(out, frame.astype(np.float32))


def test_horizontal_taps_clamp_to_edge():
    frame = _row_frame([10, 20, 30])
    out = horizontal_convolve(frame, 3, 1, [1, 0, 0]).reshape(3, 4)
    # out[x] = in[clamp(x - 1)]
    np.testing.assert_array_equal(out[:, 0], [10, 10, 20])

    out = horizontal_convolve(frame, 3, 1, [0, 0, 1]).reshape(3, 4)
    np.testing.assert_array_equal(out[:, 0], [20, 30, 30])


def test_vertical_taps_clamp_to_edge():
    img = np.zeros((3, 1, 4), dtype=np.uint8)
    img[:, 0, 1] = [5, 50, 100]
    out = vertical_convolve(img.reshape(-1), 1, 3, [1, 1, 1]).reshape(3, 4)
    np.testing.assert_array_equal(out[:, 1], [60, 155, 250])


def test_axis_accepts_integers():
    frame = _row_frame([1, 2, 3, 4, 5])
    np.testing.assert_array_equal(
        convolve_1d(frame, 5, 1, [1, 2, 1], 1),
        convolve_1d(frame, 5, 1, [1, 2, 1], "horizontal"),
    )


def test_opaque_forces_alpha():
    img = np.full((2, 2, 4), 100, dtype=np.uint8)
    plain = convolve_1d(img, 2, 2, [0.5, 0, 0.5], "vertical").reshape(2, 2, 4)
    opaque = convolve_1d(img, 2, 2, [0.5, 0, 0.5], "vertical", opaque=True).reshape(2, 2, 4)
    assert (plain[..., 3] == 100).all()
    assert (opaque[..., 3] == 255).all()
    np.testing.assert_array_equal(plain[..., :3], opaque[..., :3])


def test_invalid_kernel_and_axis():
    frame = _row_frame([1, 2, 3])
    with pytest.raises(ValueError):
        convolve_1d(frame, 3, 1, [1, 1], "horizontal")
    with pytest.raises(ValueError):
        convolve_1d(frame, 3, 1, [1, 2, 1], "diagonal")


def test_separable_is_unclamped_float():
    frame = _row_frame([255, 255, 255])
    out = separable_convolve(frame, 3, 1, [1, 1, 1], [1, 1, 1]).reshape(3, 4)
    # 3 vertical taps (clamped rows) x 3 horizontal taps
    assert (out[:, 0] == 255 * 9).all()


@pytest.mark.parametrize("diameter,size", [(1.01, 3), (3, 3), (4, 5), (6.5, 7), (-3, 3)])
def test_gaussian_kernel_shape(diameter, size):
    kernel = gaussian_kernel(diameter)
    assert kernel.size == size
    assert kernel.sum() == pytest.approx(1.0, abs=1e-6)
    np.testing.assert_allclose(kernel, kernel[::-1])
    assert kernel.argmax() == size // 2


@pytest.mark.parametrize("diameter", [1, 0.5, 0, -1])
def test_gaussian_rejects_small_diameter(make_frame, diameter):
    with pytest.raises(ValueError):
        gaussian_blur(make_frame(4, 4, (1, 2, 3)), 4, 4, diameter)


@pytest.mark.parametrize("diameter", [1.01, 2.5, 5, 11])
def test_blur_preserves_flat_field(make_frame, diameter):
    frame = make_frame(20, 15, (200, 40, 90), alpha=180)
    out = gaussian_blur(frame, 20, 15, diameter).reshape(15, 20, 4)
    np.testing.assert_allclose(out[..., 0], 200, atol=1e-3)
    np.testing.assert_allclose(out[..., 1], 40, atol=1e-3)
    np.testing.assert_allclose(out[..., 2], 90, atol=1e-3)
    np.testing.assert_allclose(out[..., 3], 180, atol=1e-3)


def test_blur_smooths_a_step(boundary_frame):
    out = gaussian_blur(boundary_frame, 100, 100, 5).reshape(100, 100, 4)
    row = out[50, :, 0]
    assert 0 < row[49] < row[50] < 255
    assert row[0] == pytest.approx(0.0, abs=1e-4)
    assert row[99] == pytest.approx(255.0, abs=1e-3)


def test_sobel_flat_frame_is_zero(gray_frame):
    out = sobel(gray_frame, 100, 100).reshape(100, 100, 4)
    assert (out[..., :3] == 0).all()
    assert (out[..., 3] == 255).all()

    written = gray_frame.reshape(100, 100, 4)
    assert (written[..., :3] == 0).all()
    assert (written[..., 3] == 255).all()


def test_sobel_vertical_boundary(boundary_frame):
    out = sobel(boundary_frame, 100, 100).reshape(100, 100, 4)
    magnitude = out[..., 0]

    assert (magnitude[:, 49] == 1020).all()
    assert (magnitude[:, 50] == 1020).all()
    others = np.delete(magnitude, [49, 50], axis=1)
    assert (others == 0).all()

    # the input buffer now holds the byte-clamped magnitude
    written = boundary_frame.reshape(100, 100, 4)
    assert (written[:, 49:51, :3] == 255).all()
    assert (np.delete(written[..., 0], [49, 50], axis=1) == 0).all()


def test_sobel_float_buffer_receives_raw_magnitude(boundary_frame):
    frame = boundary_frame.astype(np.float32)
    sobel(frame, 100, 100)
    assert frame.reshape(100, 100, 4)[0, 49, 0] == 1020


def test_sobel_requires_writable_ndarray(gray_frame):
    with pytest.raises(TypeError):
        sobel(gray_frame.tolist(), 100, 100)

    gray_frame.flags.writeable = False
    with pytest.raises(ValueError):
        sobel(gray_frame, 100, 100)
