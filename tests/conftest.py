"""Shared synthetic frames for the test-suite."""

import numpy as np
import pytest


@pytest.fixture
def make_frame():
    """Factory: solid ``(height, width, 4)`` uint8 frame."""

    def _make(width, height, rgb, alpha=255):
        img = np.empty((height, width, 4), dtype=np.uint8)
        img[..., :3] = rgb
        img[..., 3] = alpha
        return img

    return _make


@pytest.fixture
def gray_frame(make_frame):
    """100×100 uniform gray, flat RGBA."""
    return make_frame(100, 100, (128, 128, 128)).reshape(-1)


@pytest.fixture
def red_square_frame(make_frame):
    """100×100 white frame with a 30×30 red square at (35, 35), flat RGBA."""
    img = make_frame(100, 100, (255, 255, 255))
    img[35:65, 35:65, :3] = (255, 0, 0)
    return img.reshape(-1)


@pytest.fixture
def boundary_frame(make_frame):
    """100×100 frame, black for x < 50 and white for x >= 50, flat RGBA."""
    img = make_frame(100, 100, (0, 0, 0))
    img[:, 50:, :3] = 255
    return img.reshape(-1)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
