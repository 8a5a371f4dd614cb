import numpy as np
import pytest

from helpers import to_png


@pytest.fixture
def solid_rgb():
    def make(width, height, color=(128, 128, 128)):
        arr = np.empty((height, width, 3), dtype=np.uint8)
        arr[...] = color
        return arr
    return make


@pytest.fixture
def stripes():
    """Black/white vertical stripes, `period` pixels each."""
    def make(width, height, period=10):
        cols = ((np.arange(width) // period) % 2) * 255
        plane = np.tile(cols.astype(np.uint8), (height, 1))
        return np.dstack([plane, plane, plane])
    return make


@pytest.fixture
def two_logo_asset():
    """Watermark asset: opaque red top half, opaque blue bottom half."""
    arr = np.zeros((40, 80, 4), dtype=np.uint8)
    arr[:20] = (255, 0, 0, 255)
    arr[20:] = (0, 0, 255, 255)
    return to_png(arr)
