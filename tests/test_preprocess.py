import numpy as np
import pytest
from PIL import Image

from one_last_image.preprocess import (
    adjust_brightness,
    crop_cover,
    luminance,
    prepare,
    resample,
    working_size,
)


@pytest.mark.parametrize(
    "size,zoom,cap,expected",
    [
        ((100, 100), 1.0, None, (100, 100)),
        ((100, 100), 3.0, None, (33, 33)),
        ((101, 51), 2.0, None, (51, 26)),
        ((640, 480), 0.5, None, (1280, 960)),
        ((640, 480), 0, None, (640, 480)),
        ((640, 480), -2.0, None, (640, 480)),
        ((640, 480), None, None, (640, 480)),
        ((4000, 3000), 1.0, 1920, (1920, 1440)),
        ((3000, 1001), 1.0, 1920, (1920, 640)),
        ((1920, 1080), 1.0, 1920, (1920, 1080)),
        ((4000, 3000), 2.0, 1920, (1920, 1440)),
        ((1, 1), 4.0, None, (1, 1)),
    ],
)
def test_working_size(size, zoom, cap, expected):
    assert working_size(*size, zoom=zoom, dimension_cap=cap) == expected


def test_luminance_weights_truncate():
    rgba = np.array(
        [[[255, 0, 0, 255], [0, 255, 0, 255], [0, 0, 255, 255], [10, 20, 30, 0]]],
        dtype=np.uint8,
    )
    # 76.245, 149.685, 29.07, 18.15
    assert luminance(rgba).tolist() == [[76, 149, 29, 18]]


def test_brightness_zero_is_untouched():
    plane = np.array([[0, 100, 255]], dtype=np.uint8)
    assert adjust_brightness(plane, 0) is plane


@pytest.mark.parametrize(
    "light,expected",
    [(50, [0, 150, 255]), (-50, [0, 50, 127]), (-100, [0, 0, 0]), (10, [0, 110, 255])],
)
def test_brightness_scales_and_clamps(light, expected):
    plane = np.array([[0, 100, 255]], dtype=np.uint8)
    assert adjust_brightness(plane, light).tolist() == [expected]


def test_crop_cover_is_centered_square():
    arr = np.zeros((100, 200, 3), dtype=np.uint8)
    arr[:, 50:150] = 255
    out = crop_cover(Image.fromarray(arr))
    assert out.size == (100, 100)
    assert np.all(np.asarray(out) == 255)


def test_resample_same_size_is_noop():
    img = Image.new("RGBA", (8, 6))
    assert resample(img, (8, 6)) is img
    assert resample(img, (4, 3)).size == (4, 3)


def test_prepare_returns_plane_at_working_size():
    img = Image.new("RGB", (300, 200), (128, 128, 128))
    plane, w, h = prepare(img, zoom=2.0)
    assert (w, h) == (150, 100)
    assert plane.shape == (100, 150)
    assert plane.dtype == np.uint8
    assert len(np.unique(plane)) == 1


def test_prepare_applies_cover_then_cap():
    img = Image.new("RGB", (3000, 2000), (10, 10, 10))
    plane, w, h = prepare(img, zoom=1.0, dimension_cap=1000, cover=True)
    assert (w, h) == (1000, 1000)
    assert plane.shape == (1000, 1000)


def test_prepare_brightness():
    img = Image.new("RGB", (4, 4), (100, 100, 100))
    dark, _, _ = prepare(img)
    bright, _, _ = prepare(img, light=20)
    assert int(bright[0, 0]) == int(dark[0, 0] * 1.2)
