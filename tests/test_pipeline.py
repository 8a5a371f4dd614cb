import base64
import logging

import numpy as np
import pytest
from PIL import Image

from one_last_image import OptionsRecord, one_last_image, render, transform
from one_last_image.options import FinishingPass

from helpers import from_png, to_png


@pytest.mark.parametrize(
    "data",
    [b"", b"garbage bytes", b"\x89PNG\r\n\x1a\n truncated"],
)
def test_undecodable_input_is_returned_unchanged(data):
    assert transform(data) == data
    assert transform(data, {"kiss": False}) == data


def test_undecodable_input_is_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="one_last_image.pipeline"):
        transform(b"nope")
    assert "transform skipped" in caplog.text


@pytest.mark.parametrize(
    "size,zoom,expected",
    [((100, 100), 1.0, (100, 100)), ((101, 51), 2.0, (51, 26)), ((90, 60), 1.5, (60, 40)), ((40, 30), 0.5, (80, 60))],
)
def test_output_dimensions_follow_zoom(solid_rgb, size, zoom, expected):
    out = from_png(transform(to_png(solid_rgb(*size)), {"zoom": zoom}))
    assert (out.shape[1], out.shape[0]) == expected


def test_wide_images_are_capped(solid_rgb):
    out = from_png(transform(to_png(solid_rgb(2000, 100)), {"kiss": False, "watermark": False}))
    assert out.shape[:2] == (96, 1920)


def test_cap_can_be_disabled(solid_rgb):
    opts = OptionsRecord(dimension_cap=None, kiss=False)
    img = render(Image.fromarray(solid_rgb(2000, 20)), opts)
    assert img.size == (2000, 20)


def test_mid_gray_grayscale_is_flat_and_opaque(solid_rgb):
    data = to_png(solid_rgb(100, 100, (128, 128, 128)))
    out = from_png(transform(data, {"kiss": False}))
    assert out.shape == (100, 100, 4)
    assert np.all(out[..., 3] == 255)
    assert np.array_equal(out[..., 0], out[..., 1])
    assert np.array_equal(out[..., 1], out[..., 2])
    assert len(np.unique(out[..., 0])) == 1


def test_watermark_disabled_equals_missing_asset(stripes):
    data = to_png(stripes(120, 80))
    off = transform(data, {"watermark": False})
    missing = transform(data, {"watermark": True})
    assert off != data
    assert np.array_equal(from_png(off), from_png(missing))


def test_bad_watermark_asset_is_skipped(stripes, caplog):
    data = to_png(stripes(120, 80))
    plain = from_png(transform(data, {"watermark": False}))
    with caplog.at_level(logging.WARNING, logger="one_last_image.pipeline"):
        bad = from_png(transform(data, {"watermark": True, "watermark_image": "@@@"}))
    assert np.array_equal(plain, bad)
    assert "skipping watermark" in caplog.text


def test_watermark_changes_bottom_right_corner(solid_rgb, two_logo_asset):
    data = to_png(solid_rgb(300, 100, (128, 128, 128)))
    plain = from_png(transform(data, {"kiss": False, "watermark": False}))
    b64 = base64.b64encode(two_logo_asset).decode()
    marked = from_png(transform(data, {"kiss": False, "watermarkImage": b64}))

    diff = np.argwhere(np.any(plain != marked, axis=-1))
    assert len(diff) > 0
    assert diff[:, 0].min() >= 80
    assert diff[:, 1].min() >= 230
    assert np.all(marked[..., 3] == 255)


def test_tone_count_two_gives_black_and_white(stripes):
    data = to_png(stripes(60, 40, period=10))
    opts = {
        "kiss": False,
        "quality": "sketch",
        "toneCount": 2,
        "finishing_pass": "none",
        "watermark": False,
    }
    out = from_png(transform(data, opts))
    assert set(np.unique(out[..., :3]).tolist()) == {0, 255}
    assert np.array_equal(out[..., 0], out[..., 2])


def test_kiss_mode_produces_gradient_ink(stripes):
    out = from_png(transform(to_png(stripes(80, 80)), {"kiss": True, "watermark": False}))
    assert np.all(out[..., 3] == 255)
    # colored ink somewhere, so channels differ
    assert np.any(out[..., 0] != out[..., 2])


@pytest.mark.parametrize("quality", ["fine", "normal", "coarse", "superCoarse", "extraCoarse", "sketch", "emboss"])
@pytest.mark.parametrize("finish", [f.value for f in FinishingPass])
def test_every_quality_and_finish_renders(stripes, quality, finish):
    img = render(
        Image.fromarray(stripes(48, 32)),
        OptionsRecord(quality=quality, finishing_pass=FinishingPass(finish), watermark=False),
    )
    assert img.mode == "RGBA"
    assert img.size == (48, 32)
    assert np.all(np.asarray(img)[..., 3] == 255)


def test_soft_profile_end_to_end(stripes):
    out = transform(to_png(stripes(64, 48)), {"profile": "soft"})
    assert from_png(out).shape == (48, 64, 4)


def test_translucent_input_is_handled():
    arr = np.zeros((20, 20, 4), dtype=np.uint8)
    arr[..., :3] = 90
    arr[:, 10:, 3] = 255
    out = from_png(transform(to_png(arr), {"kiss": False}))
    assert out.shape == (20, 20, 4)


def test_internal_failure_returns_input(stripes, caplog):
    data = to_png(stripes(20, 20))
    broken = OptionsRecord(finishing_pass="blur")
    with caplog.at_level(logging.ERROR, logger="one_last_image.pipeline"):
        assert transform(data, broken) == data
    assert "returning input unchanged" in caplog.text


def test_invalid_config_uses_defaults(stripes):
    data = to_png(stripes(40, 40))
    assert transform(data, "{broken") == transform(data)


@pytest.mark.parametrize(
    "options",
    ['{"lightCut": 1e999}', '{"toneCount": 1e999}', {"sharpenRadius": 0}, {"sharpen_radius": -1}],
)
def test_unusable_option_values_use_defaults(stripes, options):
    data = to_png(stripes(40, 40))
    result = transform(data, options)
    assert result != data
    assert result == transform(data)


def test_deterministic_and_alias(stripes):
    data = to_png(stripes(50, 30))
    assert transform(data) == one_last_image(data)
