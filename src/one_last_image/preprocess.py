"""
preprocess.py

Geometry and luminance stage.

Responsibilities:
- Compute the working resolution (zoom, dimension cap)
- Optional square cover crop
- Lanczos resampling
- Luminance plane extraction
- Brightness adjustment
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np
from PIL import Image


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def working_size(
    width: int,
    height: int,
    zoom: Optional[float] = 1.0,
    dimension_cap: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Working resolution for an image of the given size.

    Both axes are divided by zoom and rounded. If a cap is set and the
    width exceeds it, the image is scaled down so width == cap, the
    height truncated to keep the aspect ratio.
    """
    if zoom is None or zoom <= 0:
        zoom = 1.0

    w = _round_half_up(width / zoom)
    h = _round_half_up(height / zoom)

    if dimension_cap is not None and dimension_cap > 0 and w > dimension_cap:
        h = int(h * dimension_cap / w)
        w = int(dimension_cap)

    return max(w, 1), max(h, 1)


def crop_cover(image: Image.Image) -> Image.Image:
    """Center-crop to a square of side min(width, height)."""
    w, h = image.size
    side = min(w, h)
    left = (w - side) // 2
    top = (h - side) // 2
    return image.crop((left, top, left + side, top + side))


def resample(image: Image.Image, size: Tuple[int, int]) -> Image.Image:
    """Lanczos resize; a no-op when the size already matches."""
    if image.size == tuple(size):
        return image
    return image.resize(size, Image.Resampling.LANCZOS)


def luminance(rgba: np.ndarray) -> np.ndarray:
    """
    floor(0.299 R + 0.587 G + 0.114 B) as a uint8 plane.

    Alpha is ignored. The value is truncated, not rounded.
    """
    rgb = np.asarray(rgba, dtype=np.float64)[..., :3]
    y = 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]
    return np.clip(np.floor(y), 0, 255).astype(np.uint8)


def adjust_brightness(plane: np.ndarray, light: float) -> np.ndarray:
    """
    v' = clamp(v + v * light / 100), truncated.

    light == 0 returns the plane untouched.
    """
    if light == 0:
        return plane
    v = plane.astype(np.float64)
    out = v + v * (light / 100.0)
    return np.clip(out, 0, 255).astype(np.uint8)


def prepare(
    image: Image.Image,
    zoom: Optional[float] = 1.0,
    dimension_cap: Optional[int] = None,
    cover: bool = False,
    light: float = 0.0,
) -> Tuple[np.ndarray, int, int]:
    """
    Resample a decoded image and reduce it to a luminance plane.

    Args:
        image: decoded RGBA image
        zoom: downscale divisor; <= 0 or None means 1.0
        dimension_cap: max working width, None for no cap
        cover: center-crop to a square first
        light: brightness offset in percent

    Returns:
        (plane, width, height)
    """
    if cover:
        image = crop_cover(image)

    size = working_size(image.width, image.height, zoom, dimension_cap)
    resized = resample(image, size)

    rgba = np.asarray(resized.convert("RGBA"), dtype=np.uint8)
    plane = adjust_brightness(luminance(rgba), light)
    return plane, size[0], size[1]
