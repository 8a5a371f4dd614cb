"""
colorize.py

Tone plane -> RGBA ink.

Modes:
- grayscale: (v, v, v, 255)
- kiss: diagonal color gradient, alpha = 255 - v (darker tone, more ink)

Optional tone quantization posterizes R, G, B to a few levels.
"""

from __future__ import annotations

from typing import NamedTuple, Optional, Tuple

import numpy as np


class GradientStop(NamedTuple):
    position: float
    r: float
    g: float
    b: float


GRADIENT_STOPS: Tuple[GradientStop, ...] = (
    GradientStop(0.0, 251.0, 186.0, 48.0),
    GradientStop(0.4, 252.0, 114.0, 53.0),
    GradientStop(0.6, 252.0, 53.0, 78.0),
    GradientStop(0.7, 207.0, 54.0, 223.0),
    GradientStop(0.8, 55.0, 181.0, 217.0),
    GradientStop(1.0, 62.0, 182.0, 218.0),
)


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def gradient_color(t: float, stops: Tuple[GradientStop, ...] = GRADIENT_STOPS) -> Tuple[int, int, int]:
    """
    Color at position t on the gradient, channels truncated to int.

    Stops are walked in order; the first stop whose position is >= t
    closes the interpolation interval. Past the last stop, the last
    color is returned.
    """
    t = min(max(float(t), 0.0), 1.0)
    for lo, hi in zip(stops, stops[1:]):
        if t <= hi.position:
            span = hi.position - lo.position
            local = (t - lo.position) / span if span > 0 else 0.0
            return (
                int(_lerp(lo.r, hi.r, local)),
                int(_lerp(lo.g, hi.g, local)),
                int(_lerp(lo.b, hi.b, local)),
            )
    last = stops[-1]
    return int(last.r), int(last.g), int(last.b)


def gradient_field(width: int, height: int) -> np.ndarray:
    """
    (H, W, 3) uint8 gradient keyed by t = (x + y) / (width + height).

    Colors only depend on x + y, so one lookup per diagonal is enough.
    """
    denom = float(width + height)
    lut = np.array(
        [gradient_color(min(s / denom, 1.0)) for s in range(width + height - 1)],
        dtype=np.uint8,
    )
    ys, xs = np.indices((height, width))
    return lut[xs + ys]


def colorize(plane: np.ndarray, kiss: bool = False) -> np.ndarray:
    """Map a tone plane to an (H, W, 4) uint8 RGBA array."""
    h, w = plane.shape
    out = np.empty((h, w, 4), dtype=np.uint8)
    if kiss:
        out[..., :3] = gradient_field(w, h)
        out[..., 3] = 255 - plane
    else:
        out[..., 0] = plane
        out[..., 1] = plane
        out[..., 2] = plane
        out[..., 3] = 255
    return out


def quantize_tones(rgba: np.ndarray, tone_count: Optional[int]) -> np.ndarray:
    """
    Posterize R, G, B to tone_count levels; alpha is left alone.

    level = round(l * (n - 1)) / (n - 1) with l = c / 255, rounding half
    up. tone_count None or <= 1 is a no-op.
    """
    if tone_count is None or tone_count <= 1:
        return rgba
    n1 = float(tone_count - 1)
    l = rgba[..., :3].astype(np.float64) / 255.0
    steps = np.floor(l * n1 + 0.5)
    out = rgba.copy()
    out[..., :3] = np.clip(steps * 255.0 / n1, 0, 255).astype(np.uint8)
    return out
