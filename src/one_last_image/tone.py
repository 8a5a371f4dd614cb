"""
tone.py

Tone extraction: luminance plane -> line/tone plane.

Flow (each step optional):
- denoise (small Gaussian)
- quality kernel: high-pass against a box blur, emboss relief,
  or Sobel edge magnitude for "sketch"
- contrast remap (light/dark cut)
- finishing pass: unsharp mask, anti-aliasing, or none

Output convention: light field (~255), dark lines.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .convolve import convolve, convolve_float, to_plane
from .kernels import (
    EMBOSS_QUALITY,
    Kernel,
    gaussian_kernel,
    kernel_for_quality,
    sobel_x,
    sobel_y,
)
from .options import FinishingPass, OptionsRecord


logger = logging.getLogger(__name__)

DENOISE_SIZE = 3
DENOISE_SIGMA = 0.8
UNSHARP_SIZE = 5
REMAP_MIN_DIVISOR = 1e-3

# orthogonal neighbours weigh 1, diagonal ones 1/sqrt(2)
_NEIGHBOURS = [
    (dy, dx, 1.0 / float(np.hypot(dy, dx)))
    for dy in (-1, 0, 1)
    for dx in (-1, 0, 1)
    if (dy, dx) != (0, 0)
]
_NEIGHBOUR_TOTAL = sum(a for _, _, a in _NEIGHBOURS)


# ---------- kernel passes ----------

def denoise(plane: np.ndarray, workers: Optional[int] = None) -> np.ndarray:
    return convolve(plane, gaussian_kernel(DENOISE_SIZE, DENOISE_SIGMA), workers=workers)


def high_pass(plane: np.ndarray, kernel: Kernel, workers: Optional[int] = None) -> np.ndarray:
    """clamp(128 + original - blurred): mid-gray flats, dark lines at edges."""
    blurred = convolve(plane, kernel, workers=workers)
    diff = 128.0 + plane.astype(np.float64) - blurred.astype(np.float64)
    return to_plane(diff)


def emboss_pass(plane: np.ndarray, kernel: Kernel, workers: Optional[int] = None) -> np.ndarray:
    """Relief centered at mid-gray: clamp(128 + emboss(plane))."""
    return to_plane(128.0 + convolve_float(plane, kernel, workers=workers))


def sobel_magnitude(plane: np.ndarray, workers: Optional[int] = None) -> np.ndarray:
    """Euclidean Sobel gradient magnitude, float64, unclamped."""
    gx = convolve_float(plane, sobel_x(), workers=workers)
    gy = convolve_float(plane, sobel_y(), workers=workers)
    return np.sqrt(gx * gx + gy * gy)


def edge_magnitude(plane: np.ndarray, workers: Optional[int] = None) -> np.ndarray:
    """
    Sketch path: 255 - clamp(sqrt(gx² + gy²)).

    This is the inverse of the raw gradient magnitude, not the magnitude
    itself: edges come out dark on a light field, matching the polarity
    of the high-pass and emboss paths.
    """
    mag = to_plane(sobel_magnitude(plane, workers=workers))
    return 255 - mag


def contrast_remap(plane: np.ndarray, light_cut: int, dark_cut: int) -> np.ndarray:
    """
    v' = clamp((v - dark_cut) * 255 / (255 - light_cut - dark_cut)).

    Both cuts at 0 is the identity. The divisor is floored at a small
    positive value, so cuts summing to >= 255 act as a hard threshold
    at dark_cut.
    """
    if light_cut <= 0 and dark_cut <= 0:
        return plane
    divisor = max(255.0 - float(light_cut) - float(dark_cut), REMAP_MIN_DIVISOR)
    scale = 255.0 / divisor
    v = (plane.astype(np.float64) - float(dark_cut)) * scale
    return np.clip(v, 0, 255).astype(np.uint8)


# ---------- finishing passes ----------

def unsharp_mask(
    plane: np.ndarray,
    amount: float = 1.5,
    radius: float = 1.0,
    workers: Optional[int] = None,
) -> np.ndarray:
    """out = clamp(v + amount * (v - gaussian_blur(v, radius)))."""
    blurred = convolve(plane, gaussian_kernel(UNSHARP_SIZE, radius), workers=workers)
    v = plane.astype(np.float64)
    return to_plane(v + amount * (v - blurred.astype(np.float64)))


def _neighbour_view(padded: np.ndarray, dy: int, dx: int, h: int, w: int) -> np.ndarray:
    return padded[1 + dy:1 + dy + h, 1 + dx:1 + dx + w]


def antialias_weights(
    plane: np.ndarray,
    threshold: float = 20.0,
    workers: Optional[int] = None,
) -> np.ndarray:
    """
    Per-pixel blend weight in [0, 1].

    A pixel qualifies when its Sobel magnitude exceeds threshold; its
    weight is the distance-attenuated share of qualifying neighbours in
    its 3x3 window. Border rows and columns always get 0.
    """
    h, w = plane.shape
    if h < 3 or w < 3:
        return np.zeros((h, w), dtype=np.float64)

    strong = (sobel_magnitude(plane, workers=workers) > threshold).astype(np.float64)
    padded = np.pad(strong, 1, mode="edge")

    density = np.zeros((h, w), dtype=np.float64)
    for dy, dx, a in _NEIGHBOURS:
        density += a * _neighbour_view(padded, dy, dx, h, w)
    density /= _NEIGHBOUR_TOTAL

    weights = strong * density
    weights[0, :] = 0.0
    weights[-1, :] = 0.0
    weights[:, 0] = 0.0
    weights[:, -1] = 0.0
    return weights


def antialias(
    plane: np.ndarray,
    threshold: float = 20.0,
    workers: Optional[int] = None,
) -> np.ndarray:
    """
    Morphological anti-aliasing.

    Each pixel is blended with its 8 neighbours:
        (v + wt * sum a_i n_i) / (1 + wt * sum a_i)
    where a_i attenuates with distance and wt is the edge blend weight.
    Pixels with near-zero weight keep their value.
    """
    h, w = plane.shape
    wt = antialias_weights(plane, threshold=threshold, workers=workers)
    active = wt >= 1e-3
    if not active.any():
        return plane.copy()

    v = plane.astype(np.float64)
    padded = np.pad(v, 1, mode="edge")
    acc = np.zeros((h, w), dtype=np.float64)
    for dy, dx, a in _NEIGHBOURS:
        acc += a * _neighbour_view(padded, dy, dx, h, w)

    blended = (v + wt * acc) / (1.0 + wt * _NEIGHBOUR_TOTAL)
    out = plane.copy()
    out[active] = to_plane(blended[active])
    return out


# ---------- stage ----------

def extract_tone(plane: np.ndarray, options: OptionsRecord) -> np.ndarray:
    """Run the full tone-extraction sequence on a luminance plane."""
    workers = options.workers

    if options.denoise:
        plane = denoise(plane, workers=workers)

    kernel = kernel_for_quality(options.quality)
    if kernel is None:
        logger.debug("tone: sketch edge-magnitude path")
        tone = edge_magnitude(plane, workers=workers)
    else:
        if options.quality == EMBOSS_QUALITY:
            tone = emboss_pass(plane, kernel, workers=workers)
        else:
            tone = high_pass(plane, kernel, workers=workers)
        logger.debug("tone: %s kernel k=%d", options.quality, kernel.size)
        tone = contrast_remap(tone, options.light_cut, options.dark_cut)

    finish = FinishingPass(options.finishing_pass)
    if finish is FinishingPass.SHARPEN:
        tone = unsharp_mask(
            tone,
            amount=options.sharpen_amount,
            radius=options.sharpen_radius,
            workers=workers,
        )
    elif finish is FinishingPass.ANTIALIAS:
        tone = antialias(tone, threshold=options.antialias_threshold, workers=workers)

    return tone
