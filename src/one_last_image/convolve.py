"""
convolve.py

Single-channel convolution engine.

Rules:
- Replicated-border addressing (clamp to edge), never wrap or zero-pad
- Output rows are independent; large planes are split into row bands
  and evaluated in parallel, then gathered in order
- Same result for any worker count
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
import os
from typing import List, Optional, Tuple

import cv2
import numpy as np

from .kernels import Kernel


logger = logging.getLogger(__name__)

# Below this many pixels the thread pool costs more than it saves.
PARALLEL_MIN_PIXELS = 512 * 512

# Added before truncation so sums that are integral up to float noise
# (e.g. 127.99999 from a normalized kernel over a flat 128 plane) keep
# their integer value.
TRUNCATION_GUARD = 1e-3


def _resolve_workers(workers: Optional[int], rows: int, pixels: int) -> int:
    if workers is not None and workers <= 1:
        return 1
    if pixels < PARALLEL_MIN_PIXELS:
        return 1
    n = workers if workers is not None else (os.cpu_count() or 1)
    return max(1, min(n, rows))


def _bands(rows: int, n: int) -> List[Tuple[int, int]]:
    step = -(-rows // n)
    return [(y0, min(y0 + step, rows)) for y0 in range(0, rows, step)]


def _apply(padded: np.ndarray, kernel: Kernel) -> np.ndarray:
    """Run the OpenCV filter over an already padded float64 block."""
    if kernel.separable:
        column, row = kernel.factors
        return cv2.sepFilter2D(
            padded,
            cv2.CV_64F,
            row.astype(np.float64),
            column.astype(np.float64),
            borderType=cv2.BORDER_REPLICATE,
        )
    return cv2.filter2D(
        padded,
        cv2.CV_64F,
        kernel.weights.astype(np.float64),
        borderType=cv2.BORDER_REPLICATE,
    )


def convolve_float(
    plane: np.ndarray,
    kernel: Kernel,
    workers: Optional[int] = None,
) -> np.ndarray:
    """
    Signed, unclamped correlation of plane with kernel.

    out[y, x] = sum plane[clamp(y+ky-half)][clamp(x+kx-half)] * k[ky][kx]

    Args:
        plane: (H, W) array, any numeric dtype
        kernel: odd square Kernel
        workers: thread count for row bands; None = auto, 1 = serial

    Returns:
        (H, W) float64 array
    """
    plane = np.asarray(plane)
    if plane.ndim != 2:
        raise ValueError(f"Expected a single-channel plane, got shape {plane.shape}")

    h, w = plane.shape
    half = kernel.half
    padded = cv2.copyMakeBorder(
        plane.astype(np.float64), half, half, half, half, cv2.BORDER_REPLICATE
    )

    n = _resolve_workers(workers, h, h * w)
    if n == 1:
        return _apply(padded, kernel)[half:half + h, half:half + w]

    def run_band(band: Tuple[int, int]) -> np.ndarray:
        y0, y1 = band
        # halo rows come from the padded source, so band seams are exact
        block = _apply(padded[y0:y1 + 2 * half], kernel)
        return block[half:half + (y1 - y0), half:half + w]

    bands = _bands(h, n)
    logger.debug("convolve %dx%d k=%d in %d bands", w, h, kernel.size, len(bands))
    with ThreadPoolExecutor(max_workers=n) as pool:
        parts = list(pool.map(run_band, bands))
    return np.vstack(parts)


def to_plane(values: np.ndarray) -> np.ndarray:
    """Clamp to [0, 255] and truncate to uint8."""
    return np.clip(np.floor(values + TRUNCATION_GUARD), 0, 255).astype(np.uint8)


def convolve(
    plane: np.ndarray,
    kernel: Kernel,
    workers: Optional[int] = None,
) -> np.ndarray:
    """Convolve and return a clamped, truncated uint8 plane of the same size."""
    return to_plane(convolve_float(plane, kernel, workers=workers))
