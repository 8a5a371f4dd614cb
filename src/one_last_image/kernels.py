"""
kernels.py

Convolution kernel construction.

Rules:
- Pure functions, deterministic given their parameters
- Odd square kernels, float32 weights
- Blur kernels are normalized so a uniform plane passes through unchanged
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np


QUALITY_SIZES: Dict[str, int] = {
    "fine": 5,
    "normal": 7,
    "coarse": 9,
    "superCoarse": 11,
    "extraCoarse": 13,
}

DEFAULT_QUALITY = "normal"
SKETCH_QUALITY = "sketch"
EMBOSS_QUALITY = "emboss"

_SMOOTH = np.array([1.0, 2.0, 1.0], dtype=np.float32)
_DIFF = np.array([-1.0, 0.0, 1.0], dtype=np.float32)


@dataclass(frozen=True, eq=False)
class Kernel:
    weights: np.ndarray  # (k, k) float32
    # (column, row) 1-D factors when weights == outer(column, row)
    factors: Optional[Tuple[np.ndarray, np.ndarray]] = None

    def __post_init__(self) -> None:
        w = np.asarray(self.weights, dtype=np.float32)
        if w.ndim != 2 or w.shape[0] != w.shape[1] or w.shape[0] % 2 == 0:
            raise ValueError(f"Kernel must be odd-sized and square, got shape {w.shape}")
        w.setflags(write=False)
        object.__setattr__(self, "weights", w)

    @property
    def size(self) -> int:
        return int(self.weights.shape[0])

    @property
    def half(self) -> int:
        return self.size // 2

    @property
    def separable(self) -> bool:
        return self.factors is not None


def _check_size(size: int) -> int:
    size = int(size)
    if size < 1 or size % 2 == 0:
        raise ValueError(f"Kernel size must be a positive odd integer, got {size}")
    return size


def average_kernel(size: int) -> Kernel:
    """Box blur with uniform weights 1/size²."""
    size = _check_size(size)
    weights = np.full((size, size), 1.0 / (size * size), dtype=np.float32)
    vec = np.full(size, 1.0 / size, dtype=np.float32)
    return Kernel(weights=weights, factors=(vec, vec))


def gaussian_kernel(size: int, sigma: float) -> Kernel:
    """
    Gaussian blur, exp(-(dx²+dy²)/(2σ²)) normalized to sum 1.

    The 2-D weights are computed directly; the 1-D factors are the
    normalized 1-D Gaussian, whose outer product is the same kernel.
    """
    size = _check_size(size)
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma}")

    half = size // 2
    d = np.arange(size, dtype=np.float64) - half
    dy, dx = np.meshgrid(d, d, indexing="ij")
    weights = np.exp(-(dx * dx + dy * dy) / (2.0 * sigma * sigma))
    weights /= weights.sum()

    vec = np.exp(-(d * d) / (2.0 * sigma * sigma))
    vec /= vec.sum()

    return Kernel(
        weights=weights.astype(np.float32),
        factors=(vec.astype(np.float32), vec.astype(np.float32)),
    )


def sobel_x() -> Kernel:
    """Horizontal gradient: smoothing down the rows, differencing along x."""
    return Kernel(weights=np.outer(_SMOOTH, _DIFF), factors=(_SMOOTH.copy(), _DIFF.copy()))


def sobel_y() -> Kernel:
    """Vertical gradient, the transpose of sobel_x."""
    return Kernel(weights=np.outer(_DIFF, _SMOOTH), factors=(_DIFF.copy(), _SMOOTH.copy()))


def emboss_kernel(size: int = 3, strength: float = 1.0) -> Kernel:
    """
    Diagonal relief kernel, weight = strength * ((x - half) + (y - half)).

    Zero-sum, so flat regions map to 0 and the caller re-centers at mid-gray.
    """
    size = _check_size(size)
    half = size // 2
    d = np.arange(size, dtype=np.float32) - half
    weights = strength * (d[:, None] + d[None, :])
    return Kernel(weights=weights.astype(np.float32))


def kernel_for_quality(quality: Optional[str]) -> Optional[Kernel]:
    """
    Select the tone kernel for a quality name.

    Returns None for "sketch", which switches the tone stage to the
    edge-magnitude path. Unknown or missing names fall back to "normal".
    """
    if quality == SKETCH_QUALITY:
        return None
    if quality == EMBOSS_QUALITY:
        return emboss_kernel()
    size = QUALITY_SIZES.get(quality or DEFAULT_QUALITY, QUALITY_SIZES[DEFAULT_QUALITY])
    return average_kernel(size)
