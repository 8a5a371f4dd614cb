"""
composite.py

Flatten the ink onto white paper and stamp the watermark.

Rules:
- Output is always fully opaque
- Watermark sits at the bottom-right, never past the canvas bounds
- Watermark pixels with zero alpha leave the canvas untouched
"""

from __future__ import annotations

from typing import Tuple

import numpy as np
from PIL import Image

# canvas w/h above this counts as landscape
LANDSCAPE_RATIO = 1.1
LANDSCAPE_HEIGHT_SHARE = 0.15
PORTRAIT_WIDTH_SHARE = 0.3
# margins, as a share of the scaled watermark height
MARGIN_X_SHARE = 0.2
MARGIN_Y_SHARE = 0.16


def flatten_on_white(rgba: np.ndarray) -> np.ndarray:
    """
    out = src * a + 255 * (1 - a) per channel, a = alpha / 255.

    Returns an (H, W, 4) uint8 array with alpha 255.
    """
    src = rgba.astype(np.float64)
    a = src[..., 3:4] / 255.0
    rgb = np.minimum(src[..., :3] * a + 255.0 * (1.0 - a), 255.0)

    out = np.empty_like(rgba)
    out[..., :3] = rgb.astype(np.uint8)
    out[..., 3] = 255
    return out


def crop_watermark(asset: Image.Image, hajimei: bool = False) -> Image.Image:
    """
    The asset stacks two logo styles vertically: top half is the default,
    bottom half the hajimei variant.
    """
    w, h = asset.size
    half = h // 2
    top = half if hajimei else 0
    return asset.crop((0, top, w, top + half))


def watermark_size(
    canvas_w: int,
    canvas_h: int,
    mark_w: int,
    mark_h: int,
) -> Tuple[int, int]:
    """Scaled watermark size: 15% of height on landscape, 30% of width otherwise."""
    if mark_w <= 0 or mark_h <= 0:
        return 0, 0
    if canvas_w / canvas_h > LANDSCAPE_RATIO:
        h = int(canvas_h * LANDSCAPE_HEIGHT_SHARE)
        w = int(h / mark_h * mark_w)
    else:
        w = int(canvas_w * PORTRAIT_WIDTH_SHARE)
        h = int(w / mark_w * mark_h)
    return w, h


def watermark_anchor(canvas_w: int, canvas_h: int, mark_w: int, mark_h: int) -> Tuple[int, int]:
    """Top-left corner of the watermark, clamped at 0."""
    x = max(canvas_w - (mark_w + int(mark_h * MARGIN_X_SHARE)), 0)
    y = max(canvas_h - (mark_h + int(mark_h * MARGIN_Y_SHARE)), 0)
    return x, y


def blend_over(canvas: np.ndarray, mark: np.ndarray, x: int, y: int) -> np.ndarray:
    """
    Alpha-blend an RGBA mark onto an opaque RGBA canvas at (x, y).

    dst = (src * a + dst * (255 - a)) // 255 where a > 0. The part of the
    mark outside the canvas is dropped.
    """
    out = canvas.copy()
    ch, cw = canvas.shape[:2]
    mh = min(mark.shape[0], ch - y)
    mw = min(mark.shape[1], cw - x)
    if mh <= 0 or mw <= 0:
        return out

    src = mark[:mh, :mw].astype(np.uint32)
    dst = out[y:y + mh, x:x + mw]
    a = src[..., 3:4]
    mixed = (src[..., :3] * a + dst[..., :3].astype(np.uint32) * (255 - a)) // 255

    inked = a[..., 0] > 0
    region = dst[..., :3]
    region[inked] = mixed[inked].astype(np.uint8)
    dst[..., 3][inked] = 255
    return out


def apply_watermark(canvas: np.ndarray, asset: Image.Image, hajimei: bool = False) -> np.ndarray:
    """Crop, scale and stamp the watermark onto an opaque canvas."""
    ch, cw = canvas.shape[:2]
    cropped = crop_watermark(asset.convert("RGBA"), hajimei=hajimei)
    w, h = watermark_size(cw, ch, cropped.width, cropped.height)
    if w <= 0 or h <= 0:
        return canvas

    scaled = cropped.resize((w, h), Image.Resampling.LANCZOS)
    x, y = watermark_anchor(cw, ch, w, h)
    return blend_over(canvas, np.asarray(scaled, dtype=np.uint8), x, y)
