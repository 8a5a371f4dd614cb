"""
one_last_image

Turn a photograph into a line-art rendering, optionally colorized and
watermarked.
"""

from .errors import (
    DecodeFailure,
    EncodeFailure,
    InvalidConfig,
    OneLastImageError,
    WatermarkDecodeFailure,
)
from .options import FinishingPass, OptionsRecord, load_options
from .pipeline import one_last_image, render, transform

__all__ = [
    "DecodeFailure",
    "EncodeFailure",
    "FinishingPass",
    "InvalidConfig",
    "OneLastImageError",
    "OptionsRecord",
    "WatermarkDecodeFailure",
    "load_options",
    "one_last_image",
    "render",
    "transform",
]
