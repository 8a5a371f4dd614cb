"""
errors.py

Failure taxonomy for the line-art transform.

Every stage raises one of these. Only pipeline.transform absorbs them,
which is what makes the public entry point total.
"""


class OneLastImageError(Exception):
    """Base class for all pipeline failures."""


class DecodeFailure(OneLastImageError):
    """Input bytes could not be decoded into a raster image."""


class InvalidConfig(OneLastImageError):
    """Options payload is malformed. Recovered by falling back to defaults."""


class WatermarkDecodeFailure(OneLastImageError):
    """Watermark asset could not be decoded. Recovered by skipping the overlay."""


class EncodeFailure(OneLastImageError):
    """Final raster could not be serialized."""
