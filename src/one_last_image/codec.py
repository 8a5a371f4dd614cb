"""
codec.py

Container decode/encode around Pillow.

Responsibilities:
- Decode arbitrary raster bytes to an RGBA image
- Encode the final raster as PNG
- Sniff the MIME type of input bytes
- Unwrap an embedded (base64) watermark asset
"""

from __future__ import annotations

import base64
import binascii
import io
from typing import Union

from PIL import Image, UnidentifiedImageError

from .errors import DecodeFailure, EncodeFailure, WatermarkDecodeFailure


# PNG compress_level 1 is the fast setting; the level is a speed knob only.
PNG_COMPRESS_LEVEL = 1

_MIME_BY_FORMAT = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "GIF": "image/gif",
    "BMP": "image/bmp",
    "ICO": "image/x-icon",
    "TIFF": "image/tiff",
    "WEBP": "image/webp",
    "AVIF": "image/avif",
}

_MAGIC = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
)

OCTET_STREAM = "application/octet-stream"


def decode(data: bytes) -> Image.Image:
    """
    Decode image bytes into an RGBA Pillow image.

    Raises:
        DecodeFailure: bytes are empty, truncated or not a known format
    """
    if not data:
        raise DecodeFailure("empty input")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise DecodeFailure(f"cannot decode image: {e}") from e


def encode(image: Image.Image) -> bytes:
    """
    Encode an image as PNG bytes.

    Raises:
        EncodeFailure: Pillow refused to write the raster
    """
    buf = io.BytesIO()
    try:
        image.save(buf, format="PNG", compress_level=PNG_COMPRESS_LEVEL)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeFailure(f"cannot encode PNG: {e}") from e
    return buf.getvalue()


def detect_mime(data: bytes) -> str:
    """Return the MIME type of image bytes, or application/octet-stream."""
    head = bytes(data[:16])
    for magic, mime in _MAGIC:
        if head.startswith(magic):
            return mime
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"
    if head[4:8] == b"ftyp" and head[8:12] in (b"avif", b"avis"):
        return "image/avif"

    # fall back to Pillow's own identification
    try:
        with Image.open(io.BytesIO(data)) as img:
            return _MIME_BY_FORMAT.get(img.format or "", OCTET_STREAM)
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError):
        return OCTET_STREAM


def decode_asset(value: Union[bytes, bytearray, str]) -> Image.Image:
    """
    Decode a watermark asset into RGBA.

    Raw bytes are decoded as an image directly. Text is treated as base64,
    with an optional "data:<mime>;base64," prefix.

    Raises:
        WatermarkDecodeFailure: base64 or image payload is invalid
    """
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("data:") and "," in text:
            text = text.split(",", 1)[1]
        try:
            raw = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as e:
            raise WatermarkDecodeFailure(f"watermark is not valid base64: {e}") from e
    else:
        raw = bytes(value)

    try:
        return decode(raw)
    except DecodeFailure as e:
        raise WatermarkDecodeFailure(str(e)) from e
