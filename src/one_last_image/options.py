"""
options.py

Options record for the line-art transform.

The record is immutable and read once at pipeline start. It can be built
from a mapping or a JSON string with snake_case or camelCase keys. A
malformed payload never fails the transform: it falls back to defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
import json
import logging
import math
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from .errors import InvalidConfig


logger = logging.getLogger(__name__)


class FinishingPass(str, Enum):
    SHARPEN = "sharpen"
    ANTIALIAS = "antialias"
    NONE = "none"


DEFAULT_DIMENSION_CAP = 1920


@dataclass(frozen=True)
class OptionsRecord:
    zoom: float = 1.0
    cover: bool = False
    quality: str = "normal"
    denoise: bool = True
    light_cut: int = 128
    dark_cut: int = 118
    light: float = 0.0
    kiss: bool = True
    watermark: bool = True
    # encoded image bytes, or base64 text (optionally a data: URI)
    watermark_image: Optional[Union[bytes, str]] = None
    hajimei: bool = False
    tone_count: Optional[int] = None
    finishing_pass: FinishingPass = FinishingPass.SHARPEN
    sharpen_amount: float = 1.5
    sharpen_radius: float = 1.0
    antialias_threshold: float = 20.0
    dimension_cap: Optional[int] = DEFAULT_DIMENSION_CAP
    workers: Optional[int] = None

    # accepted for compatibility, not used by the pipeline
    shade: bool = True
    shade_limit: int = 108
    shade_light: int = 80
    pencil_texture: Optional[Union[bytes, str]] = None

    def replace(self, **changes: Any) -> "OptionsRecord":
        return replace(self, **changes)

    @property
    def effective_zoom(self) -> float:
        return self.zoom if self.zoom and self.zoom > 0 else 1.0


PROFILES: Dict[str, OptionsRecord] = {
    "classic": OptionsRecord(),
    "soft": OptionsRecord(
        light_cut=30,
        dark_cut=30,
        finishing_pass=FinishingPass.ANTIALIAS,
        tone_count=3,
        dimension_cap=None,
    ),
}

DEFAULT_PROFILE = "classic"

_FIELD_NAMES = {f.name for f in fields(OptionsRecord)}


def _snake(key: str) -> str:
    out = []
    for ch in key:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _as_finite_float(value: Any) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"expected a finite number, got {value!r}")
    return value


def _as_positive_float(value: Any) -> float:
    value = _as_finite_float(value)
    if value <= 0:
        raise ValueError(f"expected a positive number, got {value!r}")
    return value


def _as_byte(value: Any) -> int:
    return int(min(max(int(value), 0), 255))


def _as_optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)


def _as_tone_count(value: Any) -> Optional[int]:
    if value is None:
        return None
    return max(int(value), 1)


def _as_asset(value: Any) -> Optional[Union[bytes, str]]:
    if value is None or isinstance(value, (bytes, str)):
        return value
    if isinstance(value, bytearray):
        return bytes(value)
    raise TypeError(f"expected bytes or str, got {type(value).__name__}")


_COERCE = {
    "zoom": _as_finite_float,
    "cover": _as_bool,
    "quality": str,
    "denoise": _as_bool,
    "light_cut": _as_byte,
    "dark_cut": _as_byte,
    "light": _as_finite_float,
    "kiss": _as_bool,
    "watermark": _as_bool,
    "watermark_image": _as_asset,
    "hajimei": _as_bool,
    "tone_count": _as_tone_count,
    "finishing_pass": FinishingPass,
    "sharpen_amount": _as_finite_float,
    "sharpen_radius": _as_positive_float,
    "antialias_threshold": _as_finite_float,
    "dimension_cap": _as_optional_int,
    "workers": _as_optional_int,
    "shade": _as_bool,
    "shade_limit": _as_byte,
    "shade_light": _as_byte,
    "pencil_texture": _as_asset,
}


def parse_options(data: Mapping[str, Any], base: Optional[OptionsRecord] = None) -> OptionsRecord:
    """
    Build an OptionsRecord from a mapping.

    Keys may be snake_case or camelCase; unknown keys are ignored.
    A "profile" key picks the base record before the other keys apply;
    without one, keys apply on top of base (the default profile if None).

    Raises:
        InvalidConfig: a known key carries a value of the wrong type
    """
    if not isinstance(data, Mapping):
        raise InvalidConfig(f"options must be an object, got {type(data).__name__}")

    normalized = {_snake(str(k)): v for k, v in data.items()}

    profile = normalized.pop("profile", None)
    if profile or base is None:
        profile = profile or DEFAULT_PROFILE
        if not isinstance(profile, str) or profile not in PROFILES:
            raise InvalidConfig(f"unknown profile: {profile!r}")
        base = PROFILES[profile]

    changes: Dict[str, Any] = {}
    for key, value in normalized.items():
        if key not in _FIELD_NAMES:
            logger.debug("ignoring unknown option %r", key)
            continue
        try:
            changes[key] = _COERCE[key](value)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidConfig(f"bad value for {key!r}: {value!r}") from e

    return base.replace(**changes)


def load_options(
    source: Union[None, OptionsRecord, Mapping[str, Any], str, bytes] = None,
    base: Optional[OptionsRecord] = None,
) -> OptionsRecord:
    """
    Resolve any supported options source into a record.

    None or an empty string gives the defaults (base, when given).
    Malformed input is logged and also gives the defaults.
    """
    defaults = base if base is not None else OptionsRecord()
    if source is None:
        return defaults
    if isinstance(source, OptionsRecord):
        return source

    try:
        if isinstance(source, (str, bytes)):
            if not source.strip():
                return defaults
            try:
                data = json.loads(source)
            except ValueError as e:
                raise InvalidConfig(f"options are not valid JSON: {e}") from e
        else:
            data = source
        return parse_options(data, base=base)
    except InvalidConfig as e:
        logger.warning("invalid options, using defaults: %s", e)
        return defaults
