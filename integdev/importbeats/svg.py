"""Reading the pixel size of SVG images."""

from __future__ import annotations

import math
import re
import struct
import xml.etree.ElementTree as ET

_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)", re.IGNORECASE
)


class SvgError(Exception):
    """Raised when an SVG image's size cannot be determined."""


def _parse_float32(text: str) -> float:
    if not _FLOAT_RE.fullmatch(text):
        raise ValueError(f"invalid number: {text!r}")
    try:
        return struct.unpack("f", struct.pack("f", float(text)))[0]
    except OverflowError as exc:
        raise ValueError(f"number out of range: {text!r}") from exc


def svg_parse_to_pixels(value: str) -> float:
    """Convert a length in pixels, points or millimetres to pixels."""
    try:
        return _parse_float32(value)
    except ValueError:
        pass
    unit, scale = "", 0.0
    if "pt" in value:
        unit, scale = "pt", 4.0 / 3
    elif "mm" in value:
        unit, scale = "mm", 3.77
    stripped = value.replace(unit, "") if unit else value
    try:
        number = _parse_float32(stripped)
    except ValueError as exc:
        raise SvgError(f"parsing width failed (value: {stripped}): {exc}") from exc
    return number * scale


def _to_int(value: float, source: str) -> int:
    if not math.isfinite(value):
        raise SvgError(f"size is not finite (value: {source})")
    return int(value)


def svg_decode_config(data) -> tuple[int, int]:
    """Width and height of an SVG document given as bytes, text or a readable file."""
    if hasattr(data, "read"):
        data = data.read()
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise SvgError(f"unmarshalling SVG file failed: {exc}") from exc

    width_attr = root.get("width", "")
    height_attr = root.get("height", "")
    view_box = root.get("viewBox", "")

    width = height = 0.0
    if width_attr and height_attr:
        try:
            width = svg_parse_to_pixels(width_attr)
            height = svg_parse_to_pixels(height_attr)
        except SvgError as exc:
            raise SvgError(f"parsing width failed (value: {width_attr}): {exc}") from exc

    if width > 0 and height > 0:
        return _to_int(width, width_attr), _to_int(height, height_attr)

    dims = view_box.split(" ")
    dim_x = dim_y = ""
    if len(dims) == 2:
        dim_x, dim_y = dims
    elif len(dims) == 4:
        dim_x, dim_y = dims[2], dims[3]
    try:
        width = _parse_float32(dim_x)
        height = _parse_float32(dim_y)
    except ValueError as exc:
        raise SvgError(f"parsing viewBox failed (value: {view_box}): {exc}") from exc
    return _to_int(width, view_box), _to_int(height, view_box)