"""EXIF reader: orientation correction and descriptive metadata."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from PIL import Image as PILImage

from .imagedata import Image

_IFD_EXIF = 0x8769
_IFD_GPS = 0x8825

_TAG_ORIENTATION = 0x0112
_TAG_EXPOSURE_TIME = 0x829A
_TAG_FNUMBER = 0x829D

_META_TAGS = (
    (0x0132, "DateTime"),
    (0x010F, "Camera"),
    (0x0110, "Model"),
    (0x0131, "Software"),
    (_TAG_EXPOSURE_TIME, "Exposure"),
    (_TAG_FNUMBER, "F Number"),
)

_GPS_LATITUDE_REF = 1
_GPS_LATITUDE = 2
_GPS_LONGITUDE_REF = 3
_GPS_LONGITUDE = 4

_COORDINATE_MARKS = ("°", "'", '"')


def apply_orientation(image: Image, orientation: int) -> None:
    """Transform the image according to an EXIF orientation value."""
    match orientation:
        case 2:  # flipped back-to-front
            image.flip_horizontal()
        case 3:  # upside down
            image.rotate(180)
        case 4:  # flipped back-to-front and upside down
            image.flip_vertical()
        case 5:  # flipped back-to-front and on its side
            image.flip_horizontal()
            image.rotate(90)
        case 6:  # on its side
            image.rotate(90)
        case 7:  # flipped back-to-front and on its far side
            image.flip_vertical()
            image.rotate(270)
        case 8:  # on its far side
            image.rotate(270)
        case _:
            pass


def format_coordinate(values: Iterable[Any], ref: str) -> str:
    """Format degree, minute and second parts followed by a reference letter."""
    parts = []
    for index, value in enumerate(values):
        parts.append(value if isinstance(value, str) else _format_number(value))
        if index < len(_COORDINATE_MARKS):
            parts.append(_COORDINATE_MARKS[index])
    if not parts:
        return ""
    return "".join(parts) + (ref or "")


def process_exif(image: Image, data: bytes) -> None:
    """Apply orientation and add metadata from raw EXIF data to the image."""
    directories = _read_directories(data)
    if directories is None:
        return
    main, exif, gps = directories

    orientation = _first(main.get(_TAG_ORIENTATION))
    if orientation is not None:
        try:
            apply_orientation(image, int(orientation))
        except (TypeError, ValueError):
            pass

    for tag, name in _META_TAGS:
        value = main.get(tag, exif.get(tag))
        if value is None:
            continue
        text = _format_value(tag, value)
        if text:
            image.add_meta(name, text)

    latitude = _coordinate(gps, _GPS_LATITUDE, _GPS_LATITUDE_REF)
    if latitude:
        longitude = _coordinate(gps, _GPS_LONGITUDE, _GPS_LONGITUDE_REF)
        if longitude:
            image.add_meta("Location", f"{latitude}, {longitude}")


def _read_directories(data: bytes) -> tuple[dict, dict, dict] | None:
    exif = PILImage.Exif()
    try:
        exif.load(bytes(data))
        main = dict(exif)
        sub = dict(exif.get_ifd(_IFD_EXIF))
        gps = dict(exif.get_ifd(_IFD_GPS))
    except Exception:  # malformed EXIF carries nothing usable
        return None
    return main, sub, gps


def _first(value: Any) -> Any:
    if isinstance(value, (tuple, list)):
        return value[0] if value else None
    return value


def _format_number(value: Any) -> str:
    try:
        number = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return str(value)
    if number != number or number in (float("inf"), float("-inf")):
        return str(value)
    if number.is_integer():
        return str(int(number))
    return f"{number:.2f}"


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    return value.strip("\0 \t\r\n")


def _format_value(tag: int, value: Any) -> str:
    if isinstance(value, (str, bytes)):
        return _text(value)
    if tag in (_TAG_EXPOSURE_TIME, _TAG_FNUMBER):
        try:
            number = float(_first(value))
        except (TypeError, ValueError, ZeroDivisionError):
            return ""
        if tag == _TAG_FNUMBER:
            return f"f/{number:.1f}"
        if 0 < number < 1:
            return f"1/{1 / number:.0f} sec."
        return f"{number:.0f} sec."
    if isinstance(value, (tuple, list)):
        return ", ".join(_format_number(v) for v in value)
    return _format_number(value)


def _coordinate(gps: Mapping[int, Any], tag: int, ref_tag: int) -> str:
    value = gps.get(tag)
    if value is None:
        return ""
    if isinstance(value, (str, bytes)):
        tokens: list[Any] = [t for t in re.split(r"[, ]+", _text(value)) if t]
    elif isinstance(value, (tuple, list)):
        tokens = list(value)
    else:
        tokens = [value]
    ref = gps.get(ref_tag)
    ref_text = _text(ref) if isinstance(ref, (str, bytes)) else ""
    return format_coordinate(tokens, ref_text)