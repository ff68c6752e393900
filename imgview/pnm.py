"""PNM decoder: plain (ASCII) and raw PBM, PGM and PPM images."""

from __future__ import annotations

import struct
from collections.abc import Iterator, Sequence
from enum import Enum

from .imagedata import FormatError, Image, argb

_WHITESPACE = b" \t\n\r"
_LINE_END = b"\n\r"
_INT_MAX = 2**31 - 1
_INT_MAX_DIGITS = 10
_UINT8_MAX = 0xFF
_UINT16_MAX = 0xFFFF

_OPAQUE = 0xFF000000


class _PnmType(Enum):
    PBM = "B"  # bitmap
    PGM = "G"  # grayscale pixmap
    PPM = "P"  # color pixmap

    @property
    def channels(self) -> int:
        return 3 if self is _PnmType.PPM else 1


# Second byte of the magic number: (plain, type)
_MAGIC = {
    b"1": (True, _PnmType.PBM),
    b"2": (True, _PnmType.PGM),
    b"3": (True, _PnmType.PPM),
    b"4": (False, _PnmType.PBM),
    b"5": (False, _PnmType.PGM),
    b"6": (False, _PnmType.PPM),
}

_ERR_EOF = "unexpected end of image"
_ERR_RANGE = "integer too large"
_ERR_FORMAT = "digit expected"
_ERR_OVERFLOW = "pixel value above maxval"


class _Cursor:
    """Position in the image data used for number parsing."""

    def __init__(self, data: bytes, pos: int) -> None:
        self.data = data
        self.pos = pos

    def _skip_blanks(self) -> None:
        data = self.data
        while self.pos < len(data):
            char = data[self.pos]
            if char == ord("#"):
                while self.pos < len(data) and data[self.pos] not in _LINE_END:
                    self.pos += 1
            elif char in _WHITESPACE:
                self.pos += 1
            else:
                break

    def read_int(self, digits: int = 0) -> int:
        """Read a decimal integer, skipping leading whitespace and comments.

        Comments inside a number are not supported, as in other parsers.
        """
        limit = digits or _INT_MAX_DIGITS
        self._skip_blanks()
        data = self.data
        if self.pos >= len(data):
            raise FormatError(_ERR_EOF)
        if not chr(data[self.pos]).isdigit():
            raise FormatError(_ERR_FORMAT)

        value = 0
        count = 0
        while self.pos < len(data) and 0x30 <= data[self.pos] <= 0x39 and count < limit:
            value = value * 10 + data[self.pos] - 0x30
            if value > _INT_MAX:
                raise FormatError(_ERR_RANGE)
            self.pos += 1
            count += 1
        return value

    def read_sample(self, maxval: int, digits: int = 0) -> int:
        value = self.read_int(digits)
        if value > maxval:
            raise FormatError(_ERR_OVERFLOW)
        return value


def _scale(value: int, maxval: int) -> int:
    if maxval == _UINT8_MAX:
        return value
    return (value * _UINT8_MAX + maxval // 2) // maxval


def _pixel(kind: _PnmType, values: Sequence[int], maxval: int) -> int:
    if kind is _PnmType.PBM:
        # a set bit is black, a clear bit is white
        return _OPAQUE if values[0] else 0xFFFFFFFF
    if kind is _PnmType.PGM:
        gray = _scale(values[0], maxval)
        return argb(0xFF, gray, gray, gray)
    red, green, blue = (_scale(v, maxval) for v in values)
    return argb(0xFF, red, green, blue)


def _decode_plain(cursor: _Cursor, kind: _PnmType, count: int, maxval: int) -> Iterator[int]:
    digits = 1 if kind is _PnmType.PBM else 0
    for _ in range(count):
        values = [cursor.read_sample(maxval, digits) for _ in range(kind.channels)]
        yield _pixel(kind, values, maxval)


def _decode_raw(cursor: _Cursor, kind: _PnmType, width: int, height: int, maxval: int) -> list[int]:
    wide = maxval > _UINT8_MAX
    if kind is _PnmType.PBM:
        row_size = (width + 7) // 8
    else:
        row_size = width * kind.channels * (2 if wide else 1)
    end = cursor.pos + height * row_size
    if end > len(cursor.data):
        raise FormatError(_ERR_EOF)
    raw = cursor.data[cursor.pos : end]
    cursor.pos = end

    if kind is _PnmType.PBM:
        pixels = []
        for y in range(height):
            row = raw[y * row_size : (y + 1) * row_size]
            pixels.extend(
                _pixel(kind, [(row[x // 8] >> (7 - x % 8)) & 1], maxval) for x in range(width)
            )
        return pixels

    samples: Sequence[int]
    if wide:
        samples = struct.unpack(f">{len(raw) // 2}H", raw)
    else:
        samples = raw
    if any(sample > maxval for sample in samples):
        raise FormatError(_ERR_OVERFLOW)
    step = kind.channels
    return [
        _pixel(kind, samples[start : start + step], maxval)
        for start in range(0, len(samples), step)
    ]


def decode_pnm(data: bytes) -> Image | None:
    """Decode a PBM, PGM or PPM image; return None if the data is not PNM."""
    data = bytes(data)
    if len(data) < 2 or data[0] != ord("P"):
        return None
    magic = _MAGIC.get(data[1:2])
    if magic is None:
        return None
    plain, kind = magic

    cursor = _Cursor(data, 2)
    width = cursor.read_int()
    height = cursor.read_int()
    if kind is _PnmType.PBM:
        maxval = 1
    else:
        maxval = cursor.read_int()
        if not maxval or maxval > _UINT16_MAX:
            raise FormatError("invalid maxval")

    if not plain:
        # exactly one whitespace character separates the header from the raster
        if cursor.pos >= len(data) or data[cursor.pos] not in _WHITESPACE:
            raise FormatError("single whitespace character expected")
        cursor.pos += 1

    image = Image()
    frame = image.create_frame(width, height)
    if plain:
        frame.data = list(_decode_plain(cursor, kind, width * height, maxval))
    else:
        frame.data = _decode_raw(cursor, kind, width, height, maxval)

    image.format = f"P{kind.value}M ({'ASCII' if plain else 'raw'})"
    return image