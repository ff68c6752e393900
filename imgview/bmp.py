"""BMP decoder: uncompressed, indexed, bit-field masked and RLE bitmaps."""

from __future__ import annotations

import struct

from .imagedata import FormatError, Frame, Image, argb

_BMP_TYPE = 0x4D42  # "BM" little endian

# Compression types
_BI_RGB = 0
_BI_RLE8 = 1
_BI_RLE4 = 2
_BI_BITFIELDS = 3

# RLE escape codes
_RLE_ESC_EOL = 0
_RLE_ESC_EOF = 1
_RLE_ESC_DELTA = 2

# Default masks for 16-bit images (5-5-5)
_MASK555 = (0x7C00, 0x03E0, 0x001F, 0x0000)

# Sizes of DIB headers
_BITMAPINFOHEADER_SIZE = 0x28
_BITMAPINFOV2HEADER_SIZE = 0x34

_OPAQUE = 0xFF000000

_FILE_HEADER = struct.Struct("<HIII")
_INFO_HEADER = struct.Struct("<IIiHHIIIIII")
_MASKS = struct.Struct("<IIII")


def decode_bmp(data: bytes) -> Image | None:
    """Decode a BMP image; return None if the data is not BMP."""
    data = bytes(data)
    if len(data) < _FILE_HEADER.size:
        return None
    kind, _, _, offset = _FILE_HEADER.unpack_from(data)
    if kind != _BMP_TYPE:
        return None
    if offset >= len(data) or offset < _FILE_HEADER.size + _INFO_HEADER.size:
        raise FormatError("invalid bmp header")

    dib_size, width, height, _, bpp, compression, *_ = _INFO_HEADER.unpack_from(
        data, _FILE_HEADER.size
    )
    if dib_size > offset:
        raise FormatError("invalid bmp header size")

    image = Image()
    frame = image.create_frame(width, abs(height))

    color_data = data[_FILE_HEADER.size + dib_size : offset]
    palette = list(struct.unpack_from(f"<{len(color_data) // 4}I", color_data))

    if dib_size > _BITMAPINFOHEADER_SIZE:
        mask_start = _FILE_HEADER.size + _INFO_HEADER.size
        mask_raw = data[mask_start : mask_start + _MASKS.size]
    elif len(color_data) >= 12:
        mask_raw = color_data[: _MASKS.size]
    else:
        mask_raw = b""
    red, green, blue, alpha = _MASKS.unpack(mask_raw.ljust(_MASKS.size, b"\0"))
    if dib_size <= _BITMAPINFOV2HEADER_SIZE:
        alpha = 0
    masks = (red, green, blue, alpha)

    pixels = data[offset:]
    if compression == _BI_BITFIELDS or bpp == 16:
        _decode_masked(frame, bpp, masks, pixels)
        image.format = f"BMP {bpp}bit masked"
    elif compression in (_BI_RLE8, _BI_RLE4):
        _decode_rle(frame, compression, palette, pixels)
        image.format = f"BMP {bpp}bit RLE"
    elif compression == _BI_RGB:
        _decode_rgb(frame, bpp, palette, pixels)
        image.format = f"BMP {bpp}bit uncompressed"
    else:
        raise FormatError(f"compression {compression} not supported")

    if height > 0:
        image.flip_vertical()
    image.alpha = bpp == 32
    return image


def _stride(width: int, bpp: int) -> int:
    return 4 * ((width * bpp + 31) // 32)


def _mask_shift(mask: int) -> int:
    """Shift that moves a channel mask to the low byte: positive is right."""
    trailing = (mask & -mask).bit_length() - 1 if mask else 32
    return trailing + bin(mask).count("1") - 8


def _channel(value: int, mask: int, shift: int) -> int:
    value &= mask
    value = value >> shift if shift > 0 else value << -shift
    return value & 0xFF


def _decode_masked(frame: Frame, bpp: int, masks: tuple[int, int, int, int], buffer: bytes) -> None:
    if not any(masks):
        masks = _MASK555
    shifts = [_mask_shift(mask) for mask in masks]
    mask_r, mask_g, mask_b, mask_a = masks
    shift_r, shift_g, shift_b, shift_a = shifts

    stride = _stride(frame.width, bpp)
    if len(buffer) < frame.height * stride:
        raise FormatError("not enough bmp data")
    if bpp == 32:
        code = "I"
    elif bpp == 16:
        code = "H"
    else:
        raise FormatError(f"{bpp} image cannot be masked")

    row_format = struct.Struct(f"<{frame.width}{code}")
    for y in range(frame.height):
        values = row_format.unpack_from(buffer, y * stride)
        start = y * frame.width
        frame.data[start : start + frame.width] = [
            argb(
                _channel(m, mask_a, shift_a) if mask_a else 0xFF,
                _channel(m, mask_r, shift_r),
                _channel(m, mask_g, shift_g),
                _channel(m, mask_b, shift_b),
            )
            for m in values
        ]


def _palette_color(palette: list[int], index: int) -> int:
    if index >= len(palette):
        raise FormatError("color out of bmp palette")
    return palette[index]


def _check_position(frame: Frame, x: int, y: int, count: int) -> None:
    if x + count > frame.width or y >= frame.height:
        raise FormatError("pixel position out of bmp image")


def _decode_rle(frame: Frame, compression: int, palette: list[int], buffer: bytes) -> None:
    rle4 = compression == _BI_RLE4
    size = len(buffer)
    x = y = pos = 0

    while pos + 2 <= size:
        rle1, rle2 = buffer[pos], buffer[pos + 1]
        pos += 2
        if rle1 == 0:
            if rle2 == _RLE_ESC_EOL:
                x = 0
                y += 1
            elif rle2 == _RLE_ESC_EOF:
                frame.data = [pixel | _OPAQUE for pixel in frame.data]
                return
            elif rle2 == _RLE_ESC_DELTA:
                if pos + 2 >= size:
                    raise FormatError("unexpected end of RLE stream")
                x += buffer[pos]
                y += buffer[pos + 1]
                pos += 2
            else:
                # absolute mode
                if pos + (rle2 // 2 if rle4 else rle2) > size:
                    raise FormatError("unexpected end of RLE stream")
                _check_position(frame, x, y, rle2)
                if rle4:
                    nbytes = (rle2 + 1) // 2
                    if pos + nbytes > size:
                        raise FormatError("unexpected end of RLE stream")
                    packed = buffer[pos : pos + nbytes]
                    indices = [n for byte in packed for n in (byte >> 4, byte & 0x0F)][:rle2]
                    pos += nbytes
                else:
                    indices = list(buffer[pos : pos + rle2])
                    pos += rle2
                start = y * frame.width + x
                frame.data[start : start + rle2] = [_palette_color(palette, i) for i in indices]
                x += rle2
                if (not rle4 and rle2 & 1) or (rle4 and (rle2 & 3) in (1, 2)):
                    pos += 1  # zero-padded to 16 bits
        else:
            # encoded mode
            if rle4:
                colors = (
                    _palette_color(palette, rle2 >> 4),
                    _palette_color(palette, rle2 & 0x0F),
                )
            else:
                color = _palette_color(palette, rle2)
                colors = (color, color)
            _check_position(frame, x, y, rle1)
            start = y * frame.width + x
            frame.data[start : start + rle1] = [colors[i & 1] for i in range(rle1)]
            x += rle1

    raise FormatError("RLE decode failed")


def _decode_rgb(frame: Frame, bpp: int, palette: list[int], buffer: bytes) -> None:
    width = frame.width
    stride = _stride(width, bpp)
    if len(buffer) < frame.height * stride:
        raise FormatError("not enough data for bitmap image")
    if bpp not in (32, 24, 8, 4, 1):
        raise FormatError(f"color for bmp {bpp}bit images not supported")

    for y in range(frame.height):
        row = buffer[y * stride : (y + 1) * stride]
        if bpp in (32, 24):
            step = bpp // 8
            line = [
                argb(0xFF, row[i + 2], row[i + 1], row[i])
                for i in range(0, width * step, step)
            ]
        else:
            value_mask = 0xFF >> (8 - bpp)
            line = []
            for x in range(width):
                bits = x * bpp
                index = (row[bits // 8] >> (8 - bpp - bits % 8)) & value_mask
                line.append(_OPAQUE | _palette_color(palette, index))
        start = y * width
        frame.data[start : start + width] = line