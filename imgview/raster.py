"""JPEG and GIF decoders."""

from __future__ import annotations

import io
import struct
from dataclasses import dataclass, field

from PIL import Image as PILImage

from .imagedata import FormatError, Image, argb

_JPEG_SIGNATURE = b"\xff\xd8"
_GIF_SIGNATURE = b"GIF"

_GIF_IMAGE = 0x2C
_GIF_EXTENSION = 0x21
_GIF_TRAILER = 0x3B
_GIF_CONTROL = 0xF9
_DISPOSE_DO_NOT = 1
_LZW_MAX_CODES = 4096
_LZW_MAX_BITS = 12


def decode_jpeg(data: bytes) -> Image | None:
    """Decode a JPEG image; return None if the data is not JPEG."""
    data = bytes(data)
    if not data.startswith(_JPEG_SIGNATURE):
        return None
    try:
        with PILImage.open(io.BytesIO(data), formats=["JPEG"]) as source:
            source.load()
            components = len(source.getbands())
            width, height = source.size
            raw = source.convert("RGBA").tobytes()
    except (OSError, SyntaxError, ValueError) as err:
        raise FormatError(f"failed to decode jpeg: {err}") from err

    channels = iter(raw)
    image = Image()
    frame = image.create_frame(width, height)
    frame.data = [argb(0xFF, r, g, b) for r, g, b, _ in zip(channels, channels, channels, channels)]
    image.format = f"JPEG {components * 8}bit"
    return image


@dataclass
class _Control:
    disposal: int = 0
    delay: int = 0
    transparent: int | None = None


@dataclass
class _Descriptor:
    left: int
    top: int
    width: int
    height: int
    colors: list[int] | None
    pixels: bytes
    control: _Control = field(default_factory=_Control)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def take(self, size: int) -> bytes:
        if self._pos + size > len(self._data):
            raise FormatError("unable to decode gif image: unexpected end of data")
        chunk = self._data[self._pos : self._pos + size]
        self._pos += size
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    def unpack(self, fmt: str) -> tuple[int, ...]:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))

    def blocks(self) -> bytes:
        chunks = []
        while size := self.byte():
            chunks.append(self.take(size))
        return b"".join(chunks)


def _palette(raw: bytes) -> list[int]:
    channels = iter(raw)
    return [argb(0xFF, r, g, b) for r, g, b in zip(channels, channels, channels)]


def _lzw_decode(min_code_size: int, data: bytes, count: int) -> bytes:
    if not 1 <= min_code_size <= 8:
        raise FormatError(f"unable to decode gif image: bad code size {min_code_size}")
    clear = 1 << min_code_size
    end = clear + 1

    def initial_table() -> list[bytes]:
        return [bytes([i]) for i in range(clear)] + [b"", b""]

    table = initial_table()
    code_size = min_code_size + 1
    previous: bytes | None = None
    output = bytearray()
    source = iter(data)
    bits = 0
    nbits = 0

    while len(output) < count:
        while nbits < code_size:
            byte = next(source, None)
            if byte is None:
                raise FormatError("unable to decode gif image: image data too short")
            bits |= byte << nbits
            nbits += 8
        code = bits & ((1 << code_size) - 1)
        bits >>= code_size
        nbits -= code_size

        if code == clear:
            table = initial_table()
            code_size = min_code_size + 1
            previous = None
            continue
        if code == end:
            break
        if previous is None:
            if code >= clear:
                raise FormatError("unable to decode gif image: invalid code")
            entry = table[code]
        elif code < len(table):
            entry = table[code]
            if len(table) < _LZW_MAX_CODES:
                table.append(previous + entry[:1])
        elif code == len(table) and len(table) < _LZW_MAX_CODES:
            entry = previous + previous[:1]
            table.append(entry)
        else:
            raise FormatError("unable to decode gif image: invalid code")
        output += entry
        previous = entry
        if len(table) >= (1 << code_size) and code_size < _LZW_MAX_BITS:
            code_size += 1

    if len(output) < count:
        raise FormatError("unable to decode gif image: image data too short")
    return bytes(output[:count])


def _deinterlace(pixels: bytes, width: int, height: int) -> bytes:
    order = [*range(0, height, 8), *range(4, height, 8), *range(2, height, 4), *range(1, height, 2)]
    rows: list[bytes] = [b""] * height
    for source_row, target_row in enumerate(order):
        rows[target_row] = pixels[source_row * width : (source_row + 1) * width]
    return b"".join(rows)


def _parse_gif(data: bytes) -> tuple[int, int, list[_Descriptor]]:
    reader = _Reader(data)
    reader.take(6)  # signature and version
    screen_width, screen_height, flags, _, _ = reader.unpack("<HHBBB")
    global_colors = _palette(reader.take(3 * (2 << (flags & 7)))) if flags & 0x80 else None

    images: list[_Descriptor] = []
    control = _Control()
    while True:
        record = reader.byte()
        if record == _GIF_TRAILER:
            break
        if record == _GIF_EXTENSION:
            label = reader.byte()
            payload = reader.blocks()
            if label == _GIF_CONTROL and len(payload) >= 4:
                packed, delay, index = struct.unpack("<BHB", payload[:4])
                control = _Control(
                    disposal=(packed >> 2) & 7,
                    delay=delay,
                    transparent=index if packed & 1 else None,
                )
        elif record == _GIF_IMAGE:
            left, top, width, height, packed = reader.unpack("<HHHHB")
            colors = _palette(reader.take(3 * (2 << (packed & 7)))) if packed & 0x80 else global_colors
            min_code_size = reader.byte()
            pixels = _lzw_decode(min_code_size, reader.blocks(), width * height)
            if packed & 0x40:
                pixels = _deinterlace(pixels, width, height)
            images.append(_Descriptor(left, top, width, height, colors, pixels, control))
            control = _Control()
        else:
            raise FormatError(f"unable to decode gif image: unknown record 0x{record:02x}")
    return screen_width, screen_height, images


def decode_gif(data: bytes) -> Image | None:
    """Decode a GIF image or animation; return None if the data is not GIF."""
    data = bytes(data)
    if not data.startswith(_GIF_SIGNATURE):
        return None

    screen_width, screen_height, descriptors = _parse_gif(data)
    image = Image()
    frames = image.create_frames(len(descriptors), screen_width, screen_height)

    for index, (frame, desc) in enumerate(zip(frames, descriptors)):
        if desc.colors is None:
            raise FormatError("unable to decode gif image: no color map")
        transparent = desc.control.transparent
        for y in range(min(desc.height, screen_height - desc.top)):
            raster = desc.pixels[y * desc.width : (y + 1) * desc.width]
            base = (desc.top + y) * screen_width + desc.left
            for x, color in enumerate(raster[: max(0, screen_width - desc.left)]):
                if color != transparent and color < len(desc.colors):
                    frame.data[base + x] = desc.colors[color]

        if desc.control.disposal == _DISPOSE_DO_NOT and index < len(frames) - 1:
            frames[index + 1].data = list(frame.data)

        frame.duration = desc.control.delay * 10 if desc.control.delay else 100

    image.format = "GIF animation" if len(frames) > 1 else "GIF"
    image.alpha = True
    return image