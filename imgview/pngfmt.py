"""PNG decoder: still images and APNG animations."""

from __future__ import annotations

import io
import struct

from PIL import Image as PILImage

from .imagedata import FormatError, Frame, Image, argb

_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_IHDR = b"IHDR"
_BIT_DEPTH_OFFSET = 24

# Pillow modes holding 16-bit grayscale samples: byte order and sample code.
_WIDE_GRAY = {
    "I;16": ("<", "H"),
    "I;16L": ("<", "H"),
    "I;16B": (">", "H"),
    "I": ("=", "i"),
}


def decode_png(data: bytes) -> Image | None:
    """Decode a PNG or APNG image; return None if the data is not PNG."""
    data = bytes(data)
    if not data or not _SIGNATURE.startswith(data[: len(_SIGNATURE)]):
        return None
    if len(data) <= _BIT_DEPTH_OFFSET or data[12:16] != _IHDR:
        raise FormatError("failed to decode png")
    bit_depth = data[_BIT_DEPTH_OFFSET]

    try:
        with PILImage.open(io.BytesIO(data), formats=["PNG"]) as source:
            frames = _read_frames(source)
    except FormatError:
        raise
    except Exception as err:  # corrupt PNG data surfaces as many error types
        raise FormatError(f"failed to decode png: {err}") from err

    image = Image(frames=frames)
    image.format = f"PNG {bit_depth * 4}bit"
    image.alpha = True
    return image


def _read_frames(source: PILImage.Image) -> list[Frame]:
    total = getattr(source, "n_frames", 1)
    hidden = bool(source.info.get("default_image"))
    if total - int(hidden) <= 1:
        return [_frame(source)]

    frames: list[Frame] = []
    for index in range(int(hidden), total):
        try:
            source.seek(index)
            frame = _frame(source)
        except Exception:
            if not frames:
                raise
            # keep what is usable of a broken animation: its first frame
            return frames[:1]
        frame.duration = int(source.info.get("duration", 0))
        frames.append(frame)
    return frames


def _frame(source: PILImage.Image) -> Frame:
    source.load()
    width, height = source.size
    wide = _WIDE_GRAY.get(source.mode)
    if wide is not None:
        order, code = wide
        values = struct.unpack(f"{order}{width * height}{code}", source.tobytes())
        key = source.info.get("transparency")
        data = [
            argb(0 if value == key else 0xFF, value >> 8, value >> 8, value >> 8)
            for value in values
        ]
    else:
        channels = iter(source.convert("RGBA").tobytes())
        data = [argb(a, r, g, b) for r, g, b, a in zip(channels, channels, channels, channels)]
    return Frame(width, height, data)