"""TIFF decoder."""

from __future__ import annotations

import io

from PIL import Image as PILImage

from .imagedata import FormatError, Image, argb

_SIGNATURE_LE = b"II\x2a\x00"
_SIGNATURE_BE = b"MM\x00\x2a"

_TAG_BITS_PER_SAMPLE = 258
_TAG_ORIENTATION = 274
_TAG_SAMPLES_PER_PIXEL = 277

_ORIENTATION_TOPLEFT = 1

# Row reversal and mirroring applied for each orientation tag value, giving
# the same raster layout a bottom-left RGBA read produces.
_LAYOUT = {
    1: (False, False),  # top-left
    2: (True, True),  # top-right
    3: (False, True),  # bottom-right
    4: (False, False),  # bottom-left
    5: (True, False),  # left-top
    6: (True, True),  # right-top
    7: (False, True),  # right-bottom
    8: (False, False),  # left-bottom
}


def _first(value: object, default: int) -> int:
    if isinstance(value, (tuple, list)):
        value = value[0] if value else default
    return int(value) if value is not None else default


def decode_tiff(data: bytes) -> Image | None:
    """Decode the first page of a TIFF image; return None if not TIFF."""
    data = bytes(data)
    if not data.startswith((_SIGNATURE_LE, _SIGNATURE_BE)):
        return None

    try:
        with PILImage.open(io.BytesIO(data), formats=["TIFF"]) as source:
            source.load()
            tags = source.tag_v2
            bits = _first(tags.get(_TAG_BITS_PER_SAMPLE), 1)
            samples = _first(tags.get(_TAG_SAMPLES_PER_PIXEL), 1)
            orientation = _first(tags.get(_TAG_ORIENTATION), _ORIENTATION_TOPLEFT)
            width, height = source.size
            raw = source.convert("RGBA").tobytes()
    except Exception as err:  # corrupt TIFF data surfaces as many error types
        raise FormatError(f"unable to decode tiff: {err}") from err

    image = Image()
    frame = image.create_frame(width, height)
    channels = iter(raw)
    frame.data = [argb(a, r, g, b) for r, g, b, a in zip(channels, channels, channels, channels)]

    reverse_rows, mirror = _LAYOUT.get(orientation, (False, False))
    if reverse_rows:
        image.flip_vertical()
    if mirror:
        image.flip_horizontal()

    image.format = f"TIFF {bits * samples}bpp"
    image.alpha = True
    return image