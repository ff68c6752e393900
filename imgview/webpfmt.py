"""WebP decoder: still and animated images with optional EXIF data."""

from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image as PILImage

from .exif import process_exif
from .imagedata import FormatError, Image, argb

_SIGNATURE = b"RIFF"
_WEBP = b"WEBP"

# Bitstream formats as reported by the feature probe
_FORMAT_MIXED = 0
_FORMAT_LOSSY = 1
_FORMAT_LOSSLESS = 2

# VP8X flags
_FLAG_ANIMATION = 0x02
_FLAG_EXIF = 0x08
_FLAG_ALPHA = 0x10

_VP8L_SIGNATURE = 0x2F

_DEFAULT_DURATION = 100


@dataclass
class _Features:
    format: int = _FORMAT_MIXED
    has_alpha: bool = False
    has_animation: bool = False
    has_exif: bool = False


def _chunks(data: bytes):
    pos = 12
    while pos + 8 <= len(data):
        fourcc = data[pos : pos + 4]
        size = int.from_bytes(data[pos + 4 : pos + 8], "little")
        yield fourcc, data[pos + 8 : pos + 8 + size]
        pos += 8 + size + (size & 1)


def _lossless_alpha(payload: bytes) -> bool:
    if len(payload) < 5 or payload[0] != _VP8L_SIGNATURE:
        raise FormatError("unable to get webp properties")
    bits = int.from_bytes(payload[1:5], "little")
    return bool((bits >> 28) & 1)


def _read_features(data: bytes) -> _Features:
    if len(data) < 12 or data[8:12] != _WEBP:
        raise FormatError("unable to get webp properties")
    chunks = _chunks(data)
    first = next(chunks, None)
    if first is None:
        raise FormatError("unable to get webp properties")
    fourcc, payload = first

    if fourcc == b"VP8 ":
        return _Features(format=_FORMAT_LOSSY)
    if fourcc == b"VP8L":
        return _Features(format=_FORMAT_LOSSLESS, has_alpha=_lossless_alpha(payload))
    if fourcc != b"VP8X" or not payload:
        raise FormatError("unable to get webp properties")

    flags = payload[0]
    features = _Features(
        has_alpha=bool(flags & _FLAG_ALPHA),
        has_animation=bool(flags & _FLAG_ANIMATION),
        has_exif=bool(flags & _FLAG_EXIF),
    )
    if features.has_animation:
        return features

    for fourcc, payload in chunks:
        if fourcc == b"ALPH":
            features.has_alpha = True
        elif fourcc == b"VP8 ":
            features.format = _FORMAT_LOSSY
            return features
        elif fourcc == b"VP8L":
            features.format = _FORMAT_LOSSLESS
            features.has_alpha |= _lossless_alpha(payload)
            return features
    raise FormatError("unable to get webp properties")


def decode_webp(data: bytes) -> Image | None:
    """Decode a WebP image or animation; return None if the data is not RIFF."""
    data = bytes(data)
    if not data.startswith(_SIGNATURE):
        return None
    features = _read_features(data)

    image = Image()
    exif: bytes | None = None
    try:
        with PILImage.open(io.BytesIO(data), formats=["WEBP"]) as source:
            count = getattr(source, "n_frames", 1)
            width, height = source.size
            frames = image.create_frames(count, width, height)
            for index, frame in enumerate(frames):
                source.seek(index)
                source.load()
                channels = iter(source.convert("RGBA").tobytes())
                frame.data = [
                    argb(a, r, g, b) for r, g, b, a in zip(channels, channels, channels, channels)
                ]
                if count > 1:
                    duration = int(source.info.get("duration", 0))
                    frame.duration = duration if duration > 0 else _DEFAULT_DURATION
            if features.has_exif:
                exif = source.info.get("exif")
    except FormatError:
        raise
    except Exception as err:  # corrupt WebP data surfaces as many error types
        raise FormatError(f"unable to decode webp image: {err}") from err

    if exif:
        process_exif(image, exif)

    kind = "lossy" if features.format == _FORMAT_LOSSY else "lossless"
    alpha = "+alpha" if features.has_alpha else ""
    animation = "+animation" if features.has_animation else ""
    image.format = f"WebP {kind} {alpha}{animation}"
    image.alpha = features.has_alpha
    return image