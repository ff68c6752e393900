"""Image loader: tries every format decoder on a memory buffer."""

from __future__ import annotations

from collections.abc import Callable

from .bmp import decode_bmp
from .imagedata import FormatError, Image
from .pngfmt import decode_png
from .pnm import decode_pnm
from .raster import decode_gif, decode_jpeg
from .tiffmt import decode_tiff
from .webpfmt import decode_webp

Decoder = Callable[[bytes], "Image | None"]

_DECODERS: tuple[Decoder, ...] = (
    decode_jpeg,
    decode_png,
    decode_gif,
    decode_bmp,
    decode_pnm,
    decode_webp,
    decode_tiff,
)

_FORMAT_NAMES = ("bmp", "pnm", "jpeg", "png", "gif", "webp", "tiff")


def load_image(data: bytes) -> Image | None:
    """Decode an image from memory.

    Returns None when no decoder recognises the data. Raises FormatError
    when a decoder recognised it but failed and no other decoder succeeded.
    """
    data = bytes(data)
    error: FormatError | None = None
    for decoder in _DECODERS:
        try:
            image = decoder(data)
        except FormatError as err:
            if error is None:
                error = err
            continue
        if image is not None:
            return image
    if error is not None:
        raise error
    return None


def supported_formats() -> str:
    """Return the names of the supported image formats."""
    return ", ".join(_FORMAT_NAMES)