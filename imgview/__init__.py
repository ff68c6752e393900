"""Image decoders, EXIF handling, viewport scaling, configuration and pixel-buffer rendering for an image viewer."""

__version__ = "0.1.0"