"""Decoded image container shared by the format decoders."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field


class FormatError(Exception):
    """The data was recognised by a decoder but cannot be decoded."""


def argb(a: int, r: int, g: int, b: int) -> int:
    """Pack channel values into a 32-bit ARGB pixel."""
    return ((a & 0xFF) << 24) | ((r & 0xFF) << 16) | ((g & 0xFF) << 8) | (b & 0xFF)


def _channels(pixel: int) -> tuple[int, int, int, int]:
    return (pixel >> 24) & 0xFF, (pixel >> 16) & 0xFF, (pixel >> 8) & 0xFF, pixel & 0xFF


def alpha_blend(alpha: int, alpha_set: int, bg: int, fg: int) -> int:
    """Blend fg over bg with the given alpha; the result carries alpha_set."""
    _, bg_r, bg_g, bg_b = _channels(bg)
    _, fg_r, fg_g, fg_b = _channels(fg)

    def mix(front: int, back: int) -> int:
        return (alpha * front + (255 - alpha) * back + 127) // 255

    return argb(alpha_set, mix(fg_r, bg_r), mix(fg_g, bg_g), mix(fg_b, bg_b))


@dataclass
class Frame:
    """One image frame: row-major ARGB pixels and display duration in ms."""

    width: int
    height: int
    data: list[int] = field(default_factory=list)
    duration: int = 0

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise FormatError(f"invalid frame size {self.width}x{self.height}")
        if not self.data:
            self.data = [0] * (self.width * self.height)
        elif len(self.data) != self.width * self.height:
            raise ValueError("pixel data does not match frame size")

    def pixel(self, x: int, y: int) -> int:
        """Return the pixel at column x, row y."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height}")
        return self.data[y * self.width + x]

    def rows(self) -> Iterator[list[int]]:
        """Yield the pixel rows from top to bottom."""
        for start in range(0, len(self.data), self.width):
            yield self.data[start : start + self.width]

    def _flip_vertical(self) -> None:
        self.data = [p for row in reversed(list(self.rows())) for p in row]

    def _flip_horizontal(self) -> None:
        self.data = [p for row in self.rows() for p in reversed(row)]

    def _rotate(self, angle: int) -> None:
        if angle == 180:
            self.data.reverse()
            return
        rows = list(self.rows())
        if angle == 90:
            rotated = list(zip(*reversed(rows)))
        else:
            rotated = list(reversed(list(zip(*rows))))
        self.width, self.height = self.height, self.width
        self.data = [p for row in rotated for p in row]


@dataclass
class Image:
    """Decoded image: frames, format description, alpha flag and metadata."""

    frames: list[Frame] = field(default_factory=list)
    format: str = ""
    alpha: bool = False
    meta: list[tuple[str, str]] = field(default_factory=list)

    def create_frame(self, width: int, height: int) -> Frame:
        """Replace the frames with a single blank frame and return it."""
        frame = Frame(width, height)
        self.frames = [frame]
        return frame

    def create_frames(self, count: int, width: int, height: int) -> list[Frame]:
        """Replace the frames with ``count`` blank frames and return them."""
        if count <= 0:
            raise FormatError("image has no frames")
        self.frames = [Frame(width, height) for _ in range(count)]
        return self.frames

    def flip_vertical(self) -> None:
        """Mirror every frame top to bottom."""
        for frame in self.frames:
            frame._flip_vertical()

    def flip_horizontal(self) -> None:
        """Mirror every frame left to right."""
        for frame in self.frames:
            frame._flip_horizontal()

    def rotate(self, angle: int) -> None:
        """Rotate every frame clockwise by 90, 180 or 270 degrees."""
        if angle not in (90, 180, 270):
            raise ValueError(f"unsupported rotation angle {angle}")
        for frame in self.frames:
            frame._rotate(angle)

    def add_meta(self, key: str, value: str) -> None:
        """Append a metadata entry."""
        self.meta.append((key, value))