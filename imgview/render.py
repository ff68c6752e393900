"""Drawing of the current image frame into the window pixel buffer."""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence

from .canvas import (
    BACKGROUND_GRID,
    COLOR_TRANSPARENT,
    GRID_COLOR1,
    GRID_COLOR2,
    GRID_STEP,
    Canvas,
)
from .imagedata import Frame, alpha_blend

# Catmull-Rom spline basis used by the bicubic filter.
_BASIS = (
    (0.0, 1.0, 0.0, 0.0),
    (-0.5, 0.0, 0.5, 0.0),
    (1.0, -2.5, 2.0, -0.5),
    (-0.5, 1.5, -1.5, 0.5),
)

_Matrix = list[list[float]]


def clear_window(canvas: Canvas, window: MutableSequence[int]) -> None:
    """Fill the window buffer with the window background."""
    _check_window(canvas, window)
    if canvas.window_bkg == COLOR_TRANSPARENT:
        color = 0
    else:
        color = 0xFF000000 | canvas.window_bkg
    window[:] = [color] * (canvas.window_width * canvas.window_height)


def draw_image(canvas: Canvas, alpha: bool, frame: Frame, window: MutableSequence[int]) -> None:
    """Draw the frame at the canvas position and scale into the window buffer.

    With ``alpha`` set, the drawn pixels are blended over the image
    background configured for the canvas.
    """
    _check_window(canvas, window)
    if (frame.width, frame.height) != (canvas.image_width, canvas.image_height):
        raise ValueError(
            f"frame size {frame.width}x{frame.height} does not match "
            f"canvas image size {canvas.image_width}x{canvas.image_height}"
        )
    if canvas.scale <= 0:
        raise ValueError("canvas has no scale set")

    right = min(canvas.window_width, int(canvas.image_x + canvas.scale * canvas.image_width))
    bottom = min(canvas.window_height, int(canvas.image_y + canvas.scale * canvas.image_height))
    left = max(0, canvas.image_x)
    top = max(0, canvas.image_y)
    if right <= left or bottom <= top:
        return
    viewport = (left, top, right - left, bottom - top)

    if canvas.antialiasing:
        _draw_bicubic(canvas, viewport, frame, window)
    else:
        _draw_nearest(canvas, viewport, frame, window)

    if alpha:
        _blend_background(canvas, viewport, window)


def _check_window(canvas: Canvas, window: Sequence[int]) -> None:
    expected = canvas.window_width * canvas.window_height
    if len(window) != expected:
        raise ValueError(f"window buffer holds {len(window)} pixels, expected {expected}")


def _draw_nearest(
    canvas: Canvas,
    viewport: tuple[int, int, int, int],
    frame: Frame,
    window: MutableSequence[int],
) -> None:
    left, top, width, height = viewport
    columns = [
        min(int((x + left - canvas.image_x) / canvas.scale), frame.width - 1)
        for x in range(width)
    ]
    for y in range(height):
        img_y = min(int((y + top - canvas.image_y) / canvas.scale), frame.height - 1)
        source = frame.data[img_y * frame.width : (img_y + 1) * frame.width]
        start = (top + y) * canvas.window_width + left
        window[start : start + width] = [source[c] for c in columns]


def _source_index(base: int, offset: int, size: int) -> int:
    index = base + offset
    if index > 0:
        index = min(index - 1, size - 1)
    return index


def _spline(points: _Matrix) -> _Matrix:
    """Return the bicubic coefficients for a 4x4 block of channel values."""
    left = [
        [sum(a * points[k][col] for k, a in enumerate(row)) for col in range(4)]
        for row in _BASIS
    ]
    return [[sum(p * b for p, b in zip(row, basis)) for basis in _BASIS] for row in left]


def _coefficients(frame: Frame, img_x: int, img_y: int) -> list[_Matrix]:
    rows = [_source_index(img_y, py, frame.height) for py in range(4)]
    cols = [_source_index(img_x, px, frame.width) for px in range(4)]
    block = [[frame.data[r * frame.width + c] for c in cols] for r in rows]
    return [
        _spline([[float((pixel >> shift) & 0xFF) for pixel in line] for line in block])
        for shift in (0, 8, 16, 24)
    ]


def _powers(value: float) -> tuple[float, float, float, float]:
    square = value * value
    return 1.0, value, square, square * value


def _draw_bicubic(
    canvas: Canvas,
    viewport: tuple[int, int, int, int],
    frame: Frame,
    window: MutableSequence[int],
) -> None:
    left, top, width, height = viewport
    columns = []
    for x in range(width):
        scaled_x = (x + left - canvas.image_x) / canvas.scale - 0.5
        img_x = int(scaled_x)
        columns.append((img_x, _powers(scaled_x - img_x)))

    cache: dict[tuple[int, int], list[_Matrix]] = {}
    for y in range(height):
        scaled_y = (y + top - canvas.image_y) / canvas.scale - 0.5
        img_y = int(scaled_y)
        y_powers = _powers(scaled_y - img_y)
        line = []
        for img_x, x_powers in columns:
            key = (img_x, img_y)
            state = cache.get(key)
            if state is None:
                state = cache[key] = _coefficients(frame, img_x, img_y)
            pixel = 0
            for channel, matrix in enumerate(state):
                inter = sum(
                    sum(s * xp for s, xp in zip(row, x_powers)) * yp
                    for row, yp in zip(matrix, y_powers)
                )
                pixel |= int(max(min(inter, 255.0), 0.0)) << (channel * 8)
            line.append(pixel)
        start = (top + y) * canvas.window_width + left
        window[start : start + width] = line


def _blend_background(
    canvas: Canvas,
    viewport: tuple[int, int, int, int],
    window: MutableSequence[int],
) -> None:
    left, top, width, height = viewport
    step = GRID_STEP * canvas.window_scale
    for y in range(height):
        start = (top + y) * canvas.window_width + left
        shift = (y // step) % 2
        line = []
        for x, fg in enumerate(window[start : start + width]):
            alpha = (fg >> 24) & 0xFF
            if canvas.image_bkg == COLOR_TRANSPARENT:
                bg, alpha_set = 0, alpha
            elif canvas.image_bkg == BACKGROUND_GRID:
                bg = GRID_COLOR1 if ((x // step) % 2) ^ shift else GRID_COLOR2
                alpha_set = 0xFF
            else:
                bg, alpha_set = canvas.image_bkg, 0xFF
            line.append(alpha_blend(alpha, alpha_set, bg, fg))
        window[start : start + width] = line