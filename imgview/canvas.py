"""Viewport state: image position and scale inside the output window."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .config import GENERAL_SECTION, Config, InvalidKeyError, InvalidValueError, to_bool, to_color

# Background modes
COLOR_TRANSPARENT = 0xFF000000
BACKGROUND_GRID = 0xFE000000

# Background grid parameters
GRID_STEP = 10
GRID_COLOR1 = 0xFF333333
GRID_COLOR2 = 0xFF4C4C4C

# Scale thresholds
MIN_SCALE = 10  # pixels
MAX_SCALE = 100.0  # factor

# Configuration keys
CFG_ANTIALIASING = "antialiasing"
CFG_SCALE = "scale"
CFG_TRANSPARENCY = "transparency"
CFG_BACKGROUND = "background"


class ScaleMode(Enum):
    """Fixed scaling operations."""

    OPTIMAL = "optimal"  # fit to window, but not more than 100%
    FIT = "fit"  # fit to window size
    WIDTH = "width"  # fit width to window width
    HEIGHT = "height"  # fit height to window height
    FILL = "fill"  # fill the window
    REAL = "real"  # real image size (100%)


@dataclass
class Canvas:
    """Image placement inside the window and rendering options."""

    image_bkg: int = BACKGROUND_GRID
    window_bkg: int = COLOR_TRANSPARENT
    antialiasing: bool = False
    initial_scale: ScaleMode = ScaleMode.OPTIMAL
    scale: float = 0.0
    image_x: int = 0
    image_y: int = 0
    image_width: int = 0
    image_height: int = 0
    window_width: int = 0
    window_height: int = 0
    window_scale: int = 1

    @property
    def scaled_width(self) -> int:
        """Width of the image on screen in pixels."""
        return int(self.scale * self.image_width)

    @property
    def scaled_height(self) -> int:
        """Height of the image on screen in pixels."""
        return int(self.scale * self.image_height)

    def load_config(self, key: str, value: str) -> None:
        """Apply one setting of the general section."""
        if key == CFG_ANTIALIASING:
            self.antialiasing = to_bool(value)
        elif key == CFG_SCALE:
            try:
                self.initial_scale = ScaleMode(value)
            except ValueError:
                raise InvalidValueError(f'Invalid value "{value}"') from None
        elif key == CFG_TRANSPARENCY:
            if value == "grid":
                self.image_bkg = BACKGROUND_GRID
            elif value == "none":
                self.image_bkg = COLOR_TRANSPARENT
            else:
                self.image_bkg = to_color(value)
        elif key == CFG_BACKGROUND:
            if value == "none":
                self.window_bkg = COLOR_TRANSPARENT
            else:
                self.window_bkg = to_color(value)
        else:
            raise InvalidKeyError(f'Invalid key "{key}"')

    def register(self, config: Config) -> None:
        """Register this canvas as a loader of the general section."""
        config.add_loader(GENERAL_SECTION, self.load_config)

    def reset_window(self, width: int, height: int, scale: int) -> bool:
        """Set the window size and HiDPI scale; return True on the first call."""
        first = self.window_width == 0
        self.window_width = width
        self.window_height = height
        self.window_scale = scale
        self._fix_viewport()
        return first

    def reset_image(self, width: int, height: int) -> None:
        """Set a new image size and apply the initial scale."""
        if width <= 0 or height <= 0:
            raise ValueError(f"invalid image size {width}x{height}")
        self.image_x = 0
        self.image_y = 0
        self.image_width = width
        self.image_height = height
        self.scale = 0.0
        self._set_scale(self.initial_scale)

    def swap_image_size(self) -> None:
        """Recalculate the position after rotating the image by 90 degrees."""
        diff = self.image_width - self.image_height
        shift = int((self.scale * diff) / 2)
        self.image_x += shift
        self.image_y -= shift
        self.image_width, self.image_height = self.image_height, self.image_width
        self._fix_viewport()

    def move(self, horizontal: bool, percent: int) -> bool:
        """Move the viewport by a percentage of the window; True if it moved."""
        old = (self.image_x, self.image_y)
        if horizontal:
            self.image_x += (self.window_width // 100) * percent
        else:
            self.image_y += (self.window_height // 100) * percent
        self._fix_viewport()
        return (self.image_x, self.image_y) != old

    def drag(self, dx: int, dy: int) -> bool:
        """Move the viewport by a pixel delta; True if it moved."""
        old = (self.image_x, self.image_y)
        self.image_x += dx
        self.image_y += dy
        self._fix_viewport()
        return (self.image_x, self.image_y) != old

    def zoom(self, op: str | None) -> None:
        """Apply a scale mode name or a percentage step such as "10" or "-25"."""
        if not op:
            return
        try:
            mode = ScaleMode(op)
        except ValueError:
            pass
        else:
            self._set_scale(mode)
            return

        try:
            percent = int(op, 0)
        except ValueError:
            percent = 0
        if percent == 0 or not -1000 < percent < 1000:
            raise ValueError(f'Invalid zoom operation: "{op}"')
        self._zoom(percent)

    def switch_aa(self) -> bool:
        """Toggle anti-aliasing and return the new state."""
        self.antialiasing = not self.antialiasing
        return self.antialiasing

    def _fix_viewport(self) -> None:
        """Minimize the gap between the image and the window edges."""
        x, y = self.image_x, self.image_y
        width, height = self.scaled_width, self.scaled_height
        wnd_w, wnd_h = self.window_width, self.window_height

        if x > 0 and x + width > wnd_w:
            self.image_x = 0
        if y > 0 and y + height > wnd_h:
            self.image_y = 0
        if x < 0 and x + width < wnd_w:
            self.image_x = wnd_w - width
        if y < 0 and y + height < wnd_h:
            self.image_y = wnd_h - height
        if width <= wnd_w:
            self.image_x = wnd_w // 2 - width // 2
        if height <= wnd_h:
            self.image_y = wnd_h // 2 - height // 2

    def _set_scale(self, mode: ScaleMode) -> None:
        scale_w = self.window_width / self.image_width
        scale_h = self.window_height / self.image_height

        if mode is ScaleMode.OPTIMAL:
            self.scale = min(scale_w, scale_h, 1.0)
        elif mode is ScaleMode.FIT:
            self.scale = min(scale_w, scale_h)
        elif mode is ScaleMode.WIDTH:
            self.scale = scale_w
        elif mode is ScaleMode.HEIGHT:
            self.scale = scale_h
        elif mode is ScaleMode.FILL:
            self.scale = max(scale_w, scale_h)
        else:
            self.scale = 1.0

        # center viewport
        self.image_x = int(self.window_width // 2 - (self.scale * self.image_width) / 2)
        self.image_y = int(self.window_height // 2 - (self.scale * self.image_height) / 2)
        self._fix_viewport()

    def _zoom(self, percent: int) -> None:
        old_w, old_h = self.scaled_width, self.scaled_height
        step = (self.scale / 100) * percent

        self.scale += step
        if percent > 0:
            self.scale = min(self.scale, MAX_SCALE)
        else:
            scale_min = max(MIN_SCALE / self.image_width, MIN_SCALE / self.image_height)
            self.scale = max(self.scale, scale_min)

        # keep the point at the window center in place
        delta_w = old_w - self.scaled_width
        delta_h = old_h - self.scaled_height
        center_x = self.window_width // 2 - self.image_x
        center_y = self.window_height // 2 - self.image_y
        if old_w:
            self.image_x = int(self.image_x + (center_x / old_w) * delta_w)
        if old_h:
            self.image_y = int(self.image_y + (center_y / old_h) * delta_h)

        self._fix_viewport()