# imgview

The core of a small image viewer. It decodes image files into ARGB frames.
It tracks how an image is scaled and placed inside a window. It also draws
the visible part of the image into a window pixel buffer. Drawing can use
bicubic smoothing and a background for transparent areas.

## Installation

```
pip install .
```

Installing the package also installs Pillow. JPEG, PNG, WebP and TIFF
images are decoded through Pillow, and so is EXIF data. The package decodes
BMP, the PNM family and GIF itself.

## Decoding images

```python
from imgview.loader import load_image, supported_formats

print(supported_formats())    # "bmp, pnm, jpeg, png, gif, webp, tiff"

with open("photo.bmp", "rb") as f:
    image = load_image(f.read())

if image is not None:
    print(image.format)       # e.g. "BMP 24bit uncompressed"
    frame = image.frames[0]
    print(frame.width, frame.height, hex(frame.pixel(0, 0)))
```

`load_image` tries each decoder in turn and returns the first image that
one of them decodes. If no decoder recognises the data, it returns `None`.
A decoder may recognise the data and then fail to decode it. If no other
decoder succeeds after that, `load_image` raises that decoder's
`FormatError`, which is defined in `imgview.imagedata`.

Each decoder can also be called on its own. All of them take the raw bytes,
return an `Image`, or return `None` when the data is not in their format:

- `imgview.bmp.decode_bmp`: uncompressed, indexed, RLE4/RLE8 and bit-field
  masked bitmaps
- `imgview.pnm.decode_pnm`: PBM, PGM and PPM, both ASCII and raw
- `imgview.raster.decode_jpeg` and `imgview.raster.decode_gif`
- `imgview.pngfmt.decode_png`: PNG and APNG
- `imgview.webpfmt.decode_webp`: still and animated WebP
- `imgview.tiffmt.decode_tiff`: the first page of a TIFF file

An animated GIF, APNG or WebP gives one frame per animation step, and each
frame has a `duration` in milliseconds. An `Image` has `frames`, a `format`
description, an `alpha` flag and a `meta` list of `(key, value)` pairs. It
can be flipped with `flip_vertical()` and `flip_horizontal()`, and rotated
with `rotate(90 | 180 | 270)`.

Pixels are 32-bit integers in ARGB order. The helpers `argb(a, r, g, b)`
and `alpha_blend(alpha, alpha_set, bg, fg)` in `imgview.imagedata` build
and mix these values.

## EXIF

`imgview.exif.process_exif(image, data)` reads raw EXIF data. It turns the
image according to its orientation tag. It then adds metadata entries to
the image: date and time, camera, model, software, exposure, F number and
GPS location. The WebP decoder calls it when the file carries EXIF data.
`apply_orientation(image, orientation)` applies one EXIF orientation value.
`format_coordinate(values, ref)` formats degree, minute and second values
as text such as `52°31'12"N`.

## Viewport and scaling

```python
from imgview.canvas import Canvas
from imgview.config import Config

config = Config()
canvas = Canvas()
canvas.register(config)
config.load()                 # first config file found, see below
config.command("general.scale=fit")

canvas.reset_window(800, 600, 1)
canvas.reset_image(1920, 1080)
canvas.zoom("10")             # zoom in by 10 %
canvas.move(True, 5)          # pan right by 5 % of the window width
canvas.drag(-20, 0)
print(canvas.scale, canvas.image_x, canvas.image_y)
```

Zoom operations are the `ScaleMode` names `optimal`, `fit`, `width`,
`height`, `fill` and `real`, or a non-zero percentage step from -999 to
999. `zoom` raises `ValueError` for anything else. `move` and `drag`
return whether the image position changed. `swap_image_size()` updates the
position after the image is turned by 90 degrees. `switch_aa()` turns
anti-aliasing on or off and returns the new state.

## Configuration

`Config.load()` reads the first config file it can open, from this list:

1. `$XDG_CONFIG_HOME/imgview/config`
2. `$HOME/.config/imgview/config`
3. `$XDG_CONFIG_DIRS/imgview/config`, using only the first directory in the list
4. `/etc/xdg/imgview/config`

It returns the path of the file it loaded, or `None` if it found no file.

Configuration files use INI sections with `key = value` lines. Lines that
start with `#` are comments. A `Canvas` registered with the config handles
the `[general]` section:

```
[general]
scale = optimal
antialiasing = yes
transparency = grid
background = none
```

`antialiasing` takes `yes`, `true`, `no` or `false`. `transparency` takes
`grid`, `none` or a hex colour such as `#202020`. `background` takes `none`
or a hex colour.

`Config.set` and `Config.command` raise `InvalidSectionError`,
`InvalidKeyError` or `InvalidValueError`. All three are subclasses of
`ConfigError`. `Config.load_file(path)` skips lines it cannot apply and
returns a description of each one. `Config.load()` prints those
descriptions to standard error.

## Rendering

```python
from imgview.render import clear_window, draw_image

window = [0] * (800 * 600)
clear_window(canvas, window)
draw_image(canvas, True, image.frames[0], window)
```

The window buffer must hold `window_width * window_height` pixels, and the
frame must have the size given to `reset_image`. If the `alpha` argument is
true, drawn pixels are blended over the configured transparency
background: a grid, a fixed colour, or nothing.

## What it does not do

The package has no command-line program. It does not open a window or show
anything on screen, and it does not handle keyboard or mouse input. The
rendering functions only fill a list of pixels. It does not draw text or
information overlays. AVIF, HEIF, JPEG XL, EXR and SVG images are not
decoded.