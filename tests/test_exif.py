import struct

import pytest

from imgview.exif import apply_orientation, format_coordinate, process_exif
from imgview.imagedata import Image

ASCII, SHORT, LONG, RATIONAL = 2, 3, 4, 5


def _ascii(tag, text):
    data = text.encode("ascii") + b"\0"
    return (tag, ASCII, len(data), data)


def _short(tag, value):
    return (tag, SHORT, 1, struct.pack("<H", value))


def _rational(tag, *pairs):
    return (tag, RATIONAL, len(pairs), b"".join(struct.pack("<II", n, d) for n, d in pairs))


def _ifd_bytes(entries, base):
    entries = sorted(entries)
    data_offset = base + 2 + 12 * len(entries) + 4
    table = struct.pack("<H", len(entries))
    extra = b""
    for tag, typ, count, data in entries:
        if len(data) <= 4:
            table += struct.pack("<HHI", tag, typ, count) + data.ljust(4, b"\0")
        else:
            table += struct.pack("<HHII", tag, typ, count, data_offset + len(extra))
            extra += data
            if len(extra) % 2:
                extra += b"\0"
    table += struct.pack("<I", 0)
    return table + extra


def _tiff(ifd0, exif=(), gps=()):
    ifd0 = list(ifd0)
    pointers = []
    if exif:
        pointers.append((0x8769, list(exif)))
    if gps:
        pointers.append((0x8825, list(gps)))
    placeholder = ifd0 + [(tag, LONG, 1, b"\0\0\0\0") for tag, _ in pointers]
    offset = 8 + len(_ifd_bytes(placeholder, 8))
    subs = b""
    resolved = []
    for tag, entries in pointers:
        resolved.append((tag, LONG, 1, struct.pack("<I", offset + len(subs))))
        subs += _ifd_bytes(entries, offset + len(subs))
    return b"II*\0" + struct.pack("<I", 8) + _ifd_bytes(ifd0 + resolved, 8) + subs


def _image():
    image = Image()
    frame = image.create_frame(3, 2)
    frame.data[:] = range(6)
    return image


def _snapshot(image):
    frame = image.frames[0]
    return frame.width, frame.height, list(frame.data)


@pytest.mark.parametrize("orientation", [0, 1, 9])
def test_orientation_without_transform(orientation):
    image = _image()
    before = _snapshot(image)
    apply_orientation(image, orientation)
    assert _snapshot(image) == before


@pytest.mark.parametrize("orientation", [2, 3, 4])
def test_orientation_self_inverse(orientation):
    image = _image()
    before = _snapshot(image)
    apply_orientation(image, orientation)
    assert _snapshot(image) != before
    apply_orientation(image, orientation)
    assert _snapshot(image) == before


def test_orientation_6_and_8_cancel():
    image = _image()
    before = _snapshot(image)
    apply_orientation(image, 6)
    assert image.frames[0].width == 2
    apply_orientation(image, 8)
    assert _snapshot(image) == before


@pytest.mark.parametrize("orientation", [5, 6, 7, 8])
def test_orientation_swaps_dimensions(orientation):
    image = _image()
    apply_orientation(image, orientation)
    assert (image.frames[0].width, image.frames[0].height) == (2, 3)


def test_orientation_6_matches_clockwise_rotation():
    expected = _image()
    expected.rotate(90)
    image = _image()
    apply_orientation(image, 6)
    assert _snapshot(image) == _snapshot(expected)


def test_process_exif_orientation():
    expected = _image()
    expected.rotate(270)
    image = _image()
    process_exif(image, _tiff([_short(0x0112, 8)]))
    assert _snapshot(image) == _snapshot(expected)
    assert image.meta == []


def test_process_exif_strings_in_order():
    image = _image()
    data = _tiff([_ascii(0x0110, "Model X"), _ascii(0x010F, "Maker"), _ascii(0x0131, "Tool")])
    process_exif(image, data)
    assert image.meta == [("Camera", "Maker"), ("Model", "Model X"), ("Software", "Tool")]


def test_process_exif_accepts_exif_header():
    plain = _image()
    prefixed = _image()
    data = _tiff([_ascii(0x010F, "Maker"), _short(0x0112, 3)])
    process_exif(plain, data)
    process_exif(prefixed, b"Exif\0\0" + data)
    assert prefixed.meta == plain.meta == [("Camera", "Maker")]
    assert _snapshot(prefixed) == _snapshot(plain)


def test_process_exif_exposure_and_fnumber():
    image = _image()
    data = _tiff(
        [_ascii(0x010F, "Maker")],
        exif=[_rational(0x829A, (1, 100)), _rational(0x829D, (28, 10))],
    )
    process_exif(image, data)
    meta = dict(image.meta)
    assert meta["Exposure"] == "1/100 sec."
    assert meta["F Number"] == "f/2.8"


def test_process_exif_location():
    image = _image()
    gps = [
        _ascii(1, "N"),
        _rational(2, (51, 1), (30, 1), (12, 1)),
        _ascii(3, "W"),
        _rational(4, (0, 1), (7, 1), (30, 1)),
    ]
    process_exif(image, _tiff([_ascii(0x010F, "Maker")], gps=gps))
    expected = format_coordinate(["51", "30", "12"], "N") + ", " + format_coordinate(["0", "7", "30"], "W")
    assert dict(image.meta)["Location"] == expected


def test_process_exif_latitude_only_has_no_location():
    image = _image()
    gps = [_ascii(1, "N"), _rational(2, (51, 1), (30, 1), (12, 1))]
    process_exif(image, _tiff([_ascii(0x010F, "Maker")], gps=gps))
    assert "Location" not in dict(image.meta)
    assert dict(image.meta)["Camera"] == "Maker"


@pytest.mark.parametrize("data", [b"", b"garbage data here", b"Exif\0\0xx"])
def test_process_exif_invalid_data(data):
    image = _image()
    before = _snapshot(image)
    process_exif(image, data)
    assert image.meta == []
    assert _snapshot(image) == before


def test_format_coordinate_marks():
    assert format_coordinate(["51", "30", "12.5"], "N") == "51°30'12.5\"N"


def test_format_coordinate_extra_parts_and_no_ref():
    assert format_coordinate(["1", "2", "3", "4"], "") == "1°2'3\"4"


def test_format_coordinate_empty():
    assert format_coordinate([], "N") == ""


def test_format_coordinate_numbers_match_strings():
    assert format_coordinate([51.0, 30, 12.25], "S") == format_coordinate(["51", "30", "12.25"], "S")