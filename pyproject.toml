[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "imgview"
version = "0.1.0"
description = "Image decoding, viewport scaling and rendering core for a lightweight image viewer"
requires-python = ">=3.10"
dependencies = [
    "pillow",
]
keywords = ["image", "viewer", "bmp", "pnm", "png", "gif", "jpeg", "webp", "tiff", "exif"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Viewers",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.setuptools]
packages = ["imgview"]

[tool.pytest.ini_options]
addopts = "-ra"
