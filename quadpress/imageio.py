"""Reading images into packed RGB rasters and writing rasters as PNG."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Union

from PIL import Image

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class RasterImage:
    """A top-down raster holding three bytes (R, G, B) per pixel."""

    width: int
    height: int
    data: Optional[bytearray] = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"image dimensions must be positive, got {self.width}x{self.height}"
            )
        expected = self.width * self.height * 3
        if self.data is None:
            self.data = bytearray(expected)
            return
        self.data = bytearray(self.data)
        if len(self.data) != expected:
            raise ValueError(
                f"raster holds {len(self.data)} bytes, expected {expected} for a "
                f"{self.width}x{self.height} RGB image"
            )


def load_image(path: PathLike) -> RasterImage:
    """Load any image format Pillow understands, converted to 24-bit RGB.

    Raises ``OSError`` when the file is missing or is not a readable image.
    """
    with Image.open(path) as source:
        rgb = source.convert("RGB")
    width, height = rgb.size
    return RasterImage(width, height, bytearray(rgb.tobytes()))


def save_image(path: PathLike, image: RasterImage) -> None:
    """Write the raster as a PNG file, whatever the file name's suffix."""
    picture = Image.frombytes("RGB", (image.width, image.height), bytes(image.data))
    picture.save(path, format="PNG")