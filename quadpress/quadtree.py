"""Quadtree over a packed 3-byte-per-pixel raster."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from quadpress.metrics import Pixel


@dataclass
class QuadtreeNode:
    """A rectangular block of the image, optionally split into four children."""

    x: int
    y: int
    width: int
    height: int
    depth: int = 0
    pixels: list[Pixel] = field(default_factory=list, repr=False)
    children: list[QuadtreeNode] = field(default_factory=list, repr=False)
    average_color: Pixel = Pixel(0, 0, 0)

    def _rows(self, image_width: int, image_height: int) -> Iterator[tuple[int, int]]:
        """Yield (start, end) byte offsets of each in-bounds row of the block."""
        x_end = min(self.x + self.width, image_width)
        if x_end <= self.x:
            return
        for j in range(self.y, min(self.y + self.height, image_height)):
            row = j * image_width
            yield (row + self.x) * 3, (row + x_end) * 3

    def extract(self, data, image_width: int, image_height: int) -> None:
        """Collect this block's pixels from the raster and compute their mean."""
        pixels: list[Pixel] = []
        for start, end in self._rows(image_width, image_height):
            row = data[start:end]
            pixels.extend(Pixel(*row[i:i + 3]) for i in range(0, len(row), 3))
        if not pixels:
            raise ValueError("block lies outside the image")
        self.pixels = pixels
        count = len(pixels)
        self.average_color = Pixel(
            *(sum(channel) // count for channel in zip(*pixels))
        )

    def split(self) -> None:
        """Add four children: top-left, top-right, bottom-left, bottom-right."""
        half_w = self.width // 2
        half_h = self.height // 2
        rest_w = self.width - half_w
        rest_h = self.height - half_h
        depth = self.depth + 1
        self.children.extend(
            [
                QuadtreeNode(self.x, self.y, half_w, half_h, depth),
                QuadtreeNode(self.x + half_w, self.y, rest_w, half_h, depth),
                QuadtreeNode(self.x, self.y + half_h, half_w, rest_h, depth),
                QuadtreeNode(self.x + half_w, self.y + half_h, rest_w, rest_h, depth),
            ]
        )

    def _fill(self, output: bytearray, image_width: int, image_height: int) -> None:
        colour = bytes(self.average_color)
        for start, end in self._rows(image_width, image_height):
            output[start:end] = colour * ((end - start) // 3)

    def render(self, output: bytearray, image_width: int, image_height: int) -> None:
        """Paint every leaf's average colour into the output raster."""
        if not self.children:
            self._fill(output, image_width, image_height)
            return
        for child in self.children:
            child.render(output, image_width, image_height)

    def render_at_depth(
        self, output: bytearray, image_width: int, image_height: int, max_depth: int
    ) -> None:
        """Paint the tree as it looks when cut off at ``max_depth``."""
        if self.depth > max_depth:
            return
        if not self.children or self.depth == max_depth:
            self._fill(output, image_width, image_height)
            return
        for child in self.children:
            child.render_at_depth(output, image_width, image_height, max_depth)