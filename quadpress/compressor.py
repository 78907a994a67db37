"""Quadtree image compression driven by a block error threshold."""

from __future__ import annotations

import os

from quadpress.gif_writer import GifWriter
from quadpress.imageio import RasterImage, load_image, save_image
from quadpress.metrics import compute_error
from quadpress.quadtree import QuadtreeNode

_SEARCH_LOW = 0.0
_SEARCH_HIGH = 100.0
_SEARCH_EPSILON = 0.01
_SEARCH_STEPS = 20
_FINAL_FRAMES = 4


def _to_rgba(rgb: bytearray) -> bytearray:
    count = len(rgb) // 3
    rgba = bytearray(b"\xff") * (count * 4)
    for channel in range(3):
        rgba[channel::4] = rgb[channel::3]
    return rgba


class ImageCompressor:
    """Compresses one image into a PNG of flat-coloured quadtree blocks."""

    def __init__(
        self,
        input_path,
        output_path,
        method: int,
        threshold: float,
        min_block_size: int,
        target_compression: float = 0.0,
    ) -> None:
        self.input_path = input_path
        self.output_path = output_path
        self.method = method
        self.threshold = float(threshold)
        self.min_block_size = min_block_size
        self.target_compression = float(target_compression)
        self.image: RasterImage | None = None
        self.root: QuadtreeNode | None = None
        self.original_size = 0
        self.compressed_size = 0
        self.tree_depth = 0
        self.node_count = 0

    def _require_image(self) -> RasterImage:
        if self.image is None:
            raise RuntimeError("no image loaded; call process() first")
        return self.image

    def _require_tree(self) -> QuadtreeNode:
        if self.root is None:
            raise RuntimeError("no quadtree built; call process() first")
        return self.root

    def find_best_threshold(self) -> float:
        """Bisect the threshold in [0, 100] towards the target compression ratio."""
        low, high = _SEARCH_LOW, _SEARCH_HIGH
        best = self.threshold
        for _ in range(_SEARCH_STEPS):
            mid = (low + high) / 2.0
            self.threshold = mid
            ratio = self.run_compression(mid)
            best = mid
            if abs(ratio - self.target_compression) < _SEARCH_EPSILON:
                break
            if ratio < self.target_compression:
                low = mid
            else:
                high = mid
        return best

    def run_compression(self, threshold: float) -> float:
        """Build the tree, write the compressed PNG and return the ratio achieved."""
        image = self._require_image()
        width, height = image.width, image.height
        self.node_count = 0
        self.tree_depth = 0
        self.root = QuadtreeNode(0, 0, width, height)
        self.root.extract(image.data, width, height)
        self.divide(self.root, threshold)

        output = RasterImage(width, height)
        self.root.render(output.data, width, height)
        save_image(self.output_path, output)
        self.compressed_size = os.path.getsize(self.output_path)
        return self.compression_ratio()

    def process(self) -> None:
        """Load the input, pick a threshold if a target is set, and compress.

        Raises ``OSError`` when the input cannot be loaded.
        """
        self.image = load_image(self.input_path)
        self.original_size = os.path.getsize(self.input_path)
        if self.target_compression > 0.0:
            self.threshold = self.find_best_threshold()
        self.run_compression(self.threshold)

    def _can_split(self, node: QuadtreeNode) -> bool:
        # A block narrower or shorter than two pixels would yield empty children.
        return (
            node.width >= 2
            and node.height >= 2
            and node.height * node.width // 4 >= self.min_block_size
        )

    def divide(self, node: QuadtreeNode, threshold: float) -> None:
        """Split ``node`` recursively while its error exceeds ``threshold``."""
        image = self._require_image()
        self.node_count += 1
        self.tree_depth = max(self.tree_depth, node.depth)

        error = compute_error(node.pixels, self.method)
        if error <= threshold or not self._can_split(node):
            return

        node.split()
        for child in node.children:
            child.extract(image.data, image.width, image.height)
            self.divide(child, threshold)

    def generate_gif(self, gif_path, duration: int) -> None:
        """Animate the tree level by level, then hold the final result.

        ``duration`` is the time per frame in milliseconds.
        """
        image = self._require_image()
        root = self._require_tree()
        width, height = image.width, image.height
        delay = int(duration / 10)

        with GifWriter(gif_path, width, height, delay) as writer:
            for depth in range(self.tree_depth + 1):
                frame = bytearray(width * height * 3)
                root.render_at_depth(frame, width, height, depth)
                writer.write_frame(_to_rgba(frame), width, height, delay)

            final = bytearray(width * height * 3)
            root.render(final, width, height)
            final_rgba = _to_rgba(final)
            for _ in range(_FINAL_FRAMES):
                writer.write_frame(final_rgba, width, height, delay)

    def compression_ratio(self) -> float:
        """Fraction of the original file size saved by the compressed file."""
        if not self.original_size:
            raise ValueError("the original size is unknown; call process() first")
        return 1 - self.compressed_size / self.original_size

    def stats_report(self, exec_time: float) -> str:
        """Summary of a finished run, as printed at the end of the command."""
        return (
            "\n=== COMPRESSION STATS ===\n"
            f"Execution Time        : {exec_time:g} seconds\n"
            f"Original File Size    : {self.original_size}\n"
            f"Compressed File Size  : {self.compressed_size}\n"
            f"Compression Ratio     : {self.compression_ratio() * 100:.2f} %\n"
            f"Tree Depth            : {self.tree_depth}\n"
            f"Tree Nodes            : {self.node_count}\n"
            f"Compressed image saved to: {self.output_path}\n"
        )