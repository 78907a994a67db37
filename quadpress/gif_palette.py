"""Palette construction and quantisation of RGBA frames for GIF output.

A palette is built by splitting the frame's colours into a k-d tree over
RGB space (median split) and averaging the pixels that end up in each leaf.
Quantised frames carry the chosen palette index in their alpha channel.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

TRANSPARENT_INDEX = 0
"""Palette index reserved for pixels unchanged since the previous frame."""

_NO_MATCH = 1_000_000
_ERROR_SPREAD = ((1, 7), (-1, 3), (0, 5), (1, 1))


def _table() -> list[int]:
    return [0] * 256


@dataclass
class GifPalette:
    """Up to 256 colours plus the k-d tree used to look them up.

    Tree node ``i`` has children ``2*i`` and ``2*i + 1``; nodes from
    ``2**bit_depth`` upwards are leaves holding palette entries.
    """

    bit_depth: int = 8
    r: list[int] = field(default_factory=_table)
    g: list[int] = field(default_factory=_table)
    b: list[int] = field(default_factory=_table)
    tree_split_elt: list[int] = field(default_factory=_table)
    tree_split: list[int] = field(default_factory=_table)

    def closest_color(
        self,
        r: int,
        g: int,
        b: int,
        best_index: int = TRANSPARENT_INDEX,
        best_diff: int = _NO_MATCH,
        tree_root: int = 1,
    ) -> tuple[int, int]:
        """Search the subtree at ``tree_root`` for a closer colour.

        Returns ``(best_index, best_diff)``, changed only if an entry with a
        strictly smaller sum of absolute channel differences was found.
        """
        num_colors = 1 << self.bit_depth
        if tree_root > num_colors - 1:
            index = tree_root - num_colors
            if index == TRANSPARENT_INDEX:
                return best_index, best_diff
            diff = abs(r - self.r[index]) + abs(g - self.g[index]) + abs(b - self.b[index])
            if diff < best_diff:
                return index, diff
            return best_index, best_diff

        split_comp = (r, g, b)[self.tree_split_elt[tree_root]]
        split_pos = self.tree_split[tree_root]
        if split_pos > split_comp:
            near, far, margin = tree_root * 2, tree_root * 2 + 1, split_pos - split_comp
        else:
            near, far, margin = tree_root * 2 + 1, tree_root * 2, split_comp - split_pos

        best_index, best_diff = self.closest_color(r, g, b, best_index, best_diff, near)
        if best_diff > margin:
            best_index, best_diff = self.closest_color(r, g, b, best_index, best_diff, far)
        return best_index, best_diff


def _check_frame(frame: Sequence[int], width: int, height: int, name: str) -> None:
    expected = width * height * 4
    if len(frame) != expected:
        raise ValueError(
            f"{name} holds {len(frame)} bytes, expected {expected} for a "
            f"{width}x{height} RGBA frame"
        )


def _rgb_pixels(frame: Sequence[int]) -> list[tuple[int, int, int]]:
    return [tuple(frame[i:i + 3]) for i in range(0, len(frame), 4)]


def _swap(pixels: list, a: int, b: int) -> None:
    pixels[a], pixels[b] = pixels[b], pixels[a]


def _partition(pixels: list, left: int, right: int, elt: int, pivot: int) -> int:
    """Move values below ``pivot`` (and every other equal one) to the front."""
    store = left
    take_equal = False
    for index in range(left, right):
        value = pixels[index][elt]
        if value < pivot:
            _swap(pixels, index, store)
            store += 1
        elif value == pivot:
            if take_equal:
                _swap(pixels, index, store)
                store += 1
            take_equal = not take_equal
    return store


def _partition_by_median(pixels: list, left: int, right: int, com: int, center: int) -> None:
    """Partially order ``pixels[left:right]`` so ``center`` holds its median."""
    while left < right - 1:
        pivot = pixels[center][com]
        _swap(pixels, center, right - 1)
        pivot_index = _partition(pixels, left, right - 1, com, pivot)
        _swap(pixels, pivot_index, right - 1)
        if pivot_index > center:
            right = pivot_index
        elif pivot_index < center:
            left = pivot_index + 1
        else:
            break


def _partition_by_mean(pixels: list, left: int, right: int, com: int, mean: int) -> int:
    if left < right - 1:
        return _partition(pixels, left, right - 1, com, mean)
    return left


def _split_palette(
    pixels: list,
    start: int,
    count: int,
    node: int,
    level: int,
    build_for_dither: bool,
    palette: GifPalette,
) -> None:
    if count == 0:
        return

    num_colors = 1 << palette.bit_depth
    block = pixels[start:start + count]

    if node >= num_colors:
        entry = node - num_colors
        channels = list(zip(*block))
        if build_for_dither and entry == 1:
            # Dithering needs the darkest colour present.
            colour = tuple(min(channel) for channel in channels)
        elif build_for_dither and entry == num_colors - 1:
            # ...and the brightest one.
            colour = tuple(max(channel) for channel in channels)
        else:
            colour = tuple((sum(channel) + count // 2) // count for channel in channels)
        palette.r[entry], palette.g[entry], palette.b[entry] = colour
        return

    lows = [min(channel) for channel in zip(*block)]
    highs = [max(channel) for channel in zip(*block)]
    ranges = [high - low for low, high in zip(lows, highs)]

    split_com = 1
    if ranges[2] > ranges[1]:
        split_com = 2
    if ranges[0] > ranges[2] and ranges[0] > ranges[1]:
        split_com = 0
    range_min, range_max = lows[split_com], highs[split_com]

    sub_a = count // 2
    _partition_by_median(pixels, start, start + count, split_com, start + sub_a)
    split_value = pixels[start + sub_a][split_com]

    # A very lopsided median split would lose rare colours; split at the mean.
    unbalance = abs((split_value - range_min) - (range_max - split_value))
    if unbalance > (1536 >> level):
        split_value = range_min + (range_max - range_min) // 2
        sub_a = _partition_by_mean(pixels, start, start + count, split_com, split_value) - start

    # Leave the leaf of the transparency index empty.
    if node == num_colors // 2:
        sub_a = 0
        split_value = 0

    palette.tree_split_elt[node] = split_com
    palette.tree_split[node] = split_value & 0xFF

    _split_palette(pixels, start, sub_a, node * 2, level + 1, build_for_dither, palette)
    _split_palette(
        pixels, start + sub_a, count - sub_a, node * 2 + 1, level + 1, build_for_dither, palette
    )


def make_palette(
    last_frame: Sequence[int] | None,
    next_frame: Sequence[int],
    width: int,
    height: int,
    bit_depth: int = 8,
    build_for_dither: bool = False,
) -> GifPalette:
    """Build a palette for ``next_frame`` by median split.

    With a ``last_frame`` only the pixels whose colour changed are taken
    into account. Entry 0 is the transparent colour and is always black.
    """
    if not 1 <= bit_depth <= 8:
        raise ValueError(f"bit depth must be between 1 and 8, got {bit_depth}")
    _check_frame(next_frame, width, height, "next frame")

    pixels = _rgb_pixels(next_frame)
    if last_frame is not None:
        _check_frame(last_frame, width, height, "last frame")
        previous = _rgb_pixels(last_frame)
        pixels = [pixel for pixel, old in zip(pixels, previous) if pixel != old]

    palette = GifPalette(bit_depth=bit_depth)
    _split_palette(pixels, 0, len(pixels), 1, 0, build_for_dither, palette)

    transparent_node = 1 << (bit_depth - 1)
    palette.tree_split[transparent_node] = 0
    palette.tree_split_elt[transparent_node] = 0
    palette.r[0] = palette.g[0] = palette.b[0] = 0
    return palette


def _trunc_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // denominator
    return -quotient if numerator < 0 else quotient


def dither_image(
    last_frame: Sequence[int] | None,
    next_frame: Sequence[int],
    width: int,
    height: int,
    palette: GifPalette,
) -> bytearray:
    """Quantise with Floyd-Steinberg dithering; the alpha byte holds the index."""
    _check_frame(next_frame, width, height, "next frame")
    if last_frame is not None:
        _check_frame(last_frame, width, height, "last frame")

    num_pixels = width * height
    # Eight extra bits of precision let sub-unit errors propagate.
    quant = [value * 256 for value in next_frame]

    for pos in range(num_pixels):
        base = pos * 4
        wanted = [(quant[base + k] + 127) // 256 for k in range(3)]

        if last_frame is not None and list(last_frame[base:base + 3]) == wanted:
            quant[base:base + 3] = wanted
            quant[base + 3] = TRANSPARENT_INDEX
            continue

        best, _ = palette.closest_color(*wanted, TRANSPARENT_INDEX, _NO_MATCH, 1)
        chosen = (palette.r[best], palette.g[best], palette.b[best])
        errors = [quant[base + k] - chosen[k] * 256 for k in range(3)]

        quant[base:base + 3] = chosen
        quant[base + 3] = best

        for offset, weight in _ERROR_SPREAD:
            target = pos + 1 if offset == 1 and weight == 7 else pos + width + offset
            if target >= num_pixels:
                continue
            target_base = target * 4
            for k in range(3):
                current = quant[target_base + k]
                quant[target_base + k] = current + max(
                    -current, _trunc_div(errors[k] * weight, 16)
                )

    return bytearray(value & 0xFF for value in quant)


def threshold_image(
    last_frame: Sequence[int] | None,
    next_frame: Sequence[int],
    width: int,
    height: int,
    palette: GifPalette,
) -> bytearray:
    """Quantise each pixel to its nearest palette colour, without dithering.

    Pixels equal to the previous frame become transparent and keep its colour.
    """
    _check_frame(next_frame, width, height, "next frame")
    if last_frame is not None:
        _check_frame(last_frame, width, height, "last frame")

    out = bytearray(width * height * 4)
    for base in range(0, len(out), 4):
        colour = tuple(next_frame[base:base + 3])
        if last_frame is not None and tuple(last_frame[base:base + 3]) == colour:
            out[base:base + 3] = bytes(colour)
            out[base + 3] = TRANSPARENT_INDEX
            continue
        best, _ = palette.closest_color(*colour, 1, _NO_MATCH, 1)
        out[base:base + 4] = bytes((palette.r[best], palette.g[best], palette.b[best], best))
    return out