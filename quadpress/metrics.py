"""Block error measures used to decide whether a quadtree block is split."""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence
from enum import IntEnum
from typing import NamedTuple


class Pixel(NamedTuple):
    """An 8-bit-per-channel colour sample."""

    r: int
    g: int
    b: int


class ErrorMethod(IntEnum):
    """Error measures, numbered as they are offered to the user."""

    VARIANCE = 1
    MAD = 2
    ENTROPY = 3
    MAX_DIFF = 4


def _require_pixels(pixels: Sequence[Pixel]) -> None:
    if not pixels:
        raise ValueError("cannot measure the error of an empty block")


def _channels(pixels: Sequence[Pixel]) -> tuple[tuple[int, ...], ...]:
    return tuple(zip(*pixels))


def compute_variance(pixels: Sequence[Pixel]) -> float:
    """Mean over the three channels of the population variance."""
    _require_pixels(pixels)
    n = len(pixels)
    total = 0.0
    for channel in _channels(pixels):
        mean = sum(channel) / n
        total += sum((value - mean) ** 2 for value in channel) / n
    return total / 3


def compute_mad(pixels: Sequence[Pixel]) -> float:
    """Mean over the three channels of the mean absolute deviation."""
    _require_pixels(pixels)
    n = len(pixels)
    total = 0.0
    for channel in _channels(pixels):
        mean = sum(channel) / n
        total += sum(abs(value - mean) for value in channel) / n
    return total / 3


def compute_entropy(pixels: Sequence[Pixel]) -> float:
    """Mean over the three channels of the Shannon entropy in bits."""
    _require_pixels(pixels)
    n = len(pixels)
    total = 0.0
    for channel in _channels(pixels):
        entropy = 0.0
        for count in Counter(channel).values():
            p = count / n
            entropy -= p * math.log2(p)
        total += entropy
    return total / 3


def compute_max_diff(pixels: Sequence[Pixel]) -> float:
    """Mean channel range, truncated to a whole number."""
    _require_pixels(pixels)
    spread = sum(max(channel) - min(channel) for channel in _channels(pixels))
    return float(spread // 3)


_MEASURES = {
    ErrorMethod.VARIANCE: compute_variance,
    ErrorMethod.MAD: compute_mad,
    ErrorMethod.ENTROPY: compute_entropy,
    ErrorMethod.MAX_DIFF: compute_max_diff,
}


def compute_error(pixels: Sequence[Pixel], method: int) -> float:
    """Measure a block with the given method; an unknown method yields 0.0."""
    try:
        measure = _MEASURES[ErrorMethod(method)]
    except ValueError:
        return 0.0
    return measure(pixels)