import math

import pytest

from quadpress.metrics import (
    ErrorMethod,
    Pixel,
    compute_entropy,
    compute_error,
    compute_mad,
    compute_max_diff,
    compute_variance,
)

UNIFORM = [Pixel(10, 20, 30)] * 5
MIXED = [Pixel(3, 200, 17), Pixel(90, 4, 250), Pixel(12, 12, 12), Pixel(255, 0, 128)]

ALL_MEASURES = [compute_variance, compute_mad, compute_entropy, compute_max_diff]


@pytest.mark.parametrize("measure", ALL_MEASURES)
def test_uniform_block_has_zero_error(measure):
    assert measure(UNIFORM) == 0.0


def test_empty_block_is_rejected():
    with pytest.raises(ValueError):
        compute_variance([])
    with pytest.raises(ValueError):
        compute_mad([])
    with pytest.raises(ValueError):
        compute_entropy([])
    with pytest.raises(ValueError):
        compute_max_diff([])


@pytest.mark.parametrize("measure", ALL_MEASURES)
def test_measures_are_non_negative(measure):
    assert measure(MIXED) > 0.0


def test_variance_of_two_points():
    pixels = [Pixel(0, 0, 0), Pixel(2, 2, 2)]
    assert compute_variance(pixels) == pytest.approx(1.0)
    assert compute_mad(pixels) == pytest.approx(1.0)


def test_variance_is_shift_invariant():
    shifted = [Pixel(p.r // 2 + 1, p.g // 2 + 1, p.b // 2 + 1) for p in MIXED]
    halved = [Pixel(p.r // 2, p.g // 2, p.b // 2) for p in MIXED]
    assert compute_variance(shifted) == pytest.approx(compute_variance(halved))
    assert compute_mad(shifted) == pytest.approx(compute_mad(halved))


def test_entropy_of_two_equally_likely_values():
    pixels = [Pixel(0, 0, 0), Pixel(255, 255, 255)]
    assert compute_entropy(pixels) == pytest.approx(1.0)


def test_entropy_bounded_by_log_of_count():
    assert compute_entropy(MIXED) <= math.log2(len(MIXED)) + 1e-12


def test_max_diff_full_range():
    pixels = [Pixel(0, 0, 0), Pixel(255, 255, 255)]
    assert compute_max_diff(pixels) == 255.0


def test_max_diff_truncates():
    pixels = [Pixel(1, 0, 0), Pixel(0, 0, 0)]
    assert compute_max_diff(pixels) == 0.0


def test_max_diff_ignores_order():
    assert compute_max_diff(MIXED) == compute_max_diff(list(reversed(MIXED)))


@pytest.mark.parametrize(
    "method, measure",
    [
        (ErrorMethod.VARIANCE, compute_variance),
        (ErrorMethod.MAD, compute_mad),
        (ErrorMethod.ENTROPY, compute_entropy),
        (ErrorMethod.MAX_DIFF, compute_max_diff),
    ],
)
def test_compute_error_dispatches(method, measure):
    assert compute_error(MIXED, method) == measure(MIXED)
    assert compute_error(MIXED, int(method)) == measure(MIXED)


@pytest.mark.parametrize("method", [0, 5, -1])
def test_compute_error_unknown_method_yields_zero(method):
    assert compute_error(MIXED, method) == 0.0


@pytest.mark.parametrize(
    "number, measure",
    [
        (1, compute_variance),
        (2, compute_mad),
        (3, compute_entropy),
        (4, compute_max_diff),
    ],
)
def test_method_numbers_select_measure(number, measure):
    assert compute_error(MIXED, ErrorMethod(number)) == measure(MIXED)