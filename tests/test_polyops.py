import math

import pytest

from orbitsweep.polyops import (
    Interval,
    count_sign_changes,
    derivative,
    fast_exclusion_check,
    poly_eval,
    poly_eval_derivative,
    rescale,
    rescale_p2,
    reverse_translate_sign_changes,
    translate_one,
)

POLY = [0.5, -1.25, 2.0, 0.75, -0.3]
SAMPLES = [-1.5, -0.2, 0.0, 0.4, 1.0, 2.5]


def _direct(coeffs, x):
    return sum(c * x**i for i, c in enumerate(coeffs))


def test_interval_single_value():
    iv = Interval(2.5)
    assert iv.lower == 2.5
    assert iv.upper == 2.5


def test_interval_invalid_bounds():
    with pytest.raises(ValueError):
        Interval(3.0, 1.0)


def test_interval_add():
    res = Interval(1.0, 2.0) + Interval(3.0, 5.0)
    assert res == Interval(1.0 + 3.0, 2.0 + 5.0)


def test_interval_radd_with_float():
    res = 1.5 + Interval(-1.0, 2.0)
    assert res == Interval(-1.0 + 1.5, 2.0 + 1.5)


def test_interval_mul_encloses_products():
    a = Interval(-2.0, 3.0)
    b = Interval(-1.5, 0.5)
    res = a * b
    for x in (-2.0, -1.0, 0.0, 1.7, 3.0):
        for y in (-1.5, -0.3, 0.0, 0.5):
            assert x * y in res
    assert res.lower in {p * q for p in (-2.0, 3.0) for q in (-1.5, 0.5)}
    assert res.upper in {p * q for p in (-2.0, 3.0) for q in (-1.5, 0.5)}


def test_interval_rmul_with_float():
    res = -2.0 * Interval(1.0, 4.0)
    assert res == Interval(-2.0 * 4.0, -2.0 * 1.0)


@pytest.mark.parametrize("x", SAMPLES)
def test_poly_eval_matches_direct_sum(x):
    assert poly_eval(POLY, x) == pytest.approx(_direct(POLY, x))


def test_poly_eval_constant():
    assert poly_eval([4.0], 10.0) == 4.0


def test_poly_eval_empty_raises():
    with pytest.raises(ValueError):
        poly_eval([], 1.0)


def test_poly_eval_interval_encloses_points():
    enclosure = poly_eval(POLY, Interval(0.0, 1.0))
    for k in range(101):
        x = k / 100
        assert _direct(POLY, x) in Interval(enclosure.lower - 1e-12, enclosure.upper + 1e-12)


def test_poly_eval_interval_degenerate():
    enclosure = poly_eval(POLY, Interval(0.4))
    assert enclosure.lower == pytest.approx(_direct(POLY, 0.4))
    assert enclosure.upper == pytest.approx(_direct(POLY, 0.4))


def test_derivative_shape():
    der = derivative(POLY)
    assert len(der) == len(POLY)
    assert der[-1] == 0.0
    assert der[0] == POLY[1]


@pytest.mark.parametrize("x", SAMPLES)
def test_poly_eval_derivative_consistent(x):
    assert poly_eval_derivative(POLY, x) == pytest.approx(poly_eval(derivative(POLY), x))


@pytest.mark.parametrize("x", SAMPLES)
def test_poly_eval_derivative_finite_difference(x):
    h = 1e-6
    fd = (_direct(POLY, x + h) - _direct(POLY, x - h)) / (2 * h)
    assert poly_eval_derivative(POLY, x) == pytest.approx(fd, rel=1e-5, abs=1e-6)


@pytest.mark.parametrize("x", SAMPLES)
def test_rescale(x):
    scale = 0.37
    assert poly_eval(rescale(POLY, scale), x) == pytest.approx(_direct(POLY, x * scale))


@pytest.mark.parametrize("x", SAMPLES)
def test_rescale_p2(x):
    n = len(POLY) - 1
    assert poly_eval(rescale_p2(POLY), x) == pytest.approx(2**n * _direct(POLY, x / 2))


@pytest.mark.parametrize("x", SAMPLES)
def test_translate_one(x):
    assert poly_eval(translate_one(POLY), x) == pytest.approx(_direct(POLY, x + 1))


def test_count_sign_changes_skips_zeros():
    assert count_sign_changes([1.0, 0.0, -1.0]) == count_sign_changes([1.0, -1.0])
    assert count_sign_changes([0.0, 0.0]) == count_sign_changes([])


def test_count_sign_changes_alternating():
    assert count_sign_changes([1.0, -1.0, 1.0, -1.0]) == 3


def test_reverse_translate_two_roots_in_unit_interval():
    # (x - 0.25) * (x - 0.5)
    assert reverse_translate_sign_changes([0.125, -0.75, 1.0]) == 2


def test_reverse_translate_single_root_isolated():
    # (x - 0.5) * (x + 3): one root in (0, 1).
    assert reverse_translate_sign_changes([-1.5, 2.5, 1.0]) == 1


def test_reverse_translate_no_roots():
    # (x + 1) * (x + 2): roots outside [0, 1].
    assert reverse_translate_sign_changes([2.0, 3.0, 1.0]) == 0


def test_fast_exclusion_positive_polynomial():
    assert fast_exclusion_check([1.0, 1.0, 1.0], 1.0) is True


def test_fast_exclusion_negative_polynomial():
    assert fast_exclusion_check([-1.0, -0.5, -2.0], 3.0) is True


def test_fast_exclusion_with_root():
    assert fast_exclusion_check([0.125, -0.75, 1.0], 1.0) is False


def test_fast_exclusion_nonfinite():
    assert fast_exclusion_check([1.0, math.inf, 1.0], 1.0) is False
    assert fast_exclusion_check([1.0, 1.0], math.nan) is False