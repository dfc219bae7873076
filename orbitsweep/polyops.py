"""Polynomial primitives used during narrow phase collision detection.

Polynomials are sequences of coefficients in ascending power order.
Evaluation accepts either plain floats or :class:`Interval` values, so the
same routines give interval enclosures of a polynomial over a range.
"""

from __future__ import annotations

import math
from typing import Sequence, Union

from orbitsweep.polynomials import translate

__all__ = [
    "Interval",
    "poly_eval",
    "poly_eval_derivative",
    "derivative",
    "rescale",
    "rescale_p2",
    "translate_one",
    "count_sign_changes",
    "reverse_translate_sign_changes",
    "fast_exclusion_check",
]


class Interval:
    """Closed real interval ``[lower, upper]`` with basic arithmetic."""

    __slots__ = ("lower", "upper")

    def __init__(self, lower: float, upper: float | None = None) -> None:
        lower = float(lower)
        upper = lower if upper is None else float(upper)
        if lower > upper:
            raise ValueError(
                f"Invalid interval: the lower bound {lower} is greater than "
                f"the upper bound {upper}"
            )
        self.lower = lower
        self.upper = upper

    @staticmethod
    def _coerce(value: Union["Interval", float]) -> "Interval":
        return value if isinstance(value, Interval) else Interval(value)

    def __add__(self, other: Union["Interval", float]) -> "Interval":
        if not isinstance(other, (Interval, int, float)):
            return NotImplemented
        other = self._coerce(other)
        return Interval(self.lower + other.lower, self.upper + other.upper)

    def __radd__(self, other: float) -> "Interval":
        return self.__add__(other)

    def __mul__(self, other: Union["Interval", float]) -> "Interval":
        if not isinstance(other, (Interval, int, float)):
            return NotImplemented
        other = self._coerce(other)
        products = (
            self.lower * other.lower,
            self.lower * other.upper,
            self.upper * other.lower,
            self.upper * other.upper,
        )
        if any(math.isnan(p) for p in products):
            return Interval(math.nan, math.nan)
        return Interval(min(products), max(products))

    def __rmul__(self, other: float) -> "Interval":
        return self.__mul__(other)

    def __contains__(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Interval):
            return NotImplemented
        return self.lower == other.lower and self.upper == other.upper

    def __hash__(self) -> int:
        return hash((self.lower, self.upper))

    def __repr__(self) -> str:
        return f"Interval({self.lower!r}, {self.upper!r})"


Number = Union[float, Interval]


def _check_nonempty(coeffs: Sequence[float]) -> list[float]:
    cfs = [float(c) for c in coeffs]
    if not cfs:
        raise ValueError("A polynomial needs at least one coefficient")
    return cfs


def poly_eval(coeffs: Sequence[float], x: Number) -> Number:
    """Evaluate the polynomial at ``x`` with Horner's scheme."""
    cfs = _check_nonempty(coeffs)
    ret: Number = Interval(cfs[-1]) if isinstance(x, Interval) else cfs[-1]
    for c in reversed(cfs[:-1]):
        ret = c + ret * x
    return ret


def poly_eval_derivative(coeffs: Sequence[float], x: Number) -> Number:
    """Evaluate the first derivative of the polynomial at ``x``."""
    cfs = _check_nonempty(coeffs)
    n = len(cfs) - 1
    ret: Number = cfs[n] * n
    if isinstance(x, Interval):
        ret = Interval(ret)
    for k in range(n - 1, 0, -1):
        ret = cfs[k] * k + ret * x
    return ret


def derivative(coeffs: Sequence[float]) -> list[float]:
    """Coefficients of the derivative, padded with a zero to keep the order."""
    cfs = _check_nonempty(coeffs)
    return [(i + 1) * c for i, c in enumerate(cfs[1:])] + [0.0]


def rescale(coeffs: Sequence[float], scale: float) -> list[float]:
    """Coefficients of ``p(x * scale)``."""
    cfs = _check_nonempty(coeffs)
    ret = []
    factor = 1.0
    for c in cfs:
        ret.append(factor * c)
        factor *= scale
    return ret


def rescale_p2(coeffs: Sequence[float]) -> list[float]:
    """Coefficients of ``2**n * p(x / 2)``, with ``n`` the polynomial order."""
    cfs = _check_nonempty(coeffs)
    ret = [0.0] * len(cfs)
    factor = 1.0
    for i in range(len(cfs) - 1, -1, -1):
        ret[i] = factor * cfs[i]
        factor *= 2.0
    return ret


def translate_one(coeffs: Sequence[float]) -> list[float]:
    """Coefficients of ``p(x + 1)``."""
    return translate(_check_nonempty(coeffs), 1.0)


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def count_sign_changes(coeffs: Sequence[float]) -> int:
    """Number of sign changes in the coefficient sequence, zeros skipped."""
    changes = 0
    last = 0
    for c in coeffs:
        s = _sign(float(c))
        if s == 0:
            continue
        if last != 0 and s != last:
            changes += 1
        last = s
    return changes


def reverse_translate_sign_changes(coeffs: Sequence[float]) -> int:
    """Reverse the coefficients, translate by one and count sign changes.

    By Descartes' rule this bounds the number of roots of the polynomial
    in ``(0, 1)``; a result of one means exactly one root there.
    """
    cfs = _check_nonempty(coeffs)
    return count_sign_changes(translate_one(cfs[::-1]))


def fast_exclusion_check(coeffs: Sequence[float], h: float) -> bool:
    """Return True when the polynomial certainly has no root in ``[0, h]``.

    The check encloses the polynomial over the range with interval
    arithmetic; non-finite enclosures never exclude.
    """
    h = float(h)
    if not math.isfinite(h):
        return False
    enclosure = poly_eval(coeffs, Interval(min(0.0, h), max(0.0, h)))
    if not (math.isfinite(enclosure.lower) and math.isfinite(enclosure.upper)):
        return False
    return enclosure.lower > 0 or enclosure.upper < 0