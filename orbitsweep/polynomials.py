"""Polynomial operations on Taylor coefficient lists.

A polynomial is a sequence of coefficients ``c_0, c_1, ..., c_n`` in
ascending power order.
"""

from __future__ import annotations

from math import comb
from typing import Sequence

__all__ = ["translate", "ssdiff3"]


def _powers(a: float, order: int) -> list[float]:
    """Return ``[a**0, a**1, ..., a**order]``, built by pairwise products."""
    pows = [1.0, a]
    for i in range(2, order + 1):
        half = i // 2
        if i % 2 == 0:
            pows.append(pows[half] * pows[half])
        else:
            pows.append(pows[half + 1] * pows[half])
    return pows[: order + 1]


def translate(coeffs: Sequence[float], a: float) -> list[float]:
    """Return the coefficients of ``p(x + a)`` for the polynomial ``p``.

    The new coefficients are
    ``c'_i = sum_{k=i}^{n} c_k * choose(k, k - i) * a**(k - i)``.
    """
    cfs = [float(c) for c in coeffs]
    if not cfs:
        raise ValueError("Cannot translate a polynomial with no coefficients")
    order = len(cfs) - 1
    a_pows = _powers(float(a), order)
    return [
        sum(cfs[k] * comb(k, k - i) * a_pows[k - i] for k in range(i, order + 1))
        for i in range(order + 1)
    ]


def _square(p: Sequence[float]) -> list[float]:
    """Square ``p`` in the truncated power series algebra of its own order."""
    ret = []
    for i in range(len(p)):
        if i == 0:
            ret.append(p[0] * p[0])
        elif i % 2 == 0:
            half = i // 2
            cross = sum(p[i - j] * p[j] for j in range(half))
            ret.append(2.0 * cross + p[half] * p[half])
        else:
            cross = sum(p[i - j] * p[j] for j in range((i - 1) // 2 + 1))
            ret.append(2.0 * cross)
    return ret


def ssdiff3(
    xi: Sequence[float],
    yi: Sequence[float],
    zi: Sequence[float],
    xj: Sequence[float],
    yj: Sequence[float],
    zj: Sequence[float],
) -> list[float]:
    """Sum of the squared differences of three polynomial pairs.

    Computes ``(xi - xj)**2 + (yi - yj)**2 + (zi - zj)**2`` truncated to
    the common order of the inputs.
    """
    polys = [list(map(float, p)) for p in (xi, yi, zi, xj, yj, zj)]
    size = len(polys[0])
    if size == 0:
        raise ValueError("Polynomials must have at least one coefficient")
    if any(len(p) != size for p in polys):
        raise ValueError("All polynomials must have the same number of coefficients")

    squares = [
        _square([a - b for a, b in zip(pi, pj)])
        for pi, pj in zip(polys[:3], polys[3:])
    ]
    return [sx + sy + sz for sx, sy, sz in zip(*squares)]