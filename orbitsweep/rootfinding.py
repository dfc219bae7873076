"""Real root isolation and bracketed root finding for time polynomials.

Roots are searched in a half-open time range ``[0, h)``. The polynomial
is first rescaled so that the range becomes ``[0, 1)``. Isolating
intervals are then found by bisection, with Descartes' rule of signs
counting the roots in each sub-interval. Finally each isolated root is
refined with a bracketing solver.
"""

from __future__ import annotations

import logging
import math
import sys
from typing import Sequence

from scipy.optimize import toms748

from orbitsweep.polyops import (
    fast_exclusion_check,
    poly_eval,
    poly_eval_derivative,
    rescale,
    rescale_p2,
    reverse_translate_sign_changes,
    translate_one,
)

__all__ = ["bracketed_root_find", "isolate_roots", "find_roots"]

_logger = logging.getLogger(__name__)

_ITER_LIMIT = 100
_MAX_WLIST = 250
_RTOL = 4 * sys.float_info.epsilon
_XTOL = 1e-300


class _IsolationError(RuntimeError):
    """Root isolation gave up; ``zeros`` holds the roots found before that."""

    def __init__(self, message: str, zeros: list[float]) -> None:
        super().__init__(message)
        self.zeros = zeros


def _coefficients(poly: Sequence[float]) -> list[float]:
    cfs = [float(c) for c in poly]
    if not cfs:
        raise ValueError("A polynomial needs at least one coefficient")
    return cfs


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def bracketed_root_find(poly: Sequence[float], lb: float, ub: float) -> float:
    """Find the single root of ``poly`` lying in ``[lb, ub)``.

    Raises ValueError if the bracket is invalid or does not enclose a
    sign change, and RuntimeError if the solver does not converge within
    the iteration limit.
    """
    cfs = _coefficients(poly)
    lb = float(lb)
    ub = float(ub)

    if not (math.isfinite(lb) and math.isfinite(ub)):
        raise ValueError(f"Non-finite bracket [{lb}, {ub}) for root finding")
    if ub < lb:
        raise ValueError(f"Invalid bracket [{lb}, {ub}) for root finding")

    # The search is over the closed interval, so move ub one position
    # down to exclude it.
    if ub > lb:
        ub = math.nextafter(ub, lb)

    def func(x: float) -> float:
        return poly_eval(cfs, x)

    f_lb = func(lb)
    f_ub = func(ub)
    if not (math.isfinite(f_lb) and math.isfinite(f_ub)):
        raise ValueError(
            f"Non-finite polynomial values {f_lb} and {f_ub} at the bracket ends"
        )
    if f_lb == 0:
        return lb
    if f_ub == 0:
        return ub
    if _sign(f_lb) * _sign(f_ub) > 0:
        raise ValueError(
            f"The polynomial has no sign change in the bracket [{lb}, {ub}]"
        )

    root, info = toms748(
        func,
        lb,
        ub,
        xtol=_XTOL,
        rtol=_RTOL,
        maxiter=_ITER_LIMIT,
        full_output=True,
        disp=False,
    )
    if not info.converged:
        raise RuntimeError("Polynomial root finding failed due to too many iterations")
    return float(root)


def isolate_roots(
    poly: Sequence[float],
) -> tuple[list[tuple[float, float]], list[float]]:
    """Isolate the roots in ``[0, 1)`` of a polynomial.

    Returns the isolating intervals, each holding exactly one root, and
    the roots found exactly at the lower end of a sub-interval (where the
    transformed polynomial has a zero constant term). Raises RuntimeError
    if the bisection runs away.
    """
    cfs = _coefficients(poly)
    order = len(cfs) - 1

    isol: list[tuple[float, float]] = []
    zeros: list[float] = []
    wlist: list[tuple[float, float, list[float]]] = [(0.0, 1.0, cfs)]

    while wlist:
        lb, ub, q = wlist.pop()

        if q[0] == 0 and all(math.isfinite(c) for c in q[1:]):
            zeros.append(lb)

        n_sc = reverse_translate_sign_changes(q)

        if n_sc == 1:
            isol.append((lb, ub))
        elif n_sc > 1:
            half = rescale_p2(q)
            shifted = translate_one(half)
            mid = (lb + ub) / 2
            wlist.append((lb, mid, half))
            wlist.append((mid, ub, shifted))

        if len(wlist) > _MAX_WLIST or len(isol) > order:
            raise _IsolationError(
                "The polynomial root isolation algorithm failed: the working "
                f"list size is {len(wlist)} and the number of isolating "
                f"intervals is {len(isol)}",
                zeros,
            )

    return isol, zeros


def find_roots(poly: Sequence[float], rf_int: float, direction: int = 0) -> list[float]:
    """Find the roots of ``poly`` in the time range ``[0, rf_int)``.

    With ``direction`` 1 or -1 only roots where the polynomial is rising
    or falling are kept; 0 keeps all of them. Roots that cannot be
    computed reliably are skipped with a warning.
    """
    cfs = _coefficients(poly)
    rf_int = float(rf_int)
    if direction not in (-1, 0, 1):
        raise ValueError(f"The direction must be -1, 0 or 1, but it is {direction}")
    if not math.isfinite(rf_int) or rf_int < 0:
        raise ValueError(
            f"The root finding interval must be finite and non-negative, but it is {rf_int}"
        )

    if fast_exclusion_check(cfs, rf_int):
        return []

    roots: list[float] = []

    def add_root(root: float) -> None:
        if not math.isfinite(root):
            _logger.warning("Polynomial root finding produced a non-finite root of %s", root)
            return
        if direction != 0:
            der = poly_eval_derivative(cfs, root)
            if not math.isfinite(der):
                _logger.warning(
                    "Polynomial root finding produced the root %s with non-finite derivative %s",
                    root,
                    der,
                )
                return
            if _sign(der) != direction:
                return
        roots.append(root)

    scaled = rescale(cfs, rf_int)

    try:
        intervals, zeros = isolate_roots(scaled)
    except _IsolationError as exc:
        _logger.warning("%s", exc)
        intervals, zeros = [], exc.zeros

    for zero in zeros:
        add_root(zero * rf_int)

    for lb, ub in intervals:
        try:
            root = bracketed_root_find(scaled, lb, ub)
        except (ValueError, RuntimeError) as exc:
            _logger.warning("Polynomial root finding failed: %s", exc)
            continue
        add_root(root * rf_int)

    return roots