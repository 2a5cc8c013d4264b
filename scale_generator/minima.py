"""Coarse minima detection and fine refinement of dissonance curves.

A coarse sweep is cheap but only resolves minima to within one step.  Each
coarse minimum therefore seeds a short high-resolution rescan and the lowest
fine sample replaces it.

Example
-------
>>> curve = DissonanceCurve([1.0, 1.1, 1.2, 1.3], [0.5, 0.9, 0.2, 0.4])
>>> [m.alpha for m in find_local_minima(curve)]
[1.0, 1.2]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .dissonance import CurvePoint, DissonanceCurve, sweep_alphas
from .partials import PartialSet

__all__ = [
    "RefinedMinimum",
    "find_local_minima",
    "refine_minima",
    "refine_minima_against",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefinedMinimum:
    """Refined minimum together with the fine curve it was picked from."""

    minimum: CurvePoint
    curve: DissonanceCurve


def find_local_minima(curve: DissonanceCurve) -> List[CurvePoint]:
    """Return the strict local minima of ``curve`` in alpha order.

    Interior points must be lower than both neighbours; the first and last
    points are compared against their single neighbour only.  Curves with
    fewer than two samples have no minima.
    """

    d = curve.dissonances
    n = len(d)
    if n < 2:
        return []

    minima: List[CurvePoint] = []
    if d[0] < d[1]:
        minima.append(CurvePoint(curve.alphas[0], d[0]))
    for i in range(1, n - 1):
        if d[i] < d[i - 1] and d[i] < d[i + 1]:
            minima.append(CurvePoint(curve.alphas[i], d[i]))
    if d[-1] < d[-2]:
        minima.append(CurvePoint(curve.alphas[-1], d[-1]))
    return minima


def _window(center: float, width: float, step: float) -> List[float]:
    # Stepping outward from the seed keeps the seed itself on the fine grid.
    # Ratios must stay positive, so samples at or below zero are dropped.
    half = int(round(width / step))
    alphas = (center + (i - half) * step for i in range(2 * half + 1))
    return [a for a in alphas if a > 0]


def refine_minima_against(
    swept: PartialSet,
    reference: PartialSet,
    coarse_minima: Sequence[CurvePoint],
    width: float,
    step: float,
) -> List[RefinedMinimum]:
    """Rescan ``[alpha - width, alpha + width]`` around each coarse minimum.

    Parameters
    ----------
    swept, reference:
        Spectra used for the original coarse sweep.
    coarse_minima:
        Seeds returned by :func:`find_local_minima`.
    width:
        Half-width of the rescan window in alpha units.
    step:
        Fine alpha increment.

    Returns
    -------
    List[RefinedMinimum]
        One entry per seed, in seed order. The refined dissonance never
        exceeds the seed's because the seed alpha is part of the fine grid.

    Raises
    ------
    ValueError
        If ``width`` is negative, ``step`` is not positive or a seed alpha is
        not positive.
    """

    if step <= 0:
        raise ValueError("step must be positive")
    if width < 0:
        raise ValueError("width must be non-negative")

    results: List[RefinedMinimum] = []
    for seed in coarse_minima:
        if seed.alpha <= 0:
            raise ValueError(f"seed alpha must be positive, got {seed.alpha}")
        fine = sweep_alphas(swept, reference, _window(seed.alpha, width, step))
        # ``argmin`` returns the first index on ties.
        best = int(np.argmin(fine.dissonances))
        results.append(
            RefinedMinimum(CurvePoint(fine.alphas[best], fine.dissonances[best]), fine)
        )
    logger.debug("Refined %d minima (width %.4g, step %.4g)", len(results), width, step)
    return results


def refine_minima(
    partials: PartialSet,
    coarse_minima: Sequence[CurvePoint],
    width: float,
    step: float,
) -> List[RefinedMinimum]:
    """Refine minima of a curve swept against the set itself."""

    return refine_minima_against(partials, partials, coarse_minima, width, step)
