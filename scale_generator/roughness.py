"""Perceptual roughness model and fundamental optimisation.

Roughness measures the beating between two close sine components.  It is
bounded to ``[0, 1]`` and only counted for pairs whose distance falls inside a
fraction of the critical-band ``sharpness`` at the lower frequency, which keeps
the pairwise cost limited to nearby partials.

:func:`find_min_roughness_fundamental` uses the model to place one voice
against others: candidate fundamentals are scanned in equal cent steps, scored
by total cross-voice roughness, penalised toward the edges of the range by a
triangular weight and the winner is refined in a narrow window.

Example
-------
>>> roughness(440.0, 440.0)
0.0
>>> 0.0 <= roughness(440.0, 440.003) <= 1.0
True

Design Notes
------------
- Only the primary voice is transposed during a scan; secondary voices are
  fixed references.  Pairs are formed between primary and secondary partials.
- Candidate fundamentals are computed as ``low * 2 ** (i * cents / 1200)`` from
  an integer index so long scans do not accumulate rounding error.
- The refine scan is centred explicitly on the coarse winner while the
  triangular weight always refers to the primary's own fundamental and the
  coarse range edges, so both phases rank candidates on the same scale.
- The weight falls linearly in cents and each side of the fundamental has
  its own span, so it reaches zero at both edges of the scan.
- Equal weighted scores are resolved in favour of the candidate with the
  larger weight, i.e. the one closest to the original pitch.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .partials import PartialSet

__all__ = [
    "RoughnessPoint",
    "sharpness",
    "roughness",
    "roughness_threshold",
    "total_roughness",
    "cross_roughness",
    "scan_roughness",
    "triangular_weight",
    "pick_weighted_minimum",
    "find_min_roughness_fundamental",
    "find_roughness_scale",
]

logger = logging.getLogger(__name__)

THRESHOLD_FACTOR = 0.5
WEIGHT_EPSILON = 1e-6


@dataclass(frozen=True)
class RoughnessPoint:
    """Total roughness of a voice placed at ``fundamental`` Hz."""

    fundamental: float
    total_roughness: float


def sharpness(f: float) -> float:
    """Return the critical-band sharpness around ``f`` Hz."""

    return 0.24 / (0.021 * f + 19)


def roughness(f1: float, f2: float) -> float:
    """Return the roughness between two sine frequencies in ``[0, 1]``."""

    if f1 == f2:
        return 0.0
    f_low = min(f1, f2)
    x = abs(f1 - f2) / sharpness(f_low)
    value = math.exp(-3.5 * x) * math.sin(math.pi * x) ** 2
    return max(0.0, min(1.0, value))


def roughness_threshold(f: float) -> float:
    """Largest frequency distance at which a pair around ``f`` is counted."""

    return sharpness(f) * THRESHOLD_FACTOR


def _pair_sum(f1: np.ndarray, a1: np.ndarray, f2: np.ndarray, a2: np.ndarray) -> float:
    # Element-wise over already aligned pair arrays.
    dist = np.abs(f1 - f2)
    sharp = 0.24 / (0.021 * np.minimum(f1, f2) + 19)
    mask = dist <= sharp * THRESHOLD_FACTOR
    if not mask.any():
        return 0.0
    x = dist[mask] / sharp[mask]
    values = np.clip(np.exp(-3.5 * x) * np.sin(np.pi * x) ** 2, 0.0, 1.0)
    return float((values * a1[mask] * a2[mask]).sum())


def total_roughness(frequencies: Sequence[float], amplitudes: Sequence[float]) -> float:
    """Return thresholded amplitude-weighted roughness over all pairs.

    Raises
    ------
    ValueError
        If the sequences are empty or their lengths differ.
    """

    freqs = np.asarray(frequencies, dtype=np.float64)
    amps = np.asarray(amplitudes, dtype=np.float64)
    if freqs.size == 0 or amps.size == 0:
        raise ValueError("frequencies and amplitudes must not be empty")
    if freqs.shape != amps.shape:
        raise ValueError("frequencies and amplitudes must be the same length")
    i, j = np.triu_indices(freqs.size, k=1)
    return _pair_sum(freqs[i], amps[i], freqs[j], amps[j])


def cross_roughness(primary: PartialSet, secondaries: Sequence[PartialSet]) -> float:
    """Return roughness between ``primary`` and every secondary partial."""

    if not secondaries:
        return 0.0
    pf = primary.frequencies
    pa = primary.amplitudes
    sf = np.concatenate([s.frequencies for s in secondaries])
    sa = np.concatenate([s.amplitudes for s in secondaries])
    f1, f2 = np.meshgrid(pf, sf, indexing="ij")
    a1, a2 = np.meshgrid(pa, sa, indexing="ij")
    return _pair_sum(f1.ravel(), a1.ravel(), f2.ravel(), a2.ravel())


def _candidate_fundamentals(center: float, range_octaves: float, granularity_cents: float) -> List[float]:
    if granularity_cents <= 0:
        raise ValueError("granularity_cents must be positive")
    if range_octaves <= 0:
        return []
    low = center / 2 ** (range_octaves / 2)
    steps = int(math.floor(range_octaves * 1200 / granularity_cents + 1e-9))
    return [low * 2 ** (i * granularity_cents / 1200) for i in range(steps + 1)]


def scan_roughness(
    primary: PartialSet,
    secondaries: Sequence[PartialSet],
    *,
    range_octaves: float = 2.0,
    granularity_cents: float = 5.0,
    center: Optional[float] = None,
) -> List[RoughnessPoint]:
    """Return total roughness for candidate fundamentals of ``primary``.

    Parameters
    ----------
    primary:
        Voice being moved. Its partials are rescaled proportionally.
    secondaries:
        Fixed voices the primary is compared against. May be empty.
    range_octaves:
        Total width of the scan, split evenly around ``center``.
    granularity_cents:
        Step between candidates in cents.
    center:
        Centre of the scan in Hz. Defaults to ``primary.fundamental``.

    Returns
    -------
    List[RoughnessPoint]
        Points in ascending fundamental. Empty when ``range_octaves`` is not
        positive.
    """

    origin = primary.fundamental
    candidates = _candidate_fundamentals(
        origin if center is None else center, range_octaves, granularity_cents
    )
    points = [
        RoughnessPoint(fund, cross_roughness(primary.scaled(fund / origin), secondaries))
        for fund in candidates
    ]
    logger.debug(
        "Roughness scan around %.2f Hz: %d candidates",
        origin if center is None else center,
        len(points),
    )
    return points


def triangular_weight(f: float, origin: float, low_edge: float, high_edge: float) -> float:
    """Return the edge penalty weight of candidate ``f`` in ``[0, 1]``.

    The weight is ``1`` at ``origin`` and falls linearly in cents to ``0`` at
    ``low_edge`` and at ``high_edge``.  Each side uses its own span, so both
    edges of an uneven range still reach zero.  A side with no span gives
    weight ``1``.
    """

    cents = 1200 * math.log2(f / origin)
    if cents < 0:
        span = 1200 * math.log2(origin / low_edge) if low_edge < origin else 0.0
    else:
        span = 1200 * math.log2(high_edge / origin) if high_edge > origin else 0.0
    if span <= 0:
        return 1.0
    return max(0.0, 1 - abs(cents) / span)


def pick_weighted_minimum(
    curve: Sequence[RoughnessPoint], origin: float, low_edge: float, high_edge: float
) -> RoughnessPoint:
    """Return the point of ``curve`` with the lowest weighted roughness.

    Roughness is divided by ``triangular_weight + WEIGHT_EPSILON``.  Equal
    scores go to the point with the larger weight.
    """

    def score(pt: RoughnessPoint):
        w = triangular_weight(pt.fundamental, origin, low_edge, high_edge)
        return (pt.total_roughness / (w + WEIGHT_EPSILON), -w)

    return min(curve, key=score)


def find_min_roughness_fundamental(
    primary: PartialSet,
    secondaries: Sequence[PartialSet],
    *,
    range_octaves: float = 2.0,
    granularity_cents: float = 5.0,
    refine_range_cents: float = 20.0,
    refine_granularity_cents: float = 0.5,
) -> Optional[RoughnessPoint]:
    """Return the weighted-roughness optimum fundamental for ``primary``.

    The coarse scan covers ``range_octaves`` around the primary's fundamental.
    Each candidate's roughness is divided by a triangular weight that is
    ``1`` at the original fundamental and ``0`` at the range edges, so distant
    candidates must be markedly smoother to win.  The winner is then refined
    over ``refine_range_cents`` (total width) at ``refine_granularity_cents``.

    Returns
    -------
    Optional[RoughnessPoint]
        The refined optimum with its unweighted roughness, or ``None`` when
        the coarse range is empty.
    """

    curve = scan_roughness(
        primary, secondaries, range_octaves=range_octaves, granularity_cents=granularity_cents
    )
    if not curve:
        logger.debug("Empty roughness range; no fundamental selected")
        return None

    origin = primary.fundamental
    low_edge, high_edge = curve[0].fundamental, curve[-1].fundamental
    best = pick_weighted_minimum(curve, origin, low_edge, high_edge)

    refined = scan_roughness(
        primary,
        secondaries,
        range_octaves=refine_range_cents / 1200,
        granularity_cents=refine_granularity_cents,
        center=best.fundamental,
    )
    if refined:
        best = pick_weighted_minimum(refined, origin, low_edge, high_edge)
    logger.debug(
        "Optimal fundamental %.3f Hz (from %.3f Hz), roughness %.6g",
        best.fundamental,
        origin,
        best.total_roughness,
    )
    return best


def find_roughness_scale(
    primary: PartialSet,
    secondaries: Sequence[PartialSet],
    *,
    range_octaves: float = 2.0,
    granularity_cents: float = 5.0,
    min_ratio: float = 2 ** (100 / 1200),
    target_count: int = 7,
    refine_range_cents: float = 20.0,
    refine_granularity_cents: float = 0.5,
) -> List[float]:
    """Return fundamentals at local minima of the roughness scan.

    Interior minima are taken in order of increasing roughness and kept when
    they lie at least ``min_ratio`` away from every minimum already kept, up
    to ``target_count``.  Each kept minimum is refined by the lowest raw
    roughness in its refine window.

    Returns
    -------
    List[float]
        Refined fundamentals in ascending order; empty when the scan has no
        interior minima.
    """

    if target_count < 1:
        raise ValueError("target_count must be at least 1")
    if min_ratio < 1:
        raise ValueError("min_ratio must be at least 1")

    curve = scan_roughness(
        primary, secondaries, range_octaves=range_octaves, granularity_cents=granularity_cents
    )
    minima = [
        curve[i]
        for i in range(1, len(curve) - 1)
        if curve[i].total_roughness < curve[i - 1].total_roughness
        and curve[i].total_roughness < curve[i + 1].total_roughness
    ]
    minima.sort(key=lambda pt: pt.total_roughness)

    selected: List[RoughnessPoint] = []
    for pt in minima:
        if len(selected) >= target_count:
            break
        if all(
            max(pt.fundamental, s.fundamental) / min(pt.fundamental, s.fundamental) >= min_ratio
            for s in selected
        ):
            selected.append(pt)

    result: List[float] = []
    for pt in selected:
        window = scan_roughness(
            primary,
            secondaries,
            range_octaves=refine_range_cents / 1200,
            granularity_cents=refine_granularity_cents,
            center=pt.fundamental,
        )
        best = min(window, key=lambda p: p.total_roughness) if window else pt
        result.append(best.fundamental)
    return sorted(result)
