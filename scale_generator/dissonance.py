"""Sethares sensory dissonance model and alpha sweeps.

The dissonance of two sinusoids follows the Plomp-Levelt curve as
parameterised by W. Sethares.  For a combined spectrum the pairwise values are
summed over every unordered pair of partials.  Sweeping one spectrum against a
reference by a ratio ``alpha`` produces the *dissonance curve* whose local
minima are the consonant intervals of the timbre.

Example
-------
>>> pair_dissonance(440.0, 440.0, 1.0, 1.0)
0.0
>>> ps = PartialSet.from_arrays([500.0, 1000.0], [1.0, 1.0])
>>> curve = dissonance_curve(ps, 1.0, 2.0, 0.5)
>>> curve.alphas
(1.0, 1.5, 2.0)

Design Notes
------------
- ``total_dissonance`` evaluates every pair at once with NumPy broadcasting;
  partial counts are small so the ``O(n^2)`` memory is negligible.
- Alphas are computed as ``start + i * step`` rather than accumulated so long
  sweeps do not drift.
- Sweeping a set against itself and against a distinct reference are two
  separate functions so call sites always state which one they mean.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .partials import PartialSet

__all__ = [
    "SETHARES_CONSTANTS",
    "CurvePoint",
    "DissonanceCurve",
    "pair_dissonance",
    "total_dissonance",
    "set_dissonance",
    "curve_alphas",
    "sweep_alphas",
    "dissonance_curve",
    "dissonance_curve_against",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _SetharesConstants:
    d_star: float = 0.24
    s1: float = 0.0207
    s2: float = 18.96
    c1: float = 5.0
    c2: float = -5.0
    a1: float = -3.51
    a2: float = -5.75


SETHARES_CONSTANTS = _SetharesConstants()


@dataclass(frozen=True)
class CurvePoint:
    """Single sample of a dissonance curve."""

    alpha: float
    dissonance: float


@dataclass(frozen=True)
class DissonanceCurve:
    """Parallel ``alphas`` and ``dissonances`` in increasing alpha order.

    Both sequences are stored as tuples so a curve cannot change after it was
    sampled.
    """

    alphas: Tuple[float, ...] = ()
    dissonances: Tuple[float, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "alphas", tuple(self.alphas))
        object.__setattr__(self, "dissonances", tuple(self.dissonances))
        if len(self.alphas) != len(self.dissonances):
            raise ValueError("alphas and dissonances must be the same length")

    def __len__(self) -> int:
        return len(self.alphas)

    def points(self) -> List[CurvePoint]:
        return [CurvePoint(a, d) for a, d in zip(self.alphas, self.dissonances)]


def pair_dissonance(f1: float, f2: float, a1: float, a2: float) -> float:
    """Return the Sethares dissonance between two partials.

    The order of the partials does not matter; the lower frequency is used as
    ``Fmin``.  Identical frequencies give exactly ``0.0`` because ``C1`` and
    ``C2`` cancel.
    """

    k = SETHARES_CONSTANTS
    if f2 < f1:
        f1, f2 = f2, f1
        a1, a2 = a2, a1
    s = k.d_star / (k.s1 * f1 + k.s2)
    fdif = f2 - f1
    return min(a1, a2) * (k.c1 * math.exp(k.a1 * s * fdif) + k.c2 * math.exp(k.a2 * s * fdif))


def total_dissonance(frequencies: Sequence[float], amplitudes: Sequence[float]) -> float:
    """Return the summed pairwise dissonance of a combined spectrum.

    Parameters
    ----------
    frequencies:
        Partial frequencies in Hz, in any order.
    amplitudes:
        Amplitudes matching ``frequencies``.

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

    order = np.argsort(freqs, kind="stable")
    freqs = freqs[order]
    amps = amps[order]

    i, j = np.triu_indices(freqs.size, k=1)
    if i.size == 0:
        return 0.0
    k = SETHARES_CONSTANTS
    f_min = freqs[i]
    f_dif = freqs[j] - f_min
    a = np.minimum(amps[i], amps[j])
    s = k.d_star / (k.s1 * f_min + k.s2)
    values = a * (k.c1 * np.exp(k.a1 * s * f_dif) + k.c2 * np.exp(k.a2 * s * f_dif))
    return float(values.sum())


def set_dissonance(*sets: PartialSet) -> float:
    """Return the dissonance of the union of ``sets``."""

    if not sets:
        raise ValueError("at least one partial set is required")
    freqs = np.concatenate([ps.frequencies for ps in sets])
    amps = np.concatenate([ps.amplitudes for ps in sets])
    return total_dissonance(freqs, amps)


def curve_alphas(start: float, end: float, step: float) -> List[float]:
    """Return index-stepped alphas ``start + i * step`` up to ``end``.

    ``end < start`` yields an empty list.  A tiny tolerance keeps ``end``
    itself when ``(end - start) / step`` lands just below an integer.

    Raises
    ------
    ValueError
        If ``step`` is not positive.
    """

    if step <= 0:
        raise ValueError("step must be positive")
    if end < start:
        return []
    count = int(math.floor((end - start) / step + 1e-9)) + 1
    return [start + i * step for i in range(count)]


def sweep_alphas(
    swept: PartialSet, reference: PartialSet, alphas: List[float]
) -> DissonanceCurve:
    """Evaluate the swept/reference dissonance at each of ``alphas``."""

    swept_f = swept.frequencies
    swept_a = swept.amplitudes
    ref_f = reference.frequencies
    ref_a = reference.amplitudes
    amps = np.concatenate([ref_a, swept_a])

    dissonances = [
        total_dissonance(np.concatenate([ref_f, swept_f * alpha]), amps)
        for alpha in alphas
    ]
    return DissonanceCurve(tuple(alphas), tuple(dissonances))


def dissonance_curve_against(
    swept: PartialSet,
    reference: PartialSet,
    start: float,
    end: float,
    step: float,
) -> DissonanceCurve:
    """Sweep ``swept`` by ``alpha`` against a fixed ``reference`` spectrum.

    Every swept frequency is multiplied by ``alpha`` while amplitudes stay
    fixed; the reference is never scaled.
    """

    alphas = curve_alphas(start, end, step)
    logger.debug(
        "Dissonance sweep %.4f-%.4f step %.4g: %d points, %d partials",
        start,
        end,
        step,
        len(alphas),
        len(swept) + len(reference),
    )
    return sweep_alphas(swept, reference, alphas)


def dissonance_curve(
    partials: PartialSet, start: float, end: float, step: float
) -> DissonanceCurve:
    """Sweep ``partials`` against an unscaled copy of itself."""

    return dissonance_curve_against(partials, partials, start, end, step)
