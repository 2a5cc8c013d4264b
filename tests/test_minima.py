"""Tests for coarse minima detection and fine refinement."""

import dataclasses
import importlib
import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

minima = importlib.import_module("scale_generator.minima")
dissonance = importlib.import_module("scale_generator.dissonance")
PartialSet = importlib.import_module("scale_generator.partials").PartialSet
DissonanceCurve = dissonance.DissonanceCurve


def _harmonic_series(fundamental=500.0, count=9):
    freqs = [fundamental * n for n in range(1, count + 1)]
    return PartialSet.from_arrays(freqs, [1.0] * count)


def test_find_local_minima_interior_and_boundaries():
    """Boundary points compare against their single neighbour."""

    curve = DissonanceCurve([1.0, 1.1, 1.2, 1.3], [0.5, 0.9, 0.2, 0.4])
    found = minima.find_local_minima(curve)
    assert [m.alpha for m in found] == [1.0, 1.2]
    assert [m.dissonance for m in found] == [0.5, 0.2]

    curve = DissonanceCurve([1.0, 1.1, 1.2], [0.9, 0.5, 0.1])
    assert [m.alpha for m in minima.find_local_minima(curve)] == [1.2]


def test_find_local_minima_requires_strict_inequality():
    """Plateaus do not count as minima."""

    curve = DissonanceCurve([1.0, 1.1, 1.2, 1.3], [1.0, 0.5, 0.5, 1.0])
    assert minima.find_local_minima(curve) == []


def test_find_local_minima_short_curves():
    """Curves with fewer than two samples have no minima."""

    assert minima.find_local_minima(DissonanceCurve()) == []
    assert minima.find_local_minima(DissonanceCurve([1.0], [0.3])) == []


def test_no_adjacent_minima():
    """Two neighbouring samples are never both reported."""

    rng = np.random.RandomState(7)
    values = rng.randint(0, 4, size=200).astype(float).tolist()
    alphas = [1.0 + 0.01 * i for i in range(200)]
    found = minima.find_local_minima(DissonanceCurve(alphas, values))
    indices = [alphas.index(m.alpha) for m in found]
    assert indices == sorted(indices)
    assert all(b - a > 1 for a, b in zip(indices, indices[1:]))


def test_refined_minima_never_worse_than_seed():
    """The seed lies on the fine grid so refinement cannot lose ground."""

    ps = _harmonic_series()
    curve = dissonance.dissonance_curve(ps, 1.0, 2.3, 0.005)
    seeds = minima.find_local_minima(curve)
    refined = minima.refine_minima(ps, seeds, 0.01, 0.0005)
    assert len(refined) == len(seeds)
    for seed, result in zip(seeds, refined):
        assert result.minimum.dissonance <= seed.dissonance
        assert abs(result.minimum.alpha - seed.alpha) <= 0.01 + 1e-9
        assert len(result.curve) == 41
        assert seed.alpha in result.curve.alphas


def test_harmonic_series_fifth_and_octave():
    """A 9-partial harmonic timbre has minima at the fifth and the octave."""

    ps = _harmonic_series()
    curve = dissonance.dissonance_curve(ps, 1.0, 2.3, 0.005)
    refined = minima.refine_minima(ps, minima.find_local_minima(curve), 0.01, 0.0005)
    alphas = [r.minimum.alpha for r in refined]
    assert any(abs(a - 1.5) <= 0.01 for a in alphas)
    assert any(abs(a - 2.0) <= 0.01 for a in alphas)


def test_refine_against_distinct_reference():
    """Refinement with a reference matches a direct sweep of that window."""

    swept = _harmonic_series(400.0, 4)
    reference = _harmonic_series(500.0, 4)
    seed = dissonance.CurvePoint(1.25, dissonance.set_dissonance(reference, swept.scaled(1.25)))
    (result,) = minima.refine_minima_against(swept, reference, [seed], 0.002, 0.001)
    assert len(result.curve) == 5
    best = min(result.curve.dissonances)
    assert result.minimum.dissonance == best
    assert result.minimum.dissonance <= seed.dissonance


def test_refine_validation():
    """Negative widths and non-positive steps are rejected."""

    ps = _harmonic_series(count=2)
    seed = dissonance.CurvePoint(1.5, 0.0)
    with pytest.raises(ValueError):
        minima.refine_minima(ps, [seed], -0.01, 0.001)
    with pytest.raises(ValueError):
        minima.refine_minima(ps, [seed], 0.01, 0.0)
    assert minima.refine_minima(ps, [], 0.01, 0.001) == []


def test_refine_window_stays_positive():
    """Fine samples that would reach zero or below are left out."""

    ps = _harmonic_series(count=3)
    seed = dissonance.CurvePoint(0.004, 0.0)
    (result,) = minima.refine_minima(ps, [seed], 0.01, 0.0005)
    assert len(result.curve) > 0
    assert all(alpha > 0 for alpha in result.curve.alphas)
    assert result.minimum.alpha > 0
    assert 0.004 in result.curve.alphas
    with pytest.raises(ValueError):
        minima.refine_minima(ps, [dissonance.CurvePoint(0.0, 0.0)], 0.01, 0.0005)


def test_dissonance_curve_is_immutable():
    """Curves store tuples and cannot be reassigned."""

    curve = DissonanceCurve([1.0, 1.1], [0.4, 0.2])
    assert curve.alphas == (1.0, 1.1)
    assert curve.dissonances == (0.4, 0.2)
    with pytest.raises(dataclasses.FrozenInstanceError):
        curve.alphas = (2.0,)
    with pytest.raises(ValueError):
        DissonanceCurve([1.0, 1.1], [0.4])
