"""Tests for the roughness model and fundamental optimisation."""

import importlib
import math
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

roughness = importlib.import_module("scale_generator.roughness")
PartialSet = importlib.import_module("scale_generator.partials").PartialSet


def _single(freq):
    return PartialSet.from_arrays([freq], [1.0])


def test_unison_has_no_roughness():
    """Identical frequencies do not beat."""

    assert roughness.roughness(440.0, 440.0) == 0.0


def test_roughness_bounded_and_symmetric():
    """Values stay within ``[0, 1]`` and ignore argument order."""

    for f1 in (50.0, 220.0, 1000.0):
        for delta in (0.0001, 0.003, 0.01, 1.0, 50.0):
            value = roughness.roughness(f1, f1 + delta)
            assert 0.0 <= value <= 1.0
            assert value == roughness.roughness(f1 + delta, f1)


def test_threshold_is_half_sharpness():
    """Pairs are counted up to half the sharpness of the lower frequency."""

    assert roughness.roughness_threshold(440.0) == pytest.approx(
        0.5 * 0.24 / (0.021 * 440.0 + 19)
    )


def test_total_roughness_ignores_distant_pairs():
    """Pairs further apart than the threshold contribute nothing."""

    assert roughness.total_roughness([440.0, 441.0], [1.0, 1.0]) == 0.0


def test_total_roughness_counts_close_pairs():
    """A pair inside the threshold contributes its weighted roughness."""

    d = 0.25 * roughness.sharpness(440.0)
    expected = math.exp(-3.5 * 0.25) * math.sin(math.pi * 0.25) ** 2
    result = roughness.total_roughness([440.0, 440.0 + d], [1.0, 0.5])
    assert result == pytest.approx(0.5 * expected)
    assert result > 0


def test_total_roughness_validation():
    """Empty or misaligned arrays raise ``ValueError``."""

    with pytest.raises(ValueError):
        roughness.total_roughness([], [])
    with pytest.raises(ValueError):
        roughness.total_roughness([100.0, 200.0], [1.0])


def test_cross_roughness_without_secondaries():
    """A voice alone has zero cross roughness."""

    assert roughness.cross_roughness(_single(100.0), []) == 0.0


def test_cross_roughness_skips_pairs_within_primary():
    """Only primary and secondary partials are paired."""

    d = 0.25 * roughness.sharpness(100.0)
    primary = PartialSet.from_arrays([100.0, 100.0 + d], [1.0, 1.0])
    assert roughness.cross_roughness(primary, [_single(300.0)]) == 0.0
    assert roughness.total_roughness(primary.frequencies, primary.amplitudes) > 0


def test_scan_covers_range_in_cent_steps():
    """Two octaves at 5 cents give 481 log-spaced candidates."""

    curve = roughness.scan_roughness(_single(200.0), [], range_octaves=2.0, granularity_cents=5.0)
    assert len(curve) == 481
    assert curve[0].fundamental == pytest.approx(100.0)
    assert curve[-1].fundamental == pytest.approx(400.0)
    ratio = curve[1].fundamental / curve[0].fundamental
    assert 1200 * math.log2(ratio) == pytest.approx(5.0)
    assert all(pt.total_roughness == 0.0 for pt in curve)


def test_scan_center_override():
    """An explicit centre moves the window without moving the origin."""

    curve = roughness.scan_roughness(
        _single(200.0), [], range_octaves=1.0, granularity_cents=100.0, center=300.0
    )
    assert len(curve) == 13
    assert curve[6].fundamental == pytest.approx(300.0)


def test_scan_empty_range_and_bad_granularity():
    """Non-positive ranges give no points; bad granularity raises."""

    assert roughness.scan_roughness(_single(200.0), [], range_octaves=0.0) == []
    assert roughness.find_min_roughness_fundamental(_single(200.0), [], range_octaves=0.0) is None
    with pytest.raises(ValueError):
        roughness.scan_roughness(_single(200.0), [], granularity_cents=0.0)


def test_find_min_without_secondaries_keeps_pitch():
    """With nothing to beat against the original pitch wins."""

    best = roughness.find_min_roughness_fundamental(_single(220.0), [])
    assert best is not None
    assert best.fundamental == pytest.approx(220.0, rel=1e-9)
    assert best.total_roughness == 0.0


def test_find_min_moves_off_a_rough_unison():
    """A slightly detuned secondary pushes the primary a few cents away."""

    detuned = 100.0 + 0.25 * roughness.sharpness(100.0)
    best = roughness.find_min_roughness_fundamental(_single(100.0), [_single(detuned)])
    assert best is not None
    assert best.total_roughness == 0.0
    cents = 1200 * math.log2(best.fundamental / 100.0)
    assert 0 < abs(cents) <= 10


def test_find_roughness_scale_without_minima():
    """A flat roughness curve has no interior minima."""

    assert roughness.find_roughness_scale(_single(200.0), []) == []


def test_find_roughness_scale_validation():
    """Invalid counts and ratios raise ``ValueError``."""

    with pytest.raises(ValueError):
        roughness.find_roughness_scale(_single(200.0), [], target_count=0)
    with pytest.raises(ValueError):
        roughness.find_roughness_scale(_single(200.0), [], min_ratio=0.5)


def test_triangular_weight_reaches_zero_at_both_edges():
    """Weight is 1 at the fundamental and 0 at either end of the scan."""

    curve = roughness.scan_roughness(_single(200.0), [], range_octaves=2.0, granularity_cents=5.0)
    low, high = curve[0].fundamental, curve[-1].fundamental
    assert roughness.triangular_weight(low, 200.0, low, high) == pytest.approx(0.0, abs=1e-12)
    assert roughness.triangular_weight(high, 200.0, low, high) == pytest.approx(0.0, abs=1e-12)
    assert roughness.triangular_weight(200.0, 200.0, low, high) == 1.0
    # Half an octave from the centre is half way to either edge.
    assert roughness.triangular_weight(200.0 / 2 ** 0.5, 200.0, low, high) == pytest.approx(0.5)
    assert roughness.triangular_weight(200.0 * 2 ** 0.5, 200.0, low, high) == pytest.approx(0.5)


def test_triangular_weight_uneven_range():
    """Each side of the fundamental scales to its own edge."""

    assert roughness.triangular_weight(150.0, 200.0, 150.0, 400.0) == pytest.approx(0.0)
    assert roughness.triangular_weight(400.0, 200.0, 150.0, 400.0) == pytest.approx(0.0)
    assert roughness.triangular_weight(500.0, 200.0, 150.0, 400.0) == 0.0


def test_edge_penalty_changes_the_winner():
    """A smoother candidate near the edge loses to a rougher central one."""

    Point = roughness.RoughnessPoint
    curve = [Point(60.0, 0.05), Point(100.0, 0.15), Point(150.0, 0.12)]
    best = roughness.pick_weighted_minimum(curve, 100.0, 50.0, 200.0)
    assert min(curve, key=lambda p: p.total_roughness).fundamental == 60.0
    assert best.fundamental == 100.0


def test_equal_scores_prefer_larger_weight():
    Point = roughness.RoughnessPoint
    curve = [Point(60.0, 0.0), Point(95.0, 0.0), Point(180.0, 0.0)]
    assert roughness.pick_weighted_minimum(curve, 100.0, 50.0, 200.0).fundamental == 95.0
