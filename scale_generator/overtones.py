"""Deterministic overtone series generator.

Six normalised shape parameters describe a timbre.  :func:`generate_overtones`
turns them into a list of :class:`~scale_generator.partials.Overtone` objects
whose ratios are relative to the fundamental and whose amplitudes are
normalised so the first partial has amplitude ``1.0``.

Parameters
----------
``harmonic_purity``
    ``0`` gives bell-like stretched partials, ``1`` a perfect harmonic series.
``spectral_balance``
    Below ``0.5`` the rolloff favours the fundamental; above it the upper
    harmonics gain weight.
``odd_even_bias``
    ``0`` emphasises even harmonics, ``1`` emphasises odd ones.
``formant_strength``
    Strength of fixed vowel-like resonances.
``spectral_richness``
    Lifts the amplitude of the higher harmonics.
``irregularity``
    Deterministic perturbation of the ratios away from their ideal values.

Example
-------
>>> ots = generate_overtones(1.0, 0.5, 1.0, 0.0, 0.0, 0.0, 4)
>>> [round(o.ratio, 3) for o in ots]
[1.0, 2.0, 3.0, 4.0]
>>> [round(o.amplitude, 3) for o in ots]
[1.0, 0.707, 0.577, 0.5]

Design Notes
------------
- The perturbation applied by ``irregularity`` is a product of two sines of
  the harmonic number so identical inputs always give bit-identical output
  without any random state.
- Formant centres are a module-level tuple and are never mutated.
"""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

from .partials import Overtone

__all__ = [
    "FORMANT_CENTERS",
    "generate_overtones",
    "generate_overtone_arrays",
    "ratios_to_frequencies",
]

# Formant centres expressed as ratios of the fundamental.
FORMANT_CENTERS: Tuple[float, ...] = (1.0, 2.4, 3.8, 5.2, 7.1, 9.3, 12.1, 15.4)
FORMANT_WIDTH = 0.8
MIN_AMPLITUDE = 0.001

_PARAM_NAMES = (
    "harmonic_purity",
    "spectral_balance",
    "odd_even_bias",
    "formant_strength",
    "spectral_richness",
    "irregularity",
)


def _formant_boost(ratio: float, strength: float) -> float:
    """Return the multiplicative resonance gain for a partial at ``ratio``."""

    boost = 1.0
    for center in FORMANT_CENTERS:
        distance = abs(ratio - center)
        if distance < FORMANT_WIDTH:
            resonance = math.exp(-((distance / (FORMANT_WIDTH * 0.4)) ** 2))
            boost += strength * resonance * 2.0
    return boost


def generate_overtones(
    harmonic_purity: float = 1.0,
    spectral_balance: float = 0.5,
    odd_even_bias: float = 0.5,
    formant_strength: float = 0.0,
    spectral_richness: float = 0.5,
    irregularity: float = 0.0,
    max_harmonics: int = 32,
) -> List[Overtone]:
    """Return ``max_harmonics`` overtones shaped by the six parameters.

    Parameters
    ----------
    harmonic_purity, spectral_balance, odd_even_bias, formant_strength,
    spectral_richness, irregularity:
        Shape parameters, each within ``[0, 1]``.
    max_harmonics:
        Number of partials to produce. Must be at least ``1``.

    Returns
    -------
    List[Overtone]
        Overtones in harmonic order with the first amplitude equal to ``1.0``.

    Raises
    ------
    ValueError
        If any shape parameter lies outside ``[0, 1]`` or ``max_harmonics`` is
        smaller than one.
    """

    values = (
        harmonic_purity,
        spectral_balance,
        odd_even_bias,
        formant_strength,
        spectral_richness,
        irregularity,
    )
    for name, value in zip(_PARAM_NAMES, values):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} must be in range [0, 1], got {value}")
    if max_harmonics < 1:
        raise ValueError("max_harmonics must be at least 1")

    ratios: List[float] = []
    amplitudes: List[float] = []
    for n in range(1, max_harmonics + 1):
        # Stretch partials away from integer multiples as purity drops.
        ratio = n * (1 + (1 - harmonic_purity) * 0.1 * (n - 1) ** 1.3)
        if irregularity > 0:
            ratio *= 1 + math.sin(n * 2.847) * math.sin(n * 1.618) * irregularity * 0.05

        if spectral_balance < 0.5:
            exponent = 1 - spectral_balance * 2
        else:
            exponent = 0.5 + (spectral_balance - 0.5)
        amplitude = n ** -exponent

        if n % 2 == 1:
            amplitude *= 0.5 + odd_even_bias * 0.5
        else:
            amplitude *= 1.5 - odd_even_bias * 0.5

        if formant_strength > 0:
            amplitude *= _formant_boost(ratio, formant_strength)

        amplitude *= 1 + spectral_richness * (0.5 - n ** -0.3)
        amplitude = max(MIN_AMPLITUDE, amplitude)

        ratios.append(ratio)
        amplitudes.append(amplitude)

    reference = amplitudes[0]
    return [
        Overtone(ratio, amp / reference, n)
        for n, (ratio, amp) in enumerate(zip(ratios, amplitudes), start=1)
    ]


def generate_overtone_arrays(*args, **kwargs) -> Tuple[List[float], List[float]]:
    """Return ``(ratios, amplitudes)`` for :func:`generate_overtones` arguments."""

    overtones = generate_overtones(*args, **kwargs)
    return [ot.ratio for ot in overtones], [ot.amplitude for ot in overtones]


def ratios_to_frequencies(ratios: Sequence[float], fundamental: float = 440.0) -> List[float]:
    """Convert relative ``ratios`` to absolute frequencies in Hz."""

    return [r * fundamental for r in ratios]
