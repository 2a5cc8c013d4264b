"""Containers describing the spectral content of a single voice.

A voice is modelled as a list of sinusoidal *partials*, each with an absolute
frequency in Hz and a linear amplitude.  The dissonance and roughness models
only ever read these values so the containers are frozen dataclasses that can
be shared between scans without defensive copies.

Example
-------
>>> ps = PartialSet.from_arrays([220.0, 440.0], [1.0, 0.5])
>>> ps.fundamental
220.0
>>> ps.scaled(2.0).frequencies.tolist()
[440.0, 880.0]

Design Notes
------------
- ``PartialSet.fundamental`` is the frequency of the *first* partial.  Sets
  produced from :func:`scale_generator.overtones.generate_overtones` are in
  harmonic order so the first partial is also the lowest.
- NumPy views are rebuilt on each property access; sets are small (tens of
  partials) so caching is not worth the extra state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import numpy as np

__all__ = ["Overtone", "Partial", "PartialSet"]


@dataclass(frozen=True)
class Overtone:
    """Partial expressed as a ratio of the fundamental."""

    ratio: float
    amplitude: float
    harmonic: int


@dataclass(frozen=True)
class Partial:
    """Absolute partial of a voice."""

    frequency: float
    amplitude: float
    harmonic: int = 1


@dataclass(frozen=True)
class PartialSet:
    """Immutable collection of :class:`Partial` objects for one voice."""

    partials: Tuple[Partial, ...]

    def __post_init__(self) -> None:
        if not self.partials:
            raise ValueError("a partial set requires at least one partial")
        for p in self.partials:
            if p.frequency <= 0:
                raise ValueError(f"partial frequency must be positive, got {p.frequency}")
            if p.amplitude < 0:
                raise ValueError(f"partial amplitude must be non-negative, got {p.amplitude}")

    @classmethod
    def from_arrays(
        cls, frequencies: Sequence[float], amplitudes: Sequence[float]
    ) -> "PartialSet":
        """Build a set from parallel frequency and amplitude sequences.

        Raises
        ------
        ValueError
            If either sequence is empty or their lengths differ.
        """

        freqs = list(frequencies)
        amps = list(amplitudes)
        if not freqs or not amps:
            raise ValueError("frequencies and amplitudes must not be empty")
        if len(freqs) != len(amps):
            raise ValueError("frequencies and amplitudes must be the same length")
        return cls(
            tuple(
                Partial(float(f), float(a), i + 1)
                for i, (f, a) in enumerate(zip(freqs, amps))
            )
        )

    @classmethod
    def from_overtones(cls, overtones: Iterable[Overtone], fundamental: float) -> "PartialSet":
        """Place relative ``overtones`` on an absolute ``fundamental`` in Hz."""

        if fundamental <= 0:
            raise ValueError("fundamental must be positive")
        return cls(
            tuple(
                Partial(ot.ratio * fundamental, ot.amplitude, ot.harmonic)
                for ot in overtones
            )
        )

    def __len__(self) -> int:
        return len(self.partials)

    def __iter__(self):
        return iter(self.partials)

    @property
    def frequencies(self) -> np.ndarray:
        return np.fromiter((p.frequency for p in self.partials), dtype=np.float64)

    @property
    def amplitudes(self) -> np.ndarray:
        return np.fromiter((p.amplitude for p in self.partials), dtype=np.float64)

    @property
    def fundamental(self) -> float:
        return self.partials[0].frequency

    def scaled(self, factor: float) -> "PartialSet":
        """Return a copy with every frequency multiplied by ``factor``.

        Amplitudes and harmonic indices are preserved so the timbre stays the
        same while the pitch moves.
        """

        if factor <= 0:
            raise ValueError("scale factor must be positive")
        return PartialSet(
            tuple(Partial(p.frequency * factor, p.amplitude, p.harmonic) for p in self.partials)
        )

    def transposed_to(self, fundamental: float) -> "PartialSet":
        """Return a copy whose first partial sits at ``fundamental`` Hz."""

        return self.scaled(fundamental / self.fundamental)
