"""Instruments and three-voice instrument collections.

An :class:`Instrument` couples a fundamental with the six timbre parameters of
:func:`scale_generator.overtones.generate_overtones` and exposes the resulting
absolute partials.  :class:`InstrumentCollection` stacks a low, mid and high
voice where the mid and high pitches are tuned by roughness minimisation
against the voice below.

Example
-------
>>> low = VoiceParams(110.0, harmonic_purity=0.9, max_harmonics=16)
>>> mid = VoiceParams(220.0, harmonic_purity=0.7, max_harmonics=16)
>>> high = VoiceParams(440.0, harmonic_purity=0.5, max_harmonics=16)
>>> coll = InstrumentCollection(low, mid, high)
>>> coll.low.fundamental < coll.mid.fundamental < coll.high.fundamental
True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .config import RoughnessSearchConfig
from .overtones import generate_overtones
from .partials import Overtone, PartialSet
from .roughness import find_min_roughness_fundamental

__all__ = [
    "FundamentalOrderError",
    "VoiceParams",
    "Instrument",
    "InstrumentCollection",
]

logger = logging.getLogger(__name__)


class FundamentalOrderError(RuntimeError):
    """Raised when collection fundamentals are not strictly ascending."""


@dataclass(frozen=True)
class VoiceParams:
    """Nominal fundamental and timbre parameters for one voice."""

    fundamental: float
    harmonic_purity: float = 1.0
    spectral_balance: float = 0.5
    odd_even_bias: float = 0.5
    formant_strength: float = 0.0
    spectral_richness: float = 0.5
    irregularity: float = 0.0
    max_harmonics: int = 32

    def with_fundamental(self, fundamental: float) -> "VoiceParams":
        return VoiceParams(
            fundamental,
            self.harmonic_purity,
            self.spectral_balance,
            self.odd_even_bias,
            self.formant_strength,
            self.spectral_richness,
            self.irregularity,
            self.max_harmonics,
        )


@dataclass(frozen=True)
class Instrument:
    """A voice with a fixed fundamental and generated overtone series."""

    params: VoiceParams
    overtones: Tuple[Overtone, ...] = field(init=False, repr=False, compare=False)
    partials: PartialSet = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        p = self.params
        if p.fundamental <= 0:
            raise ValueError("fundamental must be positive")
        overtones = generate_overtones(
            p.harmonic_purity,
            p.spectral_balance,
            p.odd_even_bias,
            p.formant_strength,
            p.spectral_richness,
            p.irregularity,
            p.max_harmonics,
        )
        # Frozen dataclass: derived fields are assigned once here.
        object.__setattr__(self, "overtones", tuple(overtones))
        object.__setattr__(self, "partials", PartialSet.from_overtones(overtones, p.fundamental))

    @property
    def fundamental(self) -> float:
        return self.params.fundamental

    def describe(self) -> str:
        """Return a plain-text table of the absolute partials."""

        lines = [
            f"Instrument: fundamental = {self.fundamental:.2f} Hz",
            "Harmonic | Frequency (Hz) | Amplitude",
        ]
        for p in self.partials:
            lines.append(f"   H{p.harmonic:<5}|  {p.frequency:>12.2f}  |  {p.amplitude:.3f}")
        return "\n".join(lines)


class InstrumentCollection:
    """Low, mid and high instruments with roughness-tuned upper voices."""

    voices = ("low", "mid", "high")

    def __init__(
        self,
        low: VoiceParams,
        mid: VoiceParams,
        high: VoiceParams,
        *,
        search: Optional[RoughnessSearchConfig] = None,
    ) -> None:
        """Build the collection.

        Parameters
        ----------
        low:
            Parameters of the low voice, used verbatim.
        mid, high:
            Parameters of the upper voices. Their fundamentals are starting
            points; the final pitches minimise roughness against the voice
            directly below.
        search:
            Scan configuration for the roughness optimiser.

        Raises
        ------
        ValueError
            If any voice has invalid timbre parameters.
        FundamentalOrderError
            If the tuned fundamentals are not strictly ascending.
        """

        self.search = search or RoughnessSearchConfig()
        self.low = Instrument(low)
        self.mid = self._tuned(mid, self.low)
        self.high = self._tuned(high, self.mid)

        f_low, f_mid, f_high = (inst.fundamental for inst in (self.low, self.mid, self.high))
        if not f_low < f_mid < f_high:
            raise FundamentalOrderError(
                "Fundamental frequencies must be strictly ascending: "
                f"low={f_low:.3f}, mid={f_mid:.3f}, high={f_high:.3f}"
            )

    def _tuned(self, params: VoiceParams, below: Instrument) -> Instrument:
        # Only the pitch moves; the template keeps the nominal timbre.
        template = Instrument(params)
        best = find_min_roughness_fundamental(
            template.partials,
            [below.partials],
            range_octaves=self.search.range_octaves,
            granularity_cents=self.search.granularity_cents,
            refine_range_cents=self.search.refine_range_cents,
            refine_granularity_cents=self.search.refine_granularity_cents,
        )
        if best is None:
            return template
        # The optimiser tracks the first partial, which irregularity may
        # detune slightly from the nominal fundamental.
        fundamental = params.fundamental * best.fundamental / template.partials.fundamental
        logger.info(
            "Tuned voice from %.2f Hz to %.3f Hz (roughness %.6g)",
            params.fundamental,
            fundamental,
            best.total_roughness,
        )
        return Instrument(params.with_fundamental(fundamental))

    def overtone_series(self) -> Dict[str, PartialSet]:
        """Return the absolute partials keyed by voice name."""

        return {name: getattr(self, name).partials for name in self.voices}

    def describe(self) -> str:
        """Return plain-text tables for all three voices."""

        return "\n\n".join(
            f"=== {name.capitalize()} Instrument ===\n{getattr(self, name).describe()}"
            for name in self.voices
        )
