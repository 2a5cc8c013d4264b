"""Joint scale optimisation across several voices.

Each voice first receives an oversized candidate scale from
:func:`scale_generator.scales.build_scales_from_overtones`.  Every candidate
note is then scored by how it sounds against the *other* voices: the note's
full timbre (the voice's partials transposed by the note's ratio) is combined
with each foreign candidate as a single unit-amplitude partial and the
resulting dissonances are averaged.  Each voice keeps its ``target_notes``
best candidates.

Example
-------
>>> scales = build_and_optimize_scales(series, 8, 1.04, 6, 20)  # doctest: +SKIP
>>> [len(s) for s in scales]  # doctest: +SKIP
[6, 6, 6]

Design Notes
------------
- Cost grows as ``O(total_candidates ** 2 * partials_per_voice ** 2)`` so the
  routine is meant for small candidate pools (a few voices, tens of notes).
- A voice with no other voices to compare against scores every candidate as
  ``0.0``; the frequency order then decides which notes survive.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

import numpy as np

from .config import ScaleSearchConfig
from .dissonance import total_dissonance
from .partials import PartialSet
from .scales import ScaleNote, build_scales_from_overtones

__all__ = ["combined_dissonance", "optimize_scales", "build_and_optimize_scales"]

logger = logging.getLogger(__name__)


def combined_dissonance(
    note: ScaleNote, voice: PartialSet, others: Sequence[ScaleNote]
) -> float:
    """Average dissonance of ``note`` against each note in ``others``.

    ``note`` contributes ``voice`` transposed by ``note.ratio``; every other
    note contributes a single partial of amplitude ``1.0`` at its frequency.
    """

    if not others:
        return 0.0
    freqs = voice.frequencies * note.ratio
    amps = np.append(voice.amplitudes, 1.0)
    total = sum(total_dissonance(np.append(freqs, other.frequency), amps) for other in others)
    return total / len(others)


def optimize_scales(
    candidate_scales: Sequence[Sequence[ScaleNote]],
    series: Sequence[PartialSet],
    target_notes: int,
) -> List[List[ScaleNote]]:
    """Re-rank each voice's candidates by cross-voice dissonance.

    Parameters
    ----------
    candidate_scales:
        One candidate scale per voice.
    series:
        The voices' partial sets, aligned with ``candidate_scales``.
    target_notes:
        Number of notes each voice keeps.

    Returns
    -------
    List[List[ScaleNote]]
        Truncated scales in ascending frequency with ``combined_dissonance``
        filled in.

    Raises
    ------
    ValueError
        If the inputs are misaligned or ``target_notes`` is not positive.
    """

    if len(candidate_scales) != len(series):
        raise ValueError("candidate_scales and series must be the same length")
    if target_notes < 1:
        raise ValueError("target_notes must be at least 1")

    optimized: List[List[ScaleNote]] = []
    for idx, (scale, voice) in enumerate(zip(candidate_scales, series)):
        others = [n for j, s in enumerate(candidate_scales) if j != idx for n in s]
        scored = [
            replace(note, combined_dissonance=combined_dissonance(note, voice, others))
            for note in scale
        ]
        scored.sort(key=lambda n: n.combined_dissonance)
        kept = sorted(scored[:target_notes], key=lambda n: n.frequency)
        logger.debug("Voice %d: kept %d of %d candidates", idx + 1, len(kept), len(scored))
        optimized.append(kept)
    return optimized


def build_and_optimize_scales(
    series: Sequence[PartialSet],
    min_notes: int,
    min_ratio: float,
    target_notes: int,
    max_notes: Optional[int] = None,
    *,
    config: Optional[ScaleSearchConfig] = None,
) -> List[List[ScaleNote]]:
    """Build oversized per-voice scales then keep the best ``target_notes``.

    ``max_notes`` defaults to twice ``target_notes`` and must not be smaller
    than it so every voice has spare candidates to choose from.
    """

    if max_notes is None:
        max_notes = 2 * target_notes
    if max_notes < target_notes:
        raise ValueError("max_notes must be at least target_notes")

    candidates = build_scales_from_overtones(
        series, min_notes, min_ratio, max_notes, config=config
    )
    logger.info(
        "Optimising %d voices over %d candidate notes",
        len(candidates),
        sum(len(s) for s in candidates),
    )
    return optimize_scales(candidates, series, target_notes)
