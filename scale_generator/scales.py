"""Build pitch scales from the minima of a dissonance curve.

Each refined minimum of a swept dissonance curve is a candidate scale note.
Candidates are walked in ascending frequency and accepted while they respect
a minimum ratio to the previously accepted note.  A hard floor on the number
of notes takes priority over the spacing rule: the first ``min_notes``
candidates are always accepted, and if the walk still ends short (only
possible when ``max_notes`` is smaller than ``min_notes``) the lowest
dissonance leftovers are backfilled without any spacing check.

Example
-------
>>> from scale_generator.overtones import generate_overtones
>>> from scale_generator.partials import PartialSet
>>> timbre = PartialSet.from_overtones(generate_overtones(max_harmonics=6), 261.63)
>>> scale = find_scale_in_range(timbre, 1.0, 2.0, 5, 1.05, 12)
>>> len(scale) >= 5
True

Design Notes
------------
- The search is deliberately two-phase: a coarse sweep locates minima and a
  narrow fine sweep sharpens each one.  Both phases are configurable.
- Backfilled notes carry ``backfilled=True`` so callers and tests can tell
  which entries relaxed the spacing rule.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import ScaleSearchConfig
from .dissonance import dissonance_curve_against
from .minima import find_local_minima, refine_minima_against
from .partials import PartialSet

__all__ = [
    "ScaleNote",
    "select_scale_notes",
    "find_scale_in_range",
    "find_scale_in_range_against",
    "build_scales_from_overtones",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScaleNote:
    """A note of a scale.

    ``ratio`` is the alpha of the minimum relative to the voice's fundamental
    and ``dissonance`` the curve value there.  ``combined_dissonance`` is only
    set by cross-voice optimisation.

    ``backfilled`` marks notes added after the forward pass to reach the count
    floor.  The first ``min_notes`` notes of the forward pass are accepted
    without a spacing check too but keep ``backfilled=False``; only notes
    accepted past the floor are guaranteed to lie at least ``min_ratio`` above
    their predecessor.
    """

    frequency: float
    ratio: float
    dissonance: float
    backfilled: bool = False
    combined_dissonance: Optional[float] = None

    @property
    def cents(self) -> float:
        """Distance from the fundamental in cents."""

        return 1200.0 * math.log2(self.ratio)


def _validate_counts(min_notes: int, min_ratio: float, max_notes: int) -> None:
    if min_notes < 0:
        raise ValueError("min_notes must be non-negative")
    if max_notes < 1:
        raise ValueError("max_notes must be at least 1")
    if min_ratio <= 0:
        raise ValueError("min_ratio must be positive")


def select_scale_notes(
    candidates: Sequence[ScaleNote],
    min_notes: int,
    min_ratio: float,
    max_notes: int,
) -> List[ScaleNote]:
    """Choose scale notes from ``candidates`` under the spacing rules.

    Parameters
    ----------
    candidates:
        Candidate notes in any order.
    min_notes:
        Count floor. The first ``min_notes`` candidates by frequency are
        accepted regardless of spacing, and leftovers are backfilled when the
        forward pass ends short.
    min_ratio:
        Minimum frequency ratio between a newly accepted note and the last
        accepted one once the floor is met.
    max_notes:
        The forward pass stops once this many notes are accepted.

    Returns
    -------
    List[ScaleNote]
        Accepted notes in ascending frequency. Empty when ``candidates`` is.
    """

    _validate_counts(min_notes, min_ratio, max_notes)
    ordered = sorted(candidates, key=lambda n: n.frequency)

    selected: List[ScaleNote] = []
    chosen = set()
    last_freq = 0.0
    for idx, note in enumerate(ordered):
        ratio = note.frequency / last_freq if last_freq > 0 else math.inf
        if len(selected) < min_notes or ratio >= min_ratio:
            selected.append(note)
            chosen.add(idx)
            last_freq = note.frequency
            if len(selected) >= max_notes:
                break

    if len(selected) < min_notes:
        remaining = [n for i, n in enumerate(ordered) if i not in chosen]
        remaining.sort(key=lambda n: n.dissonance)
        needed = min_notes - len(selected)
        # Spacing is not re-checked here; the count floor wins.
        selected.extend(
            ScaleNote(n.frequency, n.ratio, n.dissonance, backfilled=True)
            for n in remaining[:needed]
        )
        selected.sort(key=lambda n: n.frequency)
        logger.debug("Backfilled %d notes to reach %d", min(needed, len(remaining)), min_notes)

    return selected


def find_scale_in_range_against(
    swept: PartialSet,
    reference: PartialSet,
    range_start: float,
    range_end: float,
    min_notes: int,
    min_ratio: float,
    max_notes: int,
    *,
    coarse_step: float = 0.005,
    fine_width: float = 0.01,
    fine_step: float = 0.0005,
) -> List[ScaleNote]:
    """Return a scale from minima of ``swept`` swept against ``reference``.

    Candidate frequencies are ``reference.fundamental * alpha``.

    Raises
    ------
    ValueError
        If ``range_start`` is not positive or the counts or search steps are
        invalid.
    """

    _validate_counts(min_notes, min_ratio, max_notes)
    if range_start <= 0:
        raise ValueError("range_start must be positive")

    curve = dissonance_curve_against(swept, reference, range_start, range_end, coarse_step)
    coarse = find_local_minima(curve)
    refined = refine_minima_against(swept, reference, coarse, fine_width, fine_step)

    fundamental = reference.fundamental
    candidates = [
        ScaleNote(fundamental * r.minimum.alpha, r.minimum.alpha, r.minimum.dissonance)
        for r in refined
    ]
    if not candidates:
        logger.debug("No dissonance minima between %.3f and %.3f", range_start, range_end)
        return []

    scale = select_scale_notes(candidates, min_notes, min_ratio, max_notes)
    logger.debug(
        "Selected %d of %d candidates for fundamental %.2f Hz",
        len(scale),
        len(candidates),
        fundamental,
    )
    return scale


def find_scale_in_range(
    partials: PartialSet,
    range_start: float,
    range_end: float,
    min_notes: int,
    min_ratio: float,
    max_notes: int,
    **search,
) -> List[ScaleNote]:
    """Return a scale for ``partials`` swept against an unscaled copy of itself."""

    return find_scale_in_range_against(
        partials, partials, range_start, range_end, min_notes, min_ratio, max_notes, **search
    )


def build_scales_from_overtones(
    series: Sequence[PartialSet],
    min_notes: int,
    min_ratio: float,
    max_notes: int = 36,
    *,
    config: Optional[ScaleSearchConfig] = None,
) -> List[List[ScaleNote]]:
    """Build one scale per voice in ``series``.

    Each voice is searched from ``config.range_start`` to ``config.range_end``
    times its own fundamental (one octave below to two octaves above by
    default).  A voice without any dissonance minima gets an empty scale and
    a warning; the remaining voices are still produced.

    Raises
    ------
    ValueError
        If ``series`` is empty or the note counts are invalid.
    """

    if not series:
        raise ValueError("series must contain at least one partial set")
    _validate_counts(min_notes, min_ratio, max_notes)
    config = config or ScaleSearchConfig()

    scales: List[List[ScaleNote]] = []
    for idx, partials in enumerate(series, start=1):
        logger.info(
            "Building scale %d/%d: fundamental %.2f Hz, ratios %.3f-%.3f",
            idx,
            len(series),
            partials.fundamental,
            config.range_start,
            config.range_end,
        )
        scale = find_scale_in_range(
            partials,
            config.range_start,
            config.range_end,
            min_notes,
            min_ratio,
            max_notes,
            coarse_step=config.coarse_step,
            fine_width=config.fine_width,
            fine_step=config.fine_step,
        )
        if not scale:
            logger.warning("No scale notes found for voice %d", idx)
        scales.append(scale)
    return scales
