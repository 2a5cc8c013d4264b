"""Scale Generator library.

This package derives pitch scales from the timbre of the instruments that will
play them.  A typical workflow generates an overtone series with
:func:`generate_overtones`, places it on a fundamental with
:meth:`PartialSet.from_overtones` and passes the result to
:func:`find_scale_in_range` or, for several voices at once, to
:func:`build_scales_from_overtones` and :func:`build_and_optimize_scales`.

Underlying Algorithm
--------------------
The Sethares model assigns a sensory dissonance to every pair of partials.
Sweeping a copy of a timbre against itself by a ratio ``alpha`` traces a
dissonance curve whose dips mark consonant intervals for that timbre.  The
curve is sampled coarsely, each local minimum is re-sampled finely, and the
refined minima become candidate notes::

    curve = dissonance_curve(partials, start, end, coarse_step)
    seeds = find_local_minima(curve)
    refined = refine_minima(partials, seeds, fine_width, fine_step)
    scale = select_scale_notes(candidates(refined), min_notes, min_ratio, max_notes)

For ensembles a separate roughness model tunes the fundamentals of upper
voices against the voices below (:class:`InstrumentCollection`) and the
per-voice candidate scales can be re-ranked by cross-voice dissonance.

Every routine is a pure function of its numeric inputs.
"""

__version__ = "0.1.0"

# ---------------------------------------------------------------
# Modification Summary
# ---------------------------------------------------------------
# * Dissonance curves are sampled at ``start + i * step`` so long sweeps no
#   longer drift away from the requested end point.
# * The fine refinement window is centred on the coarse seed, which keeps the
#   seed on the fine grid and guarantees refined minima never score worse.
# * Sweeping a timbre against itself and against a separate reference are two
#   distinct functions instead of one call with an optional reference.
# * Backfilled scale notes are flagged so the relaxed spacing is visible.
# * Roughness scans move only the primary voice; secondary voices stay fixed.
# * The roughness edge penalty is measured in cents with its own span on each
#   side of the fundamental so it reaches zero at both ends of the scan.
# * Search ranges and steps moved into ``config`` dataclasses that can be
#   overridden from a JSON settings file.
# ---------------------------------------------------------------

from .partials import Overtone, Partial, PartialSet  # noqa: F401
from .overtones import (  # noqa: F401
    FORMANT_CENTERS,
    generate_overtones,
    generate_overtone_arrays,
    ratios_to_frequencies,
)
from .dissonance import (  # noqa: F401
    CurvePoint,
    DissonanceCurve,
    pair_dissonance,
    total_dissonance,
    set_dissonance,
    dissonance_curve,
    dissonance_curve_against,
)
from .minima import (  # noqa: F401
    RefinedMinimum,
    find_local_minima,
    refine_minima,
    refine_minima_against,
)
from .scales import (  # noqa: F401
    ScaleNote,
    select_scale_notes,
    find_scale_in_range,
    find_scale_in_range_against,
    build_scales_from_overtones,
)
from .roughness import (  # noqa: F401
    RoughnessPoint,
    roughness,
    roughness_threshold,
    total_roughness,
    cross_roughness,
    scan_roughness,
    triangular_weight,
    pick_weighted_minimum,
    find_min_roughness_fundamental,
    find_roughness_scale,
)
from .instruments import (  # noqa: F401
    FundamentalOrderError,
    VoiceParams,
    Instrument,
    InstrumentCollection,
)
from .cross_scale import (  # noqa: F401
    combined_dissonance,
    optimize_scales,
    build_and_optimize_scales,
)
from .config import (  # noqa: F401
    ScaleSearchConfig,
    RoughnessSearchConfig,
    load_settings,
    save_settings,
    search_configs_from_settings,
)
