"""Command line front end for Scale Generator.

The CLI builds one timbre per requested fundamental, derives a dissonance
scale for each voice and prints the notes as plain tables.  With
``--target-notes`` the voices are additionally re-ranked against each other
by cross-voice dissonance.

Example
-------
Running ``python -m scale_generator --fundamentals 261.63 329.63 392 \
    --partials 8 --min-notes 5 --max-notes 15 --min-ratio 1.06`` prints three
scales of five to fifteen notes each.

Search ranges and steps are read from the JSON settings file (see
:mod:`scale_generator.config`); ``--settings-file`` points at an alternative
location.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .config import DEFAULT_SETTINGS_FILE, load_settings, search_configs_from_settings
from .cross_scale import build_and_optimize_scales
from .overtones import generate_overtones
from .partials import PartialSet
from .scales import ScaleNote, build_scales_from_overtones

__all__ = ["build_parser", "format_scale", "run_cli", "main"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Derive low-dissonance pitch scales from synthetic timbres."
    )
    parser.add_argument("--fundamentals", type=float, nargs="+", required=True, help="Ascending voice fundamentals in Hz.")
    parser.add_argument("--partials", type=int, default=8, help="Number of partials per voice (default: 8).")
    parser.add_argument("--purity", type=float, default=1.0, help="Harmonic purity in [0, 1].")
    parser.add_argument("--balance", type=float, default=0.5, help="Spectral balance in [0, 1].")
    parser.add_argument("--odd-even", type=float, default=0.5, help="Odd/even harmonic bias in [0, 1].")
    parser.add_argument("--formant", type=float, default=0.0, help="Formant strength in [0, 1].")
    parser.add_argument("--richness", type=float, default=0.5, help="Spectral richness in [0, 1].")
    parser.add_argument("--irregularity", type=float, default=0.0, help="Partial irregularity in [0, 1].")
    parser.add_argument("--min-notes", type=int, default=5, help="Minimum notes per scale (default: 5).")
    parser.add_argument("--max-notes", type=int, default=15, help="Maximum notes per scale (default: 15).")
    parser.add_argument("--min-ratio", type=float, default=1.06, help="Minimum ratio between successive notes.")
    parser.add_argument("--target-notes", type=int, help="Re-rank voices jointly and keep N notes each.")
    parser.add_argument("--settings-file", type=str, help="Path to the JSON settings file with search parameters.")
    return parser


def format_scale(scale: Sequence[ScaleNote]) -> str:
    """Return ``scale`` as a plain-text table."""

    lines = ["  Note | Frequency  | Ratio    | Cents    | Dissonance"]
    for idx, note in enumerate(scale, start=1):
        flag = " *" if note.backfilled else ""
        lines.append(
            f"  {idx:<4} | {note.frequency:<10.2f} | {note.ratio:<8.4f} | "
            f"{note.cents:<8.1f} | {note.dissonance:.4f}{flag}"
        )
    return "\n".join(lines)


def run_cli(argv: Optional[List[str]] = None) -> None:
    """Parse arguments, compute the scales and print them.

    Validation problems are logged and terminate the process with status 1.
    """

    args = build_parser().parse_args(argv)

    fundamentals = args.fundamentals
    if any(f <= 0 for f in fundamentals):
        logging.error("Fundamentals must be positive.")
        sys.exit(1)
    if any(b <= a for a, b in zip(fundamentals, fundamentals[1:])):
        logging.error("Fundamentals must be strictly ascending.")
        sys.exit(1)
    if args.target_notes is not None and args.target_notes > args.max_notes:
        logging.error("Target notes cannot exceed the maximum number of notes.")
        sys.exit(1)

    settings_path = Path(args.settings_file).expanduser() if args.settings_file else DEFAULT_SETTINGS_FILE
    try:
        scale_config, _ = search_configs_from_settings(load_settings(settings_path))
        overtones = generate_overtones(
            args.purity,
            args.balance,
            args.odd_even,
            args.formant,
            args.richness,
            args.irregularity,
            args.partials,
        )
        series = [PartialSet.from_overtones(overtones, f) for f in fundamentals]
        if args.target_notes is not None:
            scales = build_and_optimize_scales(
                series,
                args.min_notes,
                args.min_ratio,
                args.target_notes,
                args.max_notes,
                config=scale_config,
            )
        else:
            scales = build_scales_from_overtones(
                series, args.min_notes, args.min_ratio, args.max_notes, config=scale_config
            )
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)

    for fundamental, scale in zip(fundamentals, scales):
        print(f"\nVoice at {fundamental:.2f} Hz ({len(scale)} notes)")
        print(format_scale(scale))
    logging.info("Scale generation complete.")


def main() -> None:
    """Console script entry point."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli(sys.argv[1:])
