"""Search configuration and persistent user settings.

Scan ranges and step sizes trade precision for speed, so they are grouped in
two small frozen dataclasses instead of being hard coded in the search
routines.  The defaults reproduce the reference behaviour; callers may build
their own instances or load overrides from a JSON settings file.

The settings file location is taken from the ``SCALE_GENERATOR_SETTINGS_FILE``
environment variable and falls back to ``~/.scale_generator_settings.json``.
A file might look like::

    {
        "scale_search": {"coarse_step": 0.01},
        "roughness_search": {"granularity_cents": 10}
    }

Only search parameters are stored here.  Computed scales are never written
to disk.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Tuple

__all__ = [
    "DEFAULT_SETTINGS_FILE",
    "ScaleSearchConfig",
    "RoughnessSearchConfig",
    "load_settings",
    "save_settings",
    "search_configs_from_settings",
]

logger = logging.getLogger(__name__)

env_path = os.environ.get("SCALE_GENERATOR_SETTINGS_FILE")
if env_path:
    DEFAULT_SETTINGS_FILE = Path(env_path).expanduser()
else:
    DEFAULT_SETTINGS_FILE = Path.home() / ".scale_generator_settings.json"


@dataclass(frozen=True)
class ScaleSearchConfig:
    """Alpha sweep parameters used when building dissonance scales.

    ``range_start`` and ``range_end`` are ratios relative to the voice's
    fundamental; the default covers one octave below to two octaves above.
    """

    range_start: float = 0.5
    range_end: float = 4.0
    coarse_step: float = 0.005
    fine_width: float = 0.01
    fine_step: float = 0.0005

    def __post_init__(self) -> None:
        if self.range_start <= 0:
            raise ValueError("range_start must be positive")
        if self.range_end < self.range_start:
            raise ValueError("range_end must not be below range_start")
        if self.coarse_step <= 0 or self.fine_step <= 0:
            raise ValueError("search steps must be positive")
        if self.fine_width < 0:
            raise ValueError("fine_width must be non-negative")


@dataclass(frozen=True)
class RoughnessSearchConfig:
    """Fundamental scan parameters for roughness minimisation."""

    range_octaves: float = 2.0
    granularity_cents: float = 5.0
    refine_range_cents: float = 20.0
    refine_granularity_cents: float = 0.5

    def __post_init__(self) -> None:
        if self.granularity_cents <= 0 or self.refine_granularity_cents <= 0:
            raise ValueError("scan granularity must be positive")
        if self.refine_range_cents < 0:
            raise ValueError("refine_range_cents must be non-negative")


def load_settings(path: Path = DEFAULT_SETTINGS_FILE) -> dict:
    """Load saved settings from ``path`` if it exists.

    Missing files give an empty dictionary.  Unreadable or malformed files are
    logged and also treated as empty so a bad settings file never prevents a
    computation from running.
    """

    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.error("Could not load settings: %s", exc)
            return {}
        if isinstance(data, dict):
            return data
        logger.error("Settings file %s does not contain a JSON object", path)
    return {}


def save_settings(settings: dict, path: Path = DEFAULT_SETTINGS_FILE) -> None:
    """Write ``settings`` to ``path`` as indented JSON.

    ``OSError`` is logged rather than raised.
    """

    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2)
    except OSError as exc:
        logger.error("Could not save settings: %s", exc)


def _apply(base: Any, overrides: Any, section: str) -> Any:
    if not isinstance(overrides, dict):
        raise ValueError(f"{section} settings must be a JSON object")
    known = {f.name for f in fields(base)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown {section} settings: {', '.join(sorted(unknown))}")
    for key, value in overrides.items():
        # ``bool`` is an ``int`` subclass but never a valid search value.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{section}.{key} must be a number, got {value!r}")
    return replace(base, **{k: float(v) for k, v in overrides.items()})


def search_configs_from_settings(
    settings: Dict[str, Any]
) -> Tuple[ScaleSearchConfig, RoughnessSearchConfig]:
    """Return search configs with values from ``settings`` applied.

    Raises
    ------
    ValueError
        If a section is not a mapping, names an unknown field, or holds a
        non-numeric or out-of-range value.
    """

    scale = _apply(ScaleSearchConfig(), settings.get("scale_search", {}), "scale_search")
    rough = _apply(
        RoughnessSearchConfig(), settings.get("roughness_search", {}), "roughness_search"
    )
    return scale, rough
