"""Analysis configuration.

One immutable record passed to every analyzer; every field is optional
in the JSON file and falls back to its default.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from poker_ev.analysis.data_structures import NEUTRAL_PRIOR

logger = logging.getLogger("poker_ev.analysis")

DEFAULT_CONFIG_PATH = Path.home() / ".poker_ev" / "analysis_config.json"


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for hand analysis.

    Attributes:
        rake_pct: Rake taken from a won pot, as a fraction.
        rake_cap: Upper bound on rake in BB (None = uncapped).
        classification_threshold: EV gap (BB) still counted as positive.
        prune_threshold: Override of the default range prune threshold.
        neutral_prior: Fallback (fold, call, raise) triple.
        report_count: Combos listed at each end of a strength summary.
        seed_salt: Extra salt for the splitter's seeded allocation.
        split_tolerance: Allowed bucket-mass deviation before rebalancing.
    """

    rake_pct: float = 0.0
    rake_cap: float | None = None
    classification_threshold: float = 0.05
    prune_threshold: float | None = None
    neutral_prior: tuple[float, float, float] = NEUTRAL_PRIOR
    report_count: int = 10
    seed_salt: str = ""
    split_tolerance: float = 0.05


def _valid_prior(value: object) -> tuple[float, float, float] | None:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        return None
    try:
        prior = tuple(float(v) for v in value)
    except (TypeError, ValueError):
        return None
    if any(p < 0 for p in prior) or sum(prior) <= 0:
        return None
    total = sum(prior)
    return (prior[0] / total, prior[1] / total, prior[2] / total)


def config_from_dict(data: dict) -> AnalysisConfig:
    """Build a config from a dict, dropping invalid values with a warning."""
    defaults = AnalysisConfig()
    values: dict[str, object] = {}

    def number(key: str, lo: float, hi: float | None = None) -> None:
        if key not in data or data[key] is None:
            return
        try:
            v = float(data[key])
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric config value %s=%r", key, data[key])
            return
        if v < lo or (hi is not None and v > hi):
            logger.warning("Ignoring out-of-range config value %s=%r", key, v)
            return
        values[key] = v

    number("rake_pct", 0.0, 1.0)
    number("rake_cap", 0.0)
    number("classification_threshold", 0.0)
    number("prune_threshold", 0.0, 1.0)
    number("split_tolerance", 0.0, 1.0)

    if "report_count" in data:
        try:
            count = int(data["report_count"])
        except (TypeError, ValueError):
            count = -1
        if count >= 0:
            values["report_count"] = count
        else:
            logger.warning("Ignoring invalid report_count=%r", data["report_count"])

    if "neutral_prior" in data:
        prior = _valid_prior(data["neutral_prior"])
        if prior is None:
            logger.warning("Ignoring invalid neutral_prior=%r", data["neutral_prior"])
        else:
            values["neutral_prior"] = prior

    if "seed_salt" in data:
        values["seed_salt"] = str(data["seed_salt"])

    unknown = set(data) - set(AnalysisConfig.__dataclass_fields__)
    if unknown:
        logger.warning("Unknown config keys ignored: %s", ", ".join(sorted(unknown)))

    return AnalysisConfig(**{**defaults.__dict__, **values})


def load_analysis_config(config_path: Path | None = None) -> AnalysisConfig:
    """Load analysis configuration from a JSON file.

    Default path: ~/.poker_ev/analysis_config.json

    A missing file gives the defaults. An unreadable file logs a warning
    and also gives the defaults.

    Expected JSON format (all keys optional):
        {
            "rake_pct": 0.05,
            "rake_cap": 3.0,
            "classification_threshold": 0.05,
            "neutral_prior": [0.6, 0.3, 0.1],
            "seed_salt": "session-42"
        }
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return AnalysisConfig()

    try:
        with open(path) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to read analysis config at %s: %s", path, e)
        return AnalysisConfig()

    if not isinstance(data, dict):
        logger.warning("Analysis config at %s is not a JSON object", path)
        return AnalysisConfig()
    return config_from_dict(data)
