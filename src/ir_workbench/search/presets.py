"""Named experiment configurations.

A preset fixes the analyzer pipeline and the scoring model. Names follow
``<similarity>-<stemmer>-<stop|nostop>``, for example ``bm25-porter-stop``.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import product
from types import MappingProxyType

from ir_workbench.search.analyzers import AnalyzerConfig, StemmerName, StopwordSet
from ir_workbench.search.errors import ConfigError
from ir_workbench.search.evaluator import Scoring


@dataclass(frozen=True)
class ExperimentConfig:
    name: str
    analyzer: AnalyzerConfig
    scoring: Scoring

    def describe(self) -> dict[str, str]:
        return {"preset": self.name, "scoring": self.scoring.value, **self.analyzer.describe()}


_SIMILARITIES = {"vsm": Scoring.VECTOR_SPACE, "bm25": Scoring.BM25}
_STEMMERS = {"nostem": StemmerName.NONE, "porter": StemmerName.PORTER, "kstem": StemmerName.KSTEM}
_STOPWORDS = {"stop": StopwordSet.ENGLISH, "nostop": StopwordSet.NONE}


def _build_presets() -> dict[str, ExperimentConfig]:
    presets: dict[str, ExperimentConfig] = {}
    for (sim_key, scoring), (stem_key, stemmer), (stop_key, stopwords) in product(
        _SIMILARITIES.items(), _STEMMERS.items(), _STOPWORDS.items()
    ):
        name = f"{sim_key}-{stem_key}-{stop_key}"
        presets[name] = ExperimentConfig(
            name=name,
            analyzer=AnalyzerConfig(stemmer=stemmer, stopwords=stopwords),
            scoring=scoring,
        )
    return presets


PRESETS = MappingProxyType(_build_presets())

DEFAULT_PRESET = "vsm-porter-stop"

# Numeric options used by earlier command-line experiment runs.
LEGACY_OPTIONS = MappingProxyType(
    {
        1: "vsm-porter-stop",
        2: "vsm-porter-nostop",
        3: "bm25-porter-stop",
        4: "bm25-porter-nostop",
        5: "vsm-kstem-stop",
        6: "vsm-kstem-nostop",
        7: "vsm-nostem-stop",
    }
)


def list_presets() -> list[str]:
    return sorted(PRESETS)


def get_preset(name: str) -> ExperimentConfig:
    """Return the preset called ``name`` (case-insensitive)."""

    key = str(name).strip().lower()
    try:
        return PRESETS[key]
    except KeyError:
        msg = f"Unknown preset '{name}'. Available: {list_presets()}"
        raise ConfigError(msg) from None


def legacy_preset(option: int) -> ExperimentConfig:
    try:
        return PRESETS[LEGACY_OPTIONS[int(option)]]
    except (KeyError, ValueError, TypeError):
        msg = f"Unknown legacy option {option!r}. Available: {sorted(LEGACY_OPTIONS)}"
        raise ConfigError(msg) from None
