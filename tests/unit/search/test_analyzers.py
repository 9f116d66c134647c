"""Unit tests for the analyzer pipeline."""

from __future__ import annotations

import pytest

from ir_workbench.search.analyzers import (
    AnalyzerConfig,
    AnalyzerPipeline,
    LowercaseFilter,
    StandardTokenizer,
    StemFilter,
    StemmerName,
    StopFilter,
    StopwordSet,
    analyze,
    build_analyzer,
    get_analyzer,
    get_reducer,
)
from ir_workbench.search.errors import ConfigError


def test_standard_tokenizer_keeps_internal_separators() -> None:
    tokens = [token.text for token in StandardTokenizer()("Prices rose 3.5% to 1,000 points; don't panic")]

    assert tokens == ["Prices", "rose", "3.5", "to", "1,000", "points", "don't", "panic"]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Seoul,Korea", ["Seoul", "Korea"]),
        ("a,b", ["a", "b"]),
        ("1,000", ["1,000"]),
        ("1,000,000 won", ["1,000,000", "won"]),
        ("page 3,Korea", ["page", "3", "Korea"]),
    ],
)
def test_standard_tokenizer_joins_commas_only_between_digits(text: str, expected: list[str]) -> None:
    assert [token.text for token in StandardTokenizer()(text)] == expected


def test_standard_tokenizer_records_offsets() -> None:
    tokens = list(StandardTokenizer()("Kim visits"))

    assert [(t.start_char, t.end_char) for t in tokens] == [(0, 3), (4, 10)]
    assert [t.position for t in tokens] == [0, 1]


def test_analyze_lowercases_and_strips_possessive(plain_config) -> None:
    assert analyze("Kim's visit to KOREA", plain_config) == ["kim", "visit", "to", "korea"]


def test_analyze_removes_english_stopwords() -> None:
    config = AnalyzerConfig(stemmer="none", stopwords="english")

    assert analyze("The summit in Seoul is over", config) == ["summit", "seoul", "over"]


def test_stop_filter_without_words_uses_default_list() -> None:
    pipeline = AnalyzerPipeline(StandardTokenizer(), [LowercaseFilter(), StopFilter()])

    assert [t.text for t in pipeline("the gesture and the user")] == ["gesture", "user"]


def test_positions_are_renumbered_after_filtering() -> None:
    config = AnalyzerConfig(stemmer="none", stopwords="english")
    tokens = get_analyzer(config)("the kim of the korea")

    assert [(t.text, t.position) for t in tokens] == [("kim", 0), ("korea", 1)]


def test_empty_text_produces_no_terms(porter_config) -> None:
    assert analyze("", porter_config) == []
    assert analyze("   ...  ", porter_config) == []


def test_porter_stemming_reduces_inflections(porter_config) -> None:
    assert analyze("tracking interfaces visits", porter_config) == ["track", "interfac", "visit"]


def test_porter_and_kstem_disagree_on_some_words() -> None:
    porter = AnalyzerConfig(stemmer="porter", stopwords="none")
    kstem = AnalyzerConfig(stemmer="kstem", stopwords="none")

    assert analyze("interfaces", porter) == ["interfac"]
    assert analyze("interfaces", kstem) == ["interface"]
    assert analyze("detection", porter) != analyze("detection", kstem)


def test_analyze_is_deterministic(porter_config) -> None:
    text = "Motion detection techniques for user interface design"

    assert analyze(text, porter_config) == analyze(text, porter_config)


def test_config_coerces_strings_and_aliases() -> None:
    config = AnalyzerConfig(stemmer="Krovetz", stopwords="default")

    assert config.stemmer is StemmerName.KSTEM
    assert config.stopwords is StopwordSet.ENGLISH
    assert config == AnalyzerConfig(stemmer=StemmerName.KSTEM)
    assert config.describe() == {"tokenizer": "standard", "stemmer": "kstem", "stopwords": "english"}


@pytest.mark.parametrize(
    "kwargs",
    [{"stemmer": "snowball"}, {"stopwords": "french"}, {"tokenizer": "whitespace"}],
)
def test_config_rejects_unknown_values(kwargs) -> None:
    with pytest.raises(ConfigError, match="Unknown"):
        AnalyzerConfig(**kwargs)


def test_get_reducer_rejects_unknown_stemmer() -> None:
    with pytest.raises(ConfigError):
        get_reducer("lancaster")


def test_none_stemmer_is_identity() -> None:
    assert get_reducer("none")("running") == "running"


def test_stem_filter_drops_tokens_reduced_to_nothing() -> None:
    pipeline = AnalyzerPipeline(StandardTokenizer(), [StemFilter(lambda text: "" if text == "drop" else text)])

    assert [t.text for t in pipeline("keep drop keep")] == ["keep", "keep"]


def test_build_analyzer_omits_optional_filters() -> None:
    pipeline = build_analyzer(AnalyzerConfig(stemmer="none", stopwords="none"))

    assert not any(isinstance(f, (StopFilter, StemFilter)) for f in pipeline.filters)


def test_get_analyzer_is_cached() -> None:
    config = AnalyzerConfig()

    assert get_analyzer(config) is get_analyzer(AnalyzerConfig())
