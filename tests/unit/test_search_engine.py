"""Unit tests for the SearchEngine facade."""

from __future__ import annotations

import logging

from prometheus_client import REGISTRY
import pytest

from ir_workbench.config import Settings
from ir_workbench.search.errors import ConfigError, QuerySyntaxError
from ir_workbench.search.presets import get_preset
from ir_workbench.search.query import FieldClause, StructuredQuery
from ir_workbench.search_engine import SearchEngine


pytestmark = pytest.mark.unit


def _error_count(error_type: str) -> float:
    return REGISTRY.get_sample_value("ir_search_errors_total", {"error_type": error_type}) or 0.0


@pytest.fixture
def engine(news_records) -> SearchEngine:
    return SearchEngine.from_documents(news_records, "vsm-porter-stop")


class TestBuild:
    def test_plain_mappings_are_accepted(self, engine):
        assert engine.index.document_count == 5
        assert engine.preset.name == "vsm-porter-stop"

    def test_search_task_setting_selects_documents(self, news_records):
        engine = SearchEngine.from_documents(news_records, settings=Settings(selector_search_task=1))

        assert engine.index.doc_ids == {1, 2, 4, 5}

    def test_explicit_selector_wins_over_settings(self, news_records):
        engine = SearchEngine.from_documents(
            news_records,
            selector=lambda document: document.doc_id > 3,
            settings=Settings(selector_search_task=1),
        )

        assert engine.index.doc_ids == {4, 5}

    def test_preset_defaults_to_settings(self, news_records):
        engine = SearchEngine.from_documents(news_records, settings=Settings(default_preset="bm25-kstem-stop"))

        assert engine.preset is get_preset("bm25-kstem-stop")


class TestSearch:
    def test_free_text_sample_query(self, engine):
        results = engine.search_text("gesture AND user AND interface")

        assert [record.doc_id for record in results] == [4]
        assert results[0].title == "Gesture tracking for user interfaces"
        assert results[0].relevant is True

    def test_free_text_other_field(self, engine):
        results = engine.search_text("kim", field="title")

        assert [record.doc_id for record in results] == [1]

    def test_structured_mapping(self, engine):
        results = engine.search({"title": {"include": ["summit"]}}, mode="alphabetical")

        assert [record.title for record in results] == ["Markets rally after summit", "Summit in Seoul"]

    def test_structured_query_object(self, engine):
        query = StructuredQuery(clauses=[FieldClause("description", must_exclude=["korea"])])

        results = engine.search(query)

        assert [record.doc_id for record in results] == [2, 4, 5]

    def test_date_bounds_use_the_configured_mode(self, news_records):
        query = {"abstract": {"include": ["summit"]}, "start_date": "2011-12-18", "end_date": "2011-12-18"}
        literal = SearchEngine.from_documents(news_records)
        shifted = SearchEngine.from_documents(news_records, settings=Settings(date_boundary_mode="shifted"))

        assert literal.search(query) == []
        assert [record.doc_id for record in shifted.search(query)] == [3]

    def test_scoring_model_does_not_change_membership(self, news_records):
        vsm = SearchEngine.from_documents(news_records, "vsm-porter-stop")
        bm25 = SearchEngine.from_documents(news_records, "bm25-porter-stop")

        query = {"abstract": {"include": ["motion", "tracking"]}}

        assert {r.doc_id for r in vsm.search(query)} == {r.doc_id for r in bm25.search(query)} == {4, 5}

    def test_limit_from_call_and_settings(self, news_records):
        engine = SearchEngine.from_documents(news_records, settings=Settings(result_limit=1))

        assert len(engine.search_text("user")) == 1
        assert len(engine.search_text("user", limit=5)) == 2

    def test_query_is_echoed_in_logs(self, engine, caplog):
        with caplog.at_level(logging.INFO, logger="ir_workbench.search_engine"):
            engine.search({"title": {"include": ["Kim"]}, "start_date": "2011-12-18"})

        (record,) = [r for r in caplog.records if r.getMessage().startswith("Query:")]
        assert record.query_echo["fields"]["title"]["must_include"] == ["Kim"]
        assert record.query_echo["start_date"] == "2011-12-18"
        assert record.preset == "vsm-porter-stop"
        assert "+title:kim" in record.getMessage()


class TestFailures:
    def test_syntax_errors_are_counted_and_raised(self, engine):
        before = _error_count("QuerySyntaxError")

        with pytest.raises(QuerySyntaxError):
            engine.search_text("(gesture")

        assert _error_count("QuerySyntaxError") == before + 1

    def test_invalid_mode_is_counted_and_raised(self, engine):
        before = _error_count("ConfigError")

        with pytest.raises(ConfigError):
            engine.search_text("gesture", mode="random")

        assert _error_count("ConfigError") == before + 1

    def test_failed_search_leaves_index_usable(self, engine):
        with pytest.raises(QuerySyntaxError):
            engine.search_text("gesture AND")

        assert [record.doc_id for record in engine.search_text("gesture AND user")] == [4]
