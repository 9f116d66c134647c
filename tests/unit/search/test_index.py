"""Unit tests for the inverted index builder."""

from __future__ import annotations

import logging

import pytest

from ir_workbench.search.analyzers import AnalyzerConfig, analyze
from ir_workbench.search.errors import ConfigError, IndexBuildError
from ir_workbench.search.index import IndexBuilder, InvertedIndex, SelectorPolicy, build, search_task_selector
from ir_workbench.search.models import Document


def test_pass_all_selector_indexes_every_document(news_documents, porter_config) -> None:
    index = build(news_documents, porter_config)

    assert isinstance(index, InvertedIndex)
    assert index.document_count == len(news_documents)
    assert index.doc_ids == frozenset({1, 2, 3, 4, 5})
    assert index.analyzer == porter_config


def test_term_postings_match_analyzed_field_content(news_documents, news_index, porter_config) -> None:
    for term in ("korea", "summit", "kim"):
        expected = {doc.doc_id for doc in news_documents if term in analyze(doc.get("title", ""), porter_config)}
        actual = {posting.doc_id for posting in news_index.get_postings("title", term)}
        assert actual == expected


def test_posting_lists_are_ordered_without_duplicates(news_index) -> None:
    for terms in news_index.postings.values():
        for postings in terms.values():
            ids = [posting.doc_id for posting in postings]
            assert ids == sorted(set(ids))
            assert all(doc_id in news_index.stored_fields for doc_id in ids)


def test_frequencies_and_field_lengths(plain_config) -> None:
    doc = Document(doc_id=1, fields={"abstract": "motion motion tracking"})

    index = build([doc], plain_config)

    assert index.get_postings("abstract", "motion")[0].frequency == 2
    assert index.field_length("abstract", 1) == 3
    assert index.average_field_length("abstract") == 3
    assert index.field_length("title", 1) == 0
    assert index.vocabulary("abstract") == ["motion", "tracking"]


def test_stored_values_are_verbatim(news_index, news_records) -> None:
    stored = news_index.get_document(1)

    assert stored["title"] == news_records[0]["title"]
    assert stored["relevance"] == 1
    assert stored["publish_date"] == news_records[0]["publish_date"]
    assert news_index.numeric_value("publish_date", 1) == news_records[0]["publish_date"]
    assert news_index.numeric_value("publish_date", 5) is None
    assert news_index.get_document(99) is None


def test_numeric_strings_are_coerced(plain_config) -> None:
    index = build([Document(doc_id=1, fields={"publish_date": "1000", "relevance": "yes"})], plain_config)

    assert index.numeric_value("publish_date", 1) == 1000
    assert index.numeric_value("relevance", 1) is None
    assert index.get_document(1)["relevance"] == "yes"


def test_index_is_read_only(news_index) -> None:
    with pytest.raises(TypeError):
        news_index.postings["title"]["new"] = ()  # type: ignore[index]
    with pytest.raises(TypeError):
        news_index.stored_fields[1]["title"] = "changed"  # type: ignore[index]
    with pytest.raises(AttributeError):
        news_index.doc_ids = frozenset()  # type: ignore[misc]


def test_duplicate_doc_id_fails_the_build(plain_config) -> None:
    docs = [Document(doc_id=1, fields={"title": "a"}), Document(doc_id=1, fields={"title": "b"})]

    with pytest.raises(IndexBuildError, match="Duplicate document id"):
        build(docs, plain_config)


def test_skip_policy_drops_rejected_documents(news_documents, plain_config, caplog) -> None:
    caplog.set_level(logging.INFO, logger="ir_workbench.search.index")

    index = build(news_documents, plain_config, search_task_selector(1))

    assert index.doc_ids == frozenset({1, 2, 4, 5})
    assert "1 skipped" in caplog.text


def test_skip_policy_skips_documents_whose_selector_raises(news_documents, plain_config) -> None:
    def selector(document: Document) -> bool:
        if document.doc_id == 2:
            raise KeyError("search_task")
        return True

    index = build(news_documents, plain_config, selector)

    assert 2 not in index.doc_ids
    assert index.document_count == 4


def test_strict_policy_rejects_on_first_unselected_document(news_documents, plain_config) -> None:
    with pytest.raises(IndexBuildError, match="rejected document 3"):
        build(news_documents, plain_config, search_task_selector(1), selector_policy="strict")


def test_strict_policy_chains_selector_errors(news_documents, plain_config) -> None:
    def selector(_document: Document) -> bool:
        raise RuntimeError("boom")

    with pytest.raises(IndexBuildError) as excinfo:
        build(news_documents, plain_config, selector, selector_policy=SelectorPolicy.STRICT)

    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_io_failure_while_reading_documents_is_wrapped(plain_config) -> None:
    def documents():
        yield Document(doc_id=1, fields={"title": "a"})
        raise OSError("disk gone")

    with pytest.raises(IndexBuildError, match="after 1 documents") as excinfo:
        build(documents(), plain_config)

    assert isinstance(excinfo.value.__cause__, OSError)


def test_invalid_configuration_raises_config_error(news_documents, plain_config) -> None:
    with pytest.raises(ConfigError, match="selector policy"):
        build(news_documents, plain_config, selector_policy="lenient")
    with pytest.raises(ConfigError):
        IndexBuilder({"stemmer": "porter"})  # type: ignore[arg-type]


def test_builder_publishes_independent_snapshots(plain_config) -> None:
    builder = IndexBuilder(plain_config)
    builder.add_document(Document(doc_id=1, fields={"title": "first"}))
    snapshot = builder.build()

    builder.add_document(Document(doc_id=2, fields={"title": "second"}))

    assert snapshot.document_count == 1
    assert snapshot.get_postings("title", "second") == ()


def test_list_values_are_joined_for_analysis(plain_config) -> None:
    index = build([Document(doc_id=1, fields={"title": ["gesture", "user"]})], plain_config)

    assert index.doc_freq("title", "gesture") == 1
    assert index.doc_freq("title", "user") == 1


def test_stemmed_index_uses_stemmed_terms() -> None:
    index = build([Document(doc_id=1, fields={"abstract": "tracking interfaces"})], AnalyzerConfig(stemmer="porter"))

    assert index.vocabulary("abstract") == ["interfac", "track"]
