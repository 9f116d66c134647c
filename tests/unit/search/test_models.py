"""Unit tests for search data models."""

from __future__ import annotations

import pytest

from ir_workbench.search.models import Document, Posting, ResultRecord


def test_document_from_mapping_separates_reserved_keys() -> None:
    doc = Document.from_mapping(
        {"id": "7", "searchTaskNumber": 1, "title": "Kim visits Korea", "relevance": True, "publish_date": 10}
    )

    assert doc.doc_id == 7
    assert doc.search_task == 1
    assert dict(doc.fields) == {"title": "Kim visits Korea", "relevance": 1, "publish_date": 10}


def test_document_fields_are_read_only() -> None:
    doc = Document(doc_id=1, fields={"title": "x"})

    with pytest.raises(TypeError):
        doc.fields["title"] = "y"  # type: ignore[index]


def test_document_requires_integer_id() -> None:
    with pytest.raises(TypeError):
        Document(doc_id="1")  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="doc_id"):
        Document.from_mapping({"title": "no id"})


def test_document_get_defaults() -> None:
    doc = Document(doc_id=1, fields={"title": "x"})

    assert doc.get("title") == "x"
    assert doc.get("abstract") is None
    assert doc.get("abstract", "") == ""


def test_posting_to_dict() -> None:
    assert Posting(doc_id=3, frequency=2).to_dict() == {"doc_id": 3, "frequency": 2}


def test_result_record_convenience_properties() -> None:
    record = ResultRecord(
        doc_id=1,
        score=0.5,
        stored={"title": "T", "abstract": "A", "description": "D"},
        relevant=True,
    )

    assert (record.title, record.abstract, record.description) == ("T", "A", "D")
    assert record.to_dict()["fields"] == {"title": "T", "abstract": "A", "description": "D"}
    assert ResultRecord(doc_id=2, score=0.0, stored={}).title is None
