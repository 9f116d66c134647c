"""Shared test fixtures and configuration."""

from __future__ import annotations

from datetime import datetime, timezone
import os

import pytest

from ir_workbench.search.analyzers import AnalyzerConfig
from ir_workbench.search.index import build
from ir_workbench.search.models import Document


def millis(year: int, month: int, day: int, hour: int = 0, minute: int = 0, second: int = 0) -> int:
    """Epoch milliseconds of a UTC wall-clock time."""
    return int(datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc).timestamp()) * 1000


DEC_17_LAST_MS = millis(2011, 12, 18) - 1
DEC_18_START_MS = millis(2011, 12, 18)
DEC_18_NOON_MS = millis(2011, 12, 18, 12)
DEC_19_START_MS = millis(2011, 12, 19)

NEWS_RECORDS = [
    {
        "doc_id": 1,
        "title": "Kim visits Korea",
        "abstract": "Kim Jong-il visits the Korean peninsula for talks on gesture diplomacy.",
        "description": "A state visit to Korea by the leader.",
        "relevance": True,
        "publish_date": DEC_18_START_MS,
        "search_task": 1,
    },
    {
        "doc_id": 2,
        "title": "Summit in Seoul",
        "abstract": "Leaders gathered in Seoul for an economic summit.",
        "description": "Economic talks between regional leaders.",
        "relevance": False,
        "publish_date": DEC_17_LAST_MS,
        "search_task": 1,
    },
    {
        "doc_id": 3,
        "title": "Markets rally after summit",
        "abstract": "Stocks rose sharply after the summit in Korea.",
        "description": "Korea markets close higher.",
        "relevance": False,
        "publish_date": DEC_19_START_MS,
        "search_task": 2,
    },
    {
        "doc_id": 4,
        "title": "Gesture tracking for user interfaces",
        "abstract": "We present a gesture based user interface using motion tracking.",
        "description": "Research on interaction design.",
        "relevance": True,
        "publish_date": DEC_18_NOON_MS,
        "search_task": 1,
    },
    {
        "doc_id": 5,
        "title": "Motion detection in video",
        "abstract": "Motion detection techniques for user interface design and tracking.",
        "description": "Computer vision survey.",
        "search_task": 1,
    },
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop IR_WORKBENCH_* variables so Settings sees only test overrides."""
    for key in list(os.environ):
        if key.upper().startswith("IR_WORKBENCH_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def news_records() -> list[dict]:
    return [dict(record) for record in NEWS_RECORDS]


@pytest.fixture
def news_documents() -> list[Document]:
    return [Document.from_mapping(record) for record in NEWS_RECORDS]


@pytest.fixture
def plain_config() -> AnalyzerConfig:
    """Analyzer without stemming or stop words, so terms equal lowercased words."""
    return AnalyzerConfig(stemmer="none", stopwords="none")


@pytest.fixture
def porter_config() -> AnalyzerConfig:
    return AnalyzerConfig(stemmer="porter", stopwords="english")


@pytest.fixture
def news_index(news_documents, porter_config):
    return build(news_documents, porter_config)


@pytest.fixture
def plain_index(news_documents, plain_config):
    return build(news_documents, plain_config)


@pytest.fixture
def dec_millis() -> dict[str, int]:
    """Timestamps around 2011-12-18 used by the corpus."""
    return {
        "dec17_last": DEC_17_LAST_MS,
        "dec18_start": DEC_18_START_MS,
        "dec18_noon": DEC_18_NOON_MS,
        "dec19_start": DEC_19_START_MS,
    }
