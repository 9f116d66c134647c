"""Projection of evaluator output onto stored document values."""

from __future__ import annotations

from collections.abc import Iterable
import logging

from ir_workbench.search.index import InvertedIndex
from ir_workbench.search.models import ResultRecord, ScoredDocument


logger = logging.getLogger(__name__)

RELEVANCE_FIELD = "relevance"


def _relevance(value: object) -> bool | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def collect(index: InvertedIndex, matches: Iterable[ScoredDocument]) -> list[ResultRecord]:
    """Return one record per match, preserving evaluator order."""

    records: list[ResultRecord] = []
    for entry in matches:
        stored = index.get_document(entry.doc_id)
        if stored is None:
            logger.warning("Match %s has no stored fields; dropping it", entry.doc_id)
            continue
        records.append(
            ResultRecord(
                doc_id=entry.doc_id,
                score=entry.score,
                stored=stored,
                relevant=_relevance(stored.get(RELEVANCE_FIELD)),
            )
        )
    return records
