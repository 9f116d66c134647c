"""Statistical helpers for vector-space and BM25 scoring.

The functions here stay independent of the index layout so they can be unit
tested on plain numbers. The vector-space helpers follow the classic Lucene
TF-IDF similarity; the BM25 helpers follow the Robertson/Sparck Jones form
with the ``1 +`` inside the logarithm so IDF never goes negative.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
import math


@dataclass(frozen=True)
class FieldLengthStats:
    """Aggregated term statistics for a field."""

    field: str
    total_terms: int
    document_count: int

    @property
    def average_length(self) -> float:
        if self.document_count == 0:
            return 0.0
        return self.total_terms / self.document_count


def compute_field_length_stats(field_lengths: Mapping[str, Mapping[int, int]]) -> dict[str, FieldLengthStats]:
    """Return aggregate stats for each field given per-document lengths."""

    stats: dict[str, FieldLengthStats] = {}
    for field_name, lengths in field_lengths.items():
        doc_count = len(lengths)
        total_terms = sum(max(length, 0) for length in lengths.values())
        stats[field_name] = FieldLengthStats(
            field=field_name,
            total_terms=total_terms,
            document_count=doc_count,
        )
    return stats


def classic_idf(doc_freq: int, total_docs: int) -> float:
    """Return ``1 + ln(N / (df + 1))``."""

    if total_docs <= 0:
        return 0.0
    return 1.0 + math.log(total_docs / (max(doc_freq, 0) + 1))


def classic_tf(freq: int) -> float:
    return math.sqrt(freq) if freq > 0 else 0.0


def length_norm(field_length: int) -> float:
    """Return ``1 / sqrt(length)``; empty fields get no normalization."""

    if field_length <= 0:
        return 1.0
    return 1.0 / math.sqrt(field_length)


def query_norm(idfs: Iterable[float]) -> float:
    """Return ``1 / sqrt(sum(idf^2))`` over the scoring terms of a query."""

    sum_of_squares = sum(idf * idf for idf in idfs)
    if sum_of_squares <= 0:
        return 1.0
    return 1.0 / math.sqrt(sum_of_squares)


def tfidf(tf: int, idf: float, field_length: int) -> float:
    """Compute the classic per-term weight ``sqrt(tf) * idf^2 * norm``."""

    return classic_tf(tf) * idf * idf * length_norm(field_length)


def bm25_idf(doc_freq: int, total_docs: int) -> float:
    """Return ``ln(1 + (N - df + 0.5) / (df + 0.5))``."""

    if total_docs <= 0:
        return 0.0
    df = max(0, min(doc_freq, total_docs))
    return math.log(1.0 + (total_docs - df + 0.5) / (df + 0.5))


def bm25(tf: int, doc_length: int, avg_doc_length: float, *, k1: float = 1.2, b: float = 0.75) -> float:
    """Compute the BM25 term weight without IDF."""

    if tf <= 0:
        return 0.0
    length_ratio = doc_length / avg_doc_length if avg_doc_length > 0 else 1.0
    denominator = tf + k1 * (1 - b + b * length_ratio)
    return (tf * (k1 + 1)) / denominator
