"""Query evaluation: boolean matching followed by ranking.

Matching decides membership; scoring only orders documents that already
match, so switching the scoring model never changes the result set.

Each child of a group plays a role. A nested group plays its own
occurrence, a range filter is always required, and a term is required in a
MUST group and optional in SHOULD and MUST_NOT groups. A group matches the
intersection of its required children, or failing that the union of its
optional children, or failing that every document; excluded children are
subtracted last. Terms under MUST_NOT branches and range filters never score.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum
import logging
from typing import Any

from ir_workbench.search.errors import ConfigError
from ir_workbench.search.index import InvertedIndex
from ir_workbench.search.models import ScoredDocument
from ir_workbench.search.query import BooleanGroup, Occurrence, QueryNode, RangeFilter, TermMatch
from ir_workbench.search.stats import bm25, bm25_idf, classic_idf, query_norm, tfidf


logger = logging.getLogger(__name__)


class Scoring(str, Enum):
    VECTOR_SPACE = "vector_space"
    BM25 = "bm25"


class RankingMode(str, Enum):
    RANKED = "ranked"
    ALPHABETICAL = "alphabetical"


_SCORING_ALIASES = {"vsm": "vector_space", "tfidf": "vector_space", "classic": "vector_space", "okapi": "bm25"}
_RANKING_ALIASES = {"score": "ranked", "relevance": "ranked", "alpha": "alphabetical", "sorted": "alphabetical"}


def coerce_scoring(value: Scoring | str) -> Scoring:
    if isinstance(value, Scoring):
        return value
    normalized = str(value).strip().lower().replace("-", "_")
    try:
        return Scoring(_SCORING_ALIASES.get(normalized, normalized))
    except ValueError:
        msg = f"Unknown scoring model '{value}'. Available: {[s.value for s in Scoring]}"
        raise ConfigError(msg) from None


def coerce_ranking_mode(value: RankingMode | str) -> RankingMode:
    if isinstance(value, RankingMode):
        return value
    normalized = str(value).strip().lower()
    try:
        return RankingMode(_RANKING_ALIASES.get(normalized, normalized))
    except ValueError:
        msg = f"Unknown ranking mode '{value}'. Available: {[m.value for m in RankingMode]}"
        raise ConfigError(msg) from None


def _role(child: QueryNode, parent: Occurrence) -> Occurrence:
    if isinstance(child, BooleanGroup):
        return child.occurrence
    if isinstance(child, RangeFilter):
        return Occurrence.MUST
    return Occurrence.MUST if parent is Occurrence.MUST else Occurrence.SHOULD


def _match(node: QueryNode, index: InvertedIndex) -> frozenset[int]:
    if isinstance(node, TermMatch):
        return frozenset(posting.doc_id for posting in index.get_postings(node.field, node.term))
    if isinstance(node, RangeFilter):
        return frozenset(doc_id for doc_id in index.doc_ids if node.matches(index.numeric_value(node.field, doc_id)))
    return _match_group(node, index)


def _match_group(group: BooleanGroup, index: InvertedIndex) -> frozenset[int]:
    if not group.children:
        return frozenset()

    required: list[frozenset[int]] = []
    optional: list[frozenset[int]] = []
    excluded: list[frozenset[int]] = []
    for child in group.children:
        role = _role(child, group.occurrence)
        matched = _match(child, index)
        if role is Occurrence.MUST:
            required.append(matched)
        elif role is Occurrence.SHOULD:
            optional.append(matched)
        else:
            excluded.append(matched)

    if required:
        result = frozenset.intersection(*required)
    elif optional:
        result = frozenset.union(*optional)
    else:
        result = index.doc_ids
    for matched in excluded:
        result = result - matched
    return result


def match(index: InvertedIndex, query: QueryNode) -> frozenset[int]:
    """Return the ids of documents matching ``query``."""

    matched = _match(query, index)
    if isinstance(query, BooleanGroup) and query.occurrence is Occurrence.MUST_NOT:
        return index.doc_ids - matched
    return matched


def scoring_terms(node: QueryNode) -> list[TermMatch]:
    """Return the distinct terms that contribute score, in query order."""

    seen: set[TermMatch] = set()
    ordered: list[TermMatch] = []
    for term in _walk_scoring(node):
        if term not in seen:
            seen.add(term)
            ordered.append(term)
    return ordered


def _walk_scoring(node: QueryNode) -> Iterator[TermMatch]:
    if isinstance(node, TermMatch):
        yield node
    elif isinstance(node, BooleanGroup) and node.occurrence is not Occurrence.MUST_NOT:
        for child in node.children:
            yield from _walk_scoring(child)


def _vector_space_scores(index: InvertedIndex, terms: list[TermMatch], matched: Iterable[int]) -> dict[int, float]:
    total_docs = index.document_count
    idfs = [classic_idf(index.doc_freq(term.field, term.term), total_docs) for term in terms]
    norm = query_norm(idfs)
    scores = dict.fromkeys(matched, 0.0)
    overlap = dict.fromkeys(scores, 0)
    for term, idf in zip(terms, idfs):
        for posting in index.get_postings(term.field, term.term):
            if posting.doc_id not in scores:
                continue
            length = index.field_length(term.field, posting.doc_id)
            scores[posting.doc_id] += tfidf(posting.frequency, idf, length)
            overlap[posting.doc_id] += 1
    for doc_id in scores:
        scores[doc_id] *= norm * overlap[doc_id] / len(terms)
    return scores


def _bm25_scores(
    index: InvertedIndex, terms: list[TermMatch], matched: Iterable[int], *, k1: float, b: float
) -> dict[int, float]:
    total_docs = index.document_count
    scores = dict.fromkeys(matched, 0.0)
    for term in terms:
        postings = index.get_postings(term.field, term.term)
        if not postings:
            continue
        idf = bm25_idf(len(postings), total_docs)
        avg_length = index.average_field_length(term.field)
        for posting in postings:
            if posting.doc_id not in scores:
                continue
            length = index.field_length(term.field, posting.doc_id)
            scores[posting.doc_id] += idf * bm25(posting.frequency, length, avg_length, k1=k1, b=b)
    return scores


def _sort_value(index: InvertedIndex, doc_id: int, sort_field: str) -> str:
    stored = index.get_document(doc_id) or {}
    value: Any = stored.get(sort_field)
    return "" if value is None else str(value)


def evaluate(
    index: InvertedIndex,
    query: QueryNode,
    scoring: Scoring | str = Scoring.VECTOR_SPACE,
    *,
    mode: RankingMode | str = RankingMode.RANKED,
    sort_field: str = "title",
    limit: int | None = None,
    bm25_k1: float = 1.2,
    bm25_b: float = 0.75,
) -> list[ScoredDocument]:
    """Match, score and order documents for ``query``.

    Raises:
        ConfigError: unknown scoring model or ranking mode, invalid BM25
            parameters or a negative limit. Checked before any work.
    """

    resolved_scoring = coerce_scoring(scoring)
    resolved_mode = coerce_ranking_mode(mode)
    if bm25_k1 <= 0 or not 0.0 <= bm25_b <= 1.0:
        msg = f"Invalid BM25 parameters k1={bm25_k1} b={bm25_b}"
        raise ConfigError(msg)
    if limit is not None and limit < 0:
        msg = f"limit must be >= 0, got {limit}"
        raise ConfigError(msg)

    matched = match(index, query)
    terms = scoring_terms(query)
    if not matched:
        return []

    if not terms:
        scores = dict.fromkeys(matched, 0.0)
    elif resolved_scoring is Scoring.BM25:
        scores = _bm25_scores(index, terms, matched, k1=bm25_k1, b=bm25_b)
    else:
        scores = _vector_space_scores(index, terms, matched)

    results = [ScoredDocument(doc_id=doc_id, score=score) for doc_id, score in scores.items()]
    if resolved_mode is RankingMode.ALPHABETICAL:
        results.sort(key=lambda entry: (_sort_value(index, entry.doc_id, sort_field), entry.doc_id))
    else:
        results.sort(key=lambda entry: (-entry.score, entry.doc_id))

    logger.debug(
        "Evaluated query: %d matches, %d scoring terms",
        len(results),
        len(terms),
        extra={"scoring": resolved_scoring.value, "mode": resolved_mode.value},
    )
    if limit is not None:
        return results[:limit]
    return results
