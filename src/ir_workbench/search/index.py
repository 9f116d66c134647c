"""In-memory inverted index and its builder.

The module provides:

* ``IndexBuilder`` - accepts ``Document`` records, applies the selector and
  the analyzer, and accumulates postings, field lengths and stored values in
  private state.
* ``InvertedIndex`` - the immutable result. Every mapping is read-only and
  every posting list is a tuple ordered by ``doc_id``, so an index can be
  shared across concurrent searches.
* ``build`` - the one-shot entry point with tracing, metrics and error
  translation.

A builder publishes nothing until ``build()``; a failure anywhere leaves no
partially built index behind.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
import logging
from types import MappingProxyType
from typing import Any

from ir_workbench.observability.metrics import INDEX_BUILD_LATENCY, INDEX_DOC_COUNT, track_latency
from ir_workbench.observability.tracing import create_span
from ir_workbench.search.analyzers import AnalyzerConfig, get_analyzer
from ir_workbench.search.errors import ConfigError, IndexBuildError, SearchError
from ir_workbench.search.models import Document, Posting
from ir_workbench.search.schema import Schema, create_default_schema
from ir_workbench.search.stats import FieldLengthStats, compute_field_length_stats


logger = logging.getLogger(__name__)

Selector = Callable[[Document], bool]

_EMPTY_MAPPING: Mapping[Any, Any] = MappingProxyType({})


class SelectorPolicy(str, Enum):
    """What the builder does when a selector rejects or fails on a document."""

    SKIP = "skip"
    STRICT = "strict"


def select_all(_document: Document) -> bool:
    return True


def search_task_selector(task_number: int) -> Selector:
    """Return a selector keeping documents tagged with ``task_number``."""

    def _select(document: Document) -> bool:
        return document.search_task == task_number

    return _select


def _coerce_numeric(value: Any) -> float | int | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        return int(moment.timestamp() * 1000)
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return int(number) if number.is_integer() else number
    return None


def _text_of(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value if item is not None)
    return str(value)


@dataclass(frozen=True)
class InvertedIndex:
    """Immutable in-memory index over a selected document set."""

    analyzer: AnalyzerConfig
    schema: Schema
    postings: Mapping[str, Mapping[str, tuple[Posting, ...]]]
    field_lengths: Mapping[str, Mapping[int, int]]
    stored_fields: Mapping[int, Mapping[str, Any]]
    numeric_values: Mapping[int, Mapping[str, float | int]]
    doc_ids: frozenset[int]
    field_stats: Mapping[str, FieldLengthStats] = field(default_factory=dict)

    @property
    def document_count(self) -> int:
        return len(self.doc_ids)

    def get_postings(self, field_name: str, term: str) -> tuple[Posting, ...]:
        """Return postings for a term in a field (empty when absent)."""
        return self.postings.get(field_name, _EMPTY_MAPPING).get(term, ())

    def doc_freq(self, field_name: str, term: str) -> int:
        return len(self.get_postings(field_name, term))

    def field_length(self, field_name: str, doc_id: int) -> int:
        return self.field_lengths.get(field_name, _EMPTY_MAPPING).get(doc_id, 0)

    def average_field_length(self, field_name: str) -> float:
        stats = self.field_stats.get(field_name)
        return stats.average_length if stats else 0.0

    def get_document(self, doc_id: int) -> Mapping[str, Any] | None:
        return self.stored_fields.get(doc_id)

    def numeric_value(self, field_name: str, doc_id: int) -> float | int | None:
        return self.numeric_values.get(doc_id, _EMPTY_MAPPING).get(field_name)

    def vocabulary(self, field_name: str) -> list[str]:
        return sorted(self.postings.get(field_name, _EMPTY_MAPPING))


class IndexBuilder:
    """Accumulates documents and publishes a frozen ``InvertedIndex``."""

    def __init__(
        self,
        config: AnalyzerConfig,
        *,
        schema: Schema | None = None,
        selector: Selector | None = None,
        selector_policy: SelectorPolicy | str = SelectorPolicy.SKIP,
    ) -> None:
        if not isinstance(config, AnalyzerConfig):
            msg = f"Expected AnalyzerConfig, got {type(config).__name__}"
            raise ConfigError(msg)
        try:
            self.selector_policy = SelectorPolicy(selector_policy)
        except ValueError:
            msg = f"Unknown selector policy '{selector_policy}'. Available: {[p.value for p in SelectorPolicy]}"
            raise ConfigError(msg) from None
        self.config = config
        self.schema = schema or create_default_schema()
        self.selector = selector or select_all
        self._analyzer = get_analyzer(config)
        self._postings: defaultdict[str, defaultdict[str, dict[int, int]]] = defaultdict(lambda: defaultdict(dict))
        self._field_lengths: defaultdict[str, dict[int, int]] = defaultdict(dict)
        self._stored_fields: dict[int, Mapping[str, Any]] = {}
        self._numeric_values: dict[int, Mapping[str, float | int]] = {}
        self.skipped = 0

    def add_document(self, document: Document) -> bool:
        """Index ``document`` if the selector accepts it.

        Returns True when the document was indexed.
        """
        if not self._is_selected(document):
            self.skipped += 1
            return False

        doc_id = document.doc_id
        if doc_id in self._stored_fields:
            msg = f"Duplicate document id: {doc_id}"
            raise IndexBuildError(msg)

        numeric: dict[str, float | int] = {}
        for schema_field in self.schema.numeric_fields:
            raw = document.get(schema_field.name)
            value = _coerce_numeric(raw)
            if value is not None:
                numeric[schema_field.name] = value
            elif raw is not None:
                logger.debug("Ignoring non-numeric %s=%r for doc %s", schema_field.name, raw, doc_id)

        for schema_field in self.schema.text_fields:
            tokens = self._analyzer(_text_of(document.get(schema_field.name)))
            if not tokens:
                continue
            self._field_lengths[schema_field.name][doc_id] = len(tokens)
            terms = self._postings[schema_field.name]
            for token in tokens:
                doc_map = terms[token.text]
                doc_map[doc_id] = doc_map.get(doc_id, 0) + 1

        self._stored_fields[doc_id] = MappingProxyType(dict(document.fields))
        self._numeric_values[doc_id] = MappingProxyType(numeric)
        return True

    def build(self) -> InvertedIndex:
        postings: dict[str, Mapping[str, tuple[Posting, ...]]] = {}
        for field_name, terms in self._postings.items():
            postings[field_name] = MappingProxyType(
                {
                    term: tuple(Posting(doc_id=doc_id, frequency=freq) for doc_id, freq in sorted(doc_map.items()))
                    for term, doc_map in terms.items()
                }
            )
        field_lengths = {name: MappingProxyType(dict(lengths)) for name, lengths in self._field_lengths.items()}

        return InvertedIndex(
            analyzer=self.config,
            schema=self.schema,
            postings=MappingProxyType(postings),
            field_lengths=MappingProxyType(field_lengths),
            stored_fields=MappingProxyType(dict(self._stored_fields)),
            numeric_values=MappingProxyType(dict(self._numeric_values)),
            doc_ids=frozenset(self._stored_fields),
            field_stats=MappingProxyType(compute_field_length_stats(field_lengths)),
        )

    def _is_selected(self, document: Document) -> bool:
        try:
            accepted = bool(self.selector(document))
        except Exception as exc:
            if self.selector_policy is SelectorPolicy.STRICT:
                msg = f"Selector failed on document {document.doc_id}: {exc}"
                raise IndexBuildError(msg) from exc
            logger.warning("Selector failed on document %s, skipping: %s", document.doc_id, exc, exc_info=True)
            return False
        if not accepted and self.selector_policy is SelectorPolicy.STRICT:
            msg = f"Selector rejected document {document.doc_id}"
            raise IndexBuildError(msg)
        return accepted


def build(
    documents: Iterable[Document],
    config: AnalyzerConfig,
    selector: Selector | None = None,
    *,
    schema: Schema | None = None,
    selector_policy: SelectorPolicy | str = SelectorPolicy.SKIP,
) -> InvertedIndex:
    """Build an immutable index from ``documents``.

    Raises:
        ConfigError: the analyzer configuration or selector policy is invalid.
        IndexBuildError: a duplicate id, a strict-mode selector rejection or
            a resource failure aborted the build.
    """
    builder = IndexBuilder(config, schema=schema, selector=selector, selector_policy=selector_policy)
    analyzer_label = "-".join(config.describe().values())

    with create_span("index.build", attributes={"index.analyzer": analyzer_label}) as span, track_latency(
        INDEX_BUILD_LATENCY, analyzer=analyzer_label
    ):
        seen = 0
        try:
            for document in documents:
                seen += 1
                builder.add_document(document)
            index = builder.build()
        except SearchError:
            raise
        except (OSError, MemoryError) as exc:
            msg = f"Index build failed after {seen} documents: {exc}"
            raise IndexBuildError(msg) from exc

        span.set_attribute("index.document_count", index.document_count)
        span.set_attribute("index.skipped", builder.skipped)

    INDEX_DOC_COUNT.labels(analyzer=analyzer_label).set(index.document_count)
    logger.info(
        "Built index with %d documents (%d skipped by selector)",
        index.document_count,
        builder.skipped,
        extra={"analyzer": config.describe(), "terms": sum(len(terms) for terms in index.postings.values())},
    )
    return index
