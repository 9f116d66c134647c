"""Search engine facade.

Owns one immutable index built for one experiment preset and answers any
number of searches against it:

- search(structured_query, mode, limit) -> list[ResultRecord]
- search_text(text, field, mode, limit) -> list[ResultRecord]

Every search echoes the query as received through logging, runs inside a
``search.evaluate`` span and records latency. Query errors are logged and
counted, then re-raised; the index is never affected by a failed search.
The active preset is bound into the trace context so JSON log lines carry it.

``configure_observability(settings)`` is the startup hook that applies
``Settings.log_level`` and ``Settings.log_json`` and initializes metrics and
tracing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from typing import Any

from ir_workbench.config import Settings
from ir_workbench.observability.context import get_trace_context, set_trace_context
from ir_workbench.observability.logging import configure_logging
from ir_workbench.observability.metrics import SEARCH_ERRORS, SEARCH_LATENCY, init_metrics, track_latency
from ir_workbench.observability.tracing import create_span, init_tracing
from ir_workbench.search.collector import collect
from ir_workbench.search.errors import SearchError
from ir_workbench.search.evaluator import RankingMode, coerce_ranking_mode, evaluate
from ir_workbench.search.index import InvertedIndex, Selector, build, search_task_selector
from ir_workbench.search.models import Document, ResultRecord
from ir_workbench.search.presets import ExperimentConfig
from ir_workbench.search.query import QueryNode, StructuredQuery, to_query_string
from ir_workbench.search.query_parser import parse_query
from ir_workbench.search.schema import Schema


logger = logging.getLogger(__name__)

SERVICE_NAME = "ir-workbench"


def configure_observability(settings: Settings | None = None) -> Settings:
    """Set up logging, metrics and tracing from ``settings``.

    Applications call this once at startup; the library itself never touches
    global logging state.
    """
    resolved = settings or Settings()
    configure_logging(resolved.get_log_level(), json_output=resolved.log_json)
    init_metrics(service_name=SERVICE_NAME)
    init_tracing(service_name=SERVICE_NAME)
    return resolved


def _bind_preset(preset: ExperimentConfig) -> None:
    ctx = {**get_trace_context(), "preset": preset.name}
    set_trace_context(ctx.pop("trace_id"), ctx.pop("span_id"), **ctx)


class SearchEngine:
    """Build once, search many."""

    def __init__(self, index: InvertedIndex, preset: ExperimentConfig, *, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._index = index
        self._preset = preset

    @classmethod
    def from_documents(
        cls,
        documents: Iterable[Document | Mapping[str, Any]],
        preset: ExperimentConfig | str | None = None,
        *,
        selector: Selector | None = None,
        schema: Schema | None = None,
        settings: Settings | None = None,
    ) -> SearchEngine:
        """Build the index for ``preset`` and wrap it.

        Plain mappings are converted with ``Document.from_mapping``. Without an
        explicit selector, ``settings.selector_search_task`` (when set) keeps
        only documents of that search task.
        """
        resolved_settings = settings or Settings()
        resolved_preset = preset if isinstance(preset, ExperimentConfig) else resolved_settings.get_preset(preset)
        if selector is None and resolved_settings.selector_search_task is not None:
            selector = search_task_selector(resolved_settings.selector_search_task)
        _bind_preset(resolved_preset)

        records = (doc if isinstance(doc, Document) else Document.from_mapping(doc) for doc in documents)
        index = build(
            records,
            resolved_preset.analyzer,
            selector,
            schema=schema,
            selector_policy=resolved_settings.selector_policy,
        )
        logger.info("Search engine ready", extra={"experiment": resolved_preset.describe()})
        return cls(index, resolved_preset, settings=resolved_settings)

    @property
    def index(self) -> InvertedIndex:
        return self._index

    @property
    def preset(self) -> ExperimentConfig:
        return self._preset

    def search(
        self,
        query: StructuredQuery | Mapping[str, Any],
        *,
        mode: RankingMode | str | None = None,
        limit: int | None = None,
    ) -> list[ResultRecord]:
        """Evaluate a structured include/exclude query with optional date bounds."""

        _bind_preset(self._preset)
        structured = query if isinstance(query, StructuredQuery) else StructuredQuery.from_mapping(query)
        echo = structured.echo()
        try:
            node = structured.to_node(
                self._index.analyzer,
                date_field=self.settings.date_field,
                boundary_mode=self.settings.date_boundary_mode,
            )
        except SearchError as exc:
            self._record_failure(exc, echo)
            raise
        return self._run(node, echo=echo, mode=mode, limit=limit)

    def search_text(
        self,
        text: str,
        *,
        field: str | None = None,
        mode: RankingMode | str | None = None,
        limit: int | None = None,
    ) -> list[ResultRecord]:
        """Parse and evaluate a free-text boolean expression such as ``gesture AND user``."""

        _bind_preset(self._preset)
        target_field = field or self.settings.default_field
        echo = {"text": text, "field": target_field}
        try:
            node = parse_query(text, target_field, self._index.analyzer)
        except SearchError as exc:
            self._record_failure(exc, echo)
            raise
        return self._run(node, echo=echo, mode=mode, limit=limit)

    def _run(
        self,
        node: QueryNode,
        *,
        echo: Mapping[str, Any],
        mode: RankingMode | str | None,
        limit: int | None,
    ) -> list[ResultRecord]:
        try:
            resolved_mode = coerce_ranking_mode(mode if mode is not None else self.settings.ranking_mode)
        except SearchError as exc:
            self._record_failure(exc, echo)
            raise
        resolved_limit = limit if limit is not None else self.settings.result_limit
        scoring = self._preset.scoring
        logger.info(
            "Query: %s",
            to_query_string(node),
            extra={"query_echo": dict(echo), "preset": self._preset.name},
        )

        attributes = {"search.preset": self._preset.name, "search.scoring": scoring.value, "search.mode": resolved_mode.value}
        with create_span("search.evaluate", attributes=attributes) as span, track_latency(
            SEARCH_LATENCY, scoring=scoring.value, mode=resolved_mode.value
        ):
            try:
                matches = evaluate(
                    self._index,
                    node,
                    scoring,
                    mode=resolved_mode,
                    sort_field=self.settings.sort_field,
                    limit=resolved_limit,
                    bm25_k1=self.settings.bm25_k1,
                    bm25_b=self.settings.bm25_b,
                )
            except SearchError as exc:
                self._record_failure(exc, echo)
                raise
            records = collect(self._index, matches)
            span.set_attribute("search.result_count", len(records))

        logger.info("Search returned %d results", len(records), extra={"preset": self._preset.name})
        return records

    def _record_failure(self, exc: SearchError, echo: Mapping[str, Any]) -> None:
        SEARCH_ERRORS.labels(error_type=type(exc).__name__).inc()
        logger.warning("Search failed: %s", exc, extra={"query_echo": dict(echo)})
