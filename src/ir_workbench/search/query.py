"""Structured query model.

Query trees are immutable and built functionally:

* ``TermMatch(field, term)`` - documents whose field contains a normalized term.
* ``BooleanGroup(occurrence, children)`` - MUST / MUST_NOT / SHOULD grouping.
* ``RangeFilter(field, low, high)`` - numeric restriction, always required.

``build_field_query`` turns per-field include/exclude word lists into a node;
``build_query`` conjoins the non-neutral nodes with an optional range filter.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from ir_workbench.search.analyzers import AnalyzerConfig, analyze
from ir_workbench.search.dates import DateBoundaryMode, end_of_day_millis, start_of_day_millis


class Occurrence(str, Enum):
    MUST = "must"
    MUST_NOT = "must_not"
    SHOULD = "should"


@dataclass(frozen=True)
class TermMatch:
    field: str
    term: str


@dataclass(frozen=True)
class RangeFilter:
    """Numeric range restriction; a missing bound leaves that side open."""

    field: str
    low: float | int | None = None
    high: float | int | None = None
    inclusive_low: bool = True
    inclusive_high: bool = True

    def matches(self, value: float | int | None) -> bool:
        if value is None:
            return False
        if self.low is not None:
            if value < self.low or (value == self.low and not self.inclusive_low):
                return False
        if self.high is not None:
            if value > self.high or (value == self.high and not self.inclusive_high):
                return False
        return True


@dataclass(frozen=True)
class BooleanGroup:
    occurrence: Occurrence
    children: tuple[QueryNode, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "occurrence", Occurrence(self.occurrence))
        object.__setattr__(self, "children", tuple(self.children))


QueryNode = Union[TermMatch, BooleanGroup, RangeFilter]


def _as_words(words: Iterable[str] | str | None) -> tuple[str, ...]:
    """A bare string is one word, not a sequence of characters."""
    if words is None:
        return ()
    if isinstance(words, str):
        return (words,)
    return tuple(words)


def _normalize_terms(words: Iterable[str] | None, config: AnalyzerConfig | None) -> list[str]:
    """Run caller words through the index analyzer so both sides agree.

    Stop words vanish; multi-token words contribute every token.
    """
    terms: list[str] = []
    seen: set[str] = set()
    for word in _as_words(words):
        if word is None:
            continue
        tokens = analyze(str(word), config) if config is not None else [str(word).strip().lower()]
        for token in tokens:
            if token and token not in seen:
                seen.add(token)
                terms.append(token)
    return terms


def build_field_query(
    field_name: str,
    must_include: Sequence[str] | None = None,
    must_exclude: Sequence[str] | None = None,
    *,
    config: AnalyzerConfig | None = None,
) -> BooleanGroup | None:
    """Build the node for one field.

    Every include term is required; a document is excluded when any exclude
    term is present. Returns None when neither list yields a term.
    """
    include_terms = _normalize_terms(must_include, config)
    exclude_terms = _normalize_terms(must_exclude, config)

    include_group = (
        BooleanGroup(Occurrence.MUST, [TermMatch(field_name, term) for term in include_terms]) if include_terms else None
    )
    exclude_group = (
        BooleanGroup(
            Occurrence.MUST_NOT,
            [BooleanGroup(Occurrence.SHOULD, [TermMatch(field_name, term) for term in exclude_terms])],
        )
        if exclude_terms
        else None
    )

    if include_group and exclude_group:
        return BooleanGroup(Occurrence.MUST, [include_group, exclude_group])
    return include_group or exclude_group


def build_query(
    field_queries: Iterable[QueryNode | None],
    range_filter: RangeFilter | None = None,
) -> BooleanGroup:
    """Conjoin field sub-queries and an optional range filter."""

    children: list[QueryNode] = [node for node in field_queries if node is not None]
    if range_filter is not None:
        children.append(range_filter)
    return BooleanGroup(Occurrence.MUST, children)


def date_range_filter(
    field_name: str,
    start: str | None,
    end: str | None,
    *,
    mode: DateBoundaryMode | str = DateBoundaryMode.LITERAL,
) -> RangeFilter | None:
    """Inclusive day-granular range filter, or None when both bounds are absent."""

    low = start_of_day_millis(start, mode)
    high = end_of_day_millis(end, mode)
    if low is None and high is None:
        return None
    return RangeFilter(field_name, low=low, high=high)


@dataclass(frozen=True)
class FieldClause:
    field: str
    must_include: tuple[str, ...] = ()
    must_exclude: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "must_include", _as_words(self.must_include))
        object.__setattr__(self, "must_exclude", _as_words(self.must_exclude))


@dataclass(frozen=True)
class StructuredQuery:
    """Caller-facing query: per-field word lists plus optional date bounds."""

    clauses: tuple[FieldClause, ...] = field(default_factory=tuple)
    start_date: str | None = None
    end_date: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "clauses", tuple(self.clauses))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> StructuredQuery:
        """Create from ``{"title": {"include": [...], "exclude": [...]}, "start_date": ...}``."""

        clauses = []
        for key, value in data.items():
            if key in ("start_date", "end_date") or not isinstance(value, Mapping):
                continue
            clauses.append(
                FieldClause(
                    key,
                    must_include=_as_words(value.get("include") or value.get("must_include")),
                    must_exclude=_as_words(value.get("exclude") or value.get("must_exclude")),
                )
            )
        return cls(clauses=tuple(clauses), start_date=data.get("start_date"), end_date=data.get("end_date"))

    def echo(self) -> dict[str, Any]:
        """Diagnostic view of the query exactly as received."""

        return {
            "fields": {
                clause.field: {
                    "must_include": list(clause.must_include),
                    "must_exclude": list(clause.must_exclude),
                }
                for clause in self.clauses
            },
            "start_date": self.start_date,
            "end_date": self.end_date,
        }

    def to_node(
        self,
        config: AnalyzerConfig | None,
        *,
        date_field: str = "publish_date",
        boundary_mode: DateBoundaryMode | str = DateBoundaryMode.LITERAL,
    ) -> BooleanGroup:
        field_queries = [
            build_field_query(clause.field, clause.must_include, clause.must_exclude, config=config)
            for clause in self.clauses
        ]
        range_filter = date_range_filter(date_field, self.start_date, self.end_date, mode=boundary_mode)
        return build_query(field_queries, range_filter)


_PREFIX = {Occurrence.MUST: "+", Occurrence.MUST_NOT: "-", Occurrence.SHOULD: ""}


def to_query_string(node: QueryNode) -> str:
    """Render a node in Lucene-like syntax for logs."""

    if isinstance(node, TermMatch):
        return f"{node.field}:{node.term}"
    if isinstance(node, RangeFilter):
        low = "*" if node.low is None else node.low
        high = "*" if node.high is None else node.high
        left = "[" if node.inclusive_low else "{"
        right = "]" if node.inclusive_high else "}"
        return f"{node.field}:{left}{low} TO {high}{right}"
    parts = []
    for child in node.children:
        if isinstance(child, BooleanGroup):
            parts.append(f"{_PREFIX[child.occurrence]}({to_query_string(child)})")
        elif isinstance(child, RangeFilter):
            parts.append(f"+{to_query_string(child)}")
        else:
            leaf_prefix = "+" if node.occurrence is Occurrence.MUST else ""
            parts.append(f"{leaf_prefix}{to_query_string(child)}")
    return " ".join(parts)
