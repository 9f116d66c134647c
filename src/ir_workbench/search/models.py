"""Search data models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


_RESERVED_KEYS = frozenset({"doc_id", "id", "search_task", "searchTaskNumber"})


@dataclass(frozen=True)
class Document:
    """An input record handed to the index builder.

    ``fields`` holds every field value verbatim (text and numeric). The
    optional ``search_task`` number is only read by selectors.
    """

    doc_id: int
    fields: Mapping[str, Any] = field(default_factory=dict)
    search_task: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.doc_id, bool) or not isinstance(self.doc_id, int):
            msg = f"doc_id must be an integer, got {self.doc_id!r}"
            raise TypeError(msg)
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Document:
        """Create from a loader record.

        Accepts ``doc_id`` or ``id`` for the identifier and ``search_task`` or
        ``searchTaskNumber`` for the task number; booleans in other keys are
        stored as 0/1.
        """
        raw_id = data.get("doc_id", data.get("id"))
        if raw_id is None:
            msg = "Document mapping is missing 'doc_id'"
            raise ValueError(msg)
        raw_task = data.get("search_task", data.get("searchTaskNumber"))
        fields: dict[str, Any] = {}
        for key, value in data.items():
            if key in _RESERVED_KEYS:
                continue
            fields[key] = int(value) if isinstance(value, bool) else value
        return cls(
            doc_id=int(raw_id),
            fields=fields,
            search_task=int(raw_task) if raw_task is not None else None,
        )


@dataclass(frozen=True, slots=True)
class Posting:
    """A posting represents a term occurrence count in one document."""

    doc_id: int
    frequency: int

    def to_dict(self) -> dict[str, Any]:
        return {"doc_id": self.doc_id, "frequency": self.frequency}


@dataclass(frozen=True)
class ScoredDocument:
    """A matching document and the score assigned by the evaluator."""

    doc_id: int
    score: float


@dataclass(frozen=True)
class ResultRecord:
    """A result row: stored values of one matching document."""

    doc_id: int
    score: float
    stored: Mapping[str, Any]
    relevant: bool | None = None

    @property
    def title(self) -> str | None:
        return self.stored.get("title")

    @property
    def abstract(self) -> str | None:
        return self.stored.get("abstract")

    @property
    def description(self) -> str | None:
        return self.stored.get("description")

    def to_dict(self) -> dict[str, Any]:
        return {
            "doc_id": self.doc_id,
            "score": self.score,
            "relevant": self.relevant,
            "fields": dict(self.stored),
        }
