"""
Schema definition for the in-memory index.

Declares which document fields are analyzed, which are numeric and which are
only stored for display. Supports:
- TextField: Analyzed text fields (title, abstract, description)
- NumericField: Numeric fields used by range filters (publish_date, relevance)
- StoredField: Fields stored verbatim but not indexed

Every field value is stored for retrieval regardless of its type; ``indexed``
only controls whether a text field feeds the inverted index.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ir_workbench.search.errors import ConfigError


class FieldType(str, Enum):
    """Types of fields supported in the schema."""

    TEXT = "text"
    NUMERIC = "numeric"
    STORED = "stored"


@dataclass(frozen=True)
class SchemaField(ABC):
    """Base class for all schema fields."""

    name: str
    stored: bool = True
    indexed: bool = True

    @property
    @abstractmethod
    def field_type(self) -> FieldType:
        """Return the field type."""

    def to_dict(self) -> dict[str, Any]:
        """Serialize field definition to dict."""
        return {
            "name": self.name,
            "type": self.field_type.value,
            "stored": self.stored,
            "indexed": self.indexed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchemaField:
        """Deserialize field definition from dict."""
        try:
            field_type = FieldType(data["type"])
        except ValueError:
            msg = f"Unknown field type: {data['type']}"
            raise ConfigError(msg) from None

        if field_type == FieldType.TEXT:
            return TextField(name=data["name"], stored=data.get("stored", True), indexed=data.get("indexed", True))
        if field_type == FieldType.NUMERIC:
            return NumericField(name=data["name"], stored=data.get("stored", True), indexed=data.get("indexed", True))
        return StoredField(name=data["name"])


@dataclass(frozen=True)
class TextField(SchemaField):
    """
    Analyzed text field for full-text search.

    Text fields run through the index's analyzer pipeline; their term counts
    become the field lengths used for length normalization.
    """

    @property
    def field_type(self) -> FieldType:
        return FieldType.TEXT


@dataclass(frozen=True)
class NumericField(SchemaField):
    """
    Numeric field for range filters.

    Values are kept as numbers per document. Timestamps are epoch
    milliseconds; boolean flags are stored as 0/1.
    """

    @property
    def field_type(self) -> FieldType:
        return FieldType.NUMERIC


@dataclass(frozen=True)
class StoredField(SchemaField):
    """Stored-only field (not indexed)."""

    stored: bool = field(default=True, init=False)
    indexed: bool = field(default=False, init=False)

    @property
    def field_type(self) -> FieldType:
        return FieldType.STORED


@dataclass
class Schema:
    """
    Schema definition for an index.

    Example:
        schema = Schema(
            fields=[
                TextField("title"),
                TextField("abstract"),
                NumericField("publish_date"),
            ],
        )
    """

    fields: list[SchemaField]
    name: str = "default"

    def __post_init__(self) -> None:
        self._field_map: dict[str, SchemaField] = {}
        for schema_field in self.fields:
            if schema_field.name in self._field_map:
                msg = f"Duplicate field '{schema_field.name}' in schema '{self.name}'"
                raise ConfigError(msg)
            self._field_map[schema_field.name] = schema_field

    def __getitem__(self, name: str) -> SchemaField:
        return self._field_map[name]

    def __contains__(self, name: str) -> bool:
        return name in self._field_map

    def __iter__(self) -> Iterator[SchemaField]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    @property
    def text_fields(self) -> list[TextField]:
        """Return indexed text fields."""
        return [f for f in self.fields if isinstance(f, TextField) and f.indexed]

    @property
    def numeric_fields(self) -> list[NumericField]:
        """Return numeric fields."""
        return [f for f in self.fields if isinstance(f, NumericField)]

    def is_text(self, field_name: str) -> bool:
        schema_field = self._field_map.get(field_name)
        return isinstance(schema_field, TextField) and schema_field.indexed

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "fields": [f.to_dict() for f in self.fields],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Schema:
        fields = [SchemaField.from_dict(f) for f in data["fields"]]
        return cls(fields=fields, name=data.get("name", "default"))


def create_default_schema() -> Schema:
    """
    Create the schema for news-style article collections.

    Fields:
    - title, abstract, description: analyzed text
    - relevance: judged-relevant flag (numeric 0/1)
    - publish_date: publication time (numeric, epoch ms)
    - url: stored only
    """
    return Schema(
        name="articles",
        fields=[
            TextField("title"),
            TextField("abstract"),
            TextField("description"),
            NumericField("relevance"),
            NumericField("publish_date"),
            StoredField("url"),
        ],
    )
