"""Centralized configuration for ir-workbench using Pydantic Settings."""

from __future__ import annotations

import logging

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ir_workbench.search.dates import DateBoundaryMode, coerce_boundary_mode
from ir_workbench.search.evaluator import RankingMode, coerce_ranking_mode
from ir_workbench.search.index import SelectorPolicy
from ir_workbench.search.presets import DEFAULT_PRESET, ExperimentConfig, get_preset


_LOG_LEVELS = frozenset({"debug", "info", "warning", "error", "critical"})


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``IR_WORKBENCH_*`` environment variables.

    Values are validated when the object is created, so a bad preset name or
    enum value fails before any index is built.
    """

    model_config = SettingsConfigDict(
        env_prefix="IR_WORKBENCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Experiment selection
    default_preset: str = Field(default=DEFAULT_PRESET, description="Preset used when none is given explicitly")
    ranking_mode: RankingMode = Field(default=RankingMode.RANKED, description="ranked or alphabetical ordering")
    sort_field: str = Field(default="title", description="Stored field used by alphabetical ordering")
    default_field: str = Field(default="abstract", description="Field searched by free-text queries")
    result_limit: int | None = Field(default=None, ge=0, description="Maximum results per search (None = all)")

    # Range filters
    date_field: str = Field(default="publish_date", description="Numeric field targeted by date bounds")
    date_boundary_mode: DateBoundaryMode = Field(
        default=DateBoundaryMode.LITERAL,
        description="literal uses the named day; shifted advances it by one day like older runs",
    )

    # BM25 parameters
    bm25_k1: float = Field(default=1.2, gt=0.0, description="BM25 term-frequency saturation")
    bm25_b: float = Field(default=0.75, ge=0.0, le=1.0, description="BM25 length normalization")

    # Index build
    selector_policy: SelectorPolicy = Field(
        default=SelectorPolicy.SKIP, description="skip or strict handling of rejected documents"
    )
    selector_search_task: int | None = Field(
        default=None, description="Only index documents tagged with this search task number"
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @field_validator("ranking_mode", mode="before")
    @classmethod
    def _coerce_ranking_mode(cls, value: object) -> RankingMode:
        return coerce_ranking_mode(value)  # type: ignore[arg-type]

    @field_validator("date_boundary_mode", mode="before")
    @classmethod
    def _coerce_boundary_mode(cls, value: object) -> DateBoundaryMode:
        return coerce_boundary_mode(value)  # type: ignore[arg-type]

    @field_validator("selector_policy", mode="before")
    @classmethod
    def _coerce_selector_policy(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level '{value}'. Available: {sorted(_LOG_LEVELS)}")
        return normalized

    @model_validator(mode="after")
    def _check_preset(self) -> Settings:
        # Raises ConfigError (a ValueError) for unknown names
        get_preset(self.default_preset)
        return self

    def get_preset(self, name: str | None = None) -> ExperimentConfig:
        """Resolve ``name`` or the configured default preset."""
        return get_preset(name or self.default_preset)

    def get_log_level(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)
