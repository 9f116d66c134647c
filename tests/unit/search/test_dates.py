"""Unit tests for date bound conversion."""

from __future__ import annotations

import pytest

from ir_workbench.search.dates import (
    DateBoundaryMode,
    coerce_boundary_mode,
    end_of_day_millis,
    parse_day,
    start_of_day_millis,
)
from ir_workbench.search.errors import ConfigError


def test_literal_mode_covers_the_named_day(dec_millis) -> None:
    assert start_of_day_millis("2011-12-18") == dec_millis["dec18_start"]
    assert end_of_day_millis("2011-12-18") == dec_millis["dec19_start"] - 1


def test_shifted_mode_covers_the_following_day(dec_millis) -> None:
    assert start_of_day_millis("2011-12-18", "shifted") == dec_millis["dec19_start"]
    assert end_of_day_millis("2011-12-18", DateBoundaryMode.SHIFTED) == dec_millis["dec19_start"] + 86_400_000 - 1


def test_epoch_day_starts_at_zero() -> None:
    assert start_of_day_millis("1970-01-01") == 0
    assert end_of_day_millis("1970-01-01") == 86_399_999


@pytest.mark.parametrize("text", [None, "", "   ", "18/12/2011", "2011-13-01", "yesterday"])
def test_unparsable_dates_are_open_bounds(text) -> None:
    assert parse_day(text) is None
    assert start_of_day_millis(text) is None
    assert end_of_day_millis(text) is None


def test_boundary_mode_coercion() -> None:
    assert coerce_boundary_mode("LITERAL") is DateBoundaryMode.LITERAL
    with pytest.raises(ConfigError, match="date boundary mode"):
        coerce_boundary_mode("plus-one")
