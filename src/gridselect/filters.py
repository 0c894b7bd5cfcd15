"""Column filters for the CSV table view."""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

import polars as pl

log = logging.getLogger(__name__)


def parse_filter(value: str) -> Optional[tuple[str, bool]]:
    """Return (pattern, is_regex) for a raw filter value, or None if it is blank.

    A leading '/' marks a regex; a lone '/' counts as a literal slash.
    """

    cleaned = value.strip()
    if not cleaned:
        return None
    if cleaned.startswith("/") and len(cleaned) > 1:
        return cleaned[1:], True
    return cleaned, False


def parse_filter_line(line: str) -> dict[str, str]:
    """Parse ``"city=scranton; name=/^j"`` into ``{"city": ..., "name": ...}``.

    Entries are separated by ';'. Entries without '=' or without a column
    name are dropped; a later entry for the same column wins.
    """

    filters: dict[str, str] = {}
    for entry in line.split(";"):
        column, sep, value = entry.partition("=")
        column = column.strip()
        if not sep or not column:
            continue
        filters[column] = value.strip()
    return filters


def format_filter_line(filters: dict[str, str]) -> str:
    """Inverse of ``parse_filter_line`` for the non-blank filters."""
    return "; ".join(f"{col}={value.strip()}" for col, value in filters.items() if value.strip())


def apply_filters_to_lazyframe(
    lazy_df: pl.LazyFrame, columns: Sequence[str], filters: dict[str, str]
) -> pl.LazyFrame:
    """
    Apply per-column filters to a LazyFrame.

    Filters starting with '/' are case-insensitive regex patterns, anything
    else is a case-insensitive literal substring. Unknown columns and
    invalid patterns are skipped.

    Args:
        lazy_df: The lazy frame to filter (string columns)
        columns: Column names present in the frame
        filters: Mapping of column name to raw filter value

    Returns:
        Filtered LazyFrame
    """
    filtered = lazy_df

    for col, raw_value in filters.items():
        parsed = parse_filter(raw_value)
        if parsed is None:
            continue
        if col not in columns:
            log.debug("Skipping filter on unknown column %r", col)
            continue

        pattern, is_regex = parsed
        if is_regex:
            try:
                re.compile(pattern, re.IGNORECASE)
            except re.error as exc:
                log.debug("Skipping invalid regex %r: %s", pattern, exc)
                continue
            filtered = filtered.filter(pl.col(col).str.contains(f"(?i){pattern}"))
        else:
            escaped_filter = re.escape(pattern.lower())
            filtered = filtered.filter(
                pl.col(col).str.to_lowercase().str.contains(escaped_filter)
            )

    return filtered
