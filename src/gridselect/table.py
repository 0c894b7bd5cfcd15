"""CSV-backed table provider: filtering, sorting and pagination over polars."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional

import polars as pl

from gridselect.filters import apply_filters_to_lazyframe, parse_filter

log = logging.getLogger(__name__)

PAGE_SIZE_OPTIONS = (20, 50, 100)
DEFAULT_PAGE_SIZE = PAGE_SIZE_OPTIONS[0]


class InvalidFilterError(ValueError):
    """A filter was accepted by Python's re but rejected by the polars engine."""


class TableView:
    """The currently rendered page of a CSV file.

    Any change that alters which rows sit at which page index (filters,
    sorting, paging, page size) first notifies the registered view-change
    listeners, so a selection made against the old page can be dropped.
    """

    def __init__(self, lazy_df: pl.LazyFrame, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        if page_size not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"page size must be one of {PAGE_SIZE_OPTIONS}")
        self.lazy_df = lazy_df
        self.filtered_lazy = lazy_df
        self.column_names: list[str] = lazy_df.collect_schema().names()
        self.page_size = page_size
        self.current_page = 0

        self.current_filters: dict[str, str] = {}
        self.filter_patterns: dict[str, tuple[str, bool]] = {}
        self.sorted_column: Optional[str] = None
        self.sorted_descending = False

        self.total_rows = self.lazy_df.select(pl.len()).collect().item()
        self.total_filtered_rows = self.total_rows
        self.page_cache: dict[int, pl.DataFrame] = {}
        self._listeners: list[Callable[[], None]] = []

    @classmethod
    def from_csv(cls, csv_path: str | Path, page_size: int = DEFAULT_PAGE_SIZE) -> "TableView":
        # Every column is read as text so filters can treat cells uniformly.
        lazy_df = pl.scan_csv(Path(csv_path), infer_schema_length=0)
        return cls(lazy_df, page_size=page_size)

    def column_widths(self, min_width: int = 8, max_width: int = 40) -> dict[str, int]:
        """Display width per column, from the header and the first 1000 rows."""
        sample = self.lazy_df.head(1000).select(
            [pl.col(name).str.len_chars().max() for name in self.column_names]
        ).collect()
        widths = {}
        for name in self.column_names:
            longest = max(len(name) + 2, sample[name][0] or 0)
            widths[name] = max(min_width, min(int(longest), max_width))
        return widths

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_view_change_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def _view_changing(self) -> None:
        for listener in self._listeners:
            listener()

    # ------------------------------------------------------------------
    # Paging
    # ------------------------------------------------------------------
    @property
    def page_count(self) -> int:
        return max(1, -(-self.total_filtered_rows // self.page_size))

    def page_frame(self) -> pl.DataFrame:
        if self.current_page in self.page_cache:
            return self.page_cache[self.current_page]
        offset = self.current_page * self.page_size
        page_df = self.filtered_lazy.slice(offset, self.page_size).collect().fill_null("")
        self.page_cache[self.current_page] = page_df
        return page_df

    def page_rows(self) -> list[dict[str, Any]]:
        return self.page_frame().rows(named=True)

    def page_span(self) -> tuple[int, int]:
        """Return the 1-based (first, last) record numbers shown on this page."""
        if self.total_filtered_rows == 0:
            return 0, 0
        start = self.current_page * self.page_size + 1
        end = min((self.current_page + 1) * self.page_size, self.total_filtered_rows)
        return start, end

    def go_to_page(self, page: int) -> bool:
        page = max(0, min(page, self.page_count - 1))
        if page == self.current_page:
            return False
        self._view_changing()
        self.current_page = page
        return True

    def next_page(self) -> bool:
        return self.go_to_page(self.current_page + 1)

    def prev_page(self) -> bool:
        return self.go_to_page(self.current_page - 1)

    def set_page_size(self, page_size: int) -> None:
        if page_size not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"page size must be one of {PAGE_SIZE_OPTIONS}")
        if page_size == self.page_size:
            return
        self._view_changing()
        first_row = self.current_page * self.page_size
        self.page_size = page_size
        self.current_page = first_row // page_size
        self.page_cache.clear()

    def cycle_page_size(self) -> int:
        idx = PAGE_SIZE_OPTIONS.index(self.page_size)
        self.set_page_size(PAGE_SIZE_OPTIONS[(idx + 1) % len(PAGE_SIZE_OPTIONS)])
        return self.page_size

    # ------------------------------------------------------------------
    # Filtering and sorting
    # ------------------------------------------------------------------
    def _rebuild(self) -> None:
        filtered = apply_filters_to_lazyframe(
            self.lazy_df, self.column_names, self.current_filters
        )
        if self.sorted_column:
            filtered = filtered.sort(
                self.sorted_column, descending=self.sorted_descending, nulls_last=True
            )
        total = filtered.select(pl.len()).collect().item()
        self.filtered_lazy = filtered
        self.total_filtered_rows = total
        self.page_cache.clear()
        self.current_page = 0

    def apply_filters(self, filters: dict[str, str]) -> None:
        """Replace the column filters and go back to the first page.

        Raises:
            InvalidFilterError: polars rejected one of the patterns. The
                previous filters stay in effect.
        """

        self._view_changing()
        previous = self.current_filters
        self.current_filters = dict(filters)
        try:
            self._rebuild()
        except pl.exceptions.PolarsError as exc:
            log.warning("Filter rejected by polars: %s", exc)
            self.current_filters = previous
            self._rebuild()
            raise InvalidFilterError(str(exc)) from exc

        self.filter_patterns = {}
        for col, value in self.current_filters.items():
            parsed = parse_filter(value)
            if parsed is not None:
                self.filter_patterns[col] = parsed
        log.debug("Filters %s matched %d rows", self.filter_patterns, self.total_filtered_rows)

    def reset_filters(self) -> None:
        self._view_changing()
        self.current_filters = {}
        self.filter_patterns = {}
        self.sorted_column = None
        self.sorted_descending = False
        self._rebuild()

    def sort_by(self, column: str) -> None:
        """Sort by ``column``; sorting the same column again flips the direction."""
        if column not in self.column_names:
            raise KeyError(column)
        self._view_changing()
        if self.sorted_column == column:
            self.sorted_descending = not self.sorted_descending
        else:
            self.sorted_column = column
            self.sorted_descending = False
        self._rebuild()
