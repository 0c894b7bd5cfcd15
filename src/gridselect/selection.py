"""Drag selection state machine for gridselect."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

import polars as pl

from gridselect.clipboard import ClipboardError, CopyResult, serialize_rows, write_clipboard
from gridselect.ranges import Point, Rectangle, normalize

log = logging.getLogger(__name__)

IDLE = "idle"
DRAGGING = "dragging"
HELD = "held"

Row = Mapping[str, Any]
ExtractedRow = dict[str, Any]
RowSource = Union[Sequence[Row], pl.DataFrame]


@dataclass(frozen=True)
class SelectionState:
    dragging: bool = False
    anchor: Optional[Point] = None
    cursor: Optional[Point] = None


def as_rows(source: RowSource) -> Sequence[Row]:
    """Accept a polars DataFrame or any sequence of row mappings."""
    if isinstance(source, pl.DataFrame):
        return source.rows(named=True)
    return source


def extract_rows(rows: Sequence[Row], bounds: Rectangle) -> list[ExtractedRow]:
    """Slice ``rows`` to the rectangle.

    Columns are picked by position in each row's key order. Coordinates
    outside the data shrink the result instead of failing.
    """

    row_start = max(bounds.row_start, 0)
    col_start = max(bounds.col_start, 0)
    if bounds.row_end < row_start or bounds.col_end < col_start:
        return []

    extracted = []
    for row in rows[row_start : bounds.row_end + 1]:
        keys = list(row.keys())[col_start : bounds.col_end + 1]
        extracted.append({key: row[key] for key in keys})
    return extracted


class SelectionController:
    """Tracks a rectangular cell selection driven by pointer events.

    The controller goes idle -> dragging on pointer down, follows the
    pointer while dragging, and holds the selection once the pointer is
    released. Extracted data is recomputed with every change so that it
    always matches the highlighted rectangle.

    The caller must ``reset()`` (or ``set_rows()``) before the row sequence
    changes shape, e.g. on page navigation.
    """

    def __init__(
        self,
        rows: RowSource = (),
        *,
        copy: Optional[Callable[[str], None]] = None,
        on_change: Optional[Callable[["SelectionController"], None]] = None,
        on_copy_error: Optional[Callable[[ClipboardError], None]] = None,
    ) -> None:
        self._rows = as_rows(rows)
        self._copy = copy
        self.on_change = on_change
        self.on_copy_error = on_copy_error

        self._dragging = False
        self._anchor: Optional[Point] = None
        self._cursor: Optional[Point] = None
        self._data: list[ExtractedRow] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def rows(self) -> Sequence[Row]:
        return self._rows

    @property
    def state(self) -> SelectionState:
        return SelectionState(self._dragging, self._anchor, self._cursor)

    @property
    def phase(self) -> str:
        if self._anchor is None:
            return IDLE
        return DRAGGING if self._dragging else HELD

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    def bounds(self) -> Optional[Rectangle]:
        if self._anchor is None or self._cursor is None:
            return None
        return normalize(self._anchor, self._cursor)

    def dimensions(self) -> tuple[int, int]:
        bounds = self.bounds()
        if bounds is None:
            return 0, 0
        return bounds.dimensions()

    def _commit(
        self, dragging: bool, anchor: Optional[Point], cursor: Optional[Point]
    ) -> None:
        if anchor is None or cursor is None:
            data: list[ExtractedRow] = []
        else:
            data = extract_rows(self._rows, normalize(anchor, cursor))
        self._dragging = dragging
        self._anchor = anchor
        self._cursor = cursor
        self._data = data
        log.debug("Selection %s: %r", self.phase, self)
        if self.on_change is not None:
            self.on_change(self)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def on_pointer_down(self, point: Point) -> None:
        point = Point(*point)
        self._commit(True, point, point)

    def on_pointer_enter(self, point: Point) -> None:
        if not self._dragging or self._anchor is None:
            return
        self._commit(True, self._anchor, Point(*point))

    def on_pointer_up(self) -> None:
        if not self._dragging:
            return
        self._dragging = False
        log.debug("Selection %s: %r", self.phase, self)
        if self.on_change is not None:
            self.on_change(self)

    def on_click_without_drag(self, point: Point) -> None:
        """Select a single cell from a plain click, skipping the drag phase."""
        if self._dragging:
            return
        point = Point(*point)
        self._commit(False, point, point)

    def extend(self, point: Point) -> None:
        """Move the cursor corner to ``point`` keeping the anchor (shift+arrow)."""
        point = Point(*point)
        if self._anchor is None:
            self._commit(False, point, point)
            return
        self._commit(self._dragging, self._anchor, point)

    def reset(self) -> None:
        if self._anchor is None and not self._data and not self._dragging:
            return
        self._commit(False, None, None)

    def set_rows(self, rows: RowSource) -> None:
        """Swap the row source and drop the selection that referred to it."""
        self._rows = as_rows(rows)
        self._commit(False, None, None)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def is_selected(self, point: Point) -> bool:
        bounds = self.bounds()
        if bounds is None:
            return False
        return bounds.contains(Point(*point))

    def get_selected_data(self) -> list[ExtractedRow]:
        return [dict(row) for row in self._data]

    # ------------------------------------------------------------------
    # Clipboard
    # ------------------------------------------------------------------
    def _copy_failed(self, exc: ClipboardError) -> None:
        log.warning("%s", exc)
        if self.on_copy_error is not None:
            self.on_copy_error(exc)

    def export_to_clipboard(self) -> CopyResult:
        """Copy the selection as tab-separated text.

        Does nothing for an empty selection. A clipboard failure is logged,
        passed to ``on_copy_error`` and returned in the result.
        """

        data = self._data
        if not data:
            return CopyResult()
        text = serialize_rows(data)
        rows, columns = len(data), len(data[0])
        try:
            write_clipboard(text, self._copy)
        except ClipboardError as exc:
            self._copy_failed(exc)
            return CopyResult(text=text, rows=rows, columns=columns, error=exc)
        log.debug("Copied %dx%d selection to clipboard", rows, columns)
        return CopyResult(text=text, rows=rows, columns=columns)

    def export_to_clipboard_async(self) -> Awaitable[CopyResult]:
        """Like ``export_to_clipboard`` but runs the write in a worker thread.

        The text is captured when this is called, so events handled while
        the write is pending do not change what gets written.
        """

        data = self._data
        if not data:
            return self._write_async(None, 0, 0)
        return self._write_async(serialize_rows(data), len(data), len(data[0]))

    async def _write_async(self, text: Optional[str], rows: int, columns: int) -> CopyResult:
        if text is None:
            return CopyResult()
        try:
            await asyncio.to_thread(write_clipboard, text, self._copy)
        except ClipboardError as exc:
            self._copy_failed(exc)
            return CopyResult(text=text, rows=rows, columns=columns, error=exc)
        log.debug("Copied %dx%d selection to clipboard", rows, columns)
        return CopyResult(text=text, rows=rows, columns=columns)

    def __repr__(self):
        return f"{self._anchor} -> {self._cursor}"
