"""Cell coordinates and rectangle normalization for gridselect."""

from __future__ import annotations

from typing import NamedTuple


class Point(NamedTuple):
    """A rendered cell, relative to the rows and columns currently on screen."""

    row: int
    column: int


class Rectangle(NamedTuple):
    """Inclusive (row_start, row_end, col_start, col_end) bounds."""

    row_start: int
    row_end: int
    col_start: int
    col_end: int

    def contains(self, point: Point) -> bool:
        row, column = point
        return (
            self.row_start <= row <= self.row_end
            and self.col_start <= column <= self.col_end
        )

    def dimensions(self) -> tuple[int, int]:
        return self.row_end - self.row_start + 1, self.col_end - self.col_start + 1


def normalize(start: Point, end: Point) -> Rectangle:
    """Return the rectangle spanned by two corners, in any drag direction.

    Equal corners give a single cell.
    """

    return Rectangle(
        row_start=min(start.row, end.row),
        row_end=max(start.row, end.row),
        col_start=min(start.column, end.column),
        col_end=max(start.column, end.column),
    )
