"""
gridselect viewer - drag-select cells of a paginated CSV grid with urwid.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

import urwid

from gridselect.clipboard import ClipboardError, CopyResult
from gridselect.config import ViewerConfig
from gridselect.filters import format_filter_line, parse_filter_line
from gridselect.ranges import Point
from gridselect.selection import IDLE, SelectionController
from gridselect.table import InvalidFilterError, TableView

log = logging.getLogger(__name__)

MouseHandler = Callable[[str, int, Point], bool]

ARROW_KEYS = {
    "up": (-1, 0),
    "down": (1, 0),
    "left": (0, -1),
    "right": (0, 1),
}


def fit(text: str, width: int) -> str:
    """Clip ``text`` to ``width`` cells, marking the cut with an ellipsis."""
    if len(text) > width:
        return text[: width - 1] + "…"
    return text.ljust(width)


class GridRow(urwid.Columns):
    """A single-line row of cells inside the grid ListBox."""

    sizing = frozenset(["flow"])

    def rows(self, size, focus=False):  # noqa: ANN001
        return 1


class CellText(urwid.Text):
    """One rendered cell; forwards mouse events with its grid position."""

    def __init__(self, markup, point: Point, on_mouse: MouseHandler) -> None:  # noqa: ANN001
        super().__init__(markup, wrap="clip")
        self.point = point
        self._on_mouse = on_mouse

    def mouse_event(self, size, event, button, col, row, focus):  # noqa: ANN001
        return self._on_mouse(event, button, self.point)


class FilterPrompt(urwid.Edit):
    """Footer prompt for ``column=value; column=/regex`` filters."""

    def __init__(
        self,
        initial: str,
        on_submit: Callable[[str], None],
        on_cancel: Callable[[], None],
    ) -> None:
        super().__init__("filter (col=value; col=/regex): ", initial)
        self.on_submit = on_submit
        self.on_cancel = on_cancel

    def keypress(self, size, key):  # noqa: ANN001
        if key == "enter":
            self.on_submit(self.edit_text)
            return None
        if key in ("esc", "ctrl g"):
            self.on_cancel()
            return None
        return super().keypress(size, key)


class GridViewerApp:
    """Binds a paginated ``TableView`` to a ``SelectionController`` on screen.

    Mouse press, drag and release on a cell become pointer down, enter and
    up. Every view change (page, page size, filter, sort) goes through the
    table, which resets the selection before the new page is loaded.
    """

    def __init__(self, config: ViewerConfig) -> None:
        self.config = config
        self.table: Optional[TableView] = None
        self.selection = SelectionController(on_copy_error=self._on_copy_error)
        self.widths: dict[str, int] = {}
        self.cursor = Point(0, 0)

        self.walker = urwid.SimpleFocusListWalker([])
        self.status = urwid.Text("")
        self.frame = urwid.Frame(
            body=urwid.ListBox(self.walker),
            footer=urwid.AttrMap(self.status, "status"),
        )
        self.prompting = False
        self.loop: Optional[urwid.MainLoop] = None
        self.aloop: Optional[asyncio.AbstractEventLoop] = None
        self.pending_copy: Optional[asyncio.Task] = None

    def load_csv(self) -> None:
        try:
            self.table = TableView.from_csv(self.config.csv_path, self.config.page_size)
        except Exception as exc:  # noqa: BLE001
            raise SystemExit(f"Error loading CSV: {exc}") from exc
        self.table.add_view_change_listener(self.selection.reset)
        self.widths = self.table.column_widths()
        log.info(
            "Loaded %s: %d rows, %d columns",
            self.config.csv_path,
            self.table.total_rows,
            len(self.table.column_names),
        )
        self._reload_page()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def _header(self) -> urwid.Widget:
        title = urwid.AttrMap(
            urwid.Text(f"gridselect - {self.config.csv_path.name}", align="center"),
            "header",
        )
        labels = []
        for name in self.table.column_names if self.table else []:
            if self.table.sorted_column == name:
                name = f"{name} {'▼' if self.table.sorted_descending else '▲'}"
            labels.append(name)
        widths = list(self.widths.values())
        header_row = urwid.Columns(
            [(w, urwid.Text(fit(label, w), wrap="clip")) for w, label in zip(widths, labels)],
            dividechars=1,
        )
        return urwid.Pile([title, header_row, urwid.Divider("─")])

    def _highlighted(self, point: Point) -> bool:
        if self.selection.phase == IDLE:
            return point == self.cursor
        return self.selection.is_selected(point)

    def redraw(self) -> None:
        """Rebuild the visible grid from the selection's current rows."""
        self.walker.clear()
        for row_idx, row in enumerate(self.selection.rows):
            cells = []
            for col_idx, (name, width) in enumerate(self.widths.items()):
                point = Point(row_idx, col_idx)
                text = fit(str(row.get(name) or ""), width)
                markup = [("cell_selected", text)] if self._highlighted(point) else text
                cells.append((width, CellText(markup, point, self.handle_cell_mouse)))
            self.walker.append(GridRow(cells, dividechars=1))
        if self.walker:
            self.walker.set_focus(min(self.cursor.row, len(self.walker) - 1))
        self.frame.header = self._header()
        self._update_status()

    def _reload_page(self) -> None:
        if self.table is None:
            return
        self.selection.set_rows(self.table.page_rows())
        self.cursor = Point(0, min(self.cursor.column, len(self.widths) - 1) if self.widths else 0)
        self.redraw()

    # ------------------------------------------------------------------
    # Mouse
    # ------------------------------------------------------------------
    def handle_cell_mouse(self, event: str, button: int, point: Point) -> bool:
        if self.prompting:
            return False
        if event == "mouse press" and button == 1:
            self.cursor = point
            self.selection.on_pointer_down(point)
        elif event == "mouse drag" and self.selection.is_dragging:
            self.selection.on_pointer_enter(point)
        elif event == "mouse release":
            self.selection.on_pointer_up()
        else:
            return False
        self.redraw()
        return True

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------
    def handle_input(self, key) -> None:  # noqa: ANN001
        if self.prompting:
            return
        if isinstance(key, tuple):
            # Release outside any cell still ends the drag.
            if key[0] == "mouse release" and self.selection.is_dragging:
                self.selection.on_pointer_up()
                self.redraw()
            return
        if key in ("q", "Q"):
            raise urwid.ExitMainLoop()
        if key in self.config.copy_keys:
            self.copy_selection()
            return

        shift, _, arrow = key.rpartition(" ")
        if arrow in ARROW_KEYS and shift in ("", "shift"):
            self.move_cursor(ARROW_KEYS[arrow], extend=bool(shift))
            return

        if key == "esc":
            self.selection.reset()
            self.redraw()
            return

        table = self.table
        message = None
        if table is None:
            return
        if key in ("ctrl d", "page down"):
            table.next_page()
        elif key in ("ctrl u", "page up"):
            table.prev_page()
        elif key == "p":
            message = f"{table.cycle_page_size()} rows per page"
        elif key == "s" and table.column_names:
            column = table.column_names[self.cursor.column]
            table.sort_by(column)
            direction = "descending" if table.sorted_descending else "ascending"
            message = f"Sorted by {column} ({direction})"
        elif key in ("r", "R"):
            table.reset_filters()
            message = "Filters cleared"
        elif key == "/":
            self.open_filter_prompt()
            return
        else:
            return
        self._reload_page()
        if message:
            self.notify(message)

    def move_cursor(self, delta: tuple[int, int], extend: bool = False) -> None:
        rows, cols = len(self.selection.rows), len(self.widths)
        if rows == 0 or cols == 0:
            return
        if extend and self.selection.phase == IDLE:
            self.selection.on_click_without_drag(self.cursor)
        self.cursor = Point(
            max(0, min(rows - 1, self.cursor.row + delta[0])),
            max(0, min(cols - 1, self.cursor.column + delta[1])),
        )
        if extend:
            self.selection.extend(self.cursor)
        else:
            self.selection.on_click_without_drag(self.cursor)
        self.redraw()

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------
    def open_filter_prompt(self) -> None:
        if self.table is None:
            return
        prompt = FilterPrompt(
            format_filter_line(self.table.current_filters),
            self._submit_filters,
            self._close_prompt,
        )
        self.frame.footer = urwid.AttrMap(prompt, "focus")
        self.frame.focus_position = "footer"
        self.prompting = True

    def _close_prompt(self) -> None:
        self.frame.footer = urwid.AttrMap(self.status, "status")
        self.frame.focus_position = "body"
        self.prompting = False

    def _submit_filters(self, line: str) -> None:
        self._close_prompt()
        self.apply_filters(parse_filter_line(line))

    def apply_filters(self, filters: dict[str, str]) -> None:
        if self.table is None:
            return
        try:
            self.table.apply_filters(filters)
        except InvalidFilterError as exc:
            self._reload_page()
            self.notify(f"Invalid filter: {exc}")
            return
        self._reload_page()

    # ------------------------------------------------------------------
    # Clipboard
    # ------------------------------------------------------------------
    def copy_selection(self) -> None:
        """Export the selection without blocking the UI loop.

        With a running asyncio loop the write becomes a task whose result is
        reported when it finishes; without one it completes before returning.
        """

        pending = self.selection.export_to_clipboard_async()
        if self.aloop is None:
            self._copy_finished(asyncio.run(pending))
            return
        self.pending_copy = self.aloop.create_task(pending)
        self.pending_copy.add_done_callback(self._copy_task_done)

    def _copy_task_done(self, task: asyncio.Task) -> None:
        if not task.cancelled():
            self._copy_finished(task.result())

    def _copy_finished(self, result: CopyResult) -> None:
        if result.text is None:
            self.notify("Nothing selected")
        elif result.ok:
            self.notify(f"Copied {result.rows}x{result.columns}")
        if self.loop is not None:
            self.loop.draw_screen()

    def _on_copy_error(self, exc: ClipboardError) -> None:
        self.notify(str(exc))

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------
    def notify(self, message: str, duration: float = 2.0) -> None:
        self.status.set_text(message)
        if self.loop:
            self.loop.set_alarm_in(duration, lambda *_: self._update_status())

    def status_text(self) -> str:
        if self.table is None:
            return ""
        parts = []
        if self.selection.phase != IDLE:
            rows, cols = self.selection.dimensions()
            parts.append(f"SELECT {rows}x{cols}")
        start, end = self.table.page_span()
        parts.append(
            f"Page {self.table.current_page + 1}/{self.table.page_count} "
            f"({start:,}-{end:,} of {self.table.total_filtered_rows:,})"
        )
        parts.append(f"{self.table.page_size} per page")
        if self.table.filter_patterns:
            parts.append("filtered: " + ", ".join(self.table.filter_patterns))
        return " | ".join(parts)

    def _update_status(self) -> None:
        self.status.set_text(self.status_text())

    # ------------------------------------------------------------------
    # Main entry
    # ------------------------------------------------------------------
    def run(self) -> None:
        self.load_csv()
        self.aloop = asyncio.new_event_loop()
        self.loop = urwid.MainLoop(
            self.frame,
            palette=self.config.palette,
            unhandled_input=self.handle_input,
            handle_mouse=True,
            event_loop=urwid.AsyncioEventLoop(loop=self.aloop),
        )
        try:
            self.loop.run()
        finally:
            self.aloop.close()
