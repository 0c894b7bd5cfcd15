"""Clipboard text format and system clipboard access for gridselect."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Any, Callable, Mapping, Optional, Sequence

import pyperclip

log = logging.getLogger(__name__)

FIELD_SEPARATOR = "\t"
LINE_SEPARATOR = "\n"

_NEEDS_QUOTING = ("\t", "\n", "\r")


class ClipboardError(Exception):
    """Raised inside the clipboard layer when the system clipboard rejects a write."""


@dataclass(frozen=True)
class CopyResult:
    """Outcome of a clipboard export.

    ``text`` is None when nothing was written (empty selection).
    """

    text: Optional[str] = None
    rows: int = 0
    columns: int = 0
    error: Optional[ClipboardError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def copied(self) -> bool:
        return self.text is not None and self.error is None


def _json_default(value: Any) -> Any:
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    return str(value)


def format_cell(value: Any) -> str:
    """Stringify one cell value for the clipboard.

    None becomes an empty string, dates and times become ISO-8601, mappings
    and sequences become compact JSON, anything else uses ``str``. Objects
    JSON cannot encode (non-scalar keys, cycles) fall back to ``str``.
    """

    if value is None:
        return ""
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        if isinstance(value, Mapping):
            value = dict(value)
        try:
            return json.dumps(
                value, separators=(",", ":"), ensure_ascii=False, default=_json_default
            )
        except (TypeError, ValueError) as exc:
            log.debug("Cell is not JSON encodable, using str(): %s", exc)
    return str(value)


def quote_field(field: str) -> str:
    """Quote a field that would otherwise break the grid shape on paste."""
    if not any(ch in field for ch in _NEEDS_QUOTING):
        return field
    return '"' + field.replace('"', '""') + '"'


def serialize_rows(rows: Sequence[Mapping[str, Any]]) -> str:
    """Render extracted rows as tab-separated text with a header line.

    Headers come from the first row's keys; every row is read with those
    keys, so a missing key serializes as an empty field.
    """

    if not rows:
        return ""
    headers = list(rows[0].keys())
    lines = [FIELD_SEPARATOR.join(quote_field(str(h)) for h in headers)]
    for row in rows:
        cells = [quote_field(format_cell(row.get(header))) for header in headers]
        lines.append(FIELD_SEPARATOR.join(cells))
    return LINE_SEPARATOR.join(lines)


def write_clipboard(text: str, copy: Optional[Callable[[str], None]] = None) -> None:
    """Put ``text`` on the system clipboard.

    Raises:
        ClipboardError: the backend or the ``copy`` hook failed, whatever
            the underlying exception.
    """

    copy = copy or pyperclip.copy
    try:
        copy(text)
    except Exception as exc:  # noqa: BLE001
        raise ClipboardError(f"Failed to copy: {exc}") from exc
