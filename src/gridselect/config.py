"""Runtime settings for the gridselect viewer."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from gridselect.table import DEFAULT_PAGE_SIZE, PAGE_SIZE_OPTIONS

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

DEFAULT_PALETTE = [
    ("header", "black", "light gray"),
    ("status", "light gray", "dark gray"),
    ("cell_selected", "black", "yellow"),
    ("focus", "black", "light cyan"),
]


@dataclass
class ViewerConfig:
    csv_path: Path
    page_size: int = DEFAULT_PAGE_SIZE
    log_file: Optional[Path] = None
    log_level: str = "WARNING"
    copy_keys: tuple[str, ...] = ("c", "C", "y")
    palette: list[tuple[str, str, str]] = field(
        default_factory=lambda: list(DEFAULT_PALETTE)
    )

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "ViewerConfig":
        return cls(
            csv_path=Path(args.csv_path),
            page_size=args.page_size,
            log_file=Path(args.log_file) if args.log_file else None,
            log_level=args.log_level,
        )

    def configure_logging(self) -> None:
        """Send log records to ``log_file``; drop them when no file is set.

        The terminal belongs to the TUI, so nothing is written to stderr.
        """

        if self.log_file is None:
            logging.basicConfig(handlers=[logging.NullHandler()])
            return
        logging.basicConfig(
            filename=str(self.log_file),
            level=self.log_level,
            format=LOG_FORMAT,
        )


def _page_size(value: str) -> int:
    """argparse type restricted to the supported page sizes."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed not in PAGE_SIZE_OPTIONS:
        choices = ", ".join(str(n) for n in PAGE_SIZE_OPTIONS)
        raise argparse.ArgumentTypeError(f"page size must be one of {choices}")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gridselect",
        description="Browse a CSV file and copy rectangular cell selections.",
    )
    parser.add_argument("csv_path", help="CSV file to open")
    parser.add_argument(
        "--page-size",
        type=_page_size,
        default=DEFAULT_PAGE_SIZE,
        help="rows per page (%(default)s)",
    )
    parser.add_argument("--log-file", default=None, help="write logs to this file")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="log level for --log-file (%(default)s)",
    )
    return parser
