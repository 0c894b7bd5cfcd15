"""Command-line entry point for the gridselect viewer."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from gridselect.config import ViewerConfig, build_parser
from gridselect.viewer import GridViewerApp


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    config = ViewerConfig.from_args(args)

    if not config.csv_path.exists():
        print(f"Error: File '{config.csv_path}' not found.", file=sys.stderr)
        raise SystemExit(1)

    config.configure_logging()
    app = GridViewerApp(config)
    app.run()


if __name__ == "__main__":
    main()
