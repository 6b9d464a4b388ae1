"""
Command-line entry point.

    lga-tracker fetch              download raw boundaries to the payload file
    lga-tracker stats              print visit progress
    lga-tracker toggle 12345       flip one region's visited state
    lga-tracker report             write Markdown + HTML progress report

`stats`, `toggle` and `report` read boundaries from the saved payload by
default (`--source file`); pass `--source overpass` to query live.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from . import config
from .errors import FetchError
from .overpass import BoundaryProvider, FileProvider, OverpassProvider, save_payload
from .persistence import SQLiteStore
from .reporting import build_html_and_pdf, generate_progress_report
from .tracker import LGATracker

LOGGER = logging.getLogger("lga_tracker.run")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lga-tracker",
        description="Track visited Australian Local Government Areas.",
    )
    parser.add_argument("--source", choices=["file", "overpass"], default="file", help="Where boundaries come from.")
    parser.add_argument("--payload", type=Path, default=config.LGA_PAYLOAD_PATH, help="Raw Overpass payload file.")
    parser.add_argument("--db", type=Path, default=config.VISITS_DB_PATH, help="SQLite file holding visits.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("fetch", help="Download boundaries from Overpass and save the raw payload.")
    subparsers.add_parser("stats", help="Print visit progress.")

    toggle_p = subparsers.add_parser("toggle", help="Toggle a region's visited state.")
    toggle_p.add_argument("region_id", type=int)

    report_p = subparsers.add_parser("report", help="Write a progress report.")
    report_p.add_argument("--out", type=Path, default=config.REPORT_OUTPUT_DIR)
    return parser


def _provider(args: argparse.Namespace) -> BoundaryProvider:
    if args.source == "overpass":
        return OverpassProvider()
    return FileProvider(args.payload)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    if args.command == "fetch":
        try:
            payload = OverpassProvider().fetch()
        except FetchError as e:
            LOGGER.error("%s", e)
            return 1
        path = save_payload(payload, args.payload)
        print(f"Wrote {path} ({len(payload['elements'])} elements)")
        return 0

    tracker = LGATracker(_provider(args), SQLiteStore(args.db))
    try:
        tracker.start()
    except FetchError as e:
        # Visits stay usable without boundaries; totals are unknown
        LOGGER.error("Boundary data unavailable: %s", e)

    if args.command == "stats":
        print(tracker.stats().label() if tracker.loaded else f"{tracker.visits.size()} visited (boundaries not loaded)")
        return 0 if tracker.loaded else 1

    if args.command == "toggle":
        if not tracker.loaded:
            return 1
        if args.region_id not in tracker.registry:
            print(f"Unknown region id: {args.region_id}", file=sys.stderr)
            return 2
        stats = tracker.handle_click(args.region_id)
        state = "visited" if tracker.visits.is_visited(args.region_id) else "not visited"
        print(f"{tracker.tooltip_for(args.region_id)}: {state}")
        print(stats.label())
        return 0

    if args.command == "report":
        md_path = generate_progress_report(tracker.registry, tracker.visits, args.out)
        print(f"Wrote Markdown report to: {md_path}")
        html_path, pdf_path = build_html_and_pdf(md_path, args.out)
        print(f"Wrote HTML report to: {html_path}")
        if pdf_path is not None and pdf_path.exists():
            print(f"Wrote PDF report to: {pdf_path}")
        else:
            print("PDF generation skipped (WeasyPrint not available).")
        return 0

    return 2


if __name__ == "__main__":
    sys.exit(main())
