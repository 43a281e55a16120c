"""Command-line report for a captured JSON-lines file.

Usage:
    python -m procview.cli capture.jsonl
    python -m procview.cli capture.jsonl --threshold 90 --analyze
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime

from procview.analysis.requester import request_analysis
from procview.errors import MissingCredentialError
from procview.ingest.parser import parse_log_file
from procview.models import AnalysisResult, TimeRange
from procview.report.formatter import format_analysis_markdown
from procview.series.incidents import DEFAULT_THRESHOLD, detect_incidents, validate_threshold
from procview.series.stats import compute_stats
from procview.series.store import filter_samples

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)


def _threshold(value: str) -> int:
    try:
        return validate_threshold(int(value))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Summarize a process CPU capture (JSON lines).")
    parser.add_argument("logfile", help="Path to the JSONL capture file")
    parser.add_argument("--threshold", type=_threshold, default=DEFAULT_THRESHOLD, help="CPU alert threshold (1-100)")
    parser.add_argument("--start", type=datetime.fromisoformat, default=None, help="Range start (ISO 8601)")
    parser.add_argument("--end", type=datetime.fromisoformat, default=None, help="Range end (ISO 8601)")
    parser.add_argument("--analyze", action="store_true", help="Request an AI analysis of the selected range")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Print the markdown report. Returns the process exit code."""
    args = _build_parser().parse_args(argv)

    try:
        samples = parse_log_file(args.logfile)
    except OSError as e:
        print(f"Cannot read {args.logfile}: {e}", file=sys.stderr)
        return 1
    if not samples:
        print("Could not parse any valid JSON lines. Check the format.", file=sys.stderr)
        return 1

    view = filter_samples(samples, TimeRange(start=args.start, end=args.end))

    analysis: AnalysisResult | None = None
    if args.analyze:
        try:
            analysis = asyncio.run(request_analysis(view))
        except MissingCredentialError as e:
            print(f"Analysis skipped: {e}", file=sys.stderr)
            return 1

    print(format_analysis_markdown(compute_stats(view), detect_incidents(view, args.threshold), args.threshold, analysis))
    return 0


if __name__ == "__main__":
    sys.exit(main())
