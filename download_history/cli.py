"""
Command-line interface for the download history tool.
"""

import argparse
import logging
import sys
from pathlib import Path

from .analyzer import DownloadHistoryAnalyzer
from .exceptions import DownloadHistoryError
from .history import DEFAULT_DATA_FILE, GitHistorySource
from .reporting import export_html, export_releases_csv, print_summary, save_report_json


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reconstruct a plugin's download history and per-release statistics"
    )

    parser.add_argument(
        "plugin",
        help="Plugin name, e.g. \"My Plugin\" (its id is derived by lower-casing and hyphenating)"
    )

    parser.add_argument(
        "--extract",
        action="store_true",
        help="Rebuild the history file from the git history of the stats file first"
    )

    parser.add_argument(
        "--repo",
        default=".",
        help="Path to the git repository holding the stats file. Default: ."
    )

    parser.add_argument(
        "--data-file",
        default=DEFAULT_DATA_FILE,
        help=f"Stats file path inside the repository. Default: {DEFAULT_DATA_FILE}"
    )

    parser.add_argument(
        "--input-dir",
        default=".",
        help="Directory holding <plugin-id>-history.json. Default: ."
    )

    parser.add_argument(
        "--output-dir",
        default="./output",
        help="Output directory for reports. Default: ./output"
    )

    parser.add_argument(
        "--csv",
        action="store_true",
        help="Also export the release table as CSV"
    )

    parser.add_argument(
        "--no-html",
        action="store_true",
        help="Skip rendering the HTML report"
    )

    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Hide the progress bar while reading revisions"
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. Default: INFO"
    )
    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    analyzer = DownloadHistoryAnalyzer(
        plugin_name=args.plugin,
        input_dir=Path(args.input_dir),
        output_dir=Path(args.output_dir),
    )

    try:
        if args.extract:
            source = GitHistorySource(
                Path(args.repo),
                data_file=args.data_file,
                show_progress=not args.no_progress,
            )
            history_file = analyzer.extract(source)
            print(f"History saved to: {history_file}")

        report = analyzer.analyze()
    except DownloadHistoryError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print_summary(report)

    output_dir = analyzer.output_dir
    report_file = save_report_json(report, output_dir, analyzer.plugin_id)
    print(f"Report data saved to: {report_file}")

    if args.csv:
        csv_file = export_releases_csv(report, output_dir, analyzer.plugin_id)
        if csv_file is not None:
            print(f"Release table saved to: {csv_file}")

    if not args.no_html:
        html_file = export_html(report, output_dir, analyzer.plugin_id)
        print(f"Chart saved to: {html_file}")


if __name__ == "__main__":
    main()
