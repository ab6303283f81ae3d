#!/usr/bin/env python3
"""
Example script showing how to use the download history tool.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

from download_history.analyzer import DownloadHistoryAnalyzer
from download_history.history import GitHistorySource
from download_history.models import Snapshot
from download_history.reporting import export_html, print_summary


def example_in_memory_series():
    """Example: Analyze a hand-built series without touching git."""
    print("="*60)
    print("Example 1: In-memory Series")
    print("="*60)

    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    totals = [100, 150, 200, 260, 300, 390]
    versions = [[], ["1.0.0"], ["1.0.0"], ["1.1.0"], ["1.1.0"], ["1.1.0", "1.1.1"]]
    series = [
        Snapshot(
            timestamp=start + timedelta(days=i),
            total_count=total,
            version_counts={v: total for v in names},
        )
        for i, (total, names) in enumerate(zip(totals, versions))
    ]

    analyzer = DownloadHistoryAnalyzer("Example Plugin", output_dir=Path("./output/example1"))
    report = analyzer.analyze(series)

    for release in report['releases']:
        print(
            f"v{release['version']}: {release['download_change']:+d} downloads "
            f"over {release['duration_days']} days ({release['avg_daily_growth']:+d}/day)"
        )
    print(f"Chart written to {export_html(report, analyzer.output_dir, analyzer.plugin_id)}")


def example_git_history():
    """Example: Extract a plugin's history from a local obsidian-releases clone."""
    print("\n" + "="*60)
    print("Example 2: Git History Extraction")
    print("="*60)

    analyzer = DownloadHistoryAnalyzer(
        "Dataview",
        input_dir=Path("./output/example2"),
        output_dir=Path("./output/example2"),
    )
    source = GitHistorySource(Path("../obsidian-releases"))

    analyzer.extract(source)
    report = analyzer.analyze()
    print_summary(report)
    print(f"Versions released: {report['summary']['versions_released']}")


if __name__ == "__main__":
    import logging
    import sys

    logging.basicConfig(level=logging.INFO)

    print("Download History - Example Usage")
    print("="*60)
    print("\nNOTE: Example 2 requires a clone of obsidian-releases next to this repository.")

    try:
        example_in_memory_series()
        example_git_history()

        print("\n" + "="*60)
        print("Examples completed successfully!")
        print("Check the ./output directory for detailed results.")
        print("="*60)

    except Exception as e:
        print(f"\nError running examples: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)
