"""
Report assembly and export utilities.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import Snapshot, VersionRelease
from .segmentation import initial_span
from .time_utils import to_iso


logger = logging.getLogger(__name__)

INITIAL_LABEL = "Initial"

PALETTE = (
    "#0066cc",  # blue
    "#cc0000",  # red
    "#009900",  # green
    "#9900cc",  # purple
    "#ff9900",  # orange
    "#00cccc",  # teal
    "#cc0099",  # pink
    "#666600",  # olive
    "#ff0099",  # magenta
    "#006666",  # dark cyan
)

RELEASE_COLUMNS = [
    "version",
    "released_at",
    "release_downloads",
    "end_downloads",
    "download_change",
    "duration_days",
    "avg_daily_growth",
    "superseded",
]


def color_for(rank: int) -> str:
    """Palette color for a rank, cycling when ranks exceed the palette."""
    return PALETTE[rank % len(PALETTE)]


def assign_colors(releases: Sequence[VersionRelease], has_initial: bool) -> Dict[str, str]:
    """Map the Initial span (rank 0, when present) and each version to a color."""
    colors = {}
    offset = 0
    if has_initial:
        colors[INITIAL_LABEL] = color_for(0)
        offset = 1
    for rank, release in enumerate(releases):
        colors[release.version] = color_for(rank + offset)
    return colors


def build_segments(
    series_length: int,
    releases: Sequence[VersionRelease],
    colors: Mapping[str, str],
    span: Optional[Tuple[int, int]],
) -> List[Dict]:
    """Chart segments per version, each extended by one point to join the next."""
    segments = []
    if span is not None:
        segments.append({
            "label": INITIAL_LABEL,
            "color": colors[INITIAL_LABEL],
            "start": span[0],
            "end": span[1],
        })
    for release in releases:
        if release.superseded:
            continue
        end = release.end_index
        if end + 1 < series_length:
            end += 1
        segments.append({
            "label": f"v{release.version}",
            "color": colors[release.version],
            "start": release.first_seen_index,
            "end": end,
        })
    return segments


def release_to_dict(release: VersionRelease) -> Dict:
    data = asdict(release)
    data["released_at"] = to_iso(release.released_at)
    data["superseded"] = release.superseded
    return data


def build_report(
    plugin_name: str,
    plugin_id: str,
    series: Sequence[Snapshot],
    releases: Sequence[VersionRelease],
    active: Sequence[Optional[str]],
    rolling: Mapping[int, Sequence[Tuple[str, int]]],
) -> Dict:
    """Assemble everything the visual report needs into a JSON-ready dict.

    An empty series produces a report with ``empty`` set and empty lists.
    """
    span = initial_span(releases)
    colors = assign_colors(releases, has_initial=span is not None)
    dates = [to_iso(s.timestamp) for s in series]

    summary = {
        "data_points": len(series),
        "versions_released": len(releases),
        "latest_downloads": series[-1].total_count if series else 0,
        "first_date": dates[0] if dates else None,
        "last_date": dates[-1] if dates else None,
    }

    return {
        "plugin": plugin_name,
        "plugin_id": plugin_id,
        "empty": not series,
        "summary": summary,
        "dates": dates,
        "downloads": [s.total_count for s in series],
        "daily_growth": [[d, s.daily_growth or 0] for d, s in zip(dates, series)],
        "active_versions": list(active),
        "releases": [release_to_dict(r) for r in releases],
        "rolling_averages": {
            str(window): [[x, y] for x, y in points]
            for window, points in rolling.items()
        },
        "colors": colors,
        "initial_span": list(span) if span else None,
        "segments": build_segments(len(series), releases, colors, span),
    }


def print_summary(report: Dict) -> None:
    summary = report["summary"]
    logger.info("=" * 60)
    logger.info("DOWNLOAD HISTORY: %s", report["plugin"])
    logger.info("=" * 60)
    if report["empty"]:
        logger.info("No data points available")
        logger.info("=" * 60)
        return
    logger.info("Data points: %s", summary["data_points"])
    logger.info("Period: %s to %s", summary["first_date"], summary["last_date"])
    logger.info("Latest downloads: %s", summary["latest_downloads"])
    logger.info("Versions released: %s", summary["versions_released"])
    logger.info("-" * 60)
    for release in report["releases"]:
        logger.info(
            "v%-14s %+10d over %4d days (%+d/day)",
            release["version"],
            release["download_change"],
            release["duration_days"],
            release["avg_daily_growth"],
        )
    logger.info("=" * 60)


def save_report_json(report: Dict, output_dir: Path, plugin_id: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    report_file = output_dir / f"{plugin_id}-report.json"
    with open(report_file, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=2)
    return report_file


def export_releases_csv(report: Dict, output_dir: Path, plugin_id: str) -> Path | None:
    if not report["releases"]:
        return None
    output_dir.mkdir(parents=True, exist_ok=True)
    csv_file = output_dir / f"{plugin_id}-releases.csv"
    df = pd.DataFrame(report["releases"])
    df.to_csv(csv_file, index=False, columns=RELEASE_COLUMNS)
    return csv_file


def _template_env() -> Environment:
    templates_path = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(enabled_extensions=("html", "xml", "j2")),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_html(report: Dict) -> str:
    template = _template_env().get_template("report.html.j2")
    return template.render(report=report, summary=report["summary"])


def export_html(report: Dict, output_dir: Path, plugin_id: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    html_file = output_dir / f"{plugin_id}-downloads-chart.html"
    with open(html_file, 'w', encoding='utf-8') as f:
        f.write(render_html(report))
    return html_file
