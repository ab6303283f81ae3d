"""
Version segmentation of a normalized download series.

Releases are discovered in chronological order, then reordered by version
number. Each release's window runs from its first sighting up to the point
before the next chronological release boundary.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from .models import Snapshot, VersionRelease
from .time_utils import elapsed_days, round_half_up
from .versioning import sort_versions, version_key


logger = logging.getLogger(__name__)


def discover_releases(series: Sequence[Snapshot]) -> Dict[str, VersionRelease]:
    """Record the first sighting of every version, keyed in discovery order."""
    table: Dict[str, VersionRelease] = {}
    for index, snapshot in enumerate(series):
        for version in sort_versions(snapshot.version_counts):
            if version in table:
                continue
            logger.debug(
                "Found version %s at index %d (%s)",
                version, index, snapshot.timestamp.date(),
            )
            table[version] = VersionRelease(
                version=version,
                first_seen_index=index,
                released_at=snapshot.timestamp,
                release_downloads=snapshot.total_count,
            )
    logger.info("Total unique versions found: %d", len(table))
    return table


def order_releases(table: Dict[str, VersionRelease]) -> List[VersionRelease]:
    """Return the discovered releases sorted by version, oldest first."""
    return sorted(table.values(), key=lambda release: version_key(release.version))


def _next_boundary(start: int, ordered: Sequence[VersionRelease], default: int) -> int:
    later = [r.first_seen_index for r in ordered if r.first_seen_index > start]
    return min(later) if later else default


def resolve_boundaries(
    ordered: Sequence[VersionRelease], series: Sequence[Snapshot]
) -> List[VersionRelease]:
    """Compute each release's window and growth statistics.

    Args:
        ordered: Releases sorted by version
        series: The normalized series the releases were discovered in

    Returns:
        New release objects, in the same order, with all fields filled
    """
    resolved = []
    for i, release in enumerate(ordered):
        start = release.first_seen_index

        if i + 1 < len(ordered) and ordered[i + 1].first_seen_index == start:
            logger.debug(
                "Version %s is superseded by %s at index %d",
                release.version, ordered[i + 1].version, start,
            )
            resolved.append(replace(
                release,
                end_index=None,
                end_downloads=release.release_downloads,
                download_change=0,
                duration_days=0,
                avg_daily_growth=0,
            ))
            continue

        end = _next_boundary(start, ordered, default=len(series)) - 1
        end_downloads = series[end].total_count
        change = end_downloads - release.release_downloads
        duration = elapsed_days(series[start].timestamp, series[end].timestamp)

        resolved.append(replace(
            release,
            end_index=end,
            end_downloads=end_downloads,
            download_change=change,
            duration_days=duration,
            avg_daily_growth=round_half_up(change, duration),
        ))
    return resolved


def segment_versions(series: Sequence[Snapshot]) -> List[VersionRelease]:
    """Discover, order and resolve all version releases in a series."""
    table = discover_releases(series)
    ordered = order_releases(table)
    return resolve_boundaries(ordered, series)


def active_versions(
    series: Sequence[Snapshot], releases: Sequence[VersionRelease]
) -> List[Optional[str]]:
    """Label each series point with the newest version whose window contains it.

    Points before the first release are labelled None.
    """
    windows = [r for r in releases if not r.superseded]
    labels: List[Optional[str]] = []
    current: Optional[str] = None
    for index in range(len(series)):
        covering = [
            r.version for r in windows
            if r.first_seen_index <= index <= r.end_index
        ]
        if covering:
            current = max(covering, key=version_key)
        labels.append(current)
    return labels


def initial_span(releases: Sequence[VersionRelease]) -> Optional[Tuple[int, int]]:
    """Index range of the pre-release span, including the first release point."""
    if not releases:
        return None
    first = min(r.first_seen_index for r in releases)
    if first == 0:
        return None
    return 0, first
