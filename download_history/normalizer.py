"""
Series normalization: raw history mapping to an ordered, growth-annotated series.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from .exceptions import InvalidHistoryFile
from .models import Snapshot
from .time_utils import ensure_utc, from_millis


logger = logging.getLogger(__name__)

RESERVED_KEYS = frozenset({"downloads", "updated", "dailyGrowth"})


def as_count(value) -> Optional[int]:
    """Coerce a JSON value to an integer count, or None if it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def extract_version_counts(record: Mapping) -> Dict[str, int]:
    """Per-version cumulative counts: every non-reserved key with a numeric value."""
    counts = {}
    for key, value in record.items():
        if key in RESERVED_KEYS:
            continue
        count = as_count(value)
        if count is None:
            logger.debug("Ignoring non-numeric version entry %s=%r", key, value)
            continue
        counts[key] = count
    return counts


def parse_history(history: Mapping[str, Mapping]) -> List[Snapshot]:
    """Build snapshots from a ``{millis: record}`` history mapping.

    Records may be wrapped as ``{"data": record}``. Entries that are not
    records or lack a numeric ``downloads`` are skipped. A missing
    ``dailyGrowth`` is left for ``normalize_series``.
    The result is in mapping order; call ``normalize_series`` to sort it.
    """
    snapshots = []
    for key, entry in history.items():
        try:
            timestamp = from_millis(key)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidHistoryFile(f"Invalid millisecond timestamp key: {key!r}") from e

        record = entry.get("data", entry) if isinstance(entry, Mapping) else None
        if not isinstance(record, Mapping):
            logger.debug("Skipping entry %s: not a record", key)
            continue
        downloads = as_count(record.get("downloads"))
        if downloads is None:
            logger.debug("Skipping entry %s: no download count", key)
            continue

        snapshots.append(Snapshot(
            timestamp=timestamp,
            total_count=downloads,
            daily_growth=as_count(record.get("dailyGrowth")),
            version_counts=extract_version_counts(record),
        ))
    return snapshots


def normalize_series(snapshots: Iterable[Snapshot]) -> List[Snapshot]:
    """Sort by timestamp, drop duplicate timestamps and fill missing daily growth."""
    ordered = sorted(snapshots, key=lambda s: ensure_utc(s.timestamp))

    series: List[Snapshot] = []
    for snapshot in ordered:
        timestamp = ensure_utc(snapshot.timestamp)
        if series and series[-1].timestamp == timestamp:
            logger.debug("Dropping duplicate snapshot at %s", timestamp)
            continue

        growth = snapshot.daily_growth
        if growth is None:
            growth = snapshot.total_count - series[-1].total_count if series else 0

        series.append(Snapshot(
            timestamp=timestamp,
            total_count=snapshot.total_count,
            daily_growth=growth,
            version_counts=dict(snapshot.version_counts),
        ))

    logger.debug("Normalized %d snapshots into %d series points", len(ordered), len(series))
    return series
