"""
Core data models for download history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional


@dataclass(frozen=True)
class Snapshot:
    """A point-in-time observation of the cumulative download counter."""

    timestamp: datetime
    total_count: int
    daily_growth: Optional[int] = None
    version_counts: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class RevisionRecord:
    """One revision of the tracked stats file, reduced to the target plugin."""

    commit: str
    timestamp: datetime
    record: Optional[Dict]


@dataclass(frozen=True)
class VersionRelease:
    """A version's active window in the series and its growth statistics."""

    version: str
    first_seen_index: int
    released_at: datetime
    release_downloads: int
    end_index: Optional[int] = None
    end_downloads: int = 0
    download_change: int = 0
    duration_days: int = 0
    avg_daily_growth: int = 0

    @property
    def superseded(self) -> bool:
        """True when a later version appeared at the same series index."""
        return self.end_index is None
