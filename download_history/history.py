"""
Snapshot extraction from the version-control history of a stats file.
"""

from __future__ import annotations

import json
import logging
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from tqdm import tqdm

from .exceptions import EntityNotFound, HistorySourceError, InvalidHistoryFile, MissingInputFile
from .interfaces import RevisionSource
from .models import RevisionRecord, Snapshot
from .normalizer import as_count, extract_version_counts
from .time_utils import ensure_utc, to_millis


logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "community-plugin-stats.json"


class GitHistorySource(RevisionSource):
    """Read every committed revision of a JSON stats file from a git repository."""

    def __init__(
        self,
        repo_path: Path,
        data_file: str = DEFAULT_DATA_FILE,
        timeout: int = 120,
        show_progress: bool = True,
    ) -> None:
        """Initialize the history source.

        Args:
            repo_path: Path to a local clone of the repository
            data_file: Path of the tracked stats file, relative to the repository root
            timeout: Seconds allowed for each git command
            show_progress: Whether to display a progress bar while walking commits
        """
        self.repo_path = Path(repo_path)
        self.data_file = data_file
        self.timeout = timeout
        self.show_progress = show_progress

    def list_commits(self) -> List[Tuple[str, datetime]]:
        """Return (sha, commit time) for commits touching the data file, oldest first."""
        if not self.repo_path.exists():
            raise HistorySourceError(f"Repository not found at {self.repo_path}")

        result = self._run_git(["log", "--reverse", "--date-order", "--format=%H %ct", "--", self.data_file])
        if result.returncode != 0:
            raise HistorySourceError(
                f"git log failed in {self.repo_path}: {result.stderr.strip()}"
            )

        commits = []
        for line in result.stdout.splitlines():
            parts = line.strip().split()
            if len(parts) != 2:
                continue
            sha, seconds = parts
            try:
                committed_at = datetime.fromtimestamp(int(seconds), tz=timezone.utc)
            except ValueError:
                logger.warning("Skipping commit %s with unreadable time %r", sha, seconds)
                continue
            commits.append((sha, committed_at))

        logger.info("Found %d commits touching %s", len(commits), self.data_file)
        return commits

    def read_revision(self, commit: str) -> Optional[Dict]:
        """Parse the data file as of a commit, or None if it cannot be read."""
        result = self._run_git(["show", f"{commit}:{self.data_file}"])
        if result.returncode != 0:
            logger.debug("No %s at %s: %s", self.data_file, commit, result.stderr.strip())
            return None
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            logger.warning("Unparseable %s at %s: %s", self.data_file, commit, e)
            return None
        return data if isinstance(data, dict) else None

    def iter_revisions(self, plugin_id: str) -> Iterator[RevisionRecord]:
        commits = self.list_commits()
        for sha, committed_at in tqdm(
            commits, desc="Reading revisions", disable=not self.show_progress
        ):
            data = self.read_revision(sha)
            record = data.get(plugin_id) if data is not None else None
            yield RevisionRecord(
                commit=sha,
                timestamp=committed_at,
                record=record if isinstance(record, dict) else None,
            )

    def _run_git(self, args: List[str]) -> subprocess.CompletedProcess:
        cmd = ["git", "-C", str(self.repo_path)] + args
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            raise HistorySourceError(f"git {args[0]} failed: {e}") from e


def filter_revisions(revisions: Iterable[RevisionRecord], plugin_id: str) -> List[Snapshot]:
    """Turn raw revisions into accepted snapshots.

    A snapshot is accepted only if its download total is at least the total
    of the last accepted snapshot. Lower totals are dropped and do not move
    the baseline. Revisions are taken in timestamp order; any revision not
    later than the last accepted one is dropped. Revisions without the
    plugin or without a numeric ``downloads`` are skipped.

    Raises:
        EntityNotFound: if the plugin is absent from every revision
    """
    accepted: List[Snapshot] = []
    found = False
    rejected = 0

    ordered = sorted(revisions, key=lambda r: ensure_utc(r.timestamp))
    for revision in ordered:
        record = revision.record
        if record is None:
            continue
        found = True

        downloads = as_count(record.get("downloads"))
        if downloads is None:
            logger.debug("Skipping %s: no download count", revision.commit)
            continue

        timestamp = ensure_utc(revision.timestamp)
        if accepted and timestamp <= accepted[-1].timestamp:
            logger.debug("Skipping %s: timestamp %s already covered", revision.commit, timestamp)
            continue

        growth = 0
        if accepted:
            baseline = accepted[-1].total_count
            if downloads < baseline:
                rejected += 1
                logger.debug(
                    "Dropping %s: downloads %d below accepted %d",
                    revision.commit, downloads, baseline,
                )
                continue
            growth = downloads - baseline

        accepted.append(Snapshot(
            timestamp=timestamp,
            total_count=downloads,
            daily_growth=growth,
            version_counts=extract_version_counts(record),
        ))

    if not found:
        raise EntityNotFound(plugin_id)

    logger.info(
        "Accepted %d snapshots for %s (%d anomalies dropped)",
        len(accepted), plugin_id, rejected,
    )
    return accepted


def extract_history(source: RevisionSource, plugin_id: str) -> List[Snapshot]:
    """Walk a revision source and return the anomaly-filtered series."""
    return filter_revisions(source.iter_revisions(plugin_id), plugin_id)


def series_to_history(series: Iterable[Snapshot]) -> Dict[str, Dict]:
    """Serialize snapshots to the ``{millis: {"data": record}}`` history format."""
    history = {}
    for snapshot in series:
        data = {"downloads": snapshot.total_count}
        if snapshot.daily_growth is not None:
            data["dailyGrowth"] = snapshot.daily_growth
        data.update(snapshot.version_counts)
        history[str(to_millis(snapshot.timestamp))] = {"data": data}
    return history


def save_history_json(series: Iterable[Snapshot], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(series_to_history(series), f, indent=2)
    return path


def load_history_json(path: Path) -> Dict[str, Dict]:
    """Load a history file.

    Raises:
        MissingInputFile: if the file does not exist
        InvalidHistoryFile: if the file is not a JSON object
    """
    path = Path(path)
    if not path.exists():
        raise MissingInputFile(path)
    with open(path, 'r', encoding='utf-8') as f:
        try:
            history = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidHistoryFile(f"File '{path}' is not valid JSON: {e}") from e
    if not isinstance(history, dict):
        raise InvalidHistoryFile(f"File '{path}' does not contain a JSON object")
    return history
