"""Tests for snapshot extraction and anomaly filtering."""

import json
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from download_history import history
from download_history.exceptions import (
    EntityNotFound,
    HistorySourceError,
    InvalidHistoryFile,
    MissingInputFile,
)
from download_history.history import (
    GitHistorySource,
    extract_history,
    filter_revisions,
    load_history_json,
    save_history_json,
    series_to_history,
)
from download_history.models import RevisionRecord
from download_history.normalizer import normalize_series


START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _revisions(records):
    return [
        RevisionRecord(commit=f"c{i}", timestamp=START + timedelta(days=i), record=record)
        for i, record in enumerate(records)
    ]


def test_decreasing_totals_are_dropped_not_clamped():
    revisions = _revisions([
        {"downloads": 100},
        {"downloads": 250},
        {"downloads": 90},
        {"downloads": 300},
    ])

    series = filter_revisions(revisions, "demo")

    assert [s.total_count for s in series] == [100, 250, 300]
    assert [s.daily_growth for s in series] == [0, 150, 50]


def test_rejected_value_does_not_move_baseline():
    revisions = _revisions([
        {"downloads": 500},
        {"downloads": 10},
        {"downloads": 400},
        {"downloads": 500},
        {"downloads": 520},
    ])

    series = filter_revisions(revisions, "demo")

    assert [s.total_count for s in series] == [500, 500, 520]


def test_accepted_series_is_monotonic():
    totals = [5, 7, 3, 7, 12, 11, 11, 40, 2, 41]
    series = filter_revisions(_revisions([{"downloads": t} for t in totals]), "demo")

    counts = [s.total_count for s in series]
    assert all(a <= b for a, b in zip(counts, counts[1:]))
    assert counts == [5, 7, 7, 12, 40, 41]


def test_missing_entity_and_counter_are_skipped():
    revisions = _revisions([
        None,
        {"downloads": 10, "1.0.0": 10, "updated": 1700000000000},
        {"updated": 1700000000000},
        {"downloads": "lots"},
        {"downloads": 20, "1.0.0": 15, "1.1.0": 5},
    ])

    series = filter_revisions(revisions, "demo")

    assert [s.total_count for s in series] == [10, 20]
    assert series[0].version_counts == {"1.0.0": 10}
    assert series[1].version_counts == {"1.0.0": 15, "1.1.0": 5}


def test_out_of_order_timestamps_are_sorted_before_filtering():
    revisions = [
        RevisionRecord("a", START + timedelta(days=2), {"downloads": 100}),
        RevisionRecord("b", START + timedelta(days=1), {"downloads": 150}),
        RevisionRecord("c", START + timedelta(days=3), {"downloads": 170}),
    ]

    series = normalize_series(filter_revisions(revisions, "demo"))

    counts = [s.total_count for s in series]
    assert counts == [150, 170]
    assert [s.daily_growth for s in series] == [0, 20]
    assert all(a.timestamp < b.timestamp for a, b in zip(series, series[1:]))


def test_duplicate_timestamps_keep_first():
    revisions = [
        RevisionRecord("a", START, {"downloads": 10}),
        RevisionRecord("b", START, {"downloads": 12}),
        RevisionRecord("c", START + timedelta(days=1), {"downloads": 15}),
    ]

    series = filter_revisions(revisions, "demo")

    assert [s.total_count for s in series] == [10, 15]


def test_entity_never_present_raises():
    with pytest.raises(EntityNotFound) as excinfo:
        filter_revisions(_revisions([None, None]), "ghost")
    assert excinfo.value.plugin_id == "ghost"


def test_entity_present_without_counts_yields_empty_series():
    assert filter_revisions(_revisions([{"updated": 1}]), "demo") == []


def test_history_file_round_trip(tmp_path: Path):
    series = filter_revisions(_revisions([
        {"downloads": 100},
        {"downloads": 150, "1.0.0": 50},
    ]), "demo")

    path = save_history_json(series, tmp_path / "demo-history.json")
    loaded = load_history_json(path)

    assert loaded == series_to_history(series)
    key = str(int((START + timedelta(days=1)).timestamp() * 1000))
    assert loaded[key] == {"data": {"downloads": 150, "dailyGrowth": 50, "1.0.0": 50}}


def test_load_missing_history_raises(tmp_path: Path):
    with pytest.raises(MissingInputFile):
        load_history_json(tmp_path / "nope-history.json")


def test_load_corrupt_history_raises(tmp_path: Path):
    path = tmp_path / "bad-history.json"
    path.write_text("{bad", encoding="utf-8")
    with pytest.raises(InvalidHistoryFile, match="not valid JSON"):
        load_history_json(path)

    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(InvalidHistoryFile, match="JSON object"):
        load_history_json(path)


class FakeGit:
    """Stand-in for subprocess.run answering git log / git show."""

    def __init__(self, commits, blobs):
        self.commits = commits
        self.blobs = blobs
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(cmd)
        args = cmd[3:]
        if args[0] == "log":
            stdout = "\n".join(f"{sha} {seconds}" for sha, seconds in self.commits)
            return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")
        if args[0] == "show":
            sha = args[1].split(":", 1)[0]
            if sha not in self.blobs:
                return subprocess.CompletedProcess(cmd, 128, stdout="", stderr="missing")
            return subprocess.CompletedProcess(cmd, 0, stdout=self.blobs[sha], stderr="")
        raise AssertionError(f"unexpected command {cmd}")


def test_git_history_source_walks_revisions(tmp_path: Path, monkeypatch):
    fake = FakeGit(
        commits=[("aaa", 1704067200), ("bbb", 1704153600), ("ccc", 1704240000), ("ddd", 1704326400)],
        blobs={
            "aaa": json.dumps({"demo": {"downloads": 100}, "other": {"downloads": 1}}),
            "bbb": "{not json",
            "ccc": json.dumps({"demo": {"downloads": 80}}),
            "ddd": json.dumps({"demo": {"downloads": 140, "1.0.0": 40}}),
        },
    )
    monkeypatch.setattr(history.subprocess, "run", fake)

    source = GitHistorySource(tmp_path, data_file="stats.json", show_progress=False)
    revisions = list(source.iter_revisions("demo"))

    assert [r.commit for r in revisions] == ["aaa", "bbb", "ccc", "ddd"]
    assert revisions[1].record is None
    assert revisions[0].timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert fake.calls[0][:4] == ["git", "-C", str(tmp_path), "log"]

    series = extract_history(source, "demo")
    assert [s.total_count for s in series] == [100, 140]
    assert series[1].version_counts == {"1.0.0": 40}


def test_git_history_source_missing_repo(tmp_path: Path):
    source = GitHistorySource(tmp_path / "absent", show_progress=False)
    with pytest.raises(HistorySourceError):
        source.list_commits()


def test_git_log_failure_raises(tmp_path: Path, monkeypatch):
    def failing_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 128, stdout="", stderr="not a git repository")

    monkeypatch.setattr(history.subprocess, "run", failing_run)
    source = GitHistorySource(tmp_path, show_progress=False)

    with pytest.raises(HistorySourceError, match="not a git repository"):
        source.list_commits()
