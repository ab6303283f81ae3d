"""
Download history analyzer: runs the full pipeline for one plugin.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .history import extract_history, load_history_json, save_history_json
from .interfaces import RevisionSource
from .models import Snapshot
from .normalizer import normalize_series, parse_history
from .reporting import build_report
from .rolling import ROLLING_WINDOWS, rolling_series
from .segmentation import active_versions, segment_versions


logger = logging.getLogger(__name__)


def plugin_id(plugin_name: str) -> str:
    """Machine-safe identifier: lower-cased, whitespace runs replaced by a hyphen."""
    return re.sub(r"\s+", "-", plugin_name.lower())


class DownloadHistoryAnalyzer:
    """Reconstruct a plugin's download series and derive release statistics."""

    def __init__(
        self,
        plugin_name: str,
        input_dir: Path = Path("."),
        output_dir: Path = Path("./output"),
        windows: Sequence[int] = ROLLING_WINDOWS,
    ):
        """Initialize the analyzer.

        Args:
            plugin_name: Human-readable plugin name
            input_dir: Directory holding the plugin's history file
            output_dir: Directory for report outputs
            windows: Rolling average window sizes
        """
        self.plugin_name = plugin_name
        self.plugin_id = plugin_id(plugin_name)
        self.input_dir = Path(input_dir)
        self.output_dir = Path(output_dir)
        self.windows = tuple(windows)

    @property
    def history_file(self) -> Path:
        return self.input_dir / f"{self.plugin_id}-history.json"

    def extract(self, source: RevisionSource) -> Path:
        """Walk the revision source and write the filtered history file."""
        logger.info("Extracting history for %s", self.plugin_id)
        series = extract_history(source, self.plugin_id)
        path = save_history_json(series, self.history_file)
        logger.info("Saved %d snapshots to %s", len(series), path)
        return path

    def load_series(self) -> List[Snapshot]:
        """Read the history file and return the normalized series.

        Raises:
            MissingInputFile: if the history file does not exist
        """
        logger.info("Reading data from %s", self.history_file)
        history = load_history_json(self.history_file)
        return normalize_series(parse_history(history))

    def analyze(self, series: Optional[Sequence[Snapshot]] = None) -> Dict:
        """Run segmentation and rolling statistics and assemble the report.

        Args:
            series: A series to analyze; read from the history file when omitted

        Returns:
            The report dictionary consumed by the exporters
        """
        if series is None:
            series = self.load_series()
        else:
            series = normalize_series(series)

        if not series:
            logger.warning("No data points for %s", self.plugin_id)

        releases = segment_versions(series)
        active = active_versions(series, releases)
        rolling = {window: rolling_series(series, window) for window in self.windows}

        return build_report(
            plugin_name=self.plugin_name,
            plugin_id=self.plugin_id,
            series=series,
            releases=releases,
            active=active,
            rolling=rolling,
        )
