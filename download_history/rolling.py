"""
Trailing rolling averages of daily growth.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import pandas as pd

from .models import Snapshot
from .time_utils import round_half_up, to_iso

ROLLING_WINDOWS = (7, 30)


def rolling_average(values: Sequence[int], window: int) -> List[int]:
    """Trailing mean over the last ``window`` values, rounded half-up.

    The window narrows at the start of the sequence instead of padding.
    """
    if window < 1:
        raise ValueError(f"window must be at least 1, got {window}")
    if len(values) == 0:
        return []

    growth = pd.Series(list(values), dtype="int64")
    sums = growth.rolling(window, min_periods=1).sum().round().astype("int64")
    counts = growth.rolling(window, min_periods=1).count().astype("int64")
    return [round_half_up(int(s), int(c)) for s, c in zip(sums, counts)]


def rolling_series(series: Sequence[Snapshot], window: int) -> List[Tuple[str, int]]:
    """Rolling average of each snapshot's daily growth as (ISO timestamp, value) pairs."""
    averages = rolling_average([s.daily_growth or 0 for s in series], window)
    return [(to_iso(s.timestamp), value) for s, value in zip(series, averages)]
