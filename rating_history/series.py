"""
Dense series formatting for charting.

Stored history is sparse (one record per day with data). For display, the
series is expanded to every calendar day between the first and last record,
with None marking days without data.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional, Sequence

from .extraction import TRACKED_MODES
from .storage import DailyRatingRecord

# Chart colors per mode
MODE_COLORS = {
    "rapid": "#22c55e",
    "blitz": "#3b82f6",
    "bullet": "#ef4444",
    "puzzle": "#a855f7",
}

CHARTABLE_MODES = TRACKED_MODES + ("puzzle",)


@dataclass
class RatingSeries:
    """Calendar-contiguous labels with one aligned value list per mode."""
    labels: list = field(default_factory=list)  # ISO date strings
    values: dict = field(default_factory=dict)  # mode -> list[Optional[int]]

    def is_empty(self) -> bool:
        return not self.labels


def format_series(
    records: Sequence[DailyRatingRecord],
    modes: Sequence[str] = TRACKED_MODES,
) -> RatingSeries:
    """
    Expand sparse daily records into a dense, gap-aware series.

    Args:
        records: Stored records, ascending by date.
        modes: Modes to include (subset of rapid, blitz, bullet, puzzle).

    Returns:
        RatingSeries with one label per day from the first to the last
        record date. An empty input yields an empty series.
    """
    for mode in modes:
        if mode not in CHARTABLE_MODES:
            raise ValueError(f"Unknown rating mode: {mode}")

    if not records:
        return RatingSeries(labels=[], values={mode: [] for mode in modes})

    by_date = {record.date: record for record in records}
    start = records[0].date
    end = records[-1].date

    labels = []
    values = {mode: [] for mode in modes}

    current = start
    while current <= end:
        labels.append(current.isoformat())
        record = by_date.get(current)
        for mode in modes:
            values[mode].append(record.get_rating(mode) if record is not None else None)
        current += timedelta(days=1)

    return RatingSeries(labels=labels, values=values)


def build_chart_datasets(series: RatingSeries) -> list[dict]:
    """
    Convert a series into chart datasets.

    Each dataset has label, data, borderColor and backgroundColor (the
    border color with 20% alpha).
    """
    datasets = []
    for mode, data in series.values.items():
        color = MODE_COLORS[mode]
        datasets.append({
            "label": mode.capitalize(),
            "data": list(data),
            "borderColor": color,
            "backgroundColor": color + "33",
        })
    return datasets


def build_chart_data(series: RatingSeries) -> dict:
    """Labels plus datasets, ready for a line chart."""
    return {
        "labels": list(series.labels),
        "datasets": build_chart_datasets(series),
    }


def series_to_dataframe(series: RatingSeries):
    """
    Convert a series to a pandas DataFrame indexed by date.

    Gaps become NaN in nullable Int64 columns, so a rating of 0 stays
    distinguishable from no data.
    """
    import pandas as pd

    index = pd.DatetimeIndex(pd.to_datetime(series.labels), name="date")
    columns = {
        mode: pd.array(data, dtype="Int64")
        for mode, data in series.values.items()
    }
    return pd.DataFrame(columns, index=index)


def latest_ratings(series: RatingSeries) -> dict[str, Optional[int]]:
    """Most recent non-null value per mode in the series."""
    latest = {}
    for mode, data in series.values.items():
        latest[mode] = next((value for value in reversed(data) if value is not None), None)
    return latest
