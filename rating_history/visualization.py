"""
Rating history charts using matplotlib.

Gaps (None) are kept as breaks in the line rather than interpolated, so
days without games are visible on the chart.
"""

from pathlib import Path
from typing import Optional

from .series import MODE_COLORS, RatingSeries, series_to_dataframe


def plot_rating_series(
    series: RatingSeries,
    title: str = "Rating history",
    ax=None,
    show_markers: bool = True,
):
    """
    Plot each mode of a dense series as a line.

    Args:
        series: Output of format_series.
        title: Axes title.
        ax: Existing matplotlib Axes (a new figure is created if None).
        show_markers: Draw a marker on each day with data.

    Returns:
        The matplotlib Axes.
    """
    import matplotlib.pyplot as plt

    if ax is None:
        _, ax = plt.subplots(figsize=(12, 6))

    df = series_to_dataframe(series)
    for mode in df.columns:
        values = df[mode].astype("float64")
        ax.plot(
            df.index,
            values,
            label=mode.capitalize(),
            color=MODE_COLORS[mode],
            marker="o" if show_markers else None,
            markersize=3,
        )

    ax.set_title(title)
    ax.set_xlabel("Date")
    ax.set_ylabel("Rating")
    if not series.is_empty():
        ax.legend()
    ax.grid(True, alpha=0.3)
    return ax


def save_rating_chart(
    series: RatingSeries,
    output_path: str | Path,
    title: str = "Rating history",
    dpi: Optional[int] = 100,
) -> Path:
    """Render a series to an image file and return its path."""
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(12, 6))
    plot_rating_series(series, title=title, ax=ax)
    fig.autofmt_xdate()
    fig.savefig(output_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return output_path
