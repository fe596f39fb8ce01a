"""Line charts of electricity consumption, one line per year."""

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from consumption.aggregate import TIME
from consumption.loader import CONSUMPTION, DAY, MONTH, YEAR

logger = logging.getLogger(__name__)


def _save(fig, path: str | Path) -> Path:
    path = Path(path)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    logger.info(f"Wrote chart: {path}")
    return path


def plot_daily(daily: pd.DataFrame, path: str | Path, title: str = "Daily consumption") -> Path:
    """Daily totals over the calendar year, years overlaid."""

    # Day of year keeps the x-axis in calendar order across years
    data = daily.copy()
    data["position"] = data[MONTH] * 31 + data[DAY]
    data[YEAR] = data[YEAR].astype(str)
    order = data.drop_duplicates(TIME).sort_values("position")

    fig, ax = plt.subplots(figsize=(14, 5))
    sns.lineplot(
        data=data, x="position", y=CONSUMPTION, hue=YEAR,
        palette="tab10", linewidth=0.8, ax=ax)

    ticks = order[order[DAY] == 1]
    ax.set_xticks(ticks["position"])
    ax.set_xticklabels(ticks[TIME])
    ax.set_xlabel("Month-day")
    ax.set_ylabel("Consumption")
    ax.set_title(title)

    return _save(fig, path)


def plot_monthly(monthly: pd.DataFrame, path: str | Path) -> Path:
    """Monthly totals, years overlaid."""

    data = monthly.assign(**{YEAR: monthly[YEAR].astype(str)})

    fig, ax = plt.subplots(figsize=(9, 5))
    sns.lineplot(
        data=data, x=MONTH, y=CONSUMPTION, hue=YEAR,
        palette="tab10", marker="o", ax=ax)
    ax.set_xticks(range(1, 13))
    ax.set_xlabel("Month")
    ax.set_ylabel("Consumption")
    ax.set_title("Monthly consumption")

    return _save(fig, path)
