"""
Aggregations of the consumption readings used by the charts.

| year | month | day | consumption |       | year | month | day | consumption | time |
|------|-------|-----|-------------|  -->  |------|-------|-----|-------------|------|
| 2021 | 1     | 1   | 812.5       |       | 2021 | 1     | 1   | 1602.6      | 1-1  |
| 2021 | 1     | 1   | 790.1       |
"""

import pandas as pd

from consumption.loader import CONSUMPTION, DAY, MONTH, YEAR

TIME = "time"
DAYS_PER_YEAR = 365


def readings_per_day(readings: pd.DataFrame) -> float:
    """Sampling density of the export, assuming one year of readings."""
    return len(readings) / DAYS_PER_YEAR


def daily_totals(readings: pd.DataFrame) -> pd.DataFrame:
    """Total consumption per calendar day, with a `month-day` label."""
    if readings.empty:
        raise ValueError("Cannot aggregate an empty reading table")

    daily = (
        readings.groupby([YEAR, MONTH, DAY], as_index=False)[CONSUMPTION]
        .sum()
        .sort_values([YEAR, MONTH, DAY])
        .reset_index(drop=True)
    )
    daily[TIME] = daily[MONTH].astype(str) + "-" + daily[DAY].astype(str)

    return daily


def monthly_totals(readings: pd.DataFrame) -> pd.DataFrame:
    """Total consumption per (year, month)."""
    if readings.empty:
        raise ValueError("Cannot aggregate an empty reading table")

    return (
        readings.groupby([YEAR, MONTH], as_index=False)[CONSUMPTION]
        .sum()
        .sort_values([YEAR, MONTH])
        .reset_index(drop=True)
    )


def filter_years(table: pd.DataFrame, years: list[int]) -> pd.DataFrame:
    """Rows of the given years only; unknown years raise."""
    unknown = sorted(set(years) - set(table[YEAR].unique()))
    if unknown:
        raise ValueError(f"Years not present in the data: {unknown}")
    return table[table[YEAR].isin(years)].reset_index(drop=True)
