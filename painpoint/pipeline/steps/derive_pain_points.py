"""
A pain point is a metric that matters more to a respondent than it currently
satisfies them:

    difference = importance - satisfaction

To pair the two ratings without ever mixing up respondents or metrics, the
wide rating table is first melted to a long table, one row per
(respondent, type, metric):

| respondentId | type         | metricId | value |
|--------------|--------------|----------|-------|
| 1            | importance   | 1        | 5     |
| 1            | satisfaction | 1        | 2     |

and then pivoted by type, so that both ratings of a pair end up on the same
row:

| respondentId | metricId | importance | satisfaction | difference |
|--------------|----------|------------|--------------|------------|
| 1            | 1        | 5          | 2            | 3          |
| 1            | 2        | 4          | NaN          | NaN        |

A missing rating on either side gives a missing difference; pairs are never
dropped. Finally the differences are pivoted back to one row per respondent:

| respondentId | pain_1 | pain_2 | ... |
|--------------|--------|--------|-----|
| 1            | 3      | NaN    | ... |
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar

import pandas as pd

from painpoint.core.schema import (
    DataKey,
    is_importance,
    list_rating_columns,
    metric_id_of,
    pain_col,
)
from painpoint.pipeline.context import Context
from painpoint.pipeline.keys import Key
from painpoint.pipeline.step import Step

logger = logging.getLogger(__name__)


def _melt_ratings(ratings: pd.DataFrame) -> pd.DataFrame:
    """Long table with one row per (respondent, type, metric)."""

    rating_columns = list_rating_columns(ratings)
    if not rating_columns:
        raise ValueError("No rating columns to melt")

    long = ratings.melt(
        id_vars=[DataKey.RESPONDENT_ID],
        value_vars=rating_columns,
        var_name="column",
        value_name=DataKey.VALUE,
    )
    long[DataKey.RATING_TYPE] = long["column"].map(
        lambda c: DataKey.IMPORTANCE.value if is_importance(c) else DataKey.SATISFACTION.value)
    long[DataKey.METRIC_ID] = long["column"].map(metric_id_of)

    return long.drop(columns="column")


def _pair_ratings(long: pd.DataFrame) -> pd.DataFrame:
    """Pivot the long table by type and compute the difference per pair."""

    pairs = long.pivot(
        index=[DataKey.RESPONDENT_ID, DataKey.METRIC_ID],
        columns=DataKey.RATING_TYPE,
        values=DataKey.VALUE,
    )

    # A side absent from the whole survey still yields a (missing) column
    pairs = pairs.reindex(columns=[DataKey.IMPORTANCE.value, DataKey.SATISFACTION.value])
    pairs.columns.name = None
    pairs = pairs.reset_index().astype({
        DataKey.IMPORTANCE.value: float,
        DataKey.SATISFACTION.value: float,
    })

    pairs[DataKey.DIFFERENCE] = pairs[DataKey.IMPORTANCE] - pairs[DataKey.SATISFACTION]

    return pairs


def _widen_differences(pairs: pd.DataFrame) -> pd.DataFrame:
    """One row per respondent, one pain column per metric."""

    wide = pairs.pivot(
        index=DataKey.RESPONDENT_ID,
        columns=DataKey.METRIC_ID,
        values=DataKey.DIFFERENCE,
    )
    wide = wide.reindex(sorted(wide.columns), axis=1)
    wide.columns = [pain_col(int(m)) for m in wide.columns]

    return wide.reset_index()


def _derive_pain_points(ratings: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame]:

    if ratings.empty:
        raise ValueError("Cannot derive pain points from an empty rating table")

    pairs = _pair_ratings(_melt_ratings(ratings))
    wide = _widen_differences(pairs)

    n_missing = int(pairs[DataKey.DIFFERENCE].isna().sum())
    logger.debug(
        f"Derived {len(pairs)} (respondent, metric) pairs for "
        f"{pairs[DataKey.METRIC_ID].nunique()} metrics; {n_missing} differences missing"
    )

    return pairs, wide


@dataclass(frozen=True)
class DerivePainPoints(Step):
    """Pipeline step: pair importance with satisfaction and compute differences."""
    name: ClassVar[str] = "derive_pain_points"

    def run(self, ctx: Context) -> Context:

        ratings = ctx.require_table(Key.DERIVED_TABLE_RATINGS)

        pairs, wide = _derive_pain_points(ratings)

        ctx.add_table(Key.DERIVED_TABLE_PAIN_PAIRS, pairs)
        ctx.add_table(Key.DERIVED_TABLE_PAIN_WIDE, wide)

        return ctx
