"""
Survey tools export rating answers as coded text:

    "5 = Very important", "2 = Rather unsatisfied", "1 = Not at all important"

Only the leading character carries the rating. This step keeps that character
and converts it to a number, column by column, for every importance and
satisfaction column. Anything that does not start with a digit becomes
missing, e.g. "not a rated value" or an empty cell.

Leading digits outside the 1..5 scale (tools often use "9 = don't know") are
treated as missing as well, since they are codes and not ratings.

| respondentId | importance_1       | ... |       | respondentId | importance_1 | ... |
|--------------|--------------------|-----|  -->  |--------------|--------------|-----|
| 1            | 5 = Very important | ... |       | 1            | 5.0          | ... |
| 2            | n/a                | ... |       | 2            | NaN          | ... |
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar

import pandas as pd
from pandas.api.types import is_numeric_dtype

from painpoint.core.schema import MAX_RATING, MIN_RATING, list_rating_columns
from painpoint.pipeline.context import Context
from painpoint.pipeline.keys import Key
from painpoint.pipeline.step import Step

logger = logging.getLogger(__name__)


def _normalize_column(values: pd.Series) -> pd.Series:
    """Leading character of each cell as a number, NaN when it is not a digit."""
    if is_numeric_dtype(values):
        numbers = values.astype(float)
    else:
        leading = values.astype("string").str.lstrip().str[:1]
        is_digit = leading.str.isdigit().fillna(False).astype(bool)
        numbers = (
            pd.to_numeric(leading[is_digit].astype(str), errors="coerce")
            .reindex(values.index)
            .astype(float))

    off_scale = numbers.notna() & ~numbers.between(MIN_RATING, MAX_RATING)
    if off_scale.any():
        logger.warning(
            f"{values.name}: {int(off_scale.sum())} values outside "
            f"{MIN_RATING}..{MAX_RATING} treated as missing")
        numbers = numbers.mask(off_scale)

    return numbers


def _normalize_ratings(ratings: pd.DataFrame) -> pd.DataFrame:

    rating_columns = list_rating_columns(ratings)
    if not rating_columns:
        raise ValueError("No rating columns to normalize")

    normalized = ratings.copy()
    for column in rating_columns:
        normalized[column] = _normalize_column(ratings[column])

    n_missing = int(normalized[rating_columns].isna().sum().sum())
    logger.debug(
        f"Normalized {len(rating_columns)} rating columns, {n_missing} cells missing")

    return normalized


@dataclass(frozen=True)
class NormalizeRatings(Step):
    """Pipeline step: convert coded rating text to numeric ratings."""
    name: ClassVar[str] = "normalize_ratings"

    def run(self, ctx: Context) -> Context:

        raw = ctx.require_table(Key.DERIVED_TABLE_RATINGS_RAW)
        ctx.add_table(Key.DERIVED_TABLE_RATINGS, _normalize_ratings(raw))

        return ctx
