"""
Step to put every encoded attribute on a common scale and fill the gaps.

Each column is standardized first (mean = 0, standard deviation = 1, missing
cells ignored while fitting), and only then are missing cells replaced with
the median of the *standardized* column. The order matters: downstream
clustering results depend on it.

| respondentId | age_group | PR1_01 | ... |       | respondentId | age_group | PR1_01 | ... |
|--------------|-----------|--------|-----|  -->  |--------------|-----------|--------|-----|
| 1            | 3         | 1      | ... |       | 1            | 0.41      | 0.97   | ... |
| 2            | NaN       | 0      | ... |       | 2            | 0.41      | -1.02  | ... |
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar

import pandas as pd
from sklearn.preprocessing import StandardScaler

from painpoint.core.schema import DataKey
from painpoint.pipeline.context import Context
from painpoint.pipeline.keys import Key
from painpoint.pipeline.step import Step

logger = logging.getLogger(__name__)


def _standardize(encoded: pd.DataFrame) -> pd.DataFrame:
    """Column-wise z-scores; NaN cells are disregarded in fit and kept in transform."""

    columns = [c for c in encoded.columns if c != DataKey.RESPONDENT_ID]
    if not columns:
        raise ValueError("No attribute columns to standardize")

    scaler = StandardScaler(with_mean=True, with_std=True)
    standardized = pd.DataFrame(
        scaler.fit_transform(encoded[columns].astype(float)),
        columns=columns,
        index=encoded.index)

    return pd.concat([encoded[[DataKey.RESPONDENT_ID]], standardized], axis=1)


def _impute_median(standardized: pd.DataFrame) -> pd.DataFrame:

    columns = [c for c in standardized.columns if c != DataKey.RESPONDENT_ID]
    missing = standardized[columns].isna().sum()
    missing = missing[missing > 0]

    for column, count in missing.items():
        logger.debug(f"{column}: imputing {count} missing values with the standardized median")

    imputed = standardized.copy()
    imputed[columns] = standardized[columns].fillna(standardized[columns].median())

    return imputed


@dataclass(frozen=True)
class StandardizeDemographics(Step):
    """Pipeline step: standardize encoded attributes, then impute with the median."""
    name: ClassVar[str] = "standardize_demographics"

    def run(self, ctx: Context) -> Context:

        encoded = ctx.require_table(Key.DERIVED_TABLE_DEMOGRAPHICS_ENCODED)

        imputed = _impute_median(_standardize(encoded))
        ctx.add_table(Key.DERIVED_TABLE_DEMOGRAPHICS_STD, imputed)

        return ctx
