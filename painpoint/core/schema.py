"""
Schema definitions for data keys and column names.

This module defines the unified schema used throughout painpoint:

DataKey
-------
Keys used in DataFrames and Pydantic models. These keep the camelCase
convention of the respondent identifier.

FieldRole
---------
The logical role of a raw survey column, resolved from its name prefix.

Prefix
------
Prefixes for dynamically generated column names in wide-format DataFrames.

Internal Analysis Schema
------------------------
The long pair table consists of one row per (Respondent x Metric):

| respondentId | metricId | importance | satisfaction | difference |
|--------------|----------|------------|--------------|------------|
| 1            | 1        | 5          | 2            | 3          |
| 1            | 2        | 4          | NaN          | NaN        |
| 2            | 1        | 3          | 3            | 0          |
"""

from enum import StrEnum
from typing import Final

import pandas as pd


class DataKey(StrEnum):
    RESPONDENT_ID = "respondentId"
    METRIC_ID = "metricId"
    RATING_TYPE = "type"
    VALUE = "value"
    IMPORTANCE = "importance"
    SATISFACTION = "satisfaction"
    DIFFERENCE = "difference"
    SEGMENT_ID = "segmentId"
    LABEL = "label"
    MEAN_IMPORTANCE = "meanImportance"
    MEAN_DIFFERENCE = "meanDifference"
    RANK = "rank"


class FieldRole(StrEnum):
    IMPORTANCE = "importance"
    SATISFACTION = "satisfaction"
    PROFILING = "profiling"
    EXCLUDED = "excluded"
    DEMOGRAPHIC = "demographic"


# Rating bounds
MIN_RATING: Final[int] = 1
MAX_RATING: Final[int] = 5


class Prefix(StrEnum):
    IMPORTANCE_PREFIX = "importance_"
    SATISFACTION_PREFIX = "satisfaction_"
    PAIN_PREFIX = "pain_"


def importance_col(i: int) -> str:
    return f"{Prefix.IMPORTANCE_PREFIX}{i}"


def satisfaction_col(i: int) -> str:
    return f"{Prefix.SATISFACTION_PREFIX}{i}"


def pain_col(i: int) -> str:
    return f"{Prefix.PAIN_PREFIX}{i}"


def is_importance(col: str) -> bool:
    return col.startswith(Prefix.IMPORTANCE_PREFIX)


def is_satisfaction(col: str) -> bool:
    return col.startswith(Prefix.SATISFACTION_PREFIX)


def is_rating(col: str) -> bool:
    return is_importance(col) or is_satisfaction(col)


def metric_id_of(col: str) -> int:
    """Metric index encoded in a rating or pain column, e.g. 'pain_12' -> 12."""
    return int(col.rsplit('_', 1)[-1])


def list_rating_columns(df: pd.DataFrame) -> list[str]:
    return [c for c in df.columns if is_rating(c)]
