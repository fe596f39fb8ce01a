"""
The raw survey export is one wide table that mixes several kinds of columns:

| ID | IMP_1 | SAT_1 | IMP_2 | SAT_2 | age_group | gender | PR1_01   | X_comment |
|----|-------|-------|-------|-------|-----------|--------|----------|-----------|

The column name prefix tells us what a column is:

    - IMP_<n> / SAT_<n> → importance / satisfaction rating of metric n
    - PR1...            → auxiliary profiling responses
    - X_...             → excluded (free text, timestamps, tool metadata)
    - anything else     → demographic / profiling attribute

This step splits the table into three tables that all keep the respondent id:

    ratings:       respondentId | importance_1 | satisfaction_1 | ...
    demographics:  respondentId | age_group | gender | ...
    profiling:     respondentId | PR1_01 | PR1_02 | ...

Rating columns are renamed to the canonical `importance_<n>` /
`satisfaction_<n>` names so that later steps do not depend on the survey tool's
naming.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import ClassVar

import pandas as pd

from painpoint.core.config import FieldConfig
from painpoint.core.schema import DataKey, FieldRole, importance_col, satisfaction_col
from painpoint.pipeline.context import Context
from painpoint.pipeline.keys import Key
from painpoint.pipeline.step import Step

logger = logging.getLogger(__name__)


def _metric_index(column: str, prefix: str) -> int:
    suffix = column[len(prefix):].strip("_ ")
    try:
        return int(suffix)
    except ValueError as e:
        raise ValueError(
            f"Rating column '{column}' does not end in a metric index") from e


def _partition_fields(
    survey: pd.DataFrame,
    fields: FieldConfig) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:

    if survey.empty:
        raise ValueError("Cannot partition an empty survey")
    if DataKey.RESPONDENT_ID not in survey.columns:
        raise KeyError(f"Survey missing required column '{DataKey.RESPONDENT_ID}'")

    renamed = {}
    demographic_columns = []
    profiling_columns = []
    excluded_columns = []

    for column in survey.columns:
        if column == DataKey.RESPONDENT_ID:
            continue

        role = fields.role_of(column)

        if role == FieldRole.IMPORTANCE:
            prefix = fields.prefix_for(FieldRole.IMPORTANCE)
            renamed[column] = importance_col(_metric_index(column, prefix))
        elif role == FieldRole.SATISFACTION:
            prefix = fields.prefix_for(FieldRole.SATISFACTION)
            renamed[column] = satisfaction_col(_metric_index(column, prefix))
        elif role == FieldRole.PROFILING:
            profiling_columns.append(column)
        elif role == FieldRole.EXCLUDED:
            excluded_columns.append(column)
        else:
            demographic_columns.append(column)

    canonical = list(renamed.values())
    if len(set(canonical)) != len(canonical):
        duplicated = sorted({c for c in canonical if canonical.count(c) > 1})
        raise ValueError(f"Rating columns map to the same metric: {', '.join(duplicated)}")

    if not renamed:
        raise ValueError("No importance or satisfaction columns found in survey")

    logger.debug(
        f"Partitioned survey: {len(renamed)} rating, {len(demographic_columns)} demographic, "
        f"{len(profiling_columns)} profiling, {len(excluded_columns)} excluded columns"
    )

    ids = [DataKey.RESPONDENT_ID]

    ratings = survey[ids + list(renamed)].rename(columns=renamed)
    demographics = survey[ids + demographic_columns].copy()
    profiling = survey[ids + profiling_columns].copy()

    return ratings, demographics, profiling


@dataclass
class PartitionFields(Step):
    """Pipeline step: split the survey into ratings, demographics and profiling tables."""
    name: ClassVar[str] = "partition_fields"

    fields: FieldConfig = field(default_factory=FieldConfig)

    def run(self, ctx: Context) -> Context:

        survey = ctx.require_survey()

        ratings, demographics, profiling = _partition_fields(survey, self.fields)

        ctx.add_table(Key.DERIVED_TABLE_RATINGS_RAW, ratings)
        ctx.add_table(Key.DERIVED_TABLE_DEMOGRAPHICS_RAW, demographics)
        ctx.add_table(Key.DERIVED_TABLE_PROFILING_RAW, profiling)

        return ctx
