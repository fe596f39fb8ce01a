"""Tests for field partitioning, rating normalization and pain-point derivation."""

import math

import numpy as np
import pandas as pd
import pytest

from painpoint.core.config import FieldConfig
from painpoint.core.schema import DataKey, importance_col, pain_col, satisfaction_col
from painpoint.pipeline.steps.derive_pain_points import _derive_pain_points
from painpoint.pipeline.steps.normalize_ratings import _normalize_column, _normalize_ratings
from painpoint.pipeline.steps.partition_fields import _partition_fields


def make_survey():
    """Raw survey as loaded, all cells text."""
    return pd.DataFrame({
        DataKey.RESPONDENT_ID: [1, 2],
        "IMP_1": ["5 = Very important", "4 = Important"],
        "SAT_1": ["2 = Unsatisfied", "3 = Neutral"],
        "IMP_2": ["3 = Neutral", "n/a"],
        "SAT_2": ["1 = Not at all", "5 = Very satisfied"],
        "age_group": ["30-44", "18-29"],
        "PR1_01": ["selected", "not selected"],
        "X_comment": ["great", None],
    })


def make_ratings():
    return pd.DataFrame({
        DataKey.RESPONDENT_ID: [1, 2],
        importance_col(1): [5.0, 4.0],
        satisfaction_col(1): [2.0, np.nan],
        importance_col(2): [3.0, 3.0],
        satisfaction_col(2): [3.0, 1.0],
    })


def test_partition_fields_splits_by_prefix():
    ratings, demographics, profiling = _partition_fields(make_survey(), FieldConfig())

    assert list(ratings.columns) == [
        DataKey.RESPONDENT_ID,
        importance_col(1), satisfaction_col(1),
        importance_col(2), satisfaction_col(2),
    ]
    assert list(demographics.columns) == [DataKey.RESPONDENT_ID, "age_group"]
    assert list(profiling.columns) == [DataKey.RESPONDENT_ID, "PR1_01"]

    # Excluded columns end up nowhere
    for table in [ratings, demographics, profiling]:
        assert "X_comment" not in table.columns


def test_partition_fields_rejects_duplicate_metric():
    survey = make_survey()
    survey["IMP_01"] = "4"

    with pytest.raises(ValueError, match="same metric"):
        _partition_fields(survey, FieldConfig())


def test_partition_fields_requires_ratings():
    survey = pd.DataFrame({DataKey.RESPONDENT_ID: [1], "age_group": ["30-44"]})

    with pytest.raises(ValueError, match="No importance or satisfaction"):
        _partition_fields(survey, FieldConfig())


def test_normalize_column_keeps_leading_digit():
    values = pd.Series(
        ["4 = Very important", "not a rated value", None, " 2 = Low", "9 = Don't know"],
        name=importance_col(1))

    normalized = _normalize_column(values)

    assert normalized.iloc[0] == 4.0
    assert math.isnan(normalized.iloc[1])
    assert math.isnan(normalized.iloc[2])
    assert normalized.iloc[3] == 2.0
    # Off-scale code
    assert math.isnan(normalized.iloc[4])


def test_normalize_column_numeric_input():
    normalized = _normalize_column(pd.Series([1, 5, 7], name=satisfaction_col(1)))

    assert normalized.iloc[0] == 1.0
    assert normalized.iloc[1] == 5.0
    assert math.isnan(normalized.iloc[2])


def test_normalize_ratings_leaves_input_untouched():
    ratings, _, _ = _partition_fields(make_survey(), FieldConfig())

    normalized = _normalize_ratings(ratings)

    assert normalized[importance_col(1)].tolist() == [5.0, 4.0]
    assert math.isnan(normalized[importance_col(2)].iloc[1])
    assert ratings[importance_col(1)].iloc[0] == "5 = Very important"


def test_derive_pain_points_difference():
    pairs, wide = _derive_pain_points(make_ratings())

    # Every (respondent, metric) pair is kept
    assert len(pairs) == 4

    row = pairs[(pairs[DataKey.RESPONDENT_ID] == 1) & (pairs[DataKey.METRIC_ID] == 1)].iloc[0]
    assert row[DataKey.IMPORTANCE] == 5.0
    assert row[DataKey.SATISFACTION] == 2.0
    assert row[DataKey.DIFFERENCE] == 3.0

    # difference == importance - satisfaction wherever both are present
    present = pairs.dropna(subset=[DataKey.IMPORTANCE, DataKey.SATISFACTION])
    assert (present[DataKey.DIFFERENCE] == present[DataKey.IMPORTANCE] - present[DataKey.SATISFACTION]).all()


def test_derive_pain_points_missing_side():
    pairs, wide = _derive_pain_points(make_ratings())

    row = pairs[(pairs[DataKey.RESPONDENT_ID] == 2) & (pairs[DataKey.METRIC_ID] == 1)].iloc[0]
    assert row[DataKey.IMPORTANCE] == 4.0
    assert math.isnan(row[DataKey.DIFFERENCE])

    wide = wide.set_index(DataKey.RESPONDENT_ID)
    assert list(wide.columns) == [pain_col(1), pain_col(2)]
    assert wide.loc[1, pain_col(1)] == 3.0
    assert math.isnan(wide.loc[2, pain_col(1)])
    assert wide.loc[2, pain_col(2)] == 2.0
