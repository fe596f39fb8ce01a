"""Tests for demographic encoding and standardization."""

import math

import pandas as pd
import pytest

from painpoint.core.config import EncodingConfig
from painpoint.core.schema import DataKey
from painpoint.pipeline.steps.encode_demographics import _encode_demographics
from painpoint.pipeline.steps.standardize_demographics import _impute_median, _standardize


def make_attributes():
    return pd.DataFrame({
        DataKey.RESPONDENT_ID: [1, 2, 3, 4],
        "PR1_01": ["selected", "not selected", "selected", "maybe"],
        "PR1_02": ["yes", "selected", "no", "no"],
        "frequency": ["Weekly", "Never", None, "Daily"],
        "age": ["34", "51", "27", None],
        "empty": [None, None, None, None],
    })


def test_binary_recode():
    encoded, encoding_map = _encode_demographics(make_attributes(), EncodingConfig())

    assert encoded["PR1_01"].iloc[:3].tolist() == [1.0, 0.0, 1.0]
    assert math.isnan(encoded["PR1_01"].iloc[3])
    assert encoding_map.binary == ["PR1_01"]


def test_binary_detection_uses_first_cell():
    encoded, encoding_map = _encode_demographics(make_attributes(), EncodingConfig())

    # First cell is not a sentinel, so the column is a plain category
    assert "PR1_02" not in encoding_map.binary
    assert encoding_map.columns["PR1_02"].labels == ["no", "selected", "yes"]
    assert encoded["PR1_02"].tolist() == [2.0, 1.0, 0.0, 0.0]


def test_ordinal_assignment():
    encoded, encoding_map = _encode_demographics(make_attributes(), EncodingConfig())

    assert encoded["frequency"].iloc[0] == 4.0
    assert encoded["frequency"].iloc[1] == 1.0
    assert math.isnan(encoded["frequency"].iloc[2])
    assert encoded["frequency"].iloc[3] == 5.0

    assert encoding_map.columns["frequency"].ordered
    assert encoding_map.decode("frequency", 4) == "Weekly"


def test_numeric_text_and_empty_columns():
    encoded, encoding_map = _encode_demographics(make_attributes(), EncodingConfig())

    assert encoding_map.numeric == ["age"]
    assert encoded["age"].iloc[:3].tolist() == [34.0, 51.0, 27.0]

    assert "empty" not in encoded.columns
    assert "empty" not in encoding_map.columns


def test_unknown_ordinal_value_is_missing():
    attributes = pd.DataFrame({
        DataKey.RESPONDENT_ID: [1, 2],
        "frequency": ["Weekly", "Hourly"],
    })

    encoded, _ = _encode_demographics(attributes, EncodingConfig())

    assert encoded["frequency"].iloc[0] == 4.0
    assert math.isnan(encoded["frequency"].iloc[1])


def test_encode_requires_attributes():
    with pytest.raises(ValueError, match="No demographic"):
        _encode_demographics(pd.DataFrame({DataKey.RESPONDENT_ID: [1]}), EncodingConfig())


def test_standardize_then_impute_median():
    encoded = pd.DataFrame({
        DataKey.RESPONDENT_ID: [1, 2, 3],
        "a": [1.0, None, 3.0],
        "b": [0.0, 1.0, 2.0],
    })

    standardized = _standardize(encoded)

    # Missing cells are ignored while fitting
    assert standardized["a"].iloc[0] == pytest.approx(-1.0)
    assert standardized["a"].iloc[2] == pytest.approx(1.0)
    assert math.isnan(standardized["a"].iloc[1])

    imputed = _impute_median(standardized)

    assert imputed["a"].iloc[1] == pytest.approx(0.0)
    assert not imputed.isna().any().any()
    assert imputed["b"].mean() == pytest.approx(0.0)
    assert imputed[DataKey.RESPONDENT_ID].tolist() == [1, 2, 3]
