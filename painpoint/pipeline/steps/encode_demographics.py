"""
Demographic and profiling answers arrive as text. Clustering and regression
need numbers, so this step applies three deterministic transforms in order.

1. Binary recode

   Multiple-choice questions are exported as one column per option, with
   cells reading "selected" or "not selected". A column counts as binary when
   its first data cell is one of the two sentinels. All columns are scanned
   first and only then recoded, so recoding one column cannot influence the
   detection of another.

       "selected" -> 1, "not selected" -> 0, anything else -> missing

2. Typing

   A remaining text column whose non-missing cells all parse as numbers is a
   free numeric attribute (age in years, household income, ...). Every other
   text column is a category.

3. Ordinal assignment

   Some categories have a natural order that cannot be inferred from the data,
   so it is given by a static table `{column name or prefix: [labels]}`,
   smallest to largest. Ordered columns become their 1-based rank:

       ["Never", "Rarely", "Monthly", "Weekly", "Daily"]:  "Weekly" -> 4

   Unordered columns become a 0-based code over their sorted labels. Both
   mappings are kept in an `EncodingMap` so codes can be turned back into
   labels.

The result keeps missing values; imputation happens in the standardize step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import ClassVar

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype

from painpoint.core.config import EncodingConfig
from painpoint.core.models import ColumnEncoding, EncodingMap
from painpoint.core.schema import DataKey
from painpoint.pipeline.context import Context
from painpoint.pipeline.keys import Key
from painpoint.pipeline.step import Step

logger = logging.getLogger(__name__)


def _attribute_columns(df: pd.DataFrame) -> list[str]:
    return [c for c in df.columns if c != DataKey.RESPONDENT_ID]


def _find_binary_columns(df: pd.DataFrame, sentinels: tuple[str, str]) -> list[str]:
    """Columns whose first data cell is exactly one of the two sentinels."""
    if df.empty:
        return []
    return [c for c in _attribute_columns(df) if df[c].iloc[0] in sentinels]


def _recode_binary(
    df: pd.DataFrame,
    columns: list[str],
    sentinels: tuple[str, str]) -> pd.DataFrame:

    selected, not_selected = sentinels
    recoded = df.copy()

    for column in columns:
        recoded[column] = df[column].map({selected: 1.0, not_selected: 0.0}).astype(float)

        unexpected = df[column].notna() & recoded[column].isna()
        if unexpected.any():
            logger.warning(
                f"{column}: {int(unexpected.sum())} cells are neither "
                f"'{selected}' nor '{not_selected}', treated as missing")

    return recoded


def _is_numeric_text(values: pd.Series) -> bool:
    present = values.dropna()
    if present.empty:
        return False
    return bool(pd.to_numeric(present, errors="coerce").notna().all())


def _split_numeric(df: pd.DataFrame, skip: list[str]) -> tuple[pd.DataFrame, list[str], list[str]]:
    """Convert free numeric text columns; return the table, numeric and categorical columns."""

    typed = df.copy()
    numeric, categorical = [], []

    for column in _attribute_columns(df):
        if column in skip:
            continue
        if is_numeric_dtype(df[column]) or _is_numeric_text(df[column]):
            typed[column] = pd.to_numeric(df[column], errors="coerce").astype(float)
            numeric.append(column)
        else:
            categorical.append(column)

    return typed, numeric, categorical


def _assign_ordinal(
    df: pd.DataFrame,
    categorical: list[str],
    encoding: EncodingConfig) -> tuple[pd.DataFrame, dict[str, ColumnEncoding]]:

    encoded = df.copy()
    mappings: dict[str, ColumnEncoding] = {}

    for column in categorical:
        values = df[column].astype("string").str.strip().astype(object).where(df[column].notna())
        levels = encoding.levels_for(column)

        if levels is not None:
            categories = pd.Categorical(values, categories=levels, ordered=True)
            unknown = values.notna() & (categories.codes == -1)
            if unknown.any():
                logger.warning(
                    f"{column}: {int(unknown.sum())} values not in the ordinal table, "
                    f"treated as missing: {sorted(set(values[unknown]))}")
            offset = 1
        else:
            categories = pd.Categorical(values)
            offset = 0

        codes = categories.codes.astype(float)
        codes[codes < 0] = np.nan
        encoded[column] = codes + offset

        mappings[column] = ColumnEncoding(
            labels=[str(c) for c in categories.categories],
            ordered=levels is not None)

    return encoded, mappings


def _encode_demographics(
    attributes: pd.DataFrame,
    encoding: EncodingConfig) -> tuple[pd.DataFrame, EncodingMap]:

    if attributes.empty or not _attribute_columns(attributes):
        raise ValueError("No demographic or profiling attributes to encode")

    binary = _find_binary_columns(attributes, encoding.binary_sentinels)
    recoded = _recode_binary(attributes, binary, encoding.binary_sentinels)

    typed, numeric, categorical = _split_numeric(recoded, skip=binary)
    encoded, mappings = _assign_ordinal(typed, categorical, encoding)

    empty = [c for c in _attribute_columns(encoded) if encoded[c].isna().all()]
    if empty:
        logger.warning(f"Dropping attributes without any answer: {', '.join(empty)}")
        encoded = encoded.drop(columns=empty)
        for column in empty:
            mappings.pop(column, None)

    logger.debug(
        f"Encoded {len(binary)} binary, {len(numeric)} numeric, "
        f"{sum(m.ordered for m in mappings.values())} ordinal and "
        f"{sum(not m.ordered for m in mappings.values())} nominal attributes"
    )

    encoding_map = EncodingMap(
        columns=mappings,
        binary=[c for c in binary if c not in empty],
        numeric=[c for c in numeric if c not in empty],
    )

    return encoded, encoding_map


def _join_attributes(demographics: pd.DataFrame, profiling: pd.DataFrame) -> pd.DataFrame:
    return demographics.merge(
        profiling,
        on=DataKey.RESPONDENT_ID,
        how="left",
        validate="1:1",
    )


@dataclass
class EncodeDemographics(Step):
    """Pipeline step: recode demographic and profiling attributes as numbers."""
    name: ClassVar[str] = "encode_demographics"

    encoding: EncodingConfig = field(default_factory=EncodingConfig)

    def run(self, ctx: Context) -> Context:

        demographics = ctx.require_table(Key.DERIVED_TABLE_DEMOGRAPHICS_RAW)
        profiling = ctx.require_table(Key.DERIVED_TABLE_PROFILING_RAW)

        attributes = _join_attributes(demographics, profiling)
        encoded, encoding_map = _encode_demographics(attributes, self.encoding)

        ctx.add_table(Key.DERIVED_TABLE_DEMOGRAPHICS_ENCODED, encoded)
        ctx.set_state(Key.STATE_ENCODING_MAP, encoding_map)

        return ctx
