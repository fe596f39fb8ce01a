"""
Pipeline context keys for accessing tables and state.

This module defines string constants used to read/write data in the pipeline
`Context`. All data lives in one of two namespaces:

- `ctx.tables[...]`  : tabular artifacts (pandas DataFrames)
- `ctx.state[...]`   : non-tabular artifacts (encoding maps, models, lists)
"""

from enum import StrEnum


class Key(StrEnum):
    # ─────────────────────────────────────────────────────────────────────────────
    # Field partitioning
    # ─────────────────────────────────────────────────────────────────────────────

    # Raw rating text, renamed to canonical columns
    # | respondentId | importance_1       | satisfaction_1  | ... |
    # |--------------|--------------------|-----------------|-----|
    # | 1            | 5 = Very important | 2 = Unsatisfied | ... |
    DERIVED_TABLE_RATINGS_RAW = "DERIVED_TABLE_RATINGS_RAW"

    # Demographic attributes as loaded (text)
    # | respondentId | age_group | gender | ... |
    DERIVED_TABLE_DEMOGRAPHICS_RAW = "DERIVED_TABLE_DEMOGRAPHICS_RAW"

    # Auxiliary profiling responses as loaded (text)
    # | respondentId | PR1_01   | PR1_02       | ... |
    DERIVED_TABLE_PROFILING_RAW = "DERIVED_TABLE_PROFILING_RAW"

    # ─────────────────────────────────────────────────────────────────────────────
    # Ratings and pain points
    # ─────────────────────────────────────────────────────────────────────────────

    # Numeric ratings (1..5, NaN for malformed text)
    # | respondentId | importance_1 | satisfaction_1 | ... |
    # |--------------|--------------|----------------|-----|
    # | 1            | 5            | 2              | ... |
    DERIVED_TABLE_RATINGS = "DERIVED_TABLE_RATINGS"

    # One row per (respondent, metric)
    # | respondentId | metricId | importance | satisfaction | difference |
    DERIVED_TABLE_PAIN_PAIRS = "DERIVED_TABLE_PAIN_PAIRS"

    # One row per respondent, one column per metric, value = difference
    # | respondentId | pain_1 | pain_2 | ... |
    DERIVED_TABLE_PAIN_WIDE = "DERIVED_TABLE_PAIN_WIDE"

    # ─────────────────────────────────────────────────────────────────────────────
    # Demographic encoding and segmentation
    # ─────────────────────────────────────────────────────────────────────────────

    # Encoded attributes: binary 0/1, ordinal ranks, category codes (NaN kept)
    # | respondentId | age_group | PR1_01 | ... |
    # |--------------|-----------|--------|-----|
    # | 1            | 3         | 1      | ... |
    DERIVED_TABLE_DEMOGRAPHICS_ENCODED = "DERIVED_TABLE_DEMOGRAPHICS_ENCODED"

    # EncodingMap with the label tables needed to decode the codes above
    STATE_ENCODING_MAP = "STATE_ENCODING_MAP"

    # Standardized and median-imputed attributes (no missing values)
    DERIVED_TABLE_DEMOGRAPHICS_STD = "DERIVED_TABLE_DEMOGRAPHICS_STD"

    # Partition quality per candidate cluster count
    # | k | ratio  |
    # |---|--------|
    # | 2 | 41.2   |
    GEN_TABLE_CLUSTER_CANDIDATES = "GEN_TABLE_CLUSTER_CANDIDATES"

    # Selected number of clusters (int)
    STATE_PARAM_N_CLUSTERS = "STATE_PARAM_N_CLUSTERS"

    # | respondentId | segmentId |
    DERIVED_TABLE_CLUSTERS = "DERIVED_TABLE_CLUSTERS"

    # ─────────────────────────────────────────────────────────────────────────────
    # Metric selection and prediction
    # ─────────────────────────────────────────────────────────────────────────────

    # Per-metric means over all respondents
    # | metricId | meanImportance | meanDifference |
    GEN_TABLE_METRIC_SUMMARY = "GEN_TABLE_METRIC_SUMMARY"

    # Ranked top pain points for display, with labels
    # | rank | metricId | label | meanImportance | meanDifference |
    GEN_TABLE_METRIC_SELECTION = "GEN_TABLE_METRIC_SELECTION"

    # Metric IDs used as regression targets (list[int])
    STATE_MODEL_METRICS = "STATE_MODEL_METRICS"

    # Per-metric regression summaries (list[MetricPrediction])
    STATE_PREDICTIONS = "STATE_PREDICTIONS"
