"""End-to-end tests for the PainPointAnalyzer."""

import numpy as np
import pandas as pd
import pytest

from painpoint.core.analyzer import PainPointAnalyzer
from painpoint.core.config import AnalysisConfig, PredictionConfig
from painpoint.core.models import LabelLookup, LabelResolutionError
from painpoint.core.schema import DataKey
from painpoint.pipeline.keys import Key

AGE_GROUPS = ["18-29", "30-44", "45-59", "60 and older"]
FREQUENCIES = ["Never", "Rarely", "Monthly", "Weekly", "Daily"]


def make_survey(n_respondents=50, seed=0):
    """
    Generate a raw survey with three metrics:

    - metric 1: important and unsatisfying (the pain point)
    - metric 2: unimportant
    - metric 3: important and satisfying
    """
    rng = np.random.default_rng(seed)

    def rated(low, high):
        return [f"{v} = answer" for v in rng.integers(low, high + 1, size=n_respondents)]

    frequency = list(rng.choice(FREQUENCIES, size=n_respondents))
    for i in range(0, n_respondents, 10):
        frequency[i] = None

    return pd.DataFrame({
        DataKey.RESPONDENT_ID: list(range(1, n_respondents + 1)),
        "IMP_1": rated(4, 5),
        "SAT_1": rated(1, 2),
        "IMP_2": rated(1, 3),
        "SAT_2": rated(1, 5),
        "IMP_3": rated(3, 5),
        "SAT_3": rated(3, 5),
        "age_group": list(rng.choice(AGE_GROUPS, size=n_respondents)),
        "gender": list(rng.choice(["female", "male", "diverse"], size=n_respondents)),
        "frequency": frequency,
        "PR1_01": list(rng.choice(["selected", "not selected"], size=n_respondents)),
        "X_comment": ["free text"] * n_respondents,
    })


def make_labels():
    return LabelLookup(labels={
        "1": "Staff respond quickly",
        "2": "Parking is available",
        "3": "Opening hours fit my day",
    })


def test_analyzer_end_to_end():
    analyzer = PainPointAnalyzer(make_labels()).fit(make_survey())

    report = analyzer.report

    assert report.n_respondents == 50
    assert report.n_metrics == 3

    # Metric 2 is below the importance threshold
    assert report.selection.metric_ids() == [1, 3]
    assert report.selection.metrics[0].label == "Staff respond quickly"
    assert report.selection.metrics[0].mean_difference > 2.0

    assert 2 <= report.clusters.k <= 10
    assert len(report.clusters.assignments) == 50
    assert sum(report.clusters.cluster_sizes().values()) == 50
    assert 1 in report.clusters.get_respondents(report.clusters.assignments[1])
    assert [c.k for c in report.cluster_candidates] == list(range(2, 11))

    assert [p.metric_id for p in report.predictions] == [1, 3]
    for prediction in report.predictions:
        assert 0.0 <= prediction.dev_ratio_mean <= prediction.dev_ratio_max <= 1.0
        assert len(prediction.top_predictors) == 3


def test_analyzer_blank_attributes_with_default_predictors():
    survey = make_survey()
    survey.loc[3, "gender"] = None
    survey.loc[3, "PR1_01"] = None

    analyzer = PainPointAnalyzer(make_labels()).fit(survey)

    assert [p.metric_id for p in analyzer.predictions] == [1, 3]
    for prediction in analyzer.predictions:
        assert prediction.n_respondents == 50
        assert len(prediction.top_predictors) == 3


def test_analyzer_keeps_intermediate_tables():
    analyzer = PainPointAnalyzer(make_labels()).fit(make_survey())

    pairs = analyzer.pain_points
    assert len(pairs) == 50 * 3
    assert set(pairs.columns) >= {
        DataKey.RESPONDENT_ID, DataKey.METRIC_ID,
        DataKey.IMPORTANCE, DataKey.SATISFACTION, DataKey.DIFFERENCE,
    }

    standardized = analyzer.context.require_table(Key.DERIVED_TABLE_DEMOGRAPHICS_STD)
    assert not standardized.isna().any().any()
    assert "X_comment" not in standardized.columns


def test_analyzer_is_deterministic():
    first = PainPointAnalyzer(make_labels()).fit(make_survey())
    second = PainPointAnalyzer(make_labels()).fit(make_survey())

    assert first.clusters == second.clusters
    assert first.predictions == second.predictions


def test_analyzer_missing_label():
    labels = LabelLookup(labels={"1": "Staff respond quickly"})
    analyzer = PainPointAnalyzer(labels)

    with pytest.raises(RuntimeError, match="Analysis failed") as exc_info:
        analyzer.fit(make_survey())

    assert isinstance(exc_info.value.__cause__, LabelResolutionError)


def test_analyzer_with_fixed_predictors():
    config = AnalysisConfig(prediction=PredictionConfig(predictors=["age_group", "frequency"]))

    analyzer = PainPointAnalyzer(make_labels(), config).fit(make_survey())

    for prediction in analyzer.predictions:
        assert {p.name for p in prediction.top_predictors} <= {"age_group", "frequency"}
        assert len(prediction.top_predictors) == 2


def test_analyzer_validation():
    analyzer = PainPointAnalyzer(make_labels())

    with pytest.raises(ValueError, match="cannot be empty"):
        analyzer.fit(pd.DataFrame())

    with pytest.raises(ValueError, match="Need more than 2 respondents"):
        analyzer.fit(make_survey(n_respondents=2))

    survey = make_survey().drop(columns=["SAT_1", "SAT_2", "SAT_3"])
    with pytest.raises(ValueError, match="No satisfaction columns"):
        analyzer.fit(survey)


def test_analyzer_not_fitted():
    analyzer = PainPointAnalyzer(make_labels())

    with pytest.raises(ValueError, match="not fitted"):
        _ = analyzer.report

    with pytest.raises(ValueError, match="not fitted"):
        _ = analyzer.clusters
