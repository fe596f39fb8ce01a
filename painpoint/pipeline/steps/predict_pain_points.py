"""
Who feels a pain point most? For each of the top selected metrics we regress
the respondents' pain difference on a fixed set of demographic and profiling
predictors:

    pain_m  ~  age_group + education + frequency + PR1_01 + ...

with an L1 (lasso) penalty, so that only the predictors that actually help
keep a non-zero weight. The penalty strength is picked by 10-fold
cross-validation on mean squared error; when several penalties tie, the
largest one wins. The folds are shuffled with a fixed seed so a run is
reproducible. The model is then refit at that penalty on all respondents.

For every metric we report:

    - the deviance ratio (fraction of variance explained, like R^2) of the
      full-data fit at every penalty on the path: mean, max and std
    - the three predictors with the largest absolute weight, signed

Predictors are standardized before fitting so their weights are comparable.

Missing predictor values are not allowed to silently drop rows. An ordered
frequency question left blank means the respondent never does it, so it is
filled with the rank of the "Never" level. When the predictors are left at
their default (every encoded attribute), any other blank is filled with the
column median, which is the same value the standardized table carries. An
explicit predictor list that is still missing values stops the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar

import numpy as np
import pandas as pd
from sklearn.linear_model import LassoCV, lasso_path
from sklearn.model_selection import KFold
from sklearn.preprocessing import StandardScaler

from painpoint.core.models import (
    EncodingMap,
    LabelLookup,
    MetricPrediction,
    PredictorWeight,
)
from painpoint.core.schema import DataKey, pain_col
from painpoint.pipeline.context import Context
from painpoint.pipeline.keys import Key
from painpoint.pipeline.step import Step

logger = logging.getLogger(__name__)


class MissingPredictorError(ValueError):
    """Raised when predictor values are still missing after imputation."""


def _never_rank(encoding_map: EncodingMap, column: str, never_label: str) -> int | None:
    encoding = encoding_map.columns.get(column)
    if encoding is None or not encoding.ordered:
        return None
    for label in encoding.labels:
        if label.strip().lower() == never_label.strip().lower():
            return encoding.code_of(label)
    return None


def _build_predictors(
    encoded: pd.DataFrame,
    predictors: list[str] | None,
    encoding_map: EncodingMap,
    never_label: str = "Never") -> pd.DataFrame:
    """Predictor matrix indexed by respondent id, with the missing values filled."""

    available = [c for c in encoded.columns if c != DataKey.RESPONDENT_ID]
    columns = list(predictors) if predictors else available

    unknown = [c for c in columns if c not in available]
    if unknown:
        raise KeyError(f"Predictors not found among encoded attributes: {', '.join(unknown)}")

    X = encoded.set_index(DataKey.RESPONDENT_ID)[columns].astype(float)

    for column in columns:
        if not X[column].isna().any():
            continue
        rank = _never_rank(encoding_map, column, never_label)
        if rank is not None:
            logger.debug(
                f"{column}: filling {int(X[column].isna().sum())} missing values "
                f"with the '{never_label}' rank {rank}")
            X[column] = X[column].fillna(float(rank))
        elif not predictors:
            median = X[column].median()
            logger.debug(
                f"{column}: filling {int(X[column].isna().sum())} missing values "
                f"with the median {median}")
            X[column] = X[column].fillna(median)

    still_missing = [c for c in columns if X[c].isna().any()]
    if still_missing:
        raise MissingPredictorError(
            f"Predictors with missing values after imputation: {', '.join(still_missing)}")

    return X


def _deviance_ratios(X: np.ndarray, y: np.ndarray, alphas: np.ndarray) -> np.ndarray:
    """Fraction of variance explained by the full-data lasso fit at each penalty."""

    Xc = X - X.mean(axis=0)
    yc = y - y.mean()
    total = float(yc @ yc)

    _, coefs, _ = lasso_path(Xc, yc, alphas=alphas, max_iter=10000)
    residuals = yc[:, None] - Xc @ coefs
    ratios = 1.0 - (residuals ** 2).sum(axis=0) / total

    # Never below the intercept-only fit, up to solver tolerance
    return np.maximum(ratios, 0.0)


def _top_predictors(
    columns: list[str],
    coefficients: np.ndarray,
    n: int,
    profiling_labels: LabelLookup | None) -> list[PredictorWeight]:

    order = np.argsort(-np.abs(coefficients), kind="stable")[:n]
    return [
        PredictorWeight(
            name=columns[i],
            label=(profiling_labels.get_text(columns[i])
                   if profiling_labels is not None and columns[i] in profiling_labels else columns[i]),
            coefficient=round(float(coefficients[i]), 3),
        )
        for i in order
    ]


def _predict_metric(
    metric_id: int,
    label: str,
    X: pd.DataFrame,
    pain_wide: pd.DataFrame,
    cv_folds: int = 10,
    random_state: int = 42,
    top_predictors: int = 3,
    profiling_labels: LabelLookup | None = None) -> MetricPrediction:

    target = pain_wide.set_index(DataKey.RESPONDENT_ID)[pain_col(metric_id)].reindex(X.index)

    rated = target.notna()
    if not rated.all():
        logger.warning(
            f"Metric {metric_id}: {int((~rated).sum())} respondents without a pain score "
            f"left out of this model")

    y = target[rated].to_numpy(dtype=float)
    features = X[rated]

    if len(y) < cv_folds:
        raise ValueError(
            f"Metric {metric_id}: {len(y)} respondents is too few for {cv_folds}-fold CV")
    if np.ptp(y) == 0:
        raise ValueError(f"Metric {metric_id}: pain score is constant, nothing to predict")

    X_std = StandardScaler().fit_transform(features)

    folds = KFold(n_splits=cv_folds, shuffle=True, random_state=random_state)
    model = LassoCV(cv=folds, random_state=random_state, max_iter=10000)

    # LassoCV refits on all rows at the penalty with the lowest mean CV error
    model.fit(X_std, y)

    ratios = _deviance_ratios(X_std, y, model.alphas_)
    cv_mse = float(model.mse_path_.mean(axis=1).min())

    logger.debug(
        f"Metric {metric_id}: alpha={model.alpha_:.4f}, cv_mse={cv_mse:.3f}, "
        f"dev_ratio max={ratios.max():.3f}"
    )

    return MetricPrediction(
        metric_id=metric_id,
        label=label,
        n_respondents=len(y),
        alpha=float(model.alpha_),
        cv_mse=cv_mse,
        dev_ratio_mean=float(ratios.mean()),
        dev_ratio_max=float(ratios.max()),
        dev_ratio_std=float(ratios.std()),
        top_predictors=_top_predictors(
            list(features.columns), model.coef_, top_predictors, profiling_labels),
    )


@dataclass
class PredictPainPoints(Step):
    """Pipeline step: fit one cross-validated lasso per selected pain point."""
    name: ClassVar[str] = "predict_pain_points"

    predictors: list[str] | None = None
    never_label: str = "Never"
    cv_folds: int = 10
    random_state: int = 42
    top_predictors: int = 3
    profiling_labels: LabelLookup | None = None

    def run(self, ctx: Context) -> Context:

        encoded = ctx.require_table(Key.DERIVED_TABLE_DEMOGRAPHICS_ENCODED)
        encoding_map = ctx.require_state(Key.STATE_ENCODING_MAP)
        pain_wide = ctx.require_table(Key.DERIVED_TABLE_PAIN_WIDE)
        selection = ctx.require_table(Key.GEN_TABLE_METRIC_SELECTION)
        metric_ids = ctx.require_state(Key.STATE_MODEL_METRICS)

        X = _build_predictors(encoded, self.predictors, encoding_map, self.never_label)
        labels = dict(zip(selection[DataKey.METRIC_ID], selection[DataKey.LABEL]))

        predictions = [
            _predict_metric(
                metric_id,
                labels[metric_id],
                X,
                pain_wide,
                cv_folds=self.cv_folds,
                random_state=self.random_state,
                top_predictors=self.top_predictors,
                profiling_labels=self.profiling_labels)
            for metric_id in metric_ids
        ]

        ctx.set_state(Key.STATE_PREDICTIONS, predictions)

        return ctx
