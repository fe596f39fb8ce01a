"""
Tools and logic for running the pain-point analysis pipeline on survey
respondent data.
"""

import pandas as pd

from painpoint.core.config import AnalysisConfig
from painpoint.core.models import (
    AnalysisReport,
    ClusterAssignments,
    ClusterCandidate,
    LabelLookup,
    MetricPrediction,
    MetricSelection,
    SelectedMetric,
)
from painpoint.core.schema import DataKey, FieldRole
from painpoint.pipeline.context import Context
from painpoint.pipeline.keys import Key
from painpoint.pipeline.runner import run_pipeline
from painpoint.pipeline.step import Step
from painpoint.pipeline.steps.assign_clusters import AssignClusters
from painpoint.pipeline.steps.derive_pain_points import DerivePainPoints
from painpoint.pipeline.steps.encode_demographics import EncodeDemographics
from painpoint.pipeline.steps.normalize_ratings import NormalizeRatings
from painpoint.pipeline.steps.partition_fields import PartitionFields
from painpoint.pipeline.steps.predict_pain_points import PredictPainPoints
from painpoint.pipeline.steps.select_metrics import SelectMetrics
from painpoint.pipeline.steps.standardize_demographics import StandardizeDemographics


class PainPointAnalyzer:
    """
    Runs the analysis pipeline and provides access to clusters, the selected
    pain points and the per-metric predictions.
    """
    def __init__(
        self,
        metric_labels: LabelLookup,
        config: AnalysisConfig | None = None,
        profiling_labels: LabelLookup | None = None):

            self.config = config or AnalysisConfig.default()
            self.metric_labels = metric_labels
            self.profiling_labels = profiling_labels

            self._context = None
            self._fitted = False

    def fit(self, survey: pd.DataFrame) -> "PainPointAnalyzer":

        self._validate_survey(survey)

        self._context = Context()
        self._context.set_survey(survey)

        self._fitted = False

        try:
            run_pipeline(self._context, self._build_pipeline())
            self._fitted = True
        except Exception as e:
            raise RuntimeError(f"Analysis failed: {e}") from e

        return self

    def _validate_survey(self, df: pd.DataFrame):
        """Validate input data format."""
        if not isinstance(df, pd.DataFrame):
            raise ValueError(f"survey must be DataFrame, got {type(df)}")

        if df.empty:
            raise ValueError("survey cannot be empty")

        if DataKey.RESPONDENT_ID not in df.columns:
            raise ValueError(f"survey must contain a '{DataKey.RESPONDENT_ID}' column")

        roles = [self.config.fields.role_of(str(c)) for c in df.columns]

        if FieldRole.IMPORTANCE not in roles:
            raise ValueError("No importance columns found")

        if FieldRole.SATISFACTION not in roles:
            raise ValueError("No satisfaction columns found")

        if len(df) <= self.config.segmentation.min_clusters:
            raise ValueError(
                f"Need more than {self.config.segmentation.min_clusters} respondents, "
                f"got {len(df)}"
            )

    @property
    def context(self) -> Context:
        self._check_fitted()
        return self._context

    @property
    def pain_points(self) -> pd.DataFrame:
        """One row per (respondent, metric) with importance, satisfaction and difference."""
        self._check_fitted()
        return self._context.require_table(Key.DERIVED_TABLE_PAIN_PAIRS)

    @property
    def cluster_candidates(self) -> list[ClusterCandidate]:
        self._check_fitted()
        table = self._context.require_table(Key.GEN_TABLE_CLUSTER_CANDIDATES)
        return [ClusterCandidate(k=int(r.k), ratio=float(r.ratio)) for r in table.itertuples()]

    @property
    def clusters(self) -> ClusterAssignments:
        self._check_fitted()

        clusters = self._context.require_table(Key.DERIVED_TABLE_CLUSTERS)

        return ClusterAssignments(
            k=int(self._context.require_state(Key.STATE_PARAM_N_CLUSTERS)),
            random_state=self.config.segmentation.random_state,
            assignments={
                int(rid): int(sid)
                for rid, sid in zip(clusters[DataKey.RESPONDENT_ID], clusters[DataKey.SEGMENT_ID])
            },
        )

    @property
    def selection(self) -> MetricSelection:
        self._check_fitted()

        table = self._context.require_table(Key.GEN_TABLE_METRIC_SELECTION)

        return MetricSelection(
            threshold=self.config.selection.importance_threshold,
            metrics=[
                SelectedMetric(
                    metric_id=int(row[DataKey.METRIC_ID]),
                    label=str(row[DataKey.LABEL]),
                    mean_importance=round(float(row[DataKey.MEAN_IMPORTANCE]), 3),
                    mean_difference=round(float(row[DataKey.MEAN_DIFFERENCE]), 3),
                )
                for _, row in table.iterrows()
            ],
        )

    @property
    def predictions(self) -> list[MetricPrediction]:
        self._check_fitted()
        return self._context.require_state(Key.STATE_PREDICTIONS)

    @property
    def report(self) -> AnalysisReport:
        self._check_fitted()

        pairs = self._context.require_table(Key.DERIVED_TABLE_PAIN_PAIRS)

        return AnalysisReport(
            n_respondents=int(pairs[DataKey.RESPONDENT_ID].nunique()),
            n_metrics=int(pairs[DataKey.METRIC_ID].nunique()),
            cluster_candidates=self.cluster_candidates,
            clusters=self.clusters,
            selection=self.selection,
            predictions=self.predictions,
        )

    def _check_fitted(self):
        if not self._fitted:
            raise ValueError("PainPointAnalyzer not fitted. Call fit() first.")

    def _build_pipeline(self) -> list[Step]:
        config = self.config
        steps = []

        # Cleaning
        steps.append(PartitionFields(config.fields))
        steps.append(NormalizeRatings())
        steps.append(DerivePainPoints())

        # Segmentation
        steps.append(EncodeDemographics(config.encoding))
        steps.append(StandardizeDemographics())
        steps.append(AssignClusters(
            min_clusters=config.segmentation.min_clusters,
            max_clusters=config.segmentation.max_clusters,
            random_state=config.segmentation.random_state))

        # Selection and prediction
        steps.append(SelectMetrics(
            labels=self.metric_labels,
            importance_threshold=config.selection.importance_threshold,
            display_top_n=config.selection.display_top_n,
            model_top_n=config.selection.model_top_n))
        steps.append(PredictPainPoints(
            predictors=config.prediction.predictors,
            never_label=config.encoding.never_label,
            cv_folds=config.prediction.cv_folds,
            random_state=config.prediction.random_state,
            top_predictors=config.prediction.top_predictors,
            profiling_labels=self.profiling_labels))

        return steps
