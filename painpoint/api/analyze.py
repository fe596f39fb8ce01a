"""High-level analysis API."""

import logging
from pathlib import Path

import pandas as pd

from painpoint.core.analyzer import PainPointAnalyzer
from painpoint.core.config import AnalysisConfig
from painpoint.core.loaders.labels_loader import LabelsLoader
from painpoint.core.loaders.survey_loader import SurveyLoader
from painpoint.core.models import LabelLookup

logger = logging.getLogger(__name__)


def load_inputs(
    survey_path: str | Path,
    config: AnalysisConfig,
    labels_path: str | Path | None = None,
) -> tuple[pd.DataFrame, LabelLookup, LabelLookup | None]:
    """Load the survey sheet and its label lookups.

    Labels are read from `labels_path` when given, otherwise from other sheets
    of the survey workbook.
    """
    source = config.source
    labels_source = labels_path or survey_path

    survey = SurveyLoader(
        survey_path,
        sheet=source.survey_sheet,
        skip_rows=source.skip_rows,
        id_column=source.id_column,
    ).load()
    logger.info(f"Loaded {len(survey)} respondents from {survey_path}")

    metric_labels = LabelsLoader(
        labels_source,
        sheet=source.metric_labels_sheet,
        key_column=source.label_key_column,
        label_column=source.label_text_column,
    ).load()
    logger.info(f"Loaded {len(metric_labels.labels)} metric labels")

    profiling_labels = None
    if source.profiling_labels_sheet is not None:
        profiling_labels = LabelsLoader(
            labels_source,
            sheet=source.profiling_labels_sheet,
            key_column=source.label_key_column,
            label_column=source.label_text_column,
        ).load()
        logger.info(f"Loaded {len(profiling_labels.labels)} profiling labels")

    return survey, metric_labels, profiling_labels


def analyze(
    survey: pd.DataFrame,
    metric_labels: LabelLookup,
    config: AnalysisConfig | None = None,
    profiling_labels: LabelLookup | None = None,
) -> PainPointAnalyzer:
    """Run the full pain-point pipeline.

    Args:
        survey: Raw survey table, one row per respondent, `respondentId` column
        metric_labels: Label text per metric index
        config: Analysis configuration. Uses defaults if None.
        profiling_labels: Label text per profiling column, used in reports

    Returns:
        The fitted analyzer, giving access to every intermediate table.
    """
    analyzer = PainPointAnalyzer(metric_labels, config, profiling_labels)
    analyzer.fit(survey)

    clusters = analyzer.clusters
    logger.info(f"Selected {clusters.k} clusters, sizes {clusters.cluster_sizes()}")
    logger.info(f"Selected {len(analyzer.selection.metrics)} top pain points")

    return analyzer
