"""
Not every pain point deserves attention: a large gap on a metric nobody cares
about is not an opportunity. Selection therefore works in two passes over the
per-metric means (missing ratings skipped):

| metricId | meanImportance | meanDifference |
|----------|----------------|----------------|
| 1        | 3.6            | 0.8            |
| 2        | 3.4            | 1.9            |   <- below the 3.5 threshold, dropped
| 3        | 4.0            | 1.2            |

1. keep metrics with mean importance >= threshold (3.5 on the 1-5 scale)
2. rank the rest by mean difference, largest first, ties by metric id

The top 15 are shown, the top 5 are modeled. Every selected metric must have
a label in the lookup table; a missing label stops the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar

import pandas as pd

from painpoint.core.models import LabelLookup
from painpoint.core.schema import DataKey
from painpoint.pipeline.context import Context
from painpoint.pipeline.keys import Key
from painpoint.pipeline.step import Step

logger = logging.getLogger(__name__)


def _summarize_metrics(pairs: pd.DataFrame) -> pd.DataFrame:
    """Mean importance and mean difference per metric."""

    if pairs.empty:
        raise ValueError("Cannot summarize metrics from an empty pair table")

    return (
        pairs.groupby(DataKey.METRIC_ID)
        .agg(**{
            DataKey.MEAN_IMPORTANCE.value: (DataKey.IMPORTANCE.value, "mean"),
            DataKey.MEAN_DIFFERENCE.value: (DataKey.DIFFERENCE.value, "mean"),
        })
        .reset_index()
        .sort_values(DataKey.METRIC_ID)
        .reset_index(drop=True)
    )


def _rank_metrics(
    summary: pd.DataFrame,
    importance_threshold: float = 3.5,
    top_n: int = 15) -> pd.DataFrame:

    if top_n <= 0:
        raise ValueError("top_n must be greater than 0")

    unrankable = summary[DataKey.MEAN_DIFFERENCE].isna()
    if unrankable.any():
        logger.warning(
            f"Metrics without a mean difference left out of the ranking: "
            f"{', '.join(str(int(m)) for m in summary.loc[unrankable, DataKey.METRIC_ID])}")

    retained = summary[
        ~unrankable & (summary[DataKey.MEAN_IMPORTANCE] >= importance_threshold)]

    logger.debug(
        f"{len(retained)} of {len(summary)} metrics reach mean importance "
        f">= {importance_threshold}"
    )

    ranked = (
        retained.sort_values(
            [DataKey.MEAN_DIFFERENCE, DataKey.METRIC_ID],
            ascending=[False, True],
            kind="mergesort")
        .head(top_n)
        .reset_index(drop=True)
    )
    ranked.insert(0, DataKey.RANK, range(1, len(ranked) + 1))

    return ranked


def _attach_labels(ranked: pd.DataFrame, labels: LabelLookup) -> pd.DataFrame:
    """Resolve labels by metric id; raises LabelResolutionError when one is missing."""
    labelled = ranked.copy()
    labelled[DataKey.LABEL] = [labels.get_text(int(m)) for m in ranked[DataKey.METRIC_ID]]
    return labelled


@dataclass
class SelectMetrics(Step):
    """Pipeline step: rank important metrics by mean pain and pick the modeling targets."""
    name: ClassVar[str] = "select_metrics"

    labels: LabelLookup
    importance_threshold: float = 3.5
    display_top_n: int = 15
    model_top_n: int = 5

    def run(self, ctx: Context) -> Context:

        pairs = ctx.require_table(Key.DERIVED_TABLE_PAIN_PAIRS)

        summary = _summarize_metrics(pairs)
        ranked = _rank_metrics(summary, self.importance_threshold, self.display_top_n)
        selection = _attach_labels(ranked, self.labels)

        if selection.empty:
            logger.warning(
                f"No metric reaches mean importance >= {self.importance_threshold}")

        model_metrics = [int(m) for m in selection[DataKey.METRIC_ID].head(self.model_top_n)]

        ctx.add_table(Key.GEN_TABLE_METRIC_SUMMARY, summary)
        ctx.add_table(Key.GEN_TABLE_METRIC_SELECTION, selection)
        ctx.set_state(Key.STATE_MODEL_METRICS, model_metrics)

        return ctx
