"""
Every respondent is now a point in N-dimensional space, one axis per encoded
demographic or profiling attribute. K-means draws "bubbles" around dense
groups of points; the question is how many bubbles to draw.

For each candidate K (2..10 by default) we run k-means and score the
partition with the ratio

                B / (K - 1)
    ratio  =  ---------------
                W / (N - K)

where B is the between-cluster dispersion, W the within-cluster dispersion
and N the number of respondents (the Calinski-Harabasz index). The K with the
largest ratio wins, and k-means is run once more at that K to label every
respondent:

| respondentId | segmentId |
|--------------|-----------|
| 1            | 0         |
| 2            | 1         |

The ratio is a heuristic without a confidence bound; it is the default
selection rule, not a statistical test. Every k-means fit receives the same
seed, so a fixed input always yields the same K and the same labels.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import ClassVar

import numpy as np
import pandas as pd
from sklearn.cluster import KMeans
from sklearn.metrics import calinski_harabasz_score

from painpoint.core.models import ClusterCandidate
from painpoint.core.schema import DataKey
from painpoint.pipeline.context import Context
from painpoint.pipeline.keys import Key
from painpoint.pipeline.step import Step

logger = logging.getLogger(__name__)


def _candidate_counts(n_respondents: int, min_clusters: int, max_clusters: int) -> list[int]:
    """Cluster counts that can be scored: the ratio needs 2 <= K <= N - 1."""
    upper = min(max_clusters, n_respondents - 1)
    candidates = list(range(max(min_clusters, 2), upper + 1))
    if not candidates:
        raise ValueError(
            f"Cannot cluster {n_respondents} respondents into "
            f"{min_clusters}..{max_clusters} clusters")
    return candidates


def _fit_kmeans(features: np.ndarray, k: int, random_state: int) -> np.ndarray:
    kmeans = KMeans(n_clusters=k, random_state=random_state, n_init="auto")
    return kmeans.fit_predict(features)


def _score_candidate(features: np.ndarray, k: int, random_state: int) -> ClusterCandidate:
    labels = _fit_kmeans(features, k, random_state)

    if len(np.unique(labels)) < 2:
        logger.warning(f"K={k}: k-means produced a single cluster, candidate skipped")
        return ClusterCandidate(k=k, ratio=float("nan"))

    return ClusterCandidate(k=k, ratio=float(calinski_harabasz_score(features, labels)))


def _select_cluster_count(candidates: list[ClusterCandidate]) -> int:
    """Largest ratio wins; ties go to the smaller K."""
    scored = [c for c in candidates if not math.isnan(c.ratio)]
    if not scored:
        raise ValueError("No candidate cluster count produced a valid partition")
    best = max(scored, key=lambda c: (c.ratio, -c.k))
    return best.k


def _feature_matrix(standardized: pd.DataFrame) -> np.ndarray:

    columns = [c for c in standardized.columns if c != DataKey.RESPONDENT_ID]
    if not columns:
        raise ValueError("No attribute columns to cluster on")

    missing = [c for c in columns if standardized[c].isna().any()]
    if missing:
        raise ValueError(f"Attributes still contain missing values: {', '.join(missing)}")

    return standardized[columns].to_numpy(dtype=float)


def _assign_clusters(
    standardized: pd.DataFrame,
    min_clusters: int = 2,
    max_clusters: int = 10,
    random_state: int = 42) -> tuple[pd.DataFrame, list[ClusterCandidate], int]:

    if standardized.empty:
        raise ValueError("Cannot cluster an empty DataFrame")

    features = _feature_matrix(standardized)
    counts = _candidate_counts(len(features), min_clusters, max_clusters)

    logger.debug(
        f"Scoring K in {counts[0]}..{counts[-1]} on {features.shape[0]} respondents "
        f"and {features.shape[1]} attributes"
    )

    candidates = [_score_candidate(features, k, random_state) for k in counts]
    k = _select_cluster_count(candidates)

    labels = _fit_kmeans(features, k, random_state)

    clusters = pd.DataFrame({
        DataKey.RESPONDENT_ID: standardized[DataKey.RESPONDENT_ID].to_numpy(),
        DataKey.SEGMENT_ID: labels.astype(int),
    })

    logger.debug(f"Selected K={k}; cluster sizes {np.bincount(labels).tolist()}")

    return clusters, candidates, k


@dataclass
class AssignClusters(Step):
    """Pipeline step: choose the cluster count and label every respondent."""
    name: ClassVar[str] = "assign_clusters"

    min_clusters: int = 2
    max_clusters: int = 10
    random_state: int = 42

    def run(self, ctx: Context) -> Context:

        standardized = ctx.require_table(Key.DERIVED_TABLE_DEMOGRAPHICS_STD)

        clusters, candidates, k = _assign_clusters(
            standardized,
            self.min_clusters,
            self.max_clusters,
            self.random_state)

        ctx.add_table(
            Key.GEN_TABLE_CLUSTER_CANDIDATES,
            pd.DataFrame([c.model_dump() for c in candidates]))
        ctx.set_state(Key.STATE_PARAM_N_CLUSTERS, k)
        ctx.add_table(Key.DERIVED_TABLE_CLUSTERS, clusters)

        return ctx
