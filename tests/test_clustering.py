"""Tests for cluster count selection and respondent assignment."""

import math

import numpy as np
import pandas as pd
import pytest
from sklearn.metrics import calinski_harabasz_score

from painpoint.core.models import ClusterCandidate
from painpoint.core.schema import DataKey
from painpoint.pipeline.context import Context
from painpoint.pipeline.keys import Key
from painpoint.pipeline.steps.assign_clusters import (
    AssignClusters,
    _assign_clusters,
    _candidate_counts,
    _select_cluster_count,
)
from painpoint.pipeline.steps.standardize_demographics import _impute_median, _standardize


def make_blobs(n_per_blob=10, seed=0):
    """Two tight, well separated groups of respondents."""
    rng = np.random.default_rng(seed)
    low = rng.normal(0.0, 0.01, size=(n_per_blob, 2))
    high = rng.normal(10.0, 0.01, size=(n_per_blob, 2))
    points = np.vstack([low, high])

    return pd.DataFrame({
        DataKey.RESPONDENT_ID: list(range(1, 2 * n_per_blob + 1)),
        "a": points[:, 0],
        "b": points[:, 1],
    })


def test_candidate_counts():
    assert _candidate_counts(50, 2, 10) == list(range(2, 11))
    # K must stay below the number of respondents
    assert _candidate_counts(4, 2, 10) == [2, 3]

    with pytest.raises(ValueError, match="Cannot cluster"):
        _candidate_counts(2, 2, 10)


def test_select_cluster_count_prefers_smaller_k_on_tie():
    candidates = [
        ClusterCandidate(k=2, ratio=5.0),
        ClusterCandidate(k=3, ratio=5.0),
        ClusterCandidate(k=4, ratio=float("nan")),
    ]
    assert _select_cluster_count(candidates) == 2


def test_select_cluster_count_needs_a_score():
    with pytest.raises(ValueError, match="No candidate"):
        _select_cluster_count([ClusterCandidate(k=2, ratio=float("nan"))])


def test_assign_clusters_finds_separated_groups():
    clusters, candidates, k = _assign_clusters(make_blobs(), random_state=42)

    assert k == 2
    assert [c.k for c in candidates] == list(range(2, 11))

    best = max((c for c in candidates if not math.isnan(c.ratio)), key=lambda c: c.ratio)
    assert best.k == k

    labels = clusters[DataKey.SEGMENT_ID].tolist()
    assert len(set(labels[:10])) == 1
    assert len(set(labels[10:])) == 1
    assert labels[0] != labels[10]


def test_assign_clusters_is_deterministic():
    rng = np.random.default_rng(1)
    standardized = pd.DataFrame({
        DataKey.RESPONDENT_ID: list(range(1, 31)),
        "a": rng.normal(size=30),
        "b": rng.normal(size=30),
        "c": rng.normal(size=30),
    })

    first, first_candidates, first_k = _assign_clusters(standardized, random_state=7)
    second, second_candidates, second_k = _assign_clusters(standardized, random_state=7)

    assert first_k == second_k
    assert first[DataKey.SEGMENT_ID].tolist() == second[DataKey.SEGMENT_ID].tolist()
    assert [c.ratio for c in first_candidates] == [c.ratio for c in second_candidates]


def test_assign_clusters_scores_the_imputed_matrix():
    rng = np.random.default_rng(3)
    encoded = pd.DataFrame({
        DataKey.RESPONDENT_ID: list(range(1, 41)),
        "a": rng.integers(1, 6, size=40).astype(float),
        "b": rng.normal(size=40),
        "c": rng.integers(0, 2, size=40).astype(float),
    })
    encoded.loc[[2, 9, 17], "a"] = np.nan
    encoded.loc[[5, 30], "b"] = np.nan
    imputed = _impute_median(_standardize(encoded))

    clusters, candidates, k = _assign_clusters(imputed, max_clusters=5, random_state=42)

    features = imputed[["a", "b", "c"]].to_numpy(dtype=float)
    selected = next(c for c in candidates if c.k == k)
    assert selected.ratio == pytest.approx(
        calinski_harabasz_score(features, clusters[DataKey.SEGMENT_ID]))


def test_assign_clusters_rejects_missing_values():
    standardized = make_blobs()
    standardized.loc[0, "a"] = np.nan

    with pytest.raises(ValueError, match="missing values"):
        _assign_clusters(standardized)


def test_assign_clusters_step():
    ctx = Context()
    ctx.add_table(Key.DERIVED_TABLE_DEMOGRAPHICS_STD, make_blobs())

    ctx = AssignClusters(min_clusters=2, max_clusters=4).run(ctx)

    assert ctx.require_state(Key.STATE_PARAM_N_CLUSTERS) == 2
    assert ctx.require_table(Key.GEN_TABLE_CLUSTER_CANDIDATES)["k"].tolist() == [2, 3, 4]
    assert len(ctx.require_table(Key.DERIVED_TABLE_CLUSTERS)) == 20
