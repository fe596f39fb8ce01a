"""Chart rendering for the pain-point analysis. Charts are written as PNG files."""

import logging
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from painpoint.core.models import ClusterCandidate, MetricSelection

logger = logging.getLogger(__name__)


def plot_pain_points(selection: MetricSelection, path: str | Path) -> Path:
    """Horizontal bar chart of the top pain points, largest mean difference on top."""

    if not selection.metrics:
        raise ValueError("No selected metrics to plot")

    data = pd.DataFrame([
        {"label": f"{m.metric_id}: {m.label}", "mean_difference": m.mean_difference}
        for m in selection.metrics
    ])

    fig, ax = plt.subplots(figsize=(10, 0.45 * len(data) + 1.5))
    sns.barplot(data=data, x="mean_difference", y="label", color="#c0504d", ax=ax)
    ax.set_xlabel("Mean pain point (importance - satisfaction)")
    ax.set_ylabel("")
    ax.set_title(f"Top pain points (mean importance >= {selection.threshold})")
    fig.tight_layout()

    path = Path(path)
    fig.savefig(path, dpi=150)
    plt.close(fig)

    logger.info(f"Wrote chart: {path}")
    return path


def plot_cluster_candidates(
    candidates: list[ClusterCandidate],
    selected_k: int,
    path: str | Path) -> Path:
    """Partition quality ratio per candidate cluster count, selected K marked."""

    data = pd.DataFrame([c.model_dump() for c in candidates]).dropna()
    if data.empty:
        raise ValueError("No scored cluster candidates to plot")

    fig, ax = plt.subplots(figsize=(7, 4))
    sns.lineplot(data=data, x="k", y="ratio", marker="o", ax=ax)
    ax.axvline(selected_k, color="grey", linestyle="--", label=f"selected K={selected_k}")
    ax.set_xlabel("Number of clusters (K)")
    ax.set_ylabel("Between / within variance ratio")
    ax.legend()
    fig.tight_layout()

    path = Path(path)
    fig.savefig(path, dpi=150)
    plt.close(fig)

    logger.info(f"Wrote chart: {path}")
    return path
