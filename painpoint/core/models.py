"""Core models for encoding, clustering, metric selection and prediction results."""

from pydantic import BaseModel


class ColumnEncoding(BaseModel):
    """
    How one categorical column was turned into numbers.

    Ordered columns map labels[i] -> i + 1, unordered columns map
    labels[i] -> i.
    """
    labels: list[str]
    ordered: bool

    def code_of(self, label: str) -> int:
        offset = 1 if self.ordered else 0
        return self.labels.index(label) + offset

    def label_of(self, code: int) -> str:
        offset = 1 if self.ordered else 0
        return self.labels[int(code) - offset]


class EncodingMap(BaseModel):
    """Retained category mapping so encoded values can be decoded again."""
    columns: dict[str, ColumnEncoding] = {}
    binary: list[str] = []
    numeric: list[str] = []

    def decode(self, column: str, code: int) -> str:
        if column not in self.columns:
            raise KeyError(f"Column '{column}' was not category encoded")
        return self.columns[column].label_of(code)


class ClusterCandidate(BaseModel):
    """Partition quality for one candidate cluster count."""
    k: int
    ratio: float


class ClusterAssignments(BaseModel):
    """Maps each respondent to their cluster."""
    k: int
    random_state: int
    assignments: dict[int, int]  # respondent_id -> segment_id

    def get_respondents(self, segment_id: int) -> list[int]:
        """Get all respondent IDs in a cluster."""
        return [rid for rid, sid in self.assignments.items() if sid == segment_id]

    def cluster_sizes(self) -> dict[int, int]:
        """Get count of respondents per cluster."""
        counts = {}
        for segment_id in self.assignments.values():
            counts[segment_id] = counts.get(segment_id, 0) + 1
        return counts


class SelectedMetric(BaseModel):
    metric_id: int
    label: str
    mean_importance: float
    mean_difference: float


class MetricSelection(BaseModel):
    """Top pain points, ranked by mean difference."""
    threshold: float
    metrics: list[SelectedMetric]

    def metric_ids(self) -> list[int]:
        return [m.metric_id for m in self.metrics]


class PredictorWeight(BaseModel):
    name: str
    label: str
    coefficient: float


class MetricPrediction(BaseModel):
    """Regularized regression summary for one pain point."""
    metric_id: int
    label: str
    n_respondents: int
    alpha: float
    cv_mse: float
    dev_ratio_mean: float
    dev_ratio_max: float
    dev_ratio_std: float
    top_predictors: list[PredictorWeight]


class AnalysisReport(BaseModel):
    n_respondents: int
    n_metrics: int
    cluster_candidates: list[ClusterCandidate]
    clusters: ClusterAssignments
    selection: MetricSelection
    predictions: list[MetricPrediction]


class LabelResolutionError(ValueError):
    """Raised when a key has no entry in a label lookup table."""


class LabelLookup(BaseModel):
    """Lookup of human-readable label text keyed by metric index or column name."""
    labels: dict[str, str]

    def get_text(self, key: int | str) -> str:
        """Get the label for a key, failing loudly when it is absent."""
        text = self.labels.get(str(key))
        if text is None:
            raise LabelResolutionError(f"No label found for '{key}'")
        return text

    def __contains__(self, key: int | str) -> bool:
        return str(key) in self.labels
