from __future__ import annotations

import json
from pathlib import Path

import yaml
from pydantic import BaseModel, model_validator

from painpoint.core.schema import FieldRole

# Ordered category labels, smallest to largest, keyed by column name or name prefix.
DEFAULT_ORDINAL_LEVELS: dict[str, list[str]] = {
    "frequency": ["Never", "Rarely", "Monthly", "Weekly", "Daily"],
    "age_group": ["under 18", "18-29", "30-44", "45-59", "60 and older"],
    "education": [
        "No degree",
        "Secondary school",
        "Vocational training",
        "Bachelor",
        "Master",
        "Doctorate",
    ],
    "income": ["under 1000", "1000-1999", "2000-2999", "3000-3999", "4000 and more"],
    "household_size": ["1 person", "2 persons", "3 persons", "4 persons", "5 or more persons"],
    "customer_since": ["less than 1 year", "1-3 years", "3-5 years", "more than 5 years"],
}


class SourceConfig(BaseModel):
    """Where the survey and its lookup tables live inside the workbook(s)."""
    survey_sheet: str | int = 0
    metric_labels_sheet: str | int = "metrics"
    profiling_labels_sheet: str | int | None = "profiling"
    skip_rows: list[int] = []
    id_column: str = "ID"
    label_key_column: str = "key"
    label_text_column: str = "label"


class FieldConfig(BaseModel):
    """Column-name prefix to field role table."""
    roles: dict[str, FieldRole] = {
        "IMP_": FieldRole.IMPORTANCE,
        "SAT_": FieldRole.SATISFACTION,
        "PR1": FieldRole.PROFILING,
        "X_": FieldRole.EXCLUDED,
    }

    def role_of(self, column: str) -> FieldRole:
        """Resolve the role of a column; the longest matching prefix wins."""
        matches = [p for p in self.roles if column.startswith(p)]
        if not matches:
            return FieldRole.DEMOGRAPHIC
        return self.roles[max(matches, key=len)]

    def prefix_for(self, role: FieldRole) -> str:
        for prefix, r in self.roles.items():
            if r == role:
                return prefix
        raise KeyError(f"No prefix configured for role '{role}'")


class EncodingConfig(BaseModel):
    binary_sentinels: tuple[str, str] = ("selected", "not selected")
    ordinal_levels: dict[str, list[str]] = DEFAULT_ORDINAL_LEVELS
    never_label: str = "Never"

    @model_validator(mode="after")
    def _check_sentinels(self) -> EncodingConfig:
        if self.binary_sentinels[0] == self.binary_sentinels[1]:
            raise ValueError("Binary sentinels must differ")
        for key, levels in self.ordinal_levels.items():
            if len(set(levels)) != len(levels):
                raise ValueError(f"Ordinal levels for '{key}' contain duplicates")
        return self

    def levels_for(self, column: str) -> list[str] | None:
        """Ordered labels for a column: exact name first, then the longest prefix."""
        if column in self.ordinal_levels:
            return self.ordinal_levels[column]
        prefixes = [k for k in self.ordinal_levels if column.startswith(k)]
        if not prefixes:
            return None
        return self.ordinal_levels[max(prefixes, key=len)]


class SegmentationConfig(BaseModel):
    min_clusters: int = 2
    max_clusters: int = 10
    random_state: int = 42

    @model_validator(mode="after")
    def _check_range(self) -> SegmentationConfig:
        if self.min_clusters < 2 or self.max_clusters < self.min_clusters:
            raise ValueError(
                f"Invalid cluster range [{self.min_clusters}, {self.max_clusters}]")
        return self


class SelectionConfig(BaseModel):
    importance_threshold: float = 3.5
    display_top_n: int = 15
    model_top_n: int = 5


class PredictionConfig(BaseModel):
    predictors: list[str] | None = None
    cv_folds: int = 10
    random_state: int = 42
    top_predictors: int = 3


class AnalysisConfig(BaseModel):
    """Complete configuration of a pain-point analysis run."""
    metadata: dict = {}
    source: SourceConfig = SourceConfig()
    fields: FieldConfig = FieldConfig()
    encoding: EncodingConfig = EncodingConfig()
    segmentation: SegmentationConfig = SegmentationConfig()
    selection: SelectionConfig = SelectionConfig()
    prediction: PredictionConfig = PredictionConfig()

    @classmethod
    def from_file(cls, path: str | Path) -> AnalysisConfig:
        """Load configuration from a YAML or JSON file."""
        file_path = Path(path)

        with open(file_path, 'r', encoding='utf-8') as f:
            if file_path.suffix.lower() in ['.yml', '.yaml']:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

        # Missing sections fall back to defaults
        return cls(**(data or {}))

    @classmethod
    def default(cls) -> AnalysisConfig:
        return cls(metadata={'version': '1.0.0', 'description': 'Default pain-point rules'})
