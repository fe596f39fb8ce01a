"""Core pipeline context for managing data flow."""

from dataclasses import dataclass, field
from typing import Any, Dict

import pandas as pd


@dataclass
class Context:
    """A lightweight pipeline context.

    Tables are write-once: a step adds new tables and never replaces the
    tables it read, so every stage stays inspectable after a run.

    Attributes:
        survey: The raw survey table loaded from the workbook
        tables: Named derived tables (e.g. 'pain pairs', 'clusters')
        state: Key/value artifacts (encoding map, selected metrics, results)
    """

    survey: pd.DataFrame = None
    tables: Dict[str, pd.DataFrame] = field(default_factory=dict)
    state: Dict[str, Any] = field(default_factory=dict)

    # State methods

    def set_state(self, key: str, value: Any) -> None:
        if key in self.state:
            raise KeyError(f"State key '{key}' already exists")

        if value is None:
            raise KeyError(f"State value cannot be None")

        self.state[key] = value

    def require_state(self, key: str) -> Any:
        if key not in self.state:
            raise KeyError(f"Required state key '{key}' not found in context")
        return self.state[key]

    # Table methods

    def require_table(self, key: str) -> pd.DataFrame:
        if key not in self.tables:
            raise KeyError(f"Required table key '{key}' not found in context")
        return self.tables[key]

    def add_table(self, key: str, df: Any) -> None:
        if not isinstance(df, pd.DataFrame):
            raise TypeError(f"Table must be a pandas DataFrame, got {type(df)}")
        if key in self.tables:
            raise KeyError(f"Table key '{key}' already exists")
        self.tables[key] = df

    # Primary methods

    def require_survey(self) -> pd.DataFrame:
        if self.survey is None:
            raise ValueError("Survey DataFrame is not set (value is None)")
        if not isinstance(self.survey, pd.DataFrame):
            raise TypeError(f"Survey must be a pandas DataFrame, got {type(self.survey)}")
        if self.survey.empty:
            raise ValueError("Survey DataFrame is empty")
        return self.survey

    def set_survey(self, df: Any) -> None:
        if not isinstance(df, pd.DataFrame):
            raise TypeError(f"survey must be a pandas DataFrame, got {type(df)}")
        self.survey = df
