"""
Load the raw survey export from an Excel workbook.

Input: one worksheet, one row per respondent, every cell read as text, e.g.

| ID | IMP_1              | SAT_1              | age_group | PR1_01   | X_comment |
|----|--------------------|--------------------|-----------|----------|-----------|
| 1  | 5 = Very important | 2 = Unsatisfied    | 30-44     | selected | ...       |

Output: the same table with the ID column renamed to `respondentId` and
converted to integers. No other cell is interpreted here.

Notes
- Exports often carry the question text in a second header row; list its
  position in `skip_rows` to drop it.
- Respondent IDs must be present, numeric and unique.
"""

import logging

import pandas as pd

from painpoint.core.loaders.base_loader import BaseLoader
from painpoint.core.schema import DataKey

logger = logging.getLogger(__name__)


class SurveyLoadError(Exception):
    """Raised when survey loading fails."""
    pass


class SurveyLoader(BaseLoader):

    def __init__(
        self,
        source,
        sheet: str | int = 0,
        skip_rows: list[int] | None = None,
        id_column: str = "ID"):
        super().__init__(source)
        self.sheet = sheet
        self.skip_rows = skip_rows or []
        self.id_column = id_column

    @property
    def _error_class(self):
        return SurveyLoadError

    def _load_from_file(self, file_handle) -> pd.DataFrame:
        """Load from an open file handle."""
        df = self._read_sheet(file_handle, self.sheet, self.skip_rows)

        if self.id_column not in df.columns:
            raise SurveyLoadError(f"Missing respondent ID column '{self.id_column}'")

        df = df.rename(columns={self.id_column: DataKey.RESPONDENT_ID})

        try:
            ids = pd.to_numeric(df[DataKey.RESPONDENT_ID])
        except ValueError as e:
            raise SurveyLoadError(f"Respondent IDs must be numeric: {e}") from e

        if ids.isna().any():
            raise SurveyLoadError(f"{int(ids.isna().sum())} rows have no respondent ID")

        duplicates = ids.duplicated(keep=False)
        if duplicates.any():
            raise SurveyLoadError(
                "Duplicate respondent IDs found: "
                + ", ".join(str(int(i)) for i in sorted(ids[duplicates].unique())))

        df[DataKey.RESPONDENT_ID] = ids.astype(int)

        logger.debug(f"Loaded {len(df)} respondents with {df.shape[1] - 1} columns")

        return df.reset_index(drop=True)
