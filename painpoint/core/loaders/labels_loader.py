"""
Load a label lookup sheet.

The sheet has a key column and a label column, e.g. for metrics:

| key | label                               |
|-----|-------------------------------------|
| 1   | Staff respond quickly to questions  |
| 2   | Invoices are easy to understand     |

or for profiling questions, keyed by column name:

| key    | label                        |
|--------|------------------------------|
| PR1_01 | Uses the mobile app          |
"""

from painpoint.core.loaders.base_loader import BaseLoader
from painpoint.core.models import LabelLookup


class LabelsLoadError(Exception):
    """Raised when a label lookup sheet cannot be loaded."""
    pass


def _normalize_key(raw: str) -> str:
    """'12', '12.0' and ' 12 ' all address metric 12."""
    key = str(raw).strip()
    try:
        number = float(key)
    except ValueError:
        return key
    return str(int(number)) if number.is_integer() else key


class LabelsLoader(BaseLoader):

    def __init__(
        self,
        source,
        sheet: str | int,
        key_column: str = "key",
        label_column: str = "label"):
        super().__init__(source)
        self.sheet = sheet
        self.key_column = key_column
        self.label_column = label_column

    @property
    def _error_class(self):
        return LabelsLoadError

    def _load_from_file(self, file_handle) -> LabelLookup:
        df = self._read_sheet(file_handle, self.sheet)

        for col in [self.key_column, self.label_column]:
            if col not in df.columns:
                raise LabelsLoadError(f"Label sheet '{self.sheet}' missing column '{col}'")

        df = df.dropna(subset=[self.key_column])
        keys = df[self.key_column].map(_normalize_key)

        duplicates = keys.duplicated(keep=False)
        if duplicates.any():
            raise LabelsLoadError(
                f"Duplicate keys in label sheet '{self.sheet}': "
                + ", ".join(sorted(set(keys[duplicates]))))

        labels = {
            key: str(text).strip()
            for key, text in zip(keys, df[self.label_column])
            if isinstance(text, str) and text.strip()
        }

        if not labels:
            raise LabelsLoadError(f"Label sheet '{self.sheet}' has no labels")

        return LabelLookup(labels=labels)
