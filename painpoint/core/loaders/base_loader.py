"""Provides the abstract base loader class for reading workbook and CSV sources."""

import io
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

import pandas as pd


class BaseLoader(ABC):
    """Base class for file loaders."""

    def __init__(self, source: Union[str, Path, io.IOBase]):
        """
        Args:
            source: File path (str/Path) or binary file-like object
        """
        if isinstance(source, (str, Path)):
            self.path = Path(source)
            self.file_obj = None
        else:
            self.path = None
            self.file_obj = source

    def load(self):
        """Load data from source."""
        if self.path:
            if not self.path.exists():
                raise self._error_class(f"File not found: {self.path}")
            with open(self.path, 'rb') as f:
                return self._load_from_file(f)
        else:
            if hasattr(self.file_obj, 'seek'):
                self.file_obj.seek(0)
            return self._load_from_file(self.file_obj)

    @abstractmethod
    def _load_from_file(self, file_handle):
        """Load from open file handle. Subclasses implement."""
        pass

    def _read_sheet(
        self,
        file_handle,
        sheet: str | int,
        skip_rows: list[int] | None = None) -> pd.DataFrame:
        """Helper: read one worksheet as a table of strings."""
        try:
            df = pd.read_excel(
                file_handle,
                sheet_name=sheet,
                dtype=str,
                skiprows=skip_rows or None,
                engine="openpyxl",
            )
        except (ValueError, KeyError, IndexError) as e:
            raise self._error_class(f"Cannot read sheet '{sheet}': {e}") from e

        if df.empty:
            raise self._error_class(f"Sheet '{sheet}' contains no rows")

        df.columns = [str(c).strip() for c in df.columns]
        return df

    @property
    @abstractmethod
    def _error_class(self):
        """Return the exception class for this loader."""
        pass
