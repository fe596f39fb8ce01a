"""
Load electricity-consumption readings from a semicolon-separated CSV file.

Input, one row per reading (several readings per day):

    Jahr;Monat;Tag;Stromverbrauch
    2021;1;1;812.5
    2021;1;1;790.1

Output columns are renamed to `year`, `month`, `day`, `consumption`.
"""

import logging

import pandas as pd
from pandas.api.types import is_numeric_dtype

from consumption.config import ConsumptionConfig
from painpoint.core.loaders.base_loader import BaseLoader

logger = logging.getLogger(__name__)

YEAR = "year"
MONTH = "month"
DAY = "day"
CONSUMPTION = "consumption"


class ConsumptionLoadError(Exception):
    """Raised when consumption loading fails."""
    pass


class ConsumptionLoader(BaseLoader):

    def __init__(self, source, config: ConsumptionConfig | None = None):
        super().__init__(source)
        self.config = config or ConsumptionConfig()

    @property
    def _error_class(self):
        return ConsumptionLoadError

    def _load_from_file(self, file_handle) -> pd.DataFrame:
        config = self.config

        try:
            df = pd.read_csv(file_handle, sep=config.separator)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise ConsumptionLoadError(f"Cannot parse consumption CSV: {e}") from e

        missing = [c for c in config.required_columns() if c not in df.columns]
        if missing:
            raise ConsumptionLoadError(f"Missing columns: {', '.join(missing)}")

        df = df[config.required_columns()].copy().rename(columns={
            config.year_column: YEAR,
            config.month_column: MONTH,
            config.day_column: DAY,
            config.consumption_column: CONSUMPTION,
        })

        for column in [YEAR, MONTH, DAY]:
            try:
                df[column] = pd.to_numeric(df[column]).astype(int)
            except (ValueError, TypeError) as e:
                raise ConsumptionLoadError(f"Column '{column}' must be whole numbers: {e}") from e

        # Decimal commas are common in German exports
        if not is_numeric_dtype(df[CONSUMPTION]):
            df[CONSUMPTION] = df[CONSUMPTION].astype(str).str.replace(",", ".", regex=False)
        df[CONSUMPTION] = pd.to_numeric(df[CONSUMPTION], errors="coerce")

        n_invalid = int(df[CONSUMPTION].isna().sum())
        if n_invalid:
            logger.warning(f"{n_invalid} readings without a numeric consumption value")

        if df.empty:
            raise ConsumptionLoadError("No readings found")

        logger.debug(f"Loaded {len(df)} consumption readings")

        return df
