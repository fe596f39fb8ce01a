"""Column layout of the electricity-consumption export."""

from __future__ import annotations

from pydantic import BaseModel


class ConsumptionConfig(BaseModel):
    """Names of the date-part and consumption columns in the CSV export."""
    separator: str = ";"
    year_column: str = "Jahr"
    month_column: str = "Monat"
    day_column: str = "Tag"
    consumption_column: str = "Stromverbrauch"
    compare_years: list[int] = [2021, 2023]

    def required_columns(self) -> list[str]:
        return [self.year_column, self.month_column, self.day_column, self.consumption_column]
