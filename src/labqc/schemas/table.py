"""Table dataset schemas."""

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from labqc.core.config import settings


class TableDataset(BaseModel):
    """
    Snapshot of a measurement table.

    Rows are variables, the non-metadata columns are the chronologically
    ordered date columns.
    """

    model_config = ConfigDict(frozen=True)

    columns: list[str] = Field(..., description="Ordered column names")
    rows: list[dict[str, Any]] = Field(
        default_factory=list, description="Ordered rows, column name -> cell"
    )
    variable_column: str = Field(
        default_factory=lambda: settings.variable_column,
        description="Column holding each row's variable name",
    )
    metadata_columns: list[str] = Field(
        default_factory=lambda: list(settings.metadata_columns),
        description="Columns excluded from the date axis",
    )

    @classmethod
    def from_matrix(
        cls,
        columns: Sequence[str],
        data: Sequence[Sequence[Any]],
        **kwargs: Any,
    ) -> "TableDataset":
        """
        Build a dataset from the column list + 2-D array form used by
        spreadsheet imports. Short rows are padded with None.
        """
        rows = [
            {column: (row[i] if i < len(row) else None) for i, column in enumerate(columns)}
            for row in data
        ]
        return cls(columns=list(columns), rows=rows, **kwargs)

    @property
    def date_columns(self) -> list[str]:
        excluded = set(self.metadata_columns) | {self.variable_column}
        return [column for column in self.columns if column not in excluded]

    @property
    def variable_names(self) -> list[Any]:
        return [row.get(self.variable_column) for row in self.rows]

    def cell(self, row: int, column: str) -> Any:
        return self.rows[row].get(column)
