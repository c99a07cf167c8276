"""
Pytest configuration and fixtures for LabQC tests.
"""

from typing import Any

import pytest
from fastapi.testclient import TestClient

from labqc.main import app
from labqc.schemas.formula import Formula, FormulaKind
from labqc.schemas.table import TableDataset

DATE_COLUMNS = ["2024-01-15", "2024-02-15", "2024-03-15", "2024-04-15"]


def make_dataset(rows: dict[str, list[Any]], columns: list[str] | None = None) -> TableDataset:
    """Build a dataset with one row per variable over the given date columns."""
    date_columns = columns or DATE_COLUMNS[: len(next(iter(rows.values()), []))]
    return TableDataset.from_matrix(
        ["Variable", "Unit", "LOQ", *date_columns],
        [[name, "mg/L", "<0,01", *values] for name, values in rows.items()],
    )


def make_formula(
    formula_id: str,
    text: str,
    kind: FormulaKind = FormulaKind.CELL_VALIDATION,
    **kwargs: Any,
) -> Formula:
    kwargs.setdefault("name", f"Formula {formula_id}")
    kwargs.setdefault("color", "#ff0000")
    return Formula(id=formula_id, formula=text, type=kind, **kwargs)


@pytest.fixture
def water_dataset() -> TableDataset:
    """Typical water quality table with qualified and comma-decimal readings."""
    return TableDataset.from_matrix(
        ["id", "Variable", "Data Source", "Method", "Unit", "LOQ", *DATE_COLUMNS],
        [
            [1, "Conductivity", "Lab A", "EN 27888", "µS/cm", "<1", 280, 310, "<250", 305],
            [2, "Ortho Phosphate,", "Lab A", "EN 6878", "mg/L", "<0,005", "0,02", "0,5", None, "<0,005"],
            [3, "Total Phosphorus", "Lab A", "EN 6878", "mg/L", "<0,01", "0,05", "0,3", "0,1", "n.d."],
            [4, "pH", "Field", "EN 10523", "", "", 7.1, "8,7", 6.2, 7.4],
        ],
    )


@pytest.fixture
def dataset_factory():
    """Factory for datasets: dataset_factory({"A": [1, 2]})."""
    return make_dataset


@pytest.fixture
def formula_factory():
    """Factory for formulas: formula_factory("f1", "[A] > 1")."""
    return make_formula


@pytest.fixture
def client() -> TestClient:
    """Synchronous test client for the API."""
    return TestClient(app)
