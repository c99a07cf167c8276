"""Unit tests for HighlightService."""

import logging

import pytest

from labqc.core.exceptions import FormulaParseError
from labqc.schemas.formula import FormulaKind, FormulaScope
from labqc.services.highlight import HighlightService, evaluate_formulas


@pytest.fixture
def service() -> HighlightService:
    return HighlightService()


class TestSelectApplicable:
    """Tests for scope and activity filtering."""

    def test_inactive_excluded(self, formula_factory):
        """Test inactive formulas never apply."""
        formulas = [formula_factory("f1", "[A] > 1", active=False)]
        assert HighlightService.select_applicable(formulas) == []

    def test_workspace_scope_applies_everywhere(self, formula_factory):
        """Test workspace formulas apply with or without a table."""
        formulas = [formula_factory("f1", "[A] > 1", scope=FormulaScope.WORKSPACE, table_id="t9")]
        assert HighlightService.select_applicable(formulas, "t1") == formulas
        assert HighlightService.select_applicable(formulas) == formulas

    def test_table_scope_requires_match(self, formula_factory):
        """Test table formulas apply to their own table only."""
        formula = formula_factory("f1", "[A] > 1", scope=FormulaScope.TABLE, table_id="t1")
        assert HighlightService.select_applicable([formula], "t1") == [formula]
        assert HighlightService.select_applicable([formula], "t2") == []
        assert HighlightService.select_applicable([formula]) == []

    def test_unscoped(self, formula_factory):
        """Test unscoped formulas apply unless bound to another table."""
        free = formula_factory("f1", "[A] > 1")
        bound = formula_factory("f2", "[A] > 1", table_id="t1")
        assert HighlightService.select_applicable([free, bound], "t1") == [free, bound]
        assert HighlightService.select_applicable([free, bound], "t2") == [free]
        assert HighlightService.select_applicable([free, bound]) == [free]


class TestHighlightService:
    """Tests for end-to-end evaluation."""

    def test_threshold_scenario(self, service, water_dataset, formula_factory):
        """Test a threshold rule highlights the conductivity exceedances."""
        formulas = [formula_factory("f1", "[Conductivity] > 300", name="High conductivity")]
        cells = service.evaluate(formulas, water_dataset)
        assert [(c.row_id, c.column) for c in cells] == [
            ("row-1", "2024-02-15"),
            ("row-1", "2024-04-15"),
        ]
        assert cells[0].message == "High conductivity"
        assert cells[0].variable == "Conductivity"

    def test_relational_scenario(self, service, dataset_factory, formula_factory):
        """Test a relational rule highlights every participating row."""
        dataset = dataset_factory({"A": [10, 5], "B": [3, 8]})
        formulas = [formula_factory("r1", "[A] > [B]", kind=FormulaKind.RELATIONAL)]
        cells = service.evaluate(formulas, dataset)
        assert [(c.row, c.column) for c in cells] == [(0, "2024-01-15"), (1, "2024-01-15")]
        contributor = cells[1].contributing_formulas[0]
        assert (contributor.left_value, contributor.right_value) == (10.0, 3.0)

    def test_overlapping_formulas(self, service, dataset_factory, formula_factory):
        """Test two formulas on the same cell produce one record."""
        dataset = dataset_factory({"A": [5, 1]})
        formulas = [
            formula_factory("f1", "[A] > 1", name="F1", color="#111111"),
            formula_factory("f2", "[A] >= 5", name="F2", color="#222222"),
        ]
        cells = service.evaluate(formulas, dataset)
        assert len(cells) == 1
        assert cells[0].formula_ids == ["f1", "f2"]
        assert cells[0].color == "#111111"
        assert cells[0].message == "F1, F2"

    def test_supply_order_decides_primary(self, service, dataset_factory, formula_factory):
        """Test reversing the formula list reverses the contributors."""
        dataset = dataset_factory({"A": [5]})
        formulas = [
            formula_factory("f2", "[A] >= 5", name="F2", color="#222222"),
            formula_factory("f1", "[A] > 1", name="F1", color="#111111"),
        ]
        cells = service.evaluate(formulas, dataset)
        assert cells[0].formula_ids == ["f2", "f1"]
        assert cells[0].color == "#222222"

    def test_malformed_formula_is_skipped(self, service, water_dataset, formula_factory, caplog):
        """Test a broken formula does not affect the others."""
        formulas = [
            formula_factory("bad", "[Conductivity] + 300", name="Broken"),
            formula_factory("f1", "[Conductivity] > 300"),
        ]
        with caplog.at_level(logging.WARNING):
            report = service.evaluate_with_report(formulas, water_dataset)

        assert report.total == 2
        assert report.evaluated_formulas == 1
        assert [s.formula_id for s in report.skipped_formulas] == ["bad"]
        assert "no comparison operator" in report.skipped_formulas[0].error
        assert all(c.formula_ids == ["f1"] for c in report.cells)
        assert "Skipping formula 'Broken'" in caplog.text

    def test_inactive_formula_does_not_change_result(
        self, service, water_dataset, formula_factory
    ):
        """Test adding an inactive formula leaves the highlights unchanged."""
        active = [formula_factory("f1", "[Conductivity] > 300")]
        inactive = formula_factory("f2", "[pH] > 0", active=False)
        assert service.evaluate(active + [inactive], water_dataset) == service.evaluate(
            active, water_dataset
        )

    def test_deterministic(self, water_dataset, formula_factory):
        """Test repeated evaluation gives identical results."""
        formulas = [
            formula_factory("f1", "[pH] > 7", kind=FormulaKind.CELL_VALIDATION),
            formula_factory(
                "f2", "[Ortho Phosphate] > [Total Phosphorus]", kind=FormulaKind.RELATIONAL
            ),
        ]
        first = evaluate_formulas(formulas, water_dataset)
        second = evaluate_formulas(formulas, water_dataset)
        assert first == second
        assert [(c.row, c.column) for c in first] == [
            (1, "2024-02-15"),
            (2, "2024-02-15"),
            (3, "2024-01-15"),
            (3, "2024-02-15"),
            (3, "2024-04-15"),
        ]

    def test_table_scope_filtering(self, service, water_dataset, formula_factory):
        """Test only formulas for the evaluated table are applied."""
        formulas = [
            formula_factory("f1", "[pH] > 8", scope=FormulaScope.TABLE, table_id="t1"),
            formula_factory("f2", "[pH] > 8", scope=FormulaScope.TABLE, table_id="t2"),
        ]
        cells = service.evaluate(formulas, water_dataset, table_id="t1")
        assert [c.formula_ids for c in cells] == [["f1"]]

    def test_parse_cache(self, service):
        """Test successful parses are memoized."""
        assert service.parse("[A] > 1") is service.parse("[A] > 1")
        with pytest.raises(FormulaParseError):
            service.parse("[A]")

    def test_parse_cache_is_bounded(self):
        """Test the cache keeps at most cache_size formula texts."""
        service = HighlightService(cache_size=2)
        for text in ("[A] > 1", "[A] > 2", "[A] > 3"):
            service.parse(text)
        assert service._cached_parse.cache_info().currsize == 2

    def test_duplicate_formula_id_is_skipped(
        self, service, dataset_factory, formula_factory, caplog
    ):
        """Test a second formula reusing an id is reported, not mislabelled."""
        dataset = dataset_factory({"A": [5, 0]})
        formulas = [
            formula_factory("x", "[A] > 1", name="one", color="#111111"),
            formula_factory("x", "[A] < 1", name="two", color="#222222"),
        ]
        with caplog.at_level(logging.WARNING):
            report = service.evaluate_with_report(formulas, dataset)

        assert [(c.column, c.message) for c in report.cells] == [("2024-01-15", "one")]
        assert report.evaluated_formulas == 1
        assert [s.name for s in report.skipped_formulas] == ["two"]
        assert "Duplicate formula id 'x'" in report.skipped_formulas[0].error
        assert "duplicate formula id" in caplog.text

    def test_empty_inputs(self, service, water_dataset):
        """Test no formulas gives no highlights."""
        report = service.evaluate_with_report([], water_dataset)
        assert report.cells == []
        assert report.total == 0
        assert report.evaluated_formulas == 0
