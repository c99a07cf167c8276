"""Unit tests for highlight aggregation."""

from labqc.formula.evaluator import Hit
from labqc.formula.highlights import aggregate, row_identifier


def _hit(formula_id, row, column, passed=True, left=1.0, right=0.0):
    return Hit(formula_id, row, column, passed, left, right)


class TestRowIdentifier:
    """Tests for row_identifier."""

    def test_one_based(self):
        """Test row index 0 is row-1."""
        assert row_identifier(0) == "row-1"
        assert row_identifier(9) == "row-10"

    def test_custom_prefix(self):
        """Test an explicit prefix."""
        assert row_identifier(2, prefix="r") == "r3"


class TestAggregate:
    """Tests for aggregate."""

    def test_two_formulas_same_cell(self, dataset_factory, formula_factory):
        """Test two formulas on one cell merge in supply order."""
        dataset = dataset_factory({"A": [5, 1]})
        formulas = [
            formula_factory("f1", "[A] > 1", name="High A", color="#ff0000"),
            formula_factory("f2", "[A] > 2", name="Very high A", color="#00ff00"),
        ]
        hits = [_hit("f2", 0, "2024-01-15", left=5), _hit("f1", 0, "2024-01-15", left=5)]

        cells = aggregate(hits, formulas, dataset)

        assert len(cells) == 1
        cell = cells[0]
        assert (cell.row, cell.column, cell.row_id) == (0, "2024-01-15", "row-1")
        assert cell.variable == "A"
        assert cell.color == "#ff0000"
        assert cell.message == "High A, Very high A"
        assert cell.formula_ids == ["f1", "f2"]
        assert [c.color for c in cell.contributing_formulas] == ["#ff0000", "#00ff00"]
        assert cell.contributing_formulas[0].formula == "[A] > 1"
        assert cell.contributing_formulas[0].left_value == 5.0

    def test_ordered_by_row_then_column_position(self, dataset_factory, formula_factory):
        """Test output order follows the table, not the hit order."""
        dataset = dataset_factory({"A": [1, 1, 1], "B": [1, 1, 1]})
        formulas = [formula_factory("f1", "[A] > 0")]
        hits = [
            _hit("f1", 1, "2024-01-15"),
            _hit("f1", 0, "2024-03-15"),
            _hit("f1", 0, "2024-01-15"),
        ]
        cells = aggregate(hits, formulas, dataset)
        assert [(c.row, c.column) for c in cells] == [
            (0, "2024-01-15"),
            (0, "2024-03-15"),
            (1, "2024-01-15"),
        ]

    def test_without_dataset_uses_first_appearance(self, formula_factory):
        """Test column order falls back to first appearance in the hits."""
        formulas = [formula_factory("f1", "[A] > 0")]
        hits = [_hit("f1", 0, "b"), _hit("f1", 0, "a")]
        cells = aggregate(hits, formulas)
        assert [c.column for c in cells] == ["b", "a"]
        assert cells[0].variable is None

    def test_failed_hits_ignored(self, formula_factory):
        """Test passed=False hits never become highlights."""
        formulas = [formula_factory("f1", "[A] > 0")]
        assert aggregate([_hit("f1", 0, "c", passed=False)], formulas) == []

    def test_unknown_formula_ignored(self, formula_factory):
        """Test hits from formulas that were not supplied are dropped."""
        formulas = [formula_factory("f1", "[A] > 0")]
        assert aggregate([_hit("zz", 0, "c")], formulas) == []

    def test_duplicate_hits_counted_once(self, formula_factory):
        """Test one formula contributes to a cell once."""
        formulas = [formula_factory("f1", "[A] > 0")]
        cells = aggregate([_hit("f1", 0, "c", left=1), _hit("f1", 0, "c", left=2)], formulas)
        assert cells[0].formula_ids == ["f1"]
        assert cells[0].contributing_formulas[0].left_value == 1.0

    def test_variable_name_is_stripped(self, water_dataset, formula_factory):
        """Test the reported variable is the row's name without padding."""
        formulas = [formula_factory("f1", "[pH] > 0")]
        cells = aggregate([_hit("f1", 3, "2024-01-15")], formulas, water_dataset)
        assert cells[0].variable == "pH"
        assert cells[0].row_id == "row-4"

    def test_empty(self):
        """Test no hits gives no cells."""
        assert aggregate([], []) == []
