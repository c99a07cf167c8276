"""Formula evaluator for LabQC.

Evaluates parsed formulas against every date column of a table dataset and
emits a hit for each column where the condition chain holds.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from labqc.core.config import settings
from labqc.core.logging import LoggerMixin
from labqc.formula.coercion import Reading, coerce
from labqc.formula.parser import Condition, Constant, Expression, Operand, ParsedFormula
from labqc.formula.resolver import VariableResolver
from labqc.schemas.formula import FormulaKind
from labqc.schemas.table import TableDataset


@dataclass(frozen=True)
class ConditionResult:
    """Outcome of one condition at one column, with both compared values."""

    passed: bool
    left_value: float
    right_value: float


@dataclass(frozen=True)
class Hit:
    formula_id: str
    row: int
    column: str
    passed: bool
    left_value: float
    right_value: float


# =============================================================================
# Operator Implementations
# =============================================================================


def apply_arithmetic(left: float, op: str, right: float) -> float | None:
    """Combine two values; None for division by zero or a non-finite result."""
    if op == "+":
        result = left + right
    elif op == "-":
        result = left - right
    elif op == "*":
        result = left * right
    elif op == "/":
        if right == 0:
            return None
        result = left / right
    else:
        raise ValueError(f"Unknown arithmetic operator: {op}")
    return result if math.isfinite(result) else None


def compare(left: float, op: str, right: float, tolerance: float = 0.0) -> bool:
    """Apply a comparison operator; == and != use an absolute tolerance."""
    if op == ">":
        return left > right
    if op == "<":
        return left < right
    if op == ">=":
        return left >= right
    if op == "<=":
        return left <= right
    if op == "==":
        return abs(left - right) <= tolerance
    if op == "!=":
        return abs(left - right) > tolerance
    raise ValueError(f"Unknown comparison operator: {op}")


def evaluate_chain(results: Sequence[bool | None], logical_ops: Sequence[str]) -> bool | None:
    """
    Fold condition outcomes left to right with AND/OR.

    There is no precedence: ``a OR b AND c`` is ``(a OR b) AND c``.
    Any indeterminate (None) outcome makes the whole chain indeterminate.
    """
    if not results or any(r is None for r in results):
        return None
    outcome = results[0]
    for op, result in zip(logical_ops, results[1:]):
        if op == "AND":
            outcome = outcome and result
        elif op == "OR":
            outcome = outcome or result
        else:
            raise ValueError(f"Unknown logical operator: {op}")
    return outcome


# =============================================================================
# Evaluators
# =============================================================================


class ConditionEvaluator:
    """
    Evaluates single conditions against one date column.

    Variable operands read the cell at the column of their resolved row,
    constants evaluate to themselves.
    """

    def __init__(
        self,
        dataset: TableDataset,
        resolver: VariableResolver | None = None,
        tolerance: float | None = None,
    ):
        self.dataset = dataset
        self.resolver = resolver or VariableResolver(dataset.variable_names)
        self.tolerance = settings.equality_tolerance if tolerance is None else tolerance

    def read_operand(
        self,
        operand: Operand,
        column: str,
        row_context: Mapping[str, int | None] | None = None,
    ) -> Reading:
        """Resolve an operand to a Reading for the given column."""
        if isinstance(operand, Constant):
            return Reading.exact(operand.value)

        if row_context is not None and operand.name in row_context:
            row = row_context[operand.name]
        else:
            row = self.resolver.resolve(operand.name)
        if row is None:
            return Reading.unreadable()
        return coerce(self.dataset.cell(row, column))

    def evaluate_expression(
        self,
        expression: Expression,
        column: str,
        row_context: Mapping[str, int | None] | None = None,
    ) -> float | None:
        """Numeric value of an expression, or None when indeterminate."""
        first = self.read_operand(expression.operand1, column, row_context)
        if not first.is_readable:
            return None
        if expression.operand2 is None:
            return first.value

        second = self.read_operand(expression.operand2, column, row_context)
        if not second.is_readable:
            return None
        return apply_arithmetic(first.value, expression.arith_op, second.value)

    def evaluate(
        self,
        condition: Condition,
        column: str,
        row_context: Mapping[str, int | None] | None = None,
    ) -> ConditionResult | None:
        """
        Evaluate one condition at one date column.

        Args:
            condition: Parsed condition
            column: Date column to read
            row_context: Pre-resolved variable name -> row index

        Returns:
            The outcome and both compared values, or None when either side
            is indeterminate
        """
        left = self.evaluate_expression(condition.left, column, row_context)
        right = self.evaluate_expression(condition.right, column, row_context)
        if left is None or right is None:
            return None
        passed = compare(left, condition.comparison_op, right, self.tolerance)
        return ConditionResult(passed, left, right)


class FormulaEvaluator(LoggerMixin):
    """
    Evaluates a parsed formula across every date column of a dataset.

    CellValidation formulas must reference a single row; Relational formulas
    resolve each reference independently. Hits are emitted where the chain
    is fully determinable and true.
    """

    def __init__(
        self,
        dataset: TableDataset,
        resolver: VariableResolver | None = None,
        tolerance: float | None = None,
    ):
        self.dataset = dataset
        self.resolver = resolver or VariableResolver(dataset.variable_names)
        self.conditions = ConditionEvaluator(dataset, self.resolver, tolerance)

    def resolve_rows(self, parsed: ParsedFormula) -> dict[str, int | None]:
        return {name: self.resolver.resolve(name) for name in parsed.variable_names}

    def target_rows(
        self,
        parsed: ParsedFormula,
        kind: FormulaKind,
        row_context: Mapping[str, int | None],
    ) -> list[int]:
        """
        Rows whose cells a passing column highlights.

        Empty when the formula cannot apply to this dataset at all.
        """
        if not row_context:
            return []
        if any(row is None for row in row_context.values()):
            missing = [name for name, row in row_context.items() if row is None]
            self.logger.debug(f"Formula '{parsed.text}' has unresolved variables: {missing}")
            return []

        rows: list[int] = []
        for row in row_context.values():
            if row not in rows:
                rows.append(row)

        if kind == FormulaKind.CELL_VALIDATION and len(rows) > 1:
            self.logger.debug(
                f"Cell validation formula '{parsed.text}' spans {len(rows)} rows; skipped"
            )
            return []
        return rows

    def evaluate_column(
        self,
        parsed: ParsedFormula,
        column: str,
        row_context: Mapping[str, int | None],
    ) -> tuple[bool, ConditionResult] | None:
        """
        Evaluate the full chain at one column.

        Every condition is evaluated, even when an earlier one already
        decides the outcome, so the diagnostic values are always available.

        Returns:
            The chain outcome and the first condition's result, or None
            when any condition is indeterminate
        """
        results = [
            self.conditions.evaluate(condition, column, row_context)
            for condition in parsed.conditions
        ]
        if any(result is None for result in results):
            return None
        outcome = evaluate_chain([r.passed for r in results], parsed.logical_ops)
        return outcome, results[0]

    def evaluate(
        self,
        parsed: ParsedFormula,
        kind: FormulaKind = FormulaKind.CELL_VALIDATION,
        formula_id: str = "",
        include_failed: bool = False,
    ) -> list[Hit]:
        """
        Evaluate a formula over every date column.

        Args:
            parsed: Parsed formula
            kind: CellValidation or Relational
            formula_id: ID stamped on the emitted hits
            include_failed: Also emit determinable columns where the chain
                is false (``passed=False``), for diagnostics

        Returns:
            Hits in (column, row) order
        """
        row_context = self.resolve_rows(parsed)
        rows = self.target_rows(parsed, kind, row_context)
        if not rows:
            return []

        hits: list[Hit] = []
        for column in self.dataset.date_columns:
            evaluated = self.evaluate_column(parsed, column, row_context)
            if evaluated is None:
                continue
            outcome, first = evaluated
            if not outcome and not include_failed:
                continue
            for row in rows:
                hits.append(
                    Hit(
                        formula_id=formula_id,
                        row=row,
                        column=column,
                        passed=outcome,
                        left_value=first.left_value,
                        right_value=first.right_value,
                    )
                )

        self.logger.debug(
            f"Formula '{parsed.text}' produced {sum(h.passed for h in hits)} hits",
            extra={"formula_id": formula_id, "kind": kind.value},
        )
        return hits


def evaluate_formula(
    parsed: ParsedFormula,
    dataset: TableDataset,
    kind: FormulaKind = FormulaKind.CELL_VALIDATION,
    formula_id: str = "",
) -> list[Hit]:
    """
    Convenience function to evaluate one formula against a dataset.

    Returns:
        Hits for every column where the formula holds
    """
    return FormulaEvaluator(dataset).evaluate(parsed, kind, formula_id)
