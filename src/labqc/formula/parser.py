"""Formula parser for LabQC.

Parses formula strings into a flat chain of conditions using Lark.
A formula is parsed once and the resulting ``ParsedFormula`` is then
evaluated against every date column of a table.
"""

import math
import re
from dataclasses import dataclass
from functools import lru_cache

from lark import Lark, Transformer, v_args
from lark.exceptions import LarkError, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from labqc.core.exceptions import FormulaParseError
from labqc.formula.grammar import FORMULA_GRAMMAR

# Bracketed variable references, used by the pre-parse checks
_BRACKETED = re.compile(r"\[[^\[\]]*\]")
_COMPARISON = re.compile(r">=|<=|==|!=|>|<")


# AST Node types
@dataclass(frozen=True)
class VariableRef:
    name: str


@dataclass(frozen=True)
class Constant:
    value: float


Operand = VariableRef | Constant


@dataclass(frozen=True)
class Expression:
    operand1: Operand
    arith_op: str | None = None
    operand2: Operand | None = None

    @property
    def operands(self) -> tuple[Operand, ...]:
        if self.operand2 is None:
            return (self.operand1,)
        return (self.operand1, self.operand2)


@dataclass(frozen=True)
class Condition:
    left: Expression
    comparison_op: str
    right: Expression


@dataclass(frozen=True)
class ParsedFormula:
    """A chain of conditions joined by ``logical_ops`` (one fewer than conditions)."""

    conditions: tuple[Condition, ...]
    logical_ops: tuple[str, ...] = ()
    text: str = ""

    @property
    def variable_names(self) -> list[str]:
        """Referenced variable names, unique, in order of first appearance."""
        names: list[str] = []
        for condition in self.conditions:
            for expression in (condition.left, condition.right):
                for operand in expression.operands:
                    if isinstance(operand, VariableRef) and operand.name not in names:
                        names.append(operand.name)
        return names


def _to_number(token: str) -> float:
    return float(str(token).replace(",", "."))


def _constant_values(parsed: ParsedFormula):
    for condition in parsed.conditions:
        for expression in (condition.left, condition.right):
            for operand in expression.operands:
                if isinstance(operand, Constant):
                    yield operand.value


class FormulaTransformer(Transformer):
    """Transform the Lark parse tree into AST nodes."""

    @v_args(inline=True)
    def variable(self, token):
        # Strip the surrounding brackets: [Variable Name]
        return VariableRef(str(token)[1:-1].strip())

    @v_args(inline=True)
    def constant(self, token):
        return Constant(_to_number(token))

    @v_args(inline=True)
    def comparison_op(self, token):
        return str(token)

    @v_args(inline=True)
    def arith_op(self, token):
        return str(token)

    @v_args(inline=True)
    def logical_op(self, token):
        return str(token).upper()

    def expression(self, items):
        if len(items) == 1:
            return Expression(items[0])
        operand1, arith_op, operand2 = items
        return Expression(operand1, arith_op, operand2)

    @v_args(inline=True)
    def condition(self, left, comparison_op, right):
        return Condition(left, comparison_op, right)

    def formula(self, items):
        # items alternate: condition, logical_op, condition, ...
        return ParsedFormula(
            conditions=tuple(items[0::2]),
            logical_ops=tuple(items[1::2]),
        )


class FormulaParser:
    """
    Parser for validation formulas.

    Parses formula strings into a ``ParsedFormula`` that can be evaluated
    against a table any number of times.
    """

    def __init__(self):
        self._parser = Lark(
            FORMULA_GRAMMAR,
            parser="lalr",
            transformer=FormulaTransformer(),
        )

    def parse(self, formula: str) -> ParsedFormula:
        """
        Parse a formula string.

        Args:
            formula: Formula string to parse

        Returns:
            The parsed condition chain

        Raises:
            FormulaParseError: If the formula does not match the grammar
        """
        self._precheck(formula)
        try:
            parsed = self._parser.parse(formula)
        except UnexpectedEOF as e:
            raise FormulaParseError("formula ends unexpectedly", formula=formula) from e
        except UnexpectedInput as e:
            if isinstance(e, UnexpectedToken) and e.token.type == "$END":
                raise FormulaParseError("formula ends unexpectedly", formula=formula) from e
            raise FormulaParseError(
                f"unexpected input at position {e.pos_in_stream}",
                formula=formula,
                position=e.pos_in_stream,
            ) from e
        except LarkError as e:
            raise FormulaParseError(str(e), formula=formula) from e

        if any(not name for name in parsed.variable_names):
            raise FormulaParseError("empty variable reference", formula=formula)
        if any(not math.isfinite(value) for value in _constant_values(parsed)):
            raise FormulaParseError("number out of range", formula=formula)

        return ParsedFormula(
            conditions=parsed.conditions,
            logical_ops=parsed.logical_ops,
            text=formula,
        )

    def validate(self, formula: str) -> tuple[bool, str | None]:
        """
        Validate formula syntax.

        Args:
            formula: Formula string to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            self.parse(formula)
            return True, None
        except FormulaParseError as e:
            return False, e.message

    def try_parse(self, formula: str) -> ParsedFormula | None:
        """Parse a formula, returning None instead of raising."""
        try:
            return self.parse(formula)
        except FormulaParseError:
            return None

    def get_variable_references(self, formula: str) -> list[str]:
        """
        Extract all variable references from a formula.

        Args:
            formula: Formula string

        Returns:
            Variable names in order of first appearance
        """
        return self.parse(formula).variable_names

    @staticmethod
    def _precheck(formula: str) -> None:
        """Reject the common authoring mistakes with a specific message."""
        if not isinstance(formula, str) or not formula.strip():
            raise FormulaParseError("formula is empty", formula=formula)

        outside = _BRACKETED.sub(" ", formula)
        open_pos = outside.find("[")
        if open_pos != -1:
            raise FormulaParseError(
                "unterminated variable reference", formula=formula, position=open_pos
            )
        close_pos = outside.find("]")
        if close_pos != -1:
            raise FormulaParseError(
                "unmatched ']'", formula=formula, position=close_pos
            )
        if not _COMPARISON.search(outside):
            raise FormulaParseError("no comparison operator found", formula=formula)


def _format_operand(operand: Operand) -> str:
    if isinstance(operand, VariableRef):
        return f"[{operand.name}]"
    value = operand.value
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def _format_expression(expression: Expression) -> str:
    if expression.operand2 is None:
        return _format_operand(expression.operand1)
    return (
        f"{_format_operand(expression.operand1)} {expression.arith_op} "
        f"{_format_operand(expression.operand2)}"
    )


def format_formula(parsed: ParsedFormula) -> str:
    """Render a parsed formula back to canonical formula text."""
    parts = []
    for index, condition in enumerate(parsed.conditions):
        if index > 0:
            parts.append(parsed.logical_ops[index - 1])
        parts.append(
            f"{_format_expression(condition.left)} {condition.comparison_op} "
            f"{_format_expression(condition.right)}"
        )
    return " ".join(parts)


@lru_cache
def get_parser() -> FormulaParser:
    """Shared parser instance; building the LALR tables is the expensive part."""
    return FormulaParser()


def parse_formula(formula: str) -> ParsedFormula:
    """
    Convenience function to parse a formula with the shared parser.

    Raises:
        FormulaParseError: If the formula does not match the grammar
    """
    return get_parser().parse(formula)
