"""Authoring-time formula validation.

Checks run when a formula is created or edited, before it is ever
evaluated: syntax, references to variables the workspace actually has,
and the stricter shape required for table-scoped formulas.
"""

from collections.abc import Sequence

from labqc.core.config import settings
from labqc.core.exceptions import FormulaParseError
from labqc.formula.parser import Expression, ParsedFormula, VariableRef, get_parser
from labqc.formula.resolver import VariableResolver
from labqc.schemas.formula import FormulaScope, FormulaValidationResult


def _expression_variables(expression: Expression) -> list[str]:
    names: list[str] = []
    for operand in expression.operands:
        if isinstance(operand, VariableRef) and operand.name not in names:
            names.append(operand.name)
    return names


def _missing_variables(parsed: ParsedFormula, available_variables: Sequence[str]) -> list[str]:
    resolver = VariableResolver(available_variables)
    return [name for name in parsed.variable_names if resolver.resolve(name) is None]


def validate_formula(text: str, available_variables: Sequence[str]) -> FormulaValidationResult:
    """
    Validate syntax and variable references.

    Variable references are matched with the same policy the evaluator
    uses, so a reference accepted here resolves at evaluation time.
    """
    try:
        parsed = get_parser().parse(text)
    except FormulaParseError as e:
        return FormulaValidationResult(is_valid=False, error=e.message)

    missing = _missing_variables(parsed, available_variables)
    if missing:
        return FormulaValidationResult(
            is_valid=False,
            error=f"Unknown variables: {', '.join(missing)}",
            missing_variables=missing,
        )
    return FormulaValidationResult(is_valid=True)


def validate_unidirectional(
    text: str, available_variables: Sequence[str]
) -> FormulaValidationResult:
    """
    Validate the shape required for table-scoped formulas.

    The formula must be one comparison whose left side is a single
    variable (the highlighted one) that does not reappear on the right,
    e.g. ``[Conductivity] > [Alkalinity] + 3``.
    """
    try:
        parsed = get_parser().parse(text)
    except FormulaParseError as e:
        return FormulaValidationResult(is_valid=False, error=e.message)

    if len(parsed.conditions) > 1:
        return FormulaValidationResult(
            is_valid=False,
            error=(
                "Table formulas support a single comparison; "
                "split AND/OR chains into separate formulas"
            ),
        )

    condition = parsed.conditions[0]
    left_vars = _expression_variables(condition.left)
    right_vars = _expression_variables(condition.right)
    shape = {"left_variables": left_vars, "right_variables": right_vars}

    if not left_vars:
        return FormulaValidationResult(
            is_valid=False,
            error="The left side must reference a variable, e.g. [Conductivity] > 300",
            **shape,
        )
    if condition.left.operand2 is not None:
        return FormulaValidationResult(
            is_valid=False,
            error="The left side must be a single variable without arithmetic",
            **shape,
        )

    missing = _missing_variables(parsed, available_variables)
    if missing:
        return FormulaValidationResult(
            is_valid=False,
            error=f"Unknown variables: {', '.join(missing)}",
            missing_variables=missing,
            **shape,
        )

    target = left_vars[0]
    if target in right_vars:
        return FormulaValidationResult(
            is_valid=False,
            error=f"'{target}' is used on both sides of the comparison",
            **shape,
        )

    return FormulaValidationResult(is_valid=True, target_variable=target, **shape)


def validate_scope(
    text: str,
    scope: FormulaScope,
    available_variables: Sequence[str],
    table_id: str | None = None,
) -> FormulaValidationResult:
    """
    Validate a formula for the scope it is saved under.

    Table scope applies the unidirectional rules; workspace scope accepts
    any valid formula but warns about complex ones.
    """
    basic = validate_formula(text, available_variables)
    if not basic.is_valid:
        return basic

    warnings: list[str] = []
    if scope == FormulaScope.TABLE:
        result = validate_unidirectional(text, available_variables)
        if not result.is_valid:
            return result.model_copy(update={"error": f"Table scope: {result.error}"})
        if not table_id:
            warnings.append("Table scope selected but no table ID given")
        warnings.append(f"This formula highlights cells of '{result.target_variable}'")
        return result.model_copy(update={"warnings": warnings})

    parsed = get_parser().parse(text)
    if len(parsed.conditions) > settings.max_conditions_hint:
        warnings.append(
            f"Formula has {len(parsed.conditions)} conditions; complex formulas are "
            f"harder to review, consider at most {settings.max_conditions_hint}"
        )
    if len(parsed.variable_names) > settings.max_variables_hint:
        warnings.append(f"Formula uses {len(parsed.variable_names)} variables")
    return FormulaValidationResult(is_valid=True, warnings=warnings)
