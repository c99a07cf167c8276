"""
Formula endpoints.

Stateless: every request carries the formulas and the table snapshot it
needs. Storage of formulas and tables belongs to the calling application.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from labqc.formula.parser import Constant, Expression, Operand, format_formula, parse_formula
from labqc.formula.validation import validate_formula, validate_scope
from labqc.schemas.formula import (
    ConditionSchema,
    EvaluationRequest,
    EvaluationResponse,
    ExpressionSchema,
    FormulaValidationRequest,
    FormulaValidationResult,
    OperandSchema,
    ParseRequest,
    ParseResponse,
)
from labqc.services.highlight import HighlightService

router = APIRouter()


def get_highlight_service() -> HighlightService:
    """A fresh service per request; the Lark parser itself is shared."""
    return HighlightService()


HighlightServiceDep = Annotated[HighlightService, Depends(get_highlight_service)]


def _operand_schema(operand: Operand) -> OperandSchema:
    if isinstance(operand, Constant):
        return OperandSchema(constant=operand.value)
    return OperandSchema(variable=operand.name)


def _expression_schema(expression: Expression) -> ExpressionSchema:
    return ExpressionSchema(
        operand1=_operand_schema(expression.operand1),
        arith_op=expression.arith_op,
        operand2=_operand_schema(expression.operand2) if expression.operand2 is not None else None,
    )


@router.post("/parse", response_model=ParseResponse)
async def parse(request: ParseRequest) -> ParseResponse:
    """
    Parse a formula into its condition chain.

    Invalid formulas return 400 with code FORMULA_PARSE_ERROR.
    """
    parsed = parse_formula(request.formula)
    return ParseResponse(
        formula=format_formula(parsed),
        conditions=[
            ConditionSchema(
                left=_expression_schema(c.left),
                comparison_op=c.comparison_op,
                right=_expression_schema(c.right),
            )
            for c in parsed.conditions
        ],
        logical_operators=list(parsed.logical_ops),
        variables=parsed.variable_names,
    )


@router.post("/validate", response_model=FormulaValidationResult)
async def validate(request: FormulaValidationRequest) -> FormulaValidationResult:
    """Validate syntax, variable references and scope rules of a formula."""
    if request.scope is None:
        return validate_formula(request.formula, request.available_variables)
    return validate_scope(
        request.formula, request.scope, request.available_variables, request.table_id
    )


@router.post("/evaluate", response_model=EvaluationResponse)
async def evaluate(
    request: EvaluationRequest,
    service: HighlightServiceDep,
) -> EvaluationResponse:
    """
    Evaluate formulas against a table snapshot.

    Malformed formulas are reported in ``skipped_formulas`` instead of
    failing the request.
    """
    return service.evaluate_with_report(request.formulas, request.dataset, request.table_id)
