"""Pydantic schemas for formula evaluation inputs and outputs."""

from labqc.schemas.formula import (
    ContributingFormula,
    EvaluationRequest,
    EvaluationResponse,
    Formula,
    FormulaKind,
    FormulaScope,
    FormulaValidationRequest,
    FormulaValidationResult,
    HighlightedCell,
    ParseRequest,
    ParseResponse,
    SkippedFormula,
)
from labqc.schemas.table import TableDataset

__all__ = [
    "ContributingFormula",
    "EvaluationRequest",
    "EvaluationResponse",
    "Formula",
    "FormulaKind",
    "FormulaScope",
    "FormulaValidationRequest",
    "FormulaValidationResult",
    "HighlightedCell",
    "ParseRequest",
    "ParseResponse",
    "SkippedFormula",
    "TableDataset",
]
