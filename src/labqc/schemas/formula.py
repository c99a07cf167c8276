"""Formula and highlight schemas for request/response validation."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from labqc.schemas.table import TableDataset


class FormulaKind(str, Enum):
    """How a formula's variable references map onto rows."""

    CELL_VALIDATION = "CELL_VALIDATION"  # every reference is the same row
    RELATIONAL = "RELATIONAL"  # references may point at different rows


class FormulaScope(str, Enum):
    TABLE = "table"
    WORKSPACE = "workspace"


class Formula(BaseModel):
    """A validation rule as defined by the formula management surface."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., description="Formula ID")
    name: str = Field(..., description="Display name")
    text: str = Field(..., alias="formula", description="Formula expression")
    kind: FormulaKind = Field(
        default=FormulaKind.CELL_VALIDATION, alias="type", description="Formula kind"
    )
    color: str = Field(default="#ef4444", description="Highlight color")
    active: bool = Field(default=True, description="Whether the formula is applied")
    scope: Optional[FormulaScope] = Field(None, description="table or workspace")
    table_id: Optional[str] = Field(None, description="Table the formula belongs to")
    description: Optional[str] = Field(None, max_length=2000)


class ContributingFormula(BaseModel):
    """One formula's contribution to a highlighted cell."""

    formula_id: str
    name: str
    color: str
    formula: str
    left_value: float
    right_value: float


class HighlightedCell(BaseModel):
    """All formulas that triggered on one (row, column) cell."""

    row: int = Field(..., description="Row index in the dataset")
    column: str = Field(..., description="Date column")
    row_id: str = Field(..., description="1-based row identifier for renderers")
    variable: Optional[str] = Field(None, description="The row's variable name")
    color: str = Field(..., description="Color of the primary contributing formula")
    message: str
    formula_ids: list[str]
    contributing_formulas: list[ContributingFormula]


class SkippedFormula(BaseModel):
    formula_id: str
    name: str
    error: str


class EvaluationRequest(BaseModel):
    formulas: list[Formula]
    dataset: TableDataset
    table_id: Optional[str] = Field(None, description="Table being evaluated, for scope")


class EvaluationResponse(BaseModel):
    cells: list[HighlightedCell]
    total: int
    evaluated_formulas: int
    skipped_formulas: list[SkippedFormula] = Field(default_factory=list)


class OperandSchema(BaseModel):
    variable: Optional[str] = None
    constant: Optional[float] = None


class ExpressionSchema(BaseModel):
    operand1: OperandSchema
    arith_op: Optional[str] = None
    operand2: Optional[OperandSchema] = None


class ConditionSchema(BaseModel):
    left: ExpressionSchema
    comparison_op: str
    right: ExpressionSchema


class ParseRequest(BaseModel):
    formula: str


class ParseResponse(BaseModel):
    formula: str = Field(..., description="Canonical formula text")
    conditions: list[ConditionSchema]
    logical_operators: list[str]
    variables: list[str]


class FormulaValidationRequest(BaseModel):
    formula: str
    available_variables: list[str] = Field(default_factory=list)
    scope: Optional[FormulaScope] = None
    table_id: Optional[str] = None


class FormulaValidationResult(BaseModel):
    is_valid: bool
    error: Optional[str] = None
    missing_variables: list[str] = Field(default_factory=list)
    left_variables: list[str] = Field(default_factory=list)
    right_variables: list[str] = Field(default_factory=list)
    target_variable: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)
