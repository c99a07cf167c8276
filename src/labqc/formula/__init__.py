"""Formula engine for LabQC.

Evaluates validation formulas against variable-by-date measurement tables:
- Parsing of condition chains ([Var] > 300 AND [A] + [B] <= [C])
- Coercion of raw cells, including "<5" style qualified readings
- Fuzzy resolution of variable names to table rows
- Per-column evaluation and aggregation into highlighted cells
"""

from labqc.formula.coercion import Qualifier, Reading, ReadingKind, coerce, is_below_loq
from labqc.formula.evaluator import ConditionEvaluator, FormulaEvaluator, Hit
from labqc.formula.highlights import aggregate
from labqc.formula.parser import FormulaParser, ParsedFormula, format_formula, parse_formula
from labqc.formula.resolver import VariableResolver, resolve_variable

__all__ = [
    "ConditionEvaluator",
    "FormulaEvaluator",
    "FormulaParser",
    "Hit",
    "ParsedFormula",
    "Qualifier",
    "Reading",
    "ReadingKind",
    "VariableResolver",
    "aggregate",
    "coerce",
    "format_formula",
    "is_below_loq",
    "parse_formula",
    "resolve_variable",
]
