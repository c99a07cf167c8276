"""
LabQC - Validation formulas for lab measurement tables.

Lab staff define rules such as ``[Conductivity] > 300`` or
``[Total Phosphorus] < [Ortho Phosphate]``; LabQC evaluates them against
variable-by-date tables and reports which cells to highlight and why.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from labqc.schemas import Formula, FormulaKind, HighlightedCell, TableDataset
from labqc.services import HighlightService, evaluate_formulas

__all__ = [
    "Formula",
    "FormulaKind",
    "HighlightService",
    "HighlightedCell",
    "TableDataset",
    "__version__",
    "evaluate_formulas",
]
