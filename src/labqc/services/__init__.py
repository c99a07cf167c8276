"""Service layer for LabQC."""

from labqc.services.highlight import HighlightService, evaluate_formulas

__all__ = ["HighlightService", "evaluate_formulas"]
