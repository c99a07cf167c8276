"""Highlight service: runs every active formula against a table snapshot."""

from collections.abc import Sequence
from functools import lru_cache

from labqc.core.config import settings
from labqc.core.exceptions import FormulaParseError
from labqc.core.logging import LoggerMixin
from labqc.formula.evaluator import FormulaEvaluator, Hit
from labqc.formula.highlights import aggregate
from labqc.formula.parser import FormulaParser, ParsedFormula, get_parser
from labqc.formula.resolver import VariableResolver
from labqc.schemas.formula import (
    EvaluationResponse,
    Formula,
    FormulaScope,
    HighlightedCell,
    SkippedFormula,
)
from labqc.schemas.table import TableDataset


class HighlightService(LoggerMixin):
    """
    Service for evaluating formulas into highlighted cells.

    Holds no state between calls apart from a bounded LRU cache of parsed
    formula texts; parsed formulas are immutable, so the cache never
    changes a result.
    """

    def __init__(
        self,
        parser: FormulaParser | None = None,
        tolerance: float | None = None,
        cache_size: int | None = None,
    ):
        self._parser = parser or get_parser()
        self._tolerance = tolerance
        maxsize = settings.parse_cache_size if cache_size is None else cache_size
        self._cached_parse = lru_cache(maxsize=maxsize)(self._parser.parse)

    def parse(self, text: str) -> ParsedFormula:
        """
        Parse formula text, memoized per text. Failures are not cached.

        Raises:
            FormulaParseError: If the formula does not match the grammar
        """
        return self._cached_parse(text)

    @staticmethod
    def select_applicable(
        formulas: Sequence[Formula], table_id: str | None = None
    ) -> list[Formula]:
        """
        Filter formulas down to those applying to a table.

        Inactive formulas never apply. Table-scoped formulas apply to their
        own table only, workspace-scoped ones everywhere. Without a scope a
        formula with no table applies everywhere, otherwise only to its table.
        """
        applicable = []
        for formula in formulas:
            if not formula.active:
                continue
            if formula.scope == FormulaScope.WORKSPACE:
                applicable.append(formula)
            elif formula.scope == FormulaScope.TABLE:
                if table_id is not None and formula.table_id == table_id:
                    applicable.append(formula)
            elif formula.table_id is None or formula.table_id == table_id:
                applicable.append(formula)
        return applicable

    def evaluate_with_report(
        self,
        formulas: Sequence[Formula],
        dataset: TableDataset,
        table_id: str | None = None,
    ) -> EvaluationResponse:
        """
        Evaluate formulas against a dataset.

        A formula that fails to parse is skipped and reported; it never
        affects the other formulas.

        Args:
            formulas: Formulas in priority order
            dataset: Table snapshot
            table_id: Table being evaluated, for scope filtering

        Returns:
            Highlighted cells plus the skipped formulas
        """
        applicable = self.select_applicable(formulas, table_id)
        resolver = VariableResolver(dataset.variable_names)
        evaluator = FormulaEvaluator(dataset, resolver, self._tolerance)

        hits: list[Hit] = []
        skipped: list[SkippedFormula] = []
        seen: set[str] = set()
        for formula in applicable:
            if formula.id in seen:
                self.logger.warning(
                    f"Skipping formula '{formula.name}': duplicate formula id '{formula.id}'",
                    extra={"formula_id": formula.id},
                )
                skipped.append(
                    SkippedFormula(
                        formula_id=formula.id,
                        name=formula.name,
                        error=f"Duplicate formula id '{formula.id}'",
                    )
                )
                continue
            seen.add(formula.id)
            try:
                parsed = self.parse(formula.text)
            except FormulaParseError as e:
                self.logger.warning(
                    f"Skipping formula '{formula.name}': {e.message}",
                    extra={"formula_id": formula.id},
                )
                skipped.append(
                    SkippedFormula(formula_id=formula.id, name=formula.name, error=e.message)
                )
                continue
            hits.extend(evaluator.evaluate(parsed, formula.kind, formula.id))

        cells = aggregate(hits, applicable, dataset)
        self.logger.info(
            f"Evaluated {len(applicable)} of {len(formulas)} formulas: "
            f"{len(hits)} hits on {len(cells)} cells",
            extra={
                "formulas": len(formulas),
                "active": len(applicable),
                "hits": len(hits),
                "cells": len(cells),
                "skipped": len(skipped),
            },
        )
        return EvaluationResponse(
            cells=cells,
            total=len(cells),
            evaluated_formulas=len(applicable) - len(skipped),
            skipped_formulas=skipped,
        )

    def evaluate(
        self,
        formulas: Sequence[Formula],
        dataset: TableDataset,
        table_id: str | None = None,
    ) -> list[HighlightedCell]:
        """Evaluate formulas against a dataset and return the highlighted cells."""
        return self.evaluate_with_report(formulas, dataset, table_id).cells


def evaluate_formulas(
    formulas: Sequence[Formula],
    dataset: TableDataset,
    table_id: str | None = None,
) -> list[HighlightedCell]:
    """
    Convenience function to evaluate formulas with a fresh service.

    Returns:
        Highlighted cells
    """
    return HighlightService().evaluate(formulas, dataset, table_id)
