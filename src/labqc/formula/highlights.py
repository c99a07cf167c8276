"""Highlight aggregation.

Merges the hits of every formula into one record per (row, column) cell.
The renderer draws each contributing formula's color on the cell; the
first contributing formula (in formula supply order) is the primary one.
"""

from collections.abc import Iterable, Sequence

from labqc.core.config import settings
from labqc.core.logging import get_logger
from labqc.formula.evaluator import Hit
from labqc.schemas.formula import ContributingFormula, Formula, HighlightedCell
from labqc.schemas.table import TableDataset

logger = get_logger(__name__)


def row_identifier(row: int, prefix: str | None = None) -> str:
    """1-based row identifier, e.g. ``row-1`` for row index 0."""
    return f"{settings.row_id_prefix if prefix is None else prefix}{row + 1}"


def aggregate(
    hits: Iterable[Hit],
    formulas: Sequence[Formula],
    dataset: TableDataset | None = None,
) -> list[HighlightedCell]:
    """
    Group hits into highlighted cells.

    Args:
        hits: Hits from any number of formulas; non-passing hits are ignored
        formulas: Formulas in supply order; decides contributor order
        dataset: Used for column order and variable names when given

    Returns:
        One HighlightedCell per distinct (row, column), ordered by row and
        then by column position
    """
    order: dict[str, int] = {}
    by_id: dict[str, Formula] = {}
    for index, formula in enumerate(formulas):
        if formula.id not in by_id:
            order[formula.id] = index
            by_id[formula.id] = formula

    column_rank: dict[str, int] = (
        {column: i for i, column in enumerate(dataset.columns)} if dataset else {}
    )

    # (row, column) -> formula_id -> first hit of that formula on the cell
    grouped: dict[tuple[int, str], dict[str, Hit]] = {}
    for hit in hits:
        if not hit.passed:
            continue
        if hit.formula_id not in by_id:
            logger.debug(f"Ignoring hit for unknown formula '{hit.formula_id}'")
            continue
        if hit.column not in column_rank:
            column_rank[hit.column] = len(column_rank)
        grouped.setdefault((hit.row, hit.column), {}).setdefault(hit.formula_id, hit)

    cells: list[HighlightedCell] = []
    for row, column in sorted(grouped, key=lambda key: (key[0], column_rank[key[1]])):
        contributions = sorted(grouped[(row, column)].values(), key=lambda h: order[h.formula_id])
        contributing = [
            ContributingFormula(
                formula_id=hit.formula_id,
                name=by_id[hit.formula_id].name,
                color=by_id[hit.formula_id].color,
                formula=by_id[hit.formula_id].text,
                left_value=hit.left_value,
                right_value=hit.right_value,
            )
            for hit in contributions
        ]
        variable = None
        if dataset is not None and row < len(dataset.rows):
            raw = dataset.cell(row, dataset.variable_column)
            variable = None if raw is None else str(raw).strip()

        cells.append(
            HighlightedCell(
                row=row,
                column=column,
                row_id=row_identifier(row),
                variable=variable,
                color=contributing[0].color,
                message=", ".join(c.name for c in contributing),
                formula_ids=[c.formula_id for c in contributing],
                contributing_formulas=contributing,
            )
        )
    return cells
