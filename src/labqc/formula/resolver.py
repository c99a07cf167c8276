"""Variable name resolution.

Formulas reference variables by name (``[Ortho Phosphate]``) while table rows
carry whatever the spreadsheet contained (``"Ortho Phosphate,"``). All fuzzy
matching between the two lives here.

Matching precedence, first tier with a match wins, rows scanned in
dataset order:

1. exact equality after trimming trailing punctuation and whitespace
2. case-insensitive equality
3. substring containment in either direction (case-insensitive)
"""

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from labqc.core.logging import get_logger

logger = get_logger(__name__)

_TRAILING_PUNCTUATION = re.compile(r"[\s,;]+$")


def normalize_variable_name(name: Any) -> str:
    """Trim whitespace and stray trailing commas/semicolons from a variable name."""
    if name is None:
        return ""
    return _TRAILING_PUNCTUATION.sub("", str(name)).strip()


class VariableResolver:
    """
    Resolve variable names to row indices.

    One resolver is built per evaluation call; results are memoized for the
    lifetime of the instance only.
    """

    def __init__(self, names: Sequence[Any]):
        """
        Args:
            names: Variable cell of every row, in dataset order
        """
        self._names = [normalize_variable_name(n) for n in names]
        self._folded = [n.casefold() for n in self._names]
        self._cache: dict[str, int | None] = {}

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Mapping[str, Any]],
        variable_column: str = "Variable",
    ) -> "VariableResolver":
        return cls([row.get(variable_column) for row in rows])

    def __len__(self) -> int:
        return len(self._names)

    def resolve(self, name: str) -> int | None:
        """
        Find the row for a variable name.

        Args:
            name: Variable name as written in the formula

        Returns:
            Row index, or None when no row matches
        """
        if name in self._cache:
            return self._cache[name]
        index = self._resolve(name)
        self._cache[name] = index
        return index

    def _resolve(self, name: str) -> int | None:
        wanted = normalize_variable_name(name)
        if not wanted:
            return None
        folded = wanted.casefold()

        tiers = (
            ("exact", lambda i: self._names[i] == wanted),
            ("case-insensitive", lambda i: self._folded[i] == folded),
            (
                "substring",
                lambda i: folded in self._folded[i] or self._folded[i] in folded,
            ),
        )
        for tier, matches in tiers:
            candidates = [i for i, n in enumerate(self._names) if n and matches(i)]
            if not candidates:
                continue
            if len(candidates) > 1:
                logger.warning(
                    f"Variable '{wanted}' matches {len(candidates)} rows ({tier} match); "
                    f"using row {candidates[0]}",
                    extra={
                        "variable": wanted,
                        "tier": tier,
                        "candidates": [self._names[i] for i in candidates],
                    },
                )
            elif tier != "exact":
                logger.debug(
                    f"Variable '{wanted}' resolved to '{self._names[candidates[0]]}' "
                    f"({tier} match)"
                )
            return candidates[0]

        logger.debug(f"Variable '{wanted}' not found in table")
        return None


def resolve_variable(
    name: str,
    rows: Iterable[Mapping[str, Any]],
    variable_column: str = "Variable",
) -> int | None:
    """
    Convenience function to resolve one variable name against table rows.

    Returns:
        Row index, or None when no row matches
    """
    return VariableResolver.from_rows(rows, variable_column).resolve(name)
