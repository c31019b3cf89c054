"""
Query composition helpers shared by the services.

Every service builds its SQL the same way: a fixed SELECT, a WHERE clause
assembled from optional filters, positional `?` markers and a parameter list
kept in the same order as the markers. These helpers keep that pairing in
one place so a filter can never add a marker without its value.
"""

import math
from typing import Any, List, Tuple

from babyshop.db.placeholders import MARKER, count_placeholders


def placeholders(count: int) -> str:
    """`?, ?, ?` for an `IN (...)` list of `count` values."""
    return ", ".join([MARKER] * count)


def like(term: str) -> str:
    """Substring pattern for `LIKE ?`."""
    return f"%{term}%"


def page_window(page: int, limit: int) -> Tuple[int, int]:
    """(offset, fetch) values for `OFFSET ? ROWS FETCH NEXT ? ROWS ONLY`."""
    return (page - 1) * limit, limit


def total_pages(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


class Conditions:
    """
    WHERE fragments with their positional values, joined by AND (or OR).

    Usage:
        where = Conditions("p.IsActive = 1")
        if category_id is not None:
            where.add("p.CategoryId = ?", category_id)
        rows = await db.query(f"SELECT ... WHERE {where.sql}", where.params)
    """

    def __init__(self, *clauses: str, operator: str = "AND"):
        self.operator = operator
        self._clauses: List[str] = []
        self._params: List[Any] = []
        for clause in clauses:
            self.add(clause)

    def add(self, clause: str, *params: Any) -> "Conditions":
        expected = count_placeholders(clause)
        if expected != len(params):
            raise ValueError(
                f"Clause {clause!r} has {expected} marker(s) but {len(params)} value(s)"
            )
        self._clauses.append(clause)
        self._params.extend(params)
        return self

    @property
    def sql(self) -> str:
        if not self._clauses:
            # an empty AND matches everything, an empty OR nothing
            return "1 = 1" if self.operator == "AND" else "1 = 0"
        return f" {self.operator} ".join(self._clauses)

    @property
    def params(self) -> List[Any]:
        return list(self._params)
