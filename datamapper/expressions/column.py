"""Column expression for referencing a single column of an aliased table."""

from __future__ import annotations

import re
from functools import cached_property
from typing import Optional

from ._bases import Expression

ALIAS_SEPARATOR = "_"
"""String joining table alias and column name in output labels (``o_status``)."""

_QUALIFIED_COLUMN = re.compile(r"^\s*(\w+)\.(\w+)\s*$")


class ColumnExpression(Expression):
    """Reference to a single column of a table known by its alias.

    Has no placeholders, so ``values`` is ``()``. Use ``sql_for_select`` when
    building a SELECT list so the column can be given a prefixed label.
    """

    alias: str
    """Alias of the table the column belongs to (e.g. ``o``)."""
    name: str
    """Column name (e.g. ``id``, ``customer_id``)."""

    @classmethod
    def parse(cls, text: str) -> Optional[ColumnExpression]:
        """Build a column expression from ``alias.column`` text, or None if it is not one."""
        match = _QUALIFIED_COLUMN.match(text)
        if match is None:
            return None
        return cls(alias=match.group(1), name=match.group(2))

    def render(self, inline: bool = False) -> str:
        """Qualified column (e.g. ``o.customer_id``)."""
        return f"{self.alias}.{self.name}"

    @property
    def label(self) -> str:
        """Output name used when the query is aliased (e.g. ``o_customer_id``)."""
        return f"{self.alias}{ALIAS_SEPARATOR}{self.name}"

    def sql_for_select(self, aliased: bool) -> str:
        """Column for a SELECT list, labelled ``alias_column`` when aliased."""
        if aliased:
            return f"{self.sql} AS {self.label}"
        return self.sql

    @cached_property
    def desc(self):
        """Order by this column descending (for use in ``order_by(...)``)."""
        from .order import OrderExpression
        return OrderExpression(column_expression=self, desc=True)

    @cached_property
    def asc(self):
        """Order by this column ascending."""
        from .order import OrderExpression
        return OrderExpression(column_expression=self, desc=False)
