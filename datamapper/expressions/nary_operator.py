"""N-ary operator expression."""

from ._bases import ArgumentedExpression

LOGICAL_SYMBOLS = ("AND", "OR")
"""Operators whose rendering is wrapped in parentheses to keep precedence."""


class NaryOperatorExpression(ArgumentedExpression):
    """N-argument operator (e.g. ``=``, ``IN``, ``AND``).

    Comparisons render bare (``o.id = ?``); logical operators are
    parenthesized (``(a AND b)``) so they can be nested safely.
    """

    def render(self, inline: bool = False) -> str:
        if not self.symbol:
            raise ValueError("NaryOperatorExpression must have a symbol")
        if not self.arguments:
            raise ValueError("NaryOperatorExpression must have at least one argument")
        parts = tuple(self._argument_to_sql(argument, inline) for argument in self.arguments)
        sql = (" " + self.symbol + " ").join(parts)
        if self.symbol in LOGICAL_SYMBOLS:
            return "(" + sql + ")"
        return sql
