"""Unary operator expression."""

from ._bases import ArgumentedExpression


class UnaryOperatorExpression(ArgumentedExpression):
    """Single-argument operator, prefix or postfix (e.g. ``NOT x``, ``x IS NULL``)."""

    postfix: bool = False
    """If True, render as ``argument symbol``; else ``symbol argument``."""

    def render(self, inline: bool = False) -> str:
        argument = self._argument_to_sql(self.arguments[0], inline)
        if self.postfix:
            return f"{argument} {self.symbol}"
        return f"{self.symbol} {argument}"
