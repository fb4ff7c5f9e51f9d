"""ORDER BY expression."""

from ._bases import Expression


class OrderExpression(Expression):
    """ORDER BY spec: one column (or raw fragment) and a direction."""

    desc: bool = False
    column_expression: Expression

    def render(self, inline: bool = False) -> str:
        """Column with ``DESC`` or ``ASC`` suffix."""
        return f"{self.column_expression.render(inline)} {'DESC' if self.desc else 'ASC'}"
