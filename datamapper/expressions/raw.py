"""Raw SQL fragment expression."""

from ._bases import Expression


class RawExpression(Expression):
    """SQL text used verbatim (e.g. ``"o.total > 100"`` or ``"COUNT(*) AS n"``).

    Raw fragments carry no bound values; whatever they contain is the
    caller's responsibility.
    """

    text: str

    def render(self, inline: bool = False) -> str:
        return self.text
