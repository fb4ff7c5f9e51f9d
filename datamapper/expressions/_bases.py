"""Base expression types for SQL expression trees."""

from __future__ import annotations
from typing import Any, Tuple

from pydantic import BaseModel, Field as PydanticField

from ..utils.serialize import quote_literal, serialize_value


class Expression(BaseModel):
    """Base type for all SQL expression nodes.

    Subclasses implement ``render(inline)``. ``sql`` renders with ``?``
    placeholders for bound parameters and ``values`` returns the bound values
    in the same order; ``sql_inline`` renders the same fragment with quoted
    literals in place of the placeholders.
    """

    model_config = {"arbitrary_types_allowed": True}

    def render(self, inline: bool = False) -> str:
        """SQL fragment for this expression."""
        raise NotImplementedError("Subclasses must implement `render`")

    @property
    def sql(self) -> str:
        """SQL fragment for this expression, with ``?`` for bound parameters."""
        return self.render(inline=False)

    @property
    def sql_inline(self) -> str:
        """SQL fragment with bound values inlined as quoted literals."""
        return self.render(inline=True)

    @property
    def values(self) -> tuple[Any, ...]:
        """Bound values for placeholders in ``sql``, in order."""
        return ()

    def in_(self, other: Any):
        """Build an IN expression (e.g. ``column.in_([1, 2, 3])``)."""
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="IN", arguments=(self, list(other)))

    def is_null(self):
        """Build an IS NULL expression."""
        from .unary_operator import UnaryOperatorExpression
        return UnaryOperatorExpression(symbol="IS NULL", arguments=(self,), postfix=True)

    def is_not_null(self):
        """Build an IS NOT NULL expression."""
        from .unary_operator import UnaryOperatorExpression
        return UnaryOperatorExpression(symbol="IS NOT NULL", arguments=(self,), postfix=True)

    def like(self, pattern: str):
        """Build a LIKE expression with the pattern used as given."""
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="LIKE", arguments=(self, pattern))

    def __invert__(self):
        """Build a NOT expression."""
        from .unary_operator import UnaryOperatorExpression
        return UnaryOperatorExpression(symbol="NOT", arguments=(self,))

    def __and__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="AND", arguments=(self, other))

    def __or__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="OR", arguments=(self, other))

    def __eq__(self, other: Any):
        if other is None:
            return self.is_null()
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="=", arguments=(self, other))

    def __ne__(self, other: Any):
        if other is None:
            return self.is_not_null()
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="!=", arguments=(self, other))

    def __lt__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="<", arguments=(self, other))

    def __le__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol="<=", arguments=(self, other))

    def __gt__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol=">", arguments=(self, other))

    def __ge__(self, other: Any):
        from .nary_operator import NaryOperatorExpression
        return NaryOperatorExpression(symbol=">=", arguments=(self, other))


class ArgumentedExpression(Expression):
    """Base for expressions that have a symbol and a tuple of arguments.

    Arguments are either nested expressions or literals. Literals render as
    ``?`` (or a quoted literal when inlined); a list literal expands to one
    placeholder per item, for ``IN (...)``.
    """

    symbol: str
    arguments: Tuple[Any, ...] = PydanticField(default_factory=tuple)

    @staticmethod
    def _argument_to_sql(argument: Any, inline: bool = False) -> str:
        """Render one argument: expression SQL, placeholder, or inlined literal."""
        if isinstance(argument, Expression):
            return argument.render(inline)
        if isinstance(argument, (list, tuple, set)):
            items = list(argument)
            if inline:
                return "(" + ", ".join(map(quote_literal, items)) + ")"
            return "(" + ", ".join("?" for _ in items) + ")"
        if inline:
            return quote_literal(argument)
        return "?"

    @staticmethod
    def _argument_to_values(argument: Any) -> tuple[Any, ...]:
        """Collect values for one argument: recurse into expressions, else ``(argument,)``."""
        if isinstance(argument, Expression):
            return argument.values
        if isinstance(argument, (list, tuple, set)):
            return tuple(serialize_value(item) for item in argument)
        return (serialize_value(argument),)

    @property
    def values(self) -> tuple[Any, ...]:
        """All literal values from arguments, in order (recursing into nested expressions)."""
        return sum(map(self._argument_to_values, self.arguments), ())
