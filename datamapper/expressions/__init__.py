"""SQL expression types for query building.

Expressions are the typed fragments a query is assembled from: column
references, comparisons, logical combinations, orderings and raw text. Each
expression has a ``.sql`` property (SQL fragment with ``?`` placeholders),
``.values`` (tuple of bound values in the same order) and ``.sql_inline``
(the fragment with values inlined as quoted literals, used for display and
for query identity hashing).
"""

from ._bases import ArgumentedExpression, Expression
from .column import ALIAS_SEPARATOR, ColumnExpression
from .nary_operator import NaryOperatorExpression
from .order import OrderExpression
from .raw import RawExpression
from .unary_operator import UnaryOperatorExpression

__all__ = [
    "ALIAS_SEPARATOR",
    "ArgumentedExpression",
    "ColumnExpression",
    "Expression",
    "NaryOperatorExpression",
    "OrderExpression",
    "RawExpression",
    "UnaryOperatorExpression",
]
