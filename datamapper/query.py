"""Query builder over one entity type.

A Query starts from a template (the entity's table, alias, columns and
optional base WHERE/ORDER BY) and accumulates JOINs, WHERE predicates, extra
SELECT columns, GROUP BY, ORDER BY, LIMIT and OFFSET. Every builder method
returns a new Query, so a query can be extended several ways without the
variants affecting each other. SQL is rendered from the accumulated state on
demand, in a fixed clause order, so rendering twice gives the same text.

Nothing is executed until the query is iterated, counted, indexed, or an
attribute of its result collection is used; results then come from the
owning repository's ``hydrate_source``.
"""

from __future__ import annotations

import hashlib
from typing import Any, Iterable, Iterator, Optional, Union

from pydantic import BaseModel, Field

from .collection import EntityCollection
from .errors import BuilderMisuseError, InvalidStateError
from .expressions import ColumnExpression, Expression, OrderExpression, RawExpression


def _as_expression(condition: Union[str, Expression]) -> Expression:
    if isinstance(condition, Expression):
        return condition
    if isinstance(condition, str):
        return RawExpression(text=condition)
    raise TypeError(f"Expected an SQL string or an Expression, got {type(condition)}")


class QueryTemplate(BaseModel):
    """Immutable starting point of a query."""

    model_config = {"frozen": True}

    table: str
    alias: str
    columns: tuple[ColumnExpression, ...]
    where: tuple[Expression, ...] = ()
    """Predicates always applied, joined with AND."""
    order_by: tuple[OrderExpression, ...] = ()
    """Ordering fixed by the template; ``Query.order_by`` cannot override it."""


class JoinClause(BaseModel):
    model_config = {"frozen": True}

    kind: str = "JOIN"
    table: str
    alias: str
    condition: Expression

    def render(self, inline: bool = False) -> str:
        return f"{self.kind} {self.table} {self.alias} ON {self.condition.render(inline)}"


class WhereClause(BaseModel):
    model_config = {"frozen": True}

    condition: Expression
    connective: str = "AND"


class CacheDirective(BaseModel):
    """Asks for the query result to go through the result cache."""

    model_config = {"frozen": True}

    tags: tuple[str, ...] = ()
    """Tags saved with the result, besides the entity type name."""
    expire: Optional[float] = None
    """Lifetime in seconds; None keeps the result until its tags are cleaned."""


class Query(BaseModel):
    """Lazily executed SELECT over one entity type.

    Examples:
        orders.find_all().where(orders.column("status") == "open").order_by(orders.column("id").desc)
        orders.find_all().with_("customer").limit(10)
    """

    model_config = {"arbitrary_types_allowed": True}

    repository: Any = Field(exclude=True)
    """Repository of the queried entity type: builds joins and counts."""
    hydrate_repository: Any = Field(default=None, exclude=True)
    """Repository that executes and hydrates the results (defaults to ``repository``)."""
    template: QueryTemplate
    joins: list[JoinClause] = Field(default_factory=list)
    where_clauses: list[WhereClause] = Field(default_factory=list)
    select_expressions: list[Expression] = Field(default_factory=list)
    """Extra output columns, rendered right after the template columns."""
    group_by_value: Optional[Expression] = None
    order_by_expressions: list[OrderExpression] = Field(default_factory=list)
    limit_value: Optional[int] = None
    offset_value: Optional[int] = None
    cache: Optional[CacheDirective] = None
    with_associations: tuple[str, ...] = ()
    """Associations eager loaded through a JOIN, in request order."""

    def clone_query_with(self, **changes) -> Query:
        """Return a new Query with the same state except for the given overrides.

        Raises:
            ValueError: when a change does not name a field of Query.
        """
        unknown = set(changes) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown Query field(s): {', '.join(sorted(unknown))}")
        return self.model_copy(update=changes)

    def set_hydrate_repository(self, repository: Any) -> Query:
        """Have another repository execute and hydrate this query."""
        return self.clone_query_with(hydrate_repository=repository)

    # builder methods

    def join(self, table: str, alias: str, condition: Union[str, Expression], kind: str = "JOIN") -> Query:
        """Add a JOIN; joins render in the order they were added."""
        clause = JoinClause(kind=kind, table=table, alias=alias, condition=_as_expression(condition))
        return self.clone_query_with(joins=self.joins + [clause])

    def where(self, condition: Union[str, Expression], connective: str = "AND") -> Query:
        """Add a predicate, connected to the previous ones with ``connective`` (AND or OR).

        ``condition`` is an Expression (e.g. ``column == 5``) or raw SQL text.
        """
        connective = connective.strip().upper()
        if connective not in ("AND", "OR"):
            raise ValueError(f"Unsupported connective: {connective}")
        clause = WhereClause(condition=_as_expression(condition), connective=connective)
        return self.clone_query_with(where_clauses=self.where_clauses + [clause])

    def clear_where(self) -> Query:
        """Drop the predicates added with ``where``; template predicates stay."""
        return self.clone_query_with(where_clauses=[])

    def select(self, *columns: Union[str, Expression]) -> Query:
        """Add output columns; ``alias.column`` text becomes a column, other text stays raw."""
        expressions = []
        for column in columns:
            if isinstance(column, str):
                column = ColumnExpression.parse(column) or RawExpression(text=column)
            expressions.append(column)
        return self.clone_query_with(select_expressions=self.select_expressions + expressions)

    def with_(self, *associations: str) -> Query:
        """Eager load associations: their JOIN and target columns are added to this query."""
        query = self
        for name in associations:
            if name in query.with_associations:
                continue
            query = query.repository.join_from_association(query, name)
            query = query.clone_query_with(with_associations=query.with_associations + (name,))
        return query

    def group_by(self, expression: Union[str, Expression]) -> Query:
        return self.clone_query_with(group_by_value=_as_expression(expression))

    def order_by(self, *orders: Union[str, ColumnExpression, OrderExpression]) -> Query:
        """Set ORDER BY, once.

        Raises:
            InvalidStateError: when the template already orders, or ordering was already set.
        """
        if self.template.order_by:
            raise InvalidStateError("The query template already has an ORDER BY")
        if self.order_by_expressions:
            raise InvalidStateError("ORDER BY was already set on this query")
        expressions = []
        for order in orders:
            if isinstance(order, str):
                order = ColumnExpression.parse(order) or RawExpression(text=order)
            if not isinstance(order, OrderExpression):
                order = OrderExpression(column_expression=order, desc=False)
            expressions.append(order)
        return self.clone_query_with(order_by_expressions=expressions)

    def limit(self, limit: Optional[int]) -> Query:
        return self.clone_query_with(limit_value=limit)

    def offset(self, offset: Optional[int]) -> Query:
        return self.clone_query_with(offset_value=offset)

    def use_cache(self, enabled: bool = True, tags: Iterable[str] = (), expire: Optional[float] = None) -> Query:
        """Route the result through the repository's result cache (or stop doing so)."""
        if not enabled:
            return self.clone_query_with(cache=None)
        return self.clone_query_with(cache=CacheDirective(tags=tuple(tags), expire=expire))

    # rendering

    @property
    def is_aliased(self) -> bool:
        """Whether output columns are labelled ``alias_column`` (any JOIN makes it so)."""
        return bool(self.joins)

    def _select_list(self, aliased: bool, inline: bool) -> str:
        parts = []
        for expression in list(self.template.columns) + list(self.select_expressions):
            if isinstance(expression, ColumnExpression):
                parts.append(expression.sql_for_select(aliased))
            else:
                parts.append(expression.render(inline))
        return ", ".join(parts)

    def _where_text(self, inline: bool) -> str:
        text = " AND ".join(expression.render(inline) for expression in self.template.where)
        for clause in self.where_clauses:
            condition = clause.condition.render(inline)
            text = f"{text} {clause.connective} {condition}" if text else condition
        return text

    def render(self, inline: bool = False, counting: bool = False) -> str:
        """SQL text of the query.

        Args:
            inline: Inline bound values as quoted literals instead of ``?``.
            counting: Render ``COUNT(*)`` of the rows instead, without ORDER BY,
                LIMIT and OFFSET (over a sub-select when grouped).
        """
        if counting and self.group_by_value is None:
            select_list = "COUNT(*) AS total"
        elif counting:
            select_list = self.group_by_value.render(inline)
        else:
            select_list = self._select_list(self.is_aliased, inline)
        lines = [f"SELECT {select_list}", f"FROM {self.template.table} {self.template.alias}"]
        lines.extend(join.render(inline) for join in self.joins)
        where = self._where_text(inline)
        if where:
            lines.append(f"WHERE {where}")
        if self.group_by_value is not None:
            lines.append(f"GROUP BY {self.group_by_value.render(inline)}")
        if counting:
            sql = "\n".join(lines)
            if self.group_by_value is not None:
                sql = f"SELECT COUNT(*) AS total FROM (\n{sql}\n) counted"
            return sql
        orders = self.template.order_by or tuple(self.order_by_expressions)
        if orders:
            lines.append("ORDER BY " + ", ".join(order.render(inline) for order in orders))
        if self.limit_value is not None:
            lines.append(f"LIMIT {int(self.limit_value)}")
        if self.offset_value:
            lines.append(f"OFFSET {int(self.offset_value)}")
        return "\n".join(lines)

    @property
    def sql(self) -> str:
        """SQL text with ``?`` placeholders."""
        return self.render()

    @property
    def values(self) -> tuple[Any, ...]:
        """Bound values for the placeholders of ``sql``, in order."""
        expressions: list[Expression] = list(self.select_expressions)
        expressions.extend(join.condition for join in self.joins)
        expressions.extend(self.template.where)
        expressions.extend(clause.condition for clause in self.where_clauses)
        if self.group_by_value is not None:
            expressions.append(self.group_by_value)
        return sum((expression.values for expression in expressions), ())

    @property
    def count_values(self) -> tuple[Any, ...]:
        """Bound values for ``render(counting=True)``."""
        expressions: list[Expression] = []
        if self.group_by_value is not None:
            expressions.append(self.group_by_value)
        expressions.extend(join.condition for join in self.joins)
        expressions.extend(self.template.where)
        expressions.extend(clause.condition for clause in self.where_clauses)
        if self.group_by_value is not None:
            expressions.append(self.group_by_value)
        return sum((expression.values for expression in expressions), ())

    @property
    def sql_text(self) -> str:
        """SQL text with values inlined (for display and identity only, never executed)."""
        return self.render(inline=True)

    @property
    def identity(self) -> str:
        """md5 hex digest of ``sql_text``."""
        return hashlib.md5(self.sql_text.encode("utf-8")).hexdigest()

    def __str__(self) -> str:
        return self.sql_text

    # execution

    def _hydrating_repository(self):
        return self.hydrate_repository if self.hydrate_repository is not None else self.repository

    def get(self) -> EntityCollection:
        """Execute (or reuse the memoized result) and return the entities."""
        return self._hydrating_repository().hydrate_source(self)

    def first(self) -> Optional[Any]:
        """First entity, or None; limits the query to one row unless a limit is set."""
        query = self if self.limit_value is not None else self.limit(1)
        return query.get().first()

    def count(self) -> int:
        """Number of entities in the result (executes the query)."""
        return len(self.get())

    def get_total_count(self) -> int:
        """Number of matching rows ignoring LIMIT and OFFSET, by a separate COUNT query.

        The total is also set as ``total_count`` of the result collection, for paging.
        """
        total = self.repository.count_sql(self)
        self.get().total_count = total
        return total

    def __iter__(self) -> Iterator[Any]:
        return iter(self.get())

    def __len__(self) -> int:
        return self.count()

    def __bool__(self) -> bool:
        """A query is always true, whatever its result: ``if query`` runs no SQL.

        Test for results with ``first()`` or ``len()``.
        """
        return True

    def __getitem__(self, index):
        return self.get()[index]

    def __getattr__(self, name: str) -> Any:
        """Unknown public attributes come from the result collection.

        Raises:
            BuilderMisuseError: when the collection has no such attribute either.
        """
        if name.startswith("_"):
            return super().__getattr__(name)
        collection = self.get()
        try:
            return getattr(collection, name)
        except AttributeError:
            raise BuilderMisuseError(
                f"Neither Query nor {type(collection).__name__} has an attribute `{name}`"
            ) from None


__all__ = ["Query", "QueryTemplate", "JoinClause", "WhereClause", "CacheDirective"]
