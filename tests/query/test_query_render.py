"""Tests for datamapper.query.Query rendering: clause order, WHERE composition, aliasing, identity."""

import hashlib

import pytest

from datamapper import InvalidStateError
from datamapper.expressions import ColumnExpression, RawExpression
from datamapper.query import CacheDirective, Query, QueryTemplate

ID = ColumnExpression(alias="o", name="id")
STATUS = ColumnExpression(alias="o", name="status")


def _query(**template_options) -> Query:
    template = QueryTemplate(table="orders", alias="o", columns=(ID, STATUS), **template_options)
    return Query(repository=None, template=template)


class TestSelectAndFrom:
    """Base template rendering."""

    def test_base(self):
        assert _query().sql == "SELECT o.id, o.status\nFROM orders o"
        assert _query().values == ()

    def test_extra_select_columns_follow_template_columns(self):
        query = _query().select("c.name", "COUNT(*) AS n")
        assert query.sql == "SELECT o.id, o.status, c.name, COUNT(*) AS n\nFROM orders o"
        assert isinstance(query.select_expressions[0], ColumnExpression)
        assert isinstance(query.select_expressions[1], RawExpression)


class TestWhere:
    """Predicate composition."""

    def test_first_predicate_starts_where(self):
        query = _query().where(STATUS == "open").where("o.note IS NULL")
        assert query.sql == "SELECT o.id, o.status\nFROM orders o\nWHERE o.status = ? AND o.note IS NULL"
        assert query.values == ("open",)

    def test_connectives(self):
        query = _query().where(STATUS == "open").where(ID > 10, "or")
        assert query.sql.endswith("WHERE o.status = ? OR o.id > ?")
        assert query.values == ("open", 10)

    def test_template_where_is_connected_with_each_connective(self):
        query = _query(where=(ID > 0,)).where(STATUS == "open", "OR")
        assert query.sql.endswith("WHERE o.id > ? OR o.status = ?")
        assert query.values == (0, "open")

    def test_clear_where_keeps_template_predicates(self):
        query = _query(where=(ID > 0,)).where(STATUS == "open").clear_where()
        assert query.sql.endswith("WHERE o.id > ?")

    def test_inline_text(self):
        query = _query().where(STATUS == "open").where(ColumnExpression(alias="o", name="note").is_null())
        assert query.sql_text.endswith("WHERE o.status = 'open' AND o.note IS NULL")
        assert str(query) == query.sql_text

    def test_bad_connective(self):
        with pytest.raises(ValueError, match="Unsupported connective"):
            _query().where(STATUS == "open", "XOR")

    def test_bad_condition(self):
        with pytest.raises(TypeError, match="Expected an SQL string or an Expression"):
            _query().where(42)


class TestJoin:
    """JOINs and column aliasing."""

    def test_join_aliases_every_column(self):
        query = _query().join("customer", "c", "c.id = o.customer_id", kind="LEFT JOIN").select("c.name")
        assert query.is_aliased
        assert query.sql == (
            "SELECT o.id AS o_id, o.status AS o_status, c.name AS c_name\n"
            "FROM orders o\n"
            "LEFT JOIN customer c ON c.id = o.customer_id"
        )

    def test_no_join_no_aliasing(self):
        assert not _query().is_aliased

    def test_joins_render_in_call_order_before_where(self):
        query = (_query()
                 .where(STATUS == "open")
                 .join("customer", "c", "c.id = o.customer_id")
                 .join("order_line", "ol", ColumnExpression(alias="ol", name="order_id") == ID))
        assert query.sql.split("\n")[1:] == [
            "FROM orders o",
            "JOIN customer c ON c.id = o.customer_id",
            "JOIN order_line ol ON ol.order_id = o.id",
            "WHERE o.status = ?",
        ]

    def test_join_values_come_before_where_values(self):
        condition = (ColumnExpression(alias="c", name="id") == ColumnExpression(alias="o", name="customer_id")) \
            & (ColumnExpression(alias="c", name="name") != "Mallory")
        query = _query().where(STATUS == "open").join("customer", "c", condition)
        assert query.values == ("Mallory", "open")


class TestClauseOrder:
    """GROUP BY, ORDER BY, LIMIT and OFFSET."""

    def test_full_order(self):
        query = (_query()
                 .offset(20)
                 .limit(10)
                 .order_by(STATUS.desc, "o.id")
                 .group_by("o.status")
                 .where(ID > 1))
        assert query.sql.split("\n") == [
            "SELECT o.id, o.status",
            "FROM orders o",
            "WHERE o.id > ?",
            "GROUP BY o.status",
            "ORDER BY o.status DESC, o.id ASC",
            "LIMIT 10",
            "OFFSET 20",
        ]

    def test_zero_offset_is_omitted(self):
        assert "OFFSET" not in _query().limit(5).offset(0).sql

    def test_order_by_only_once(self):
        query = _query().order_by(ID)
        with pytest.raises(InvalidStateError, match="already set"):
            query.order_by(STATUS)

    def test_template_order_cannot_be_overridden(self):
        query = _query(order_by=(ID.desc,))
        assert query.sql.endswith("ORDER BY o.id DESC")
        with pytest.raises(InvalidStateError, match="template already has an ORDER BY"):
            query.order_by(STATUS)


class TestCountRendering:
    """COUNT(*) form used by get_total_count."""

    def test_count_drops_order_limit_offset(self):
        query = _query().where(STATUS == "open").order_by(ID).limit(5).offset(5)
        assert query.render(counting=True) == "SELECT COUNT(*) AS total\nFROM orders o\nWHERE o.status = ?"
        assert query.count_values == ("open",)

    def test_grouped_count_uses_subselect(self):
        query = _query().group_by("o.status")
        assert query.render(counting=True) == (
            "SELECT COUNT(*) AS total FROM (\nSELECT o.status\nFROM orders o\nGROUP BY o.status\n) counted"
        )


class TestStateAndIdentity:
    """Rendering is a pure function of the accumulated state."""

    def test_rendering_twice_gives_same_text(self):
        query = _query().join("customer", "c", "c.id = o.customer_id").where(STATUS == "open").limit(3)
        assert query.sql == query.sql
        assert query.sql_text == query.sql_text
        assert query.identity == query.identity

    def test_builder_methods_leave_original_untouched(self):
        base = _query()
        filtered = base.where(STATUS == "open")
        joined = base.join("customer", "c", "c.id = o.customer_id")
        assert base.sql == "SELECT o.id, o.status\nFROM orders o"
        assert "WHERE" in filtered.sql
        assert "JOIN" not in filtered.sql
        assert joined.is_aliased and not base.is_aliased

    def test_identity_is_md5_of_inlined_sql(self):
        query = _query().where(STATUS == "open")
        assert query.identity == hashlib.md5(query.sql_text.encode("utf-8")).hexdigest()
        assert query.identity != _query().where(STATUS == "closed").identity

    def test_clone_query_with_rejects_unknown_fields(self):
        with pytest.raises(ValueError, match="Unknown Query field"):
            _query().clone_query_with(sql_limit=3)

    def test_use_cache(self):
        query = _query().use_cache(tags=["open"], expire=60)
        assert query.cache == CacheDirective(tags=("open",), expire=60)
        assert query.use_cache(enabled=False).cache is None
