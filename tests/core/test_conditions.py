"""Condition Builder — pure tests for WHERE assembly, binding and select modifiers.

Tests cover:
    - Every predicate emits a placeholder, never the value
    - Connectors (or_/and_) and wrap() grouping fold left with explicit parentheses
    - Trailing open group closed implicitly
    - Empty in_/not_in, bare-string in_, between needs an ordered pair
    - Identifier/connector/join validation
    - SELECT assembly: columns, joins, group/having, order, limit/offset
"""

import pytest

from recordkit.core.conditions import ConditionBuilder
from recordkit.core.domain_types import Connector
from recordkit.core.errors import InvalidArgumentError


# ─── Predicates ──────────────────────────────────────────────────

def test_eq_binds_value_as_placeholder():
    sql, params = ConditionBuilder().eq("id", 1).build_where()
    assert sql == "id = :p0"
    assert params == {"p0": 1}


def test_comparison_operators():
    builder = (
        ConditionBuilder()
        .ne("a", 1).lt("b", 2).le("c", 3).gt("d", 4).ge("e", 5)
    )
    sql, params = builder.build_where()
    assert sql == "a <> :p0 AND b < :p1 AND c <= :p2 AND d > :p3 AND e >= :p4"
    assert params == {"p0": 1, "p1": 2, "p2": 3, "p3": 4, "p4": 5}


def test_null_checks_bind_nothing():
    sql, params = ConditionBuilder().is_null("a").is_not_null("b").build_where()
    assert sql == "a IS NULL AND b IS NOT NULL"
    assert params == {}


def test_like_and_not_like():
    sql, params = ConditionBuilder().like("name", "de%").not_like("name", "%x").build_where()
    assert sql == "name LIKE :p0 AND name NOT LIKE :p1"
    assert params == {"p0": "de%", "p1": "%x"}


def test_in_binds_each_value_in_order():
    sql, params = ConditionBuilder().in_("name", ["demo", "demo1"]).build_where()
    assert sql == "name IN (:p0, :p1)"
    assert params == {"p0": "demo", "p1": "demo1"}


def test_not_in_accepts_any_iterable():
    sql, params = ConditionBuilder().not_in("id", (v for v in (3, 4))).build_where()
    assert sql == "id NOT IN (:p0, :p1)"
    assert params == {"p0": 3, "p1": 4}


def test_empty_in_is_always_false():
    sql, params = ConditionBuilder().in_("id", []).build_where()
    assert sql == "1 = 0"
    assert params == {}


def test_empty_not_in_is_always_true():
    sql, params = ConditionBuilder().not_in("id", set()).build_where()
    assert sql == "1 = 1"
    assert params == {}


def test_between_binds_both_bounds():
    sql, params = ConditionBuilder().between("id", [0, 2]).build_where()
    assert sql == "id BETWEEN :p0 AND :p1"
    assert params == {"p0": 0, "p1": 2}


@pytest.mark.parametrize("bounds", [[1], [1, 2, 3], (), "ab", 5, {1, 2}, frozenset({3, 4})])
def test_between_requires_ordered_pair(bounds):
    with pytest.raises(InvalidArgumentError) as exc:
        ConditionBuilder().between("id", bounds)
    assert exc.value.argument == "bounds"
    assert exc.value.code == "INVALID_ARGUMENT"


def test_between_accepts_tuple_bounds():
    sql, params = ConditionBuilder().between("id", (5, 9)).build_where()
    assert sql == "id BETWEEN :p0 AND :p1"
    assert params == {"p0": 5, "p1": 9}


@pytest.mark.parametrize("method", ["in_", "not_in"])
@pytest.mark.parametrize("values", ["ab", b"ab"])
def test_in_rejects_bare_string(method, values):
    with pytest.raises(InvalidArgumentError) as exc:
        getattr(ConditionBuilder(), method)("name", values)
    assert exc.value.argument == "values"


def test_in_accepts_any_iterable():
    sql, params = ConditionBuilder().in_("id", (n for n in (1, 2))).build_where()
    assert sql == "id IN (:p0, :p1)"
    assert params == {"p0": 1, "p1": 2}


def test_quoted_value_is_bound_not_interpolated():
    hostile = 'aaa"\' OR 1=1 --'
    sql, params = ConditionBuilder().eq("name", hostile).build_where()
    assert sql == "name = :p0"
    assert hostile not in sql
    assert params["p0"] == hostile


@pytest.mark.parametrize("column", ["id; DROP TABLE user", "1id", "a b", "", "a.b.c"])
def test_invalid_column_identifier_rejected(column):
    with pytest.raises(InvalidArgumentError):
        ConditionBuilder().eq(column, 1)


def test_qualified_column_allowed():
    sql, _ = ConditionBuilder().eq("c.user_id", 1).build_where()
    assert sql == "c.user_id = :p0"


# ─── Connectors & wrap ───────────────────────────────────────────

def test_or_applies_to_next_predicate_only():
    sql, _ = ConditionBuilder().eq("a", 1).or_().eq("b", 2).eq("c", 3).build_where()
    assert sql == "a = :p0 OR b = :p1 AND c = :p2"


def test_and_cancels_pending_or():
    sql, _ = ConditionBuilder().eq("a", 1).or_().and_().eq("b", 2).build_where()
    assert sql == "a = :p0 AND b = :p1"


def test_wrap_or_groups_alternative_branch():
    builder = (
        ConditionBuilder()
        .is_not_null("id").eq("id", "bad").wrap()
        .lt("id", 2).gt("id", 0).wrap("OR")
    )
    sql, params = builder.build_where()
    assert sql == "(id IS NOT NULL AND id = :p0) OR (id < :p1 AND id > :p2)"
    assert params == {"p0": "bad", "p1": 2, "p2": 0}


def test_wrap_folds_groups_left():
    builder = (
        ConditionBuilder()
        .is_not_null("id").wrap("OR")
        .in_("name", ["demo", "demo1"]).wrap("AND")
        .lt("id", 3).gt("id", 0).wrap("OR")
    )
    sql, _ = builder.build_where()
    assert sql == (
        "((id IS NOT NULL) AND (name IN (:p0, :p1))) OR (id < :p2 AND id > :p3)"
    )


def test_trailing_open_group_closed_with_and():
    sql, _ = ConditionBuilder().eq("a", 1).wrap("OR").eq("b", 2).build_where()
    assert sql == "(a = :p0) AND (b = :p1)"


def test_wrap_on_empty_group_is_noop():
    sql, _ = ConditionBuilder().wrap("OR").eq("a", 1).wrap().wrap("OR").build_where()
    assert sql == "a = :p0"


def test_wrap_accepts_enum_and_lowercase():
    sql, _ = (
        ConditionBuilder().eq("a", 1).wrap().eq("b", 2).wrap(Connector.OR)
        .eq("c", 3).wrap("or")
    ).build_where()
    assert sql == "((a = :p0) OR (b = :p1)) OR (c = :p2)"


def test_wrap_rejects_unknown_connector():
    with pytest.raises(InvalidArgumentError):
        ConditionBuilder().eq("a", 1).wrap("XOR")


def test_no_conditions_yields_empty_where():
    builder = ConditionBuilder()
    assert builder.build_where() == ("", {})
    assert not builder.has_conditions


# ─── SELECT assembly ─────────────────────────────────────────────

def test_build_select_defaults_to_star():
    sql, params = ConditionBuilder().build_select("user")
    assert sql == "SELECT * FROM user"
    assert params == {}


def test_build_select_full_chain():
    builder = (
        ConditionBuilder()
        .select("name").eq("id", 1).order_by("id DESC").limit(2, 1)
    )
    sql, params = builder.build_select("user")
    assert sql == "SELECT name FROM user WHERE id = :p0 ORDER BY id DESC LIMIT :p1 OFFSET :p2"
    assert params == {"p0": 1, "p1": 2, "p2": 1}


def test_build_select_single_forces_limit_one_and_keeps_offset():
    sql, params = ConditionBuilder().limit(5, 3).build_select("user", single=True)
    assert sql == "SELECT * FROM user LIMIT :p0 OFFSET :p1"
    assert params == {"p0": 1, "p1": 3}


def test_build_select_does_not_mutate_bindings():
    builder = ConditionBuilder().eq("id", 1).limit(2)
    builder.build_select("user")
    assert builder.params == {"p0": 1}


def test_join_defaults_to_left():
    sql, _ = (
        ConditionBuilder()
        .select("user.*", "c.email")
        .join("contact AS c", "c.user_id = user.id")
        .build_select("user")
    )
    assert sql == "SELECT user.*, c.email FROM user LEFT JOIN contact AS c ON c.user_id = user.id"


def test_inner_and_cross_join():
    sql, _ = (
        ConditionBuilder()
        .join("contact AS c", "c.user_id = user.id", "inner")
        .join("tag", join_type="CROSS")
        .build_select("user")
    )
    assert sql == "SELECT * FROM user INNER JOIN contact AS c ON c.user_id = user.id CROSS JOIN tag"


def test_join_validation():
    with pytest.raises(InvalidArgumentError):
        ConditionBuilder().join("contact", "c.user_id = user.id", "OUTER")
    with pytest.raises(InvalidArgumentError):
        ConditionBuilder().join("contact")


def test_group_by_and_having():
    sql, params = (
        ConditionBuilder()
        .select("user_id", "COUNT(id) AS n")
        .group_by("user_id")
        .having("COUNT(id)", ">", 1)
        .build_select("contact")
    )
    assert sql == "SELECT user_id, COUNT(id) AS n FROM contact GROUP BY user_id HAVING COUNT(id) > :p0"
    assert params == {"p0": 1}


def test_having_rejects_unknown_operator():
    with pytest.raises(InvalidArgumentError):
        ConditionBuilder().having("COUNT(id)", "LIKE", 1)


@pytest.mark.parametrize("count, offset", [(-1, None), (1, -2), (True, None), ("2", None)])
def test_limit_requires_non_negative_integers(count, offset):
    with pytest.raises(InvalidArgumentError):
        ConditionBuilder().limit(count, offset)


def test_select_replaces_previous_columns():
    sql, _ = ConditionBuilder().select("a").select("b", "c").build_select("t")
    assert sql == "SELECT b, c FROM t"


def test_invalid_table_rejected():
    with pytest.raises(InvalidArgumentError):
        ConditionBuilder().build_select("")


def test_reset_clears_everything():
    builder = (
        ConditionBuilder()
        .select("a").eq("a", 1).wrap().or_().join("b", "b.id = t.id")
        .order_by("a").group_by("a").having("COUNT(a)", ">", 0).limit(1, 1)
    )
    builder.reset()
    assert builder.build_select("t") == ("SELECT * FROM t", {})
    assert builder.pending_connector is Connector.AND
