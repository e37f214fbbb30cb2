"""
Tests for join ordering and SQL generation.
"""

import pytest

from autojoin.joins import build_join_refs, choose_root, generate_join_sql, plan_joins, render_join_sql
from autojoin.models import Cardinality, ColumnPair, JoinEdge


def _edge(source, target, name=None, pairs=None, cardinality=Cardinality.MANY_TO_ONE):
    pairs = pairs if pairs is not None else [ColumnPair(1, f"{target}_id", "id")]
    return JoinEdge(source, target, name or f"fk_{source}_{target}", pairs, cardinality)


@pytest.fixture
def film_category_edges():
    """actor -> film_actor -> film -> film_category -> category, in discovery order."""
    return [
        _edge("actor", "film_actor", pairs=[ColumnPair(1, "actor_id", "actor_id")]),
        _edge("film_actor", "film", pairs=[ColumnPair(1, "film_id", "film_id")]),
        _edge("film", "film_category", pairs=[ColumnPair(1, "film_id", "film_id")]),
        _edge("film_category", "category", pairs=[ColumnPair(1, "category_id", "category_id")]),
    ]


class TestChooseRoot:
    """Tests for root table selection."""

    def test_first_table_without_inbound_edge(self):
        edges = [_edge("orders", "customers")]
        assert choose_root(["customers", "orders"], edges) == "orders"

    def test_falls_back_to_first_requested(self):
        edges = [_edge("a", "b"), _edge("b", "a", name="fk_b_a")]
        assert choose_root(["b", "a"], edges) == "b"

    def test_nothing_requested(self):
        assert choose_root([], []) is None


class TestPlanJoins:
    """Tests for join ordering."""

    def test_order_independent(self, film_category_edges):
        forward = render_join_sql(plan_joins(["actor", "category"], film_category_edges))
        backward = render_join_sql(plan_joins(["actor", "category"], list(reversed(film_category_edges))))

        assert forward == backward
        assert forward.splitlines()[0] == "FROM actor"

    def test_edge_flipped_towards_root(self):
        edge = _edge("orders", "customers", pairs=[ColumnPair(1, "customer_id", "id")])

        plan = plan_joins(["customers"], [edge])

        assert plan.root == "customers"
        assert (plan.steps[0].source, plan.steps[0].target) == ("customers", "orders")
        assert render_join_sql(plan) == "FROM customers\nJOIN orders ON customers.id = orders.customer_id"

    def test_cycle_closing_edge_dropped(self):
        edges = [_edge("a", "b"), _edge("b", "c"), _edge("a", "c")]

        plan = plan_joins(["a"], edges)

        assert plan.tables == ["a", "b", "c"]
        assert [e.constraint_name for e in plan.dropped] == ["fk_a_c"]

    def test_unconnected_edge_dropped(self, caplog):
        edges = [_edge("a", "b"), _edge("x", "y")]

        plan = plan_joins(["a"], edges)

        assert plan.tables == ["a", "b"]
        assert plan.dropped[0].constraint_name == "fk_x_y"
        assert "not connected" in caplog.text

    def test_edge_without_columns_dropped(self):
        plan = plan_joins(["a"], [_edge("a", "b", pairs=[])])

        assert plan.steps == []
        assert len(plan.dropped) == 1

    def test_each_table_joined_once(self, film_category_edges):
        plan = plan_joins(["actor", "category"], film_category_edges)
        assert len(plan.tables) == len(set(plan.tables))


class TestRenderJoinSql:
    """Tests for SQL text."""

    def test_film_category_sql(self, film_category_edges):
        sql = generate_join_sql(["actor", "film", "category"], film_category_edges)

        assert sql == (
            "FROM actor\n"
            "JOIN film_actor ON actor.actor_id = film_actor.actor_id\n"
            "JOIN film ON film_actor.film_id = film.film_id\n"
            "JOIN film_category ON film.film_id = film_category.film_id\n"
            "JOIN category ON film_category.category_id = category.category_id"
        )

    def test_composite_key(self):
        edge = _edge("order_lines", "orders", pairs=[
            ColumnPair(1, "order_id", "id"),
            ColumnPair(2, "order_version", "version"),
        ])

        sql = generate_join_sql(["order_lines", "orders"], [edge])

        assert sql.splitlines()[1] == (
            "JOIN orders ON order_lines.order_id = orders.id AND order_lines.order_version = orders.version"
        )

    def test_no_edges(self):
        assert generate_join_sql(["actor"], []) == "FROM actor"
        assert generate_join_sql([], []) == ""
        assert generate_join_sql(["actor", "film"], []) == ""


class TestBuildJoinRefs:
    """Tests for structured joins."""

    def test_refs_follow_plan(self):
        edge = _edge("orders", "customers", pairs=[ColumnPair(1, "customer_id", "id")])

        refs = build_join_refs(plan_joins(["customers", "orders"], [edge]))

        assert len(refs) == 1
        assert refs[0].source_table == "orders"
        assert refs[0].target_table == "customers"
        assert refs[0].join_type == "inner"
        assert refs[0].cardinality is Cardinality.MANY_TO_ONE

    def test_flipped_ref_inverts_cardinality(self):
        edge = _edge("orders", "customers", pairs=[ColumnPair(1, "customer_id", "id")])

        refs = build_join_refs(plan_joins(["customers"], [edge]))

        assert refs[0].source_table == "customers"
        assert refs[0].cardinality is Cardinality.ONE_TO_MANY
        assert refs[0].column_pairs[0].source_column == "id"
