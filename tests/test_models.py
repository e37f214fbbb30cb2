"""
Tests for the core data models.
"""

import pytest

from autojoin.models import (
    Cardinality,
    ColumnPair,
    Edge,
    ForeignKeyConstraint,
    JoinEdge,
    JoinResult,
    JoinStatus,
    NodeMeta,
    PathObj,
    PathsIndex,
    SchemaDescription,
    SchemaFormatError,
    TableGraph,
    TableSchema,
)


class TestCardinality:
    """Tests for cardinality parsing and inversion."""

    def test_inverted(self):
        assert Cardinality.MANY_TO_ONE.inverted() is Cardinality.ONE_TO_MANY
        assert Cardinality.ONE_TO_MANY.inverted() is Cardinality.MANY_TO_ONE
        assert Cardinality.ONE_TO_ONE.inverted() is Cardinality.ONE_TO_ONE
        assert Cardinality.MANY_TO_MANY.inverted() is Cardinality.MANY_TO_MANY

    def test_parse_default(self):
        assert Cardinality.parse(None, Cardinality.MANY_TO_ONE) is Cardinality.MANY_TO_ONE
        assert Cardinality.parse("N:N", Cardinality.MANY_TO_ONE) is Cardinality.MANY_TO_MANY

    def test_parse_invalid(self):
        with pytest.raises(SchemaFormatError):
            Cardinality.parse("many", Cardinality.UNKNOWN)


class TestColumnPair:
    """Tests for column pair parsing."""

    def test_default_position(self):
        pair = ColumnPair.from_dict({"sourceColumn": "customer_id", "targetColumn": "id"}, 3)
        assert pair.position == 3

    def test_non_object_rejected(self):
        with pytest.raises(SchemaFormatError, match="expected an object"):
            ColumnPair.from_dict(["customer_id", "id"])


class TestForeignKeyConstraint:
    """Tests for foreign key parsing."""

    def test_column_pairs_ordered_by_position(self):
        fk = ForeignKeyConstraint.from_dict({
            "constraintName": "fk_line_order",
            "targetTable": "orders",
            "columnPairs": [
                {"position": 2, "sourceColumn": "order_line", "targetColumn": "line"},
                {"position": 1, "sourceColumn": "order_id", "targetColumn": "id"},
            ],
        }, owner_table="order_lines")

        assert fk.source_table == "order_lines"
        assert [p.source_column for p in fk.column_pairs] == ["order_id", "order_line"]
        assert fk.cardinality is None

    def test_empty_column_pairs_rejected(self):
        with pytest.raises(SchemaFormatError, match="columnPairs"):
            ForeignKeyConstraint.from_dict({
                "constraintName": "fk_bad",
                "sourceTable": "a",
                "targetTable": "b",
                "columnPairs": [],
            })

    def test_missing_target_rejected(self):
        with pytest.raises(SchemaFormatError, match="targetTable"):
            ForeignKeyConstraint.from_dict({
                "constraintName": "fk_bad",
                "sourceTable": "a",
                "columnPairs": [{"sourceColumn": "x", "targetColumn": "y"}],
            })

    def test_self_reference(self):
        fk = ForeignKeyConstraint("fk_manager", "staff", "staff", [ColumnPair(1, "manager_id", "staff_id")])
        assert fk.is_self_reference


class TestSchemaDescription:
    """Tests for schema description parsing."""

    def test_from_dict(self, sakila_dict):
        schema = SchemaDescription.from_dict(sakila_dict)

        assert len(schema.tables) == 14
        assert schema.get_table("payment").primary_key == ["payment_id"]
        assert len(schema.get_table("rental").foreign_keys) == 3
        assert schema.get_table("missing") is None

    def test_schema_wrapper_accepted(self, sakila_dict):
        schema = SchemaDescription.from_dict({"schema": sakila_dict})
        assert "film" in schema.table_names

    def test_missing_tables_rejected(self):
        with pytest.raises(SchemaFormatError, match="tables"):
            SchemaDescription.from_dict({"views": []})

    def test_missing_table_name_rejected(self):
        with pytest.raises(SchemaFormatError, match="tableName"):
            SchemaDescription.from_dict({"tables": [{"columns": []}]})

    def test_bare_column_names(self):
        table = TableSchema.from_dict({"tableName": "t", "columns": ["id", "name"]})
        assert table.column_names == ["id", "name"]

    def test_round_trip(self, sakila_schema):
        restored = SchemaDescription.from_dict(sakila_schema.to_dict())
        assert restored == sakila_schema


class TestTableGraph:
    """Tests for the index-backed table graph."""

    def _graph(self):
        graph = TableGraph()
        graph.add_node(NodeMeta("orders"))
        graph.add_node(NodeMeta("customers"))
        return graph

    def test_indices_follow_insertion_order(self):
        graph = self._graph()
        assert graph.index_of("orders") == 0
        assert graph.index_of("customers") == 1
        assert graph.name_of(1) == "customers"
        assert graph.index_of("missing") is None

    def test_add_node_is_idempotent(self):
        graph = self._graph()
        assert graph.add_node(NodeMeta("orders")) == 0
        assert len(graph) == 2

    def test_add_edge_assigns_indices(self):
        graph = self._graph()
        edge = Edge("e1", "orders", "customers", "fk")
        graph.add_edge(edge)

        assert (edge.source_index, edge.target_index) == (0, 1)
        assert graph.neighbors(0) == [edge]
        assert graph.edge("e1") is edge

    def test_add_edge_rejects_unknown_table(self):
        graph = self._graph()
        with pytest.raises(SchemaFormatError, match="unknown table"):
            graph.add_edge(Edge("e1", "orders", "products", "fk"))

    def test_add_edge_rejects_self_loop(self):
        graph = self._graph()
        with pytest.raises(SchemaFormatError, match="self-loop"):
            graph.add_edge(Edge("e1", "orders", "orders", "fk"))

    def test_add_edge_rejects_duplicate_id(self):
        graph = self._graph()
        graph.add_edge(Edge("e1", "orders", "customers", "fk"))
        with pytest.raises(SchemaFormatError, match="Duplicate"):
            graph.add_edge(Edge("e1", "customers", "orders", "fk"))


class TestPaths:
    """Tests for path objects and the paths index."""

    def test_sort_key_tie_break(self):
        first = PathObj(["a", "b"], ["a__fk1__b"], 1.0, "a->b")
        second = PathObj(["a", "b"], ["a__fk2__b"], 1.0, "a->b")
        assert sorted([second, first], key=PathObj.sort_key) == [first, second]

    def test_paths_index_round_trip(self):
        path = PathObj(["a", "b", "c"], ["e1", "e2"], 2.0, "a->b->c")
        index = PathsIndex({"a": {"c": [path]}})

        restored = PathsIndex.from_dict(index.to_dict())

        assert restored.get_paths("a", "c") == [path]
        assert restored.best("a", "c") == path
        assert restored.best("c", "a") is None
        assert restored.total_paths == 1


class TestJoinModels:
    """Tests for join edges and results."""

    def test_join_edge_flipped(self):
        edge = JoinEdge("orders", "customers", "fk_orders_customer",
                        [ColumnPair(1, "customer_id", "id")], Cardinality.MANY_TO_ONE)
        flipped = edge.flipped()

        assert (flipped.source, flipped.target) == ("customers", "orders")
        assert flipped.column_pairs[0].source_column == "id"
        assert flipped.cardinality is Cardinality.ONE_TO_MANY

    def test_join_result_to_dict(self):
        result = JoinResult(status=JoinStatus.OK, sql="FROM a", message="Single table: a")
        data = result.to_dict()

        assert data == {"status": "ok", "joinGraph": [], "sql": "FROM a", "message": "Single table: a"}
