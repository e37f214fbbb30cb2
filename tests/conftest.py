"""
Shared fixtures: a Sakila-style rental schema and small synthetic schemas.
"""

import copy

import pytest

from autojoin.graph import build_graph
from autojoin.models import SchemaDescription


def _table(name, pk, columns, fks=()):
    return {
        "tableName": name,
        "primaryKey": [pk] if pk else [],
        "columns": [{"name": c, "type": "integer"} for c in columns],
        "foreignKeys": [
            {
                "constraintName": constraint,
                "sourceTable": name,
                "targetTable": target,
                "columnPairs": [
                    {"position": 1, "sourceColumn": source_column, "targetColumn": target_column}
                ],
            }
            for constraint, source_column, target, target_column in fks
        ],
    }


SAKILA = {
    "tables": [
        _table("actor", "actor_id", ["actor_id", "first_name", "last_name"]),
        _table("language", "language_id", ["language_id", "name"]),
        _table("category", "category_id", ["category_id", "name"]),
        _table("address", "address_id", ["address_id", "address"]),
        _table(
            "film", "film_id", ["film_id", "title", "language_id", "original_language_id"],
            [
                ("fk_film_language", "language_id", "language", "language_id"),
                ("fk_film_language_original", "original_language_id", "language", "language_id"),
            ],
        ),
        _table(
            "film_actor", None, ["actor_id", "film_id"],
            [
                ("fk_film_actor_actor", "actor_id", "actor", "actor_id"),
                ("fk_film_actor_film", "film_id", "film", "film_id"),
            ],
        ),
        _table(
            "film_category", None, ["film_id", "category_id"],
            [
                ("fk_film_category_film", "film_id", "film", "film_id"),
                ("fk_film_category_category", "category_id", "category", "category_id"),
            ],
        ),
        _table(
            "store", "store_id", ["store_id", "address_id"],
            [("fk_store_address", "address_id", "address", "address_id")],
        ),
        _table(
            "staff", "staff_id", ["staff_id", "store_id", "address_id"],
            [
                ("fk_staff_store", "store_id", "store", "store_id"),
                ("fk_staff_address", "address_id", "address", "address_id"),
            ],
        ),
        _table(
            "customer", "customer_id", ["customer_id", "store_id", "address_id"],
            [
                ("fk_customer_store", "store_id", "store", "store_id"),
                ("fk_customer_address", "address_id", "address", "address_id"),
            ],
        ),
        _table(
            "inventory", "inventory_id", ["inventory_id", "film_id", "store_id"],
            [
                ("fk_inventory_film", "film_id", "film", "film_id"),
                ("fk_inventory_store", "store_id", "store", "store_id"),
            ],
        ),
        _table(
            "rental", "rental_id", ["rental_id", "inventory_id", "customer_id", "staff_id"],
            [
                ("fk_rental_inventory", "inventory_id", "inventory", "inventory_id"),
                ("fk_rental_customer", "customer_id", "customer", "customer_id"),
                ("fk_rental_staff", "staff_id", "staff", "staff_id"),
            ],
        ),
        _table(
            "payment", "payment_id", ["payment_id", "customer_id", "staff_id", "rental_id"],
            [
                ("fk_payment_customer", "customer_id", "customer", "customer_id"),
                ("fk_payment_staff", "staff_id", "staff", "staff_id"),
                ("fk_payment_rental", "rental_id", "rental", "rental_id"),
            ],
        ),
        # No relationships at all
        _table("film_text", "film_id", ["film_id", "title", "description"]),
    ]
}

SAKILA_FK_COUNT = 19


@pytest.fixture
def sakila_dict():
    """Sakila schema in its introspected dictionary form."""
    return copy.deepcopy(SAKILA)


@pytest.fixture
def sakila_schema(sakila_dict):
    return SchemaDescription.from_dict(sakila_dict)


@pytest.fixture
def sakila_graph(sakila_schema):
    return build_graph(sakila_schema)


@pytest.fixture
def make_schema():
    """
    Factory for small schemas.

    Each FK is ``(source, constraint, target)`` joined on ``<target>_id = id``,
    optionally followed by a cardinality.
    """
    def _make(tables, fks=()):
        by_name = {name: {"tableName": name, "primaryKey": ["id"], "columns": ["id"], "foreignKeys": []}
                   for name in tables}
        for fk in fks:
            source, constraint, target = fk[:3]
            data = {
                "constraintName": constraint,
                "sourceTable": source,
                "targetTable": target,
                "columnPairs": [{"position": 1, "sourceColumn": f"{target}_id", "targetColumn": "id"}],
            }
            if len(fk) > 3:
                data["cardinality"] = fk[3]
            by_name[source]["foreignKeys"].append(data)
        return SchemaDescription.from_dict({"tables": list(by_name.values())})

    return _make


@pytest.fixture
def diamond_schema(make_schema):
    """a reaches d through b or c at equal cost."""
    return make_schema(
        ["a", "b", "c", "d"],
        [
            ("b", "fk_b_a", "a"),
            ("c", "fk_c_a", "a"),
            ("b", "fk_b_d", "d"),
            ("c", "fk_c_d", "d"),
        ],
    )


@pytest.fixture
def chain_schema(make_schema):
    """t0 <- t1 <- ... <- t9, one FK per link."""
    names = [f"t{i}" for i in range(10)]
    return make_schema(names, [(names[i + 1], f"fk_{i + 1}_{i}", names[i]) for i in range(9)])
