"""Pytest configuration and fixtures for sqlalchemy-pgschema tests."""

import pytest
from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, text

from sqlalchemy_pgschema import CollectionCatalog, describe


class RecordingExecutor:
    """Executor double that remembers every statement it is given."""

    def __init__(self, rows=()):
        self.rows = list(rows)
        self.calls = []

    def __call__(self, statement, parameters):
        self.calls.append((statement, parameters))
        return self.rows


@pytest.fixture
def recording_executor():
    return RecordingExecutor()


@pytest.fixture
def tables_rows():
    """Rows shaped like information_schema.tables output."""
    return [
        {
            "table_catalog": "shop",
            "table_schema": "public",
            "table_name": "orders",
            "table_type": "BASE TABLE",
        },
        {
            "table_catalog": "shop",
            "table_schema": "public",
            "table_name": "order_totals",
            "table_type": "VIEW",
        },
    ]


@pytest.fixture
def sqlite_connection():
    """In-memory SQLite connection with a small ``things`` table."""
    engine = create_engine("sqlite://")
    with engine.connect() as conn:
        conn.execute(
            text("CREATE TABLE things (name VARCHAR, size INTEGER, kind VARCHAR)")
        )
        conn.execute(
            text("INSERT INTO things (name, size, kind) VALUES (:name, :size, :kind)"),
            [
                {"name": "bolt", "size": 3, "kind": "hardware"},
                {"name": "nut", "size": 2, "kind": "hardware"},
                {"name": "glue", "size": 1, "kind": "supplies"},
            ],
        )
        yield conn
    engine.dispose()


@pytest.fixture
def things_catalog():
    """A one-collection catalog over the SQLite ``things`` table."""
    things = Table(
        "Things",
        MetaData(),
        Column("name", String),
        Column("size", Integer),
        Column("kind", String),
    )
    return CollectionCatalog(
        [
            describe(
                things,
                "SELECT name, size, kind FROM things",
                ["kind", "name"],
                identifier_parts=1,
            )
        ]
    )
