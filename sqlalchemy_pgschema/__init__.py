# sqlalchemy_pgschema/__init__.py
# Copyright (C) 2019 Kolmar Kafran
# Copyright (C) 2017 Kairui Song
"""
Metadata collections for PostgreSQL on top of SQLAlchemy.

A collection (Tables, Columns, Indexes, ...) is fetched by name with an
optional list of positional restrictions::

    from sqlalchemy_pgschema import ConnectionExecutor, fetch

    with engine.connect() as conn:
        tables = fetch("Tables", [None, "public"], ConnectionExecutor(conn))

The same is available from the ``postgresql+pgschema`` dialect as
``engine.dialect.get_schema(conn, "Tables", [None, "public"])``.
"""

import logging
from collections.abc import Mapping

from sqlalchemy import Boolean, sql, util
from sqlalchemy.dialects import registry
from sqlalchemy.dialects.postgresql.psycopg2 import PGDialect_psycopg2
from sqlalchemy.exc import ArgumentError

from .builder import BoundStatement, build_statement, check_restrictions
from .config import Settings, create_engine_from_config, load_config
from .exc import ExecutionFailed, MalformedRestriction, UnknownCollection
from .metadata_collections import (
    CollectionCatalog,
    CollectionDescriptor,
    CollectionSummary,
    catalog,
    describe,
)

__all__ = [
    "BoundStatement",
    "CollectionCatalog",
    "CollectionDescriptor",
    "CollectionSummary",
    "ConnectionExecutor",
    "ExecutionFailed",
    "MalformedRestriction",
    "PGSchemaDialect",
    "ResultSet",
    "Settings",
    "UnknownCollection",
    "build_statement",
    "catalog",
    "create_engine_from_config",
    "describe",
    "fetch",
    "list_collections",
    "load_config",
    "resolve",
]

logger = logging.getLogger("pgschema")


class ResultSet:
    """Rows of one collection, shaped by its declared columns."""

    def __init__(self, name, columns, rows):
        self.name = name
        self.columns = tuple(columns)
        self.rows = list(rows)

    @property
    def column_names(self):
        return tuple(name for name, _ in self.columns)

    def __iter__(self):
        return iter(self.rows)

    def __len__(self):
        return len(self.rows)

    def __getitem__(self, index):
        return self.rows[index]

    def __repr__(self):
        return "ResultSet(%r, %d rows)" % (self.name, len(self.rows))


class ConnectionExecutor:
    """Runs bound statements on a SQLAlchemy :class:`Connection`.

    The connection is used as given; opening and closing it is up to the
    caller.
    """

    def __init__(self, connection):
        self.connection = connection

    def __call__(self, statement, parameters):
        result = self.connection.execute(sql.text(statement), dict(parameters))
        return result.mappings().all()


def resolve(name):
    return catalog.resolve(name)


def list_collections():
    return catalog.list_collections()


_TRUE_STRINGS = frozenset(["t", "true", "y", "yes", "on", "1"])
_FALSE_STRINGS = frozenset(["f", "false", "n", "no", "off", "0"])


def _coerce(value, type_):
    """Convert ``value`` to the Python type of ``type_``.

    Raises ValueError or TypeError when the value does not convert.
    """
    if value is None:
        return None
    if isinstance(type_, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise ValueError("%r is not a boolean" % (value,))
    try:
        python_type = type_.python_type
    except NotImplementedError:
        return value
    if isinstance(value, python_type):
        return value
    return python_type(value)


def project(descriptor, raw_rows):
    """Shape executor rows into dicts keyed by the declared column names.

    Mapping rows are read by column name, anything else by position.
    Undeclared columns are dropped and missing ones come back as None.
    Values that do not convert to their column type are kept as returned.
    """
    columns = descriptor.result_columns
    rows = []
    warned = False
    unconverted = set()
    for raw in raw_rows:
        if isinstance(raw, Mapping):
            values = [raw.get(name) for name, _ in columns]
            missing = [name for name, _ in columns if name not in raw]
        else:
            raw = tuple(raw)
            values = list(raw[: len(columns)])
            values.extend([None] * (len(columns) - len(values)))
            missing = [name for name, _ in columns[len(raw):]]

        if missing and not warned:
            util.warn(
                "Rows of collection '%s' lack column(s) %s"
                % (descriptor.name, ", ".join(missing))
            )
            warned = True

        row = {}
        for (name, type_), value in zip(columns, values):
            try:
                row[name] = _coerce(value, type_)
            except (TypeError, ValueError):
                if name not in unconverted:
                    util.warn(
                        "Could not convert value %r of column %s in "
                        "collection %s to %s"
                        % (value, name, descriptor.name, type_)
                    )
                    unconverted.add(name)
                row[name] = value
        rows.append(row)
    return ResultSet(descriptor.name, columns, rows)


def fetch(name, restrictions=None, executor=None, strict=False, catalog=catalog):
    """Fetch the collection ``name`` filtered by ``restrictions``.

    ``executor`` is called as ``executor(text, parameters)`` and must return
    the rows of the statement. Static collections never call it and ignore
    their restrictions.
    """
    descriptor = catalog.resolve(name)
    logger.debug("Fetching collection %s", descriptor.name)

    if descriptor.is_static:
        if strict:
            check_restrictions(descriptor.restriction_columns, restrictions)
        return project(descriptor, descriptor.rows)

    if executor is None:
        raise ArgumentError(
            "An executor is required to fetch the %s collection" % descriptor.name
        )

    statement = build_statement(
        descriptor.query_template,
        descriptor.restriction_columns,
        restrictions,
        add_where=descriptor.add_where,
        strict=strict,
    )
    try:
        raw_rows = list(executor(statement.text, statement.parameters))
    except Exception as err:
        raise ExecutionFailed(statement.text, statement.params, err) from err
    return project(descriptor, raw_rows)


class PGSchemaDialect(PGDialect_psycopg2):
    """psycopg2 dialect that can also read metadata collections."""

    def get_schema(
        self, connection, collection_name=None, restrictions=None, strict=False
    ):
        """Return a metadata collection read through ``connection``.

        Without a name the MetaDataCollections collection is returned.
        """
        if collection_name is None:
            collection_name = "MetaDataCollections"
        return fetch(
            collection_name,
            restrictions,
            ConnectionExecutor(connection),
            strict=strict,
        )


dialect = PGSchemaDialect

registry.register("postgresql.pgschema", "sqlalchemy_pgschema", "PGSchemaDialect")
