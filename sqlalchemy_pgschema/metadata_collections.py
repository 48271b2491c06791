# sqlalchemy_pgschema/metadata_collections.py
# Copyright (C) 2020 Kolmar Kafran
"""
Compiled-in manifest of the metadata collections.

The result schema of every collection is declared as a :class:`Table` on
its own :class:`MetaData`. These tables are never created or selected from;
they only describe the columns a collection hands back.
"""

from collections import namedtuple

from sqlalchemy import Boolean, Column, Integer, MetaData, String, Table

from .exc import UnknownCollection

collection_tables = MetaData()

metadata_collections = Table(
    "MetaDataCollections",
    collection_tables,
    Column("CollectionName", String),
    Column("NumberOfRestrictions", Integer),
    Column("NumberOfIdentifierParts", Integer),
)

data_source_information = Table(
    "DataSourceInformation",
    collection_tables,
    Column("CompositeIdentifierSeparatorPattern", String),
    Column("DataSourceProductName", String),
    Column("GroupByBehavior", String),
    Column("IdentifierPattern", String),
    Column("IdentifierCase", String),
    Column("OrderByColumnsInSelect", Boolean),
    Column("ParameterMarkerFormat", String),
    Column("ParameterMarkerPattern", String),
    Column("ParameterNameMaxLength", Integer),
    Column("ParameterNamePattern", String),
    Column("QuotedIdentifierPattern", String),
    Column("QuotedIdentifierCase", String),
    Column("StatementSeparatorPattern", String),
    Column("StringLiteralPattern", String),
    Column("SupportedJoinOperators", Integer),
)

restrictions = Table(
    "Restrictions",
    collection_tables,
    Column("CollectionName", String),
    Column("RestrictionName", String),
    Column("RestrictionDefault", String),
    Column("RestrictionNumber", Integer),
)

reserved_words = Table(
    "ReservedWords",
    collection_tables,
    Column("ReservedWord", String),
)

databases = Table(
    "Databases",
    collection_tables,
    Column("database_name", String),
    Column("owner", String),
    Column("encoding", String),
)

tables = Table(
    "Tables",
    collection_tables,
    Column("table_catalog", String),
    Column("table_schema", String),
    Column("table_name", String),
    Column("table_type", String),
)

columns = Table(
    "Columns",
    collection_tables,
    Column("table_catalog", String),
    Column("table_schema", String),
    Column("table_name", String),
    Column("column_name", String),
    Column("ordinal_position", Integer),
    Column("column_default", String),
    Column("is_nullable", String),
    Column("data_type", String),
    Column("character_maximum_length", Integer),
    Column("character_octet_length", Integer),
    Column("numeric_precision", Integer),
    Column("numeric_precision_radix", Integer),
    Column("numeric_scale", Integer),
    Column("datetime_precision", Integer),
    Column("character_set_catalog", String),
    Column("character_set_schema", String),
    Column("character_set_name", String),
    Column("collation_catalog", String),
)

views = Table(
    "Views",
    collection_tables,
    Column("table_catalog", String),
    Column("table_schema", String),
    Column("table_name", String),
    Column("check_option", String),
    Column("is_updatable", String),
)

users = Table(
    "Users",
    collection_tables,
    Column("user_name", String),
    Column("user_sysid", Integer),
)

indexes = Table(
    "Indexes",
    collection_tables,
    Column("table_catalog", String),
    Column("table_schema", String),
    Column("table_name", String),
    Column("index_name", String),
)

index_columns = Table(
    "IndexColumns",
    collection_tables,
    Column("table_catalog", String),
    Column("table_schema", String),
    Column("table_name", String),
    Column("index_name", String),
    Column("column_name", String),
)

# PostgreSQL 9.0 reserved key words
RESERVED_WORDS = (
    "ALL",
    "ANALYSE",
    "ANALYZE",
    "AND",
    "ANY",
    "ARRAY",
    "AS",
    "ASC",
    "ASYMMETRIC",
    "AUTHORIZATION",
    "BINARY",
    "BOTH",
    "CASE",
    "CAST",
    "CHECK",
    "COLLATE",
    "COLUMN",
    "CONCURRENTLY",
    "CONSTRAINT",
    "CREATE",
    "CROSS",
    "CURRENT_CATALOG",
    "CURRENT_DATE",
    "CURRENT_ROLE",
    "CURRENT_SCHEMA",
    "CURRENT_TIME",
    "CURRENT_TIMESTAMP",
    "CURRENT_USER",
    "DEFAULT",
    "DEFERRABLE",
    "DESC",
    "DISTINCT",
    "DO",
    "ELSE",
    "END",
    "EXCEPT",
    "FALSE",
    "FETCH",
    "FOR",
    "FOREIGN",
    "FREEZE",
    "FROM",
    "FULL",
    "GRANT",
    "GROUP",
    "HAVING",
    "ILIKE",
    "IN",
    "INITIALLY",
    "INNER",
    "INTERSECT",
    "INTO",
    "IS",
    "ISNULL",
    "JOIN",
    "LEADING",
    "LEFT",
    "LIKE",
    "LIMIT",
    "LOCALTIME",
    "LOCALTIMESTAMP",
    "NATURAL",
    "NOT",
    "NOTNULL",
    "NULL",
    "OFFSET",
    "ON",
    "ONLY",
    "OR",
    "ORDER",
    "OUTER",
    "OVER",
    "OVERLAPS",
    "PLACING",
    "PRIMARY",
    "REFERENCES",
    "RETURNING",
    "RIGHT",
    "SELECT",
    "SESSION_USER",
    "SIMILAR",
    "SOME",
    "SYMMETRIC",
    "TABLE",
    "THEN",
    "TO",
    "TRAILING",
    "TRUE",
    "UNION",
    "UNIQUE",
    "USER",
    "USING",
    "VARIADIC",
    "VERBOSE",
    "WHEN",
    "WHERE",
    "WINDOW",
    "WITH",
)

DATA_SOURCE_INFORMATION = (
    {
        "CompositeIdentifierSeparatorPattern": r"\.",
        "DataSourceProductName": "PostgreSQL",
        "GroupByBehavior": "unrelated",
        "IdentifierPattern": r"^[A-Za-z_][A-Za-z0-9_$]*$",
        "IdentifierCase": "insensitive",
        "OrderByColumnsInSelect": False,
        "ParameterMarkerFormat": ":{0}",
        "ParameterMarkerPattern": r":([A-Za-z_][A-Za-z0-9_$]*)",
        "ParameterNameMaxLength": 63,
        "ParameterNamePattern": r"^[A-Za-z_][A-Za-z0-9_$]*$",
        "QuotedIdentifierPattern": r'"(([^"]|"")*)"',
        "QuotedIdentifierCase": "sensitive",
        "StatementSeparatorPattern": ";",
        "StringLiteralPattern": r"'(([^']|'')*)'",
        # inner | left outer | right outer | full outer
        "SupportedJoinOperators": 0x0F,
    },
)

DATABASES_QUERY = (
    "SELECT d.datname AS database_name, u.usename AS owner, "
    "pg_catalog.pg_encoding_to_char(d.encoding) AS encoding "
    "FROM pg_catalog.pg_database d "
    "LEFT JOIN pg_catalog.pg_user u ON d.datdba = u.usesysid"
)

TABLES_QUERY = (
    "SELECT table_catalog, table_schema, table_name, table_type "
    "FROM information_schema.tables"
)

COLUMNS_QUERY = (
    "SELECT table_catalog, table_schema, table_name, column_name, "
    "ordinal_position, column_default, is_nullable, udt_name AS data_type, "
    "character_maximum_length, character_octet_length, numeric_precision, "
    "numeric_precision_radix, numeric_scale, datetime_precision, "
    "character_set_catalog, character_set_schema, character_set_name, "
    "collation_catalog "
    "FROM information_schema.columns"
)

VIEWS_QUERY = (
    "SELECT table_catalog, table_schema, table_name, check_option, "
    "is_updatable FROM information_schema.views"
)

USERS_QUERY = (
    "SELECT usename AS user_name, usesysid AS user_sysid "
    "FROM pg_catalog.pg_user"
)

# Aliased index columns are only addressable from an enclosing query, so the
# catalog joins are wrapped in a derived table.
INDEXES_QUERY = """SELECT table_catalog, table_schema, table_name, index_name
FROM (
    SELECT current_database() AS table_catalog,
        n.nspname AS table_schema,
        t.relname AS table_name,
        i.relname AS index_name
    FROM pg_catalog.pg_class i
        JOIN pg_catalog.pg_index ix ON ix.indexrelid = i.oid
        JOIN pg_catalog.pg_class t ON ix.indrelid = t.oid
        LEFT JOIN pg_catalog.pg_namespace n ON n.oid = i.relnamespace
    WHERE i.relkind = 'i'
        AND n.nspname NOT IN ('pg_catalog', 'pg_toast')
        AND pg_catalog.pg_table_is_visible(i.oid)
        AND t.relkind = 'r'
) AS indexes"""

INDEX_COLUMNS_QUERY = """SELECT table_catalog, table_schema, table_name, index_name, column_name
FROM (
    SELECT current_database() AS table_catalog,
        n.nspname AS table_schema,
        t.relname AS table_name,
        i.relname AS index_name,
        a.attname AS column_name
    FROM pg_catalog.pg_class t
        JOIN pg_catalog.pg_index ix ON t.oid = ix.indrelid
        JOIN pg_catalog.pg_class i ON ix.indexrelid = i.oid
        JOIN pg_catalog.pg_attribute a ON t.oid = a.attrelid
        LEFT JOIN pg_catalog.pg_namespace n ON i.relnamespace = n.oid
    WHERE i.relkind = 'i'
        AND n.nspname NOT IN ('pg_catalog', 'pg_toast')
        AND pg_catalog.pg_table_is_visible(i.oid)
        AND a.attnum = ANY(ix.indkey)
        AND t.relkind = 'r'
) AS index_columns"""


class CollectionDescriptor(
    namedtuple(
        "CollectionDescriptor",
        [
            "name",
            "result_columns",
            "query_template",
            "restriction_columns",
            "add_where",
            "rows",
            "identifier_parts",
        ],
    )
):
    """Everything needed to produce one collection.

    Static collections carry their ``rows`` and no ``query_template``.
    """

    __slots__ = ()

    @property
    def is_static(self):
        return self.query_template is None

    @property
    def column_names(self):
        return tuple(name for name, _ in self.result_columns)


CollectionSummary = namedtuple(
    "CollectionSummary", ["name", "restriction_columns"]
)


def describe(
    table,
    query_template=None,
    restriction_columns=(),
    add_where=True,
    rows=None,
    identifier_parts=0,
):
    """Build a :class:`CollectionDescriptor` whose schema is ``table``."""
    if query_template is None and rows is None:
        raise ValueError("Collection %s has no row source" % table.name)
    return CollectionDescriptor(
        name=table.name,
        result_columns=tuple((c.name, c.type) for c in table.columns),
        query_template=query_template,
        restriction_columns=tuple(restriction_columns),
        add_where=add_where,
        rows=tuple(rows) if rows is not None else None,
        identifier_parts=identifier_parts,
    )


class CollectionCatalog:
    """Read-only name lookup over a fixed sequence of descriptors.

    Names resolve case-insensitively; :meth:`list_collections` keeps
    declaration order.
    """

    def __init__(self, descriptors):
        self._descriptors = tuple(descriptors)
        self._by_name = {}
        for descriptor in self._descriptors:
            key = descriptor.name.lower()
            if key in self._by_name:
                raise ValueError("Duplicate collection %s" % descriptor.name)
            self._by_name[key] = descriptor

    def resolve(self, name):
        try:
            return self._by_name[name.lower()]
        except (KeyError, AttributeError):
            raise UnknownCollection(name) from None

    def list_collections(self):
        return [
            CollectionSummary(d.name, d.restriction_columns)
            for d in self._descriptors
        ]

    def __contains__(self, name):
        return isinstance(name, str) and name.lower() in self._by_name

    def __iter__(self):
        return iter(self._descriptors)

    def __len__(self):
        return len(self._descriptors)


def _metadata_collections_rows(descriptors):
    return [
        {
            "CollectionName": d.name,
            "NumberOfRestrictions": len(d.restriction_columns),
            "NumberOfIdentifierParts": d.identifier_parts,
        }
        for d in descriptors
    ]


def _restrictions_rows(descriptors):
    return [
        {
            "CollectionName": d.name,
            "RestrictionName": restriction,
            "RestrictionDefault": restriction,
            "RestrictionNumber": number,
        }
        for d in descriptors
        for number, restriction in enumerate(d.restriction_columns, 1)
    ]


def _build_catalog():
    descriptors = [
        describe(metadata_collections, rows=()),
        describe(data_source_information, rows=DATA_SOURCE_INFORMATION),
        describe(restrictions, rows=()),
        describe(
            reserved_words,
            rows=[{"ReservedWord": word} for word in RESERVED_WORDS],
        ),
        describe(databases, DATABASES_QUERY, ["datname"], identifier_parts=1),
        describe(
            tables,
            TABLES_QUERY,
            ["table_catalog", "table_schema", "table_name", "table_type"],
            identifier_parts=3,
        ),
        describe(
            columns,
            COLUMNS_QUERY,
            ["table_catalog", "table_schema", "table_name", "column_name"],
            identifier_parts=4,
        ),
        describe(
            views,
            VIEWS_QUERY,
            ["table_catalog", "table_schema", "table_name"],
            identifier_parts=3,
        ),
        describe(users, USERS_QUERY, ["usename"], identifier_parts=1),
        describe(
            indexes,
            INDEXES_QUERY,
            ["table_catalog", "table_schema", "table_name", "index_name"],
            identifier_parts=4,
        ),
        describe(
            index_columns,
            INDEX_COLUMNS_QUERY,
            [
                "table_catalog",
                "table_schema",
                "table_name",
                "index_name",
                "column_name",
            ],
            identifier_parts=5,
        ),
    ]
    # Self-describing collections are filled in once every name is known.
    descriptors[0] = descriptors[0]._replace(
        rows=tuple(_metadata_collections_rows(descriptors))
    )
    descriptors[2] = descriptors[2]._replace(
        rows=tuple(_restrictions_rows(descriptors))
    )
    return CollectionCatalog(descriptors)


catalog = _build_catalog()
