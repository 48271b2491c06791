# sqlalchemy_pgschema/builder.py
# Copyright (C) 2020 Kolmar Kafran
"""
Turns positional restrictions into a parameterized WHERE clause.

Restriction values are always bound as ``:name`` parameters, the style
understood by :func:`sqlalchemy.sql.text`. Only the column names coming
from the collection catalog are ever written into the statement text.
"""

import logging
from collections import namedtuple

from .exc import MalformedRestriction

logger = logging.getLogger("pgschema")


class BoundStatement(namedtuple("BoundStatement", ["text", "parameters"])):
    """Statement text plus its ``(name, value)`` parameters, in clause order."""

    __slots__ = ()

    @property
    def params(self):
        return dict(self.parameters)


def is_present(restriction):
    return restriction is not None and restriction != ""


def check_restrictions(restriction_columns, restrictions):
    """Raise MalformedRestriction if there are more restrictions than columns."""
    supported = len(tuple(restriction_columns or ()))
    given = len(tuple(restrictions or ()))
    if given > supported:
        raise MalformedRestriction(
            "More restrictions were provided (%d) than the collection "
            "supports (%d)" % (given, supported)
        )


def build_statement(
    template, restriction_columns, restrictions, add_where=True, strict=False
):
    """Append one equality clause per present restriction to ``template``.

    ``restrictions[i]`` filters on ``restriction_columns[i]``. Missing or
    empty entries are skipped without shifting the ones after them, and
    entries past the end of either sequence are ignored.

    ``add_where`` should be False when the template already ends in a WHERE
    clause, so the first restriction is joined with AND.
    """
    restrictions = tuple(restrictions or ())
    restriction_columns = tuple(restriction_columns or ())

    if strict:
        check_restrictions(restriction_columns, restrictions)

    text = [template]
    parameters = []
    for name, restriction in zip(restriction_columns, restrictions):
        if not is_present(restriction):
            continue
        if add_where:
            text.append(" WHERE ")
            add_where = False
        else:
            text.append(" AND ")
        text.append("{0} = :{0}".format(name))
        parameters.append((name, restriction))

    statement = BoundStatement("".join(text), tuple(parameters))
    logger.debug(
        "Built statement with %d parameter(s): %s",
        len(statement.parameters),
        statement.text,
    )
    return statement
