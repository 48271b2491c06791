# sqlalchemy_pgschema/exc.py
# Copyright (C) 2020 Kolmar Kafran
"""Exceptions raised while reading metadata collections."""

from sqlalchemy import exc


class UnknownCollection(exc.InvalidRequestError):
    """The requested collection is not part of the catalog."""

    def __init__(self, name):
        super().__init__(
            "The requested collection (%s) is not defined." % (name,)
        )
        self.name = name


class MalformedRestriction(exc.ArgumentError):
    """More restrictions were given than the collection supports.

    Only raised when restrictions are checked strictly.
    """


class ExecutionFailed(exc.StatementError):
    """The executor failed to run a collection statement.

    ``orig`` holds the executor's own exception, untouched.
    """

    def __init__(self, statement, params, orig):
        super().__init__(
            "(%s) %s" % (orig.__class__.__name__, orig), statement, params, orig
        )

    def __reduce__(self):
        return self.__class__, (self.statement, self.params, self.orig)
