# src/rhosocial/mysqldump/errors.py
"""Exception hierarchy for the dump/restore toolkit."""

from typing import Optional


class MySQLDumpError(Exception):
    """Base class for all errors raised by this package."""


class ConnectionError(MySQLDumpError):
    """Raised when a connection to the server cannot be established."""


class DatabaseError(MySQLDumpError):
    """Raised for errors reported by the database server."""


class QueryError(DatabaseError):
    """Raised when a statement fails to execute."""


class IntegrityError(DatabaseError):
    """Raised on unique or foreign key constraint violations."""


class OperationalError(DatabaseError):
    """Raised on server-side operational failures."""


class DeadlockError(OperationalError):
    """Raised on deadlock or lock wait timeout."""


class LiteralDecodeError(MySQLDumpError, ValueError):
    """Raised when a SQL literal cannot be decoded back into a typed value."""


class RestoreError(MySQLDumpError):
    """Raised when a restore stops at a failing statement.

    Attributes:
        executed: Number of statements that ran successfully before the failure
        index: Zero-based position of the failing statement
        statement: Text of the failing statement
    """

    def __init__(self, message: str, executed: int, index: int,
                 statement: Optional[str] = None):
        super().__init__(message)
        self.executed = executed
        self.index = index
        self.statement = statement
