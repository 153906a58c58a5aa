# src/rhosocial/mysqldump/restore.py
"""
Restore of dump files and raw SQL scripts.

The script is split into statements which are executed one after another on
a single connection; later statements may depend on earlier ones, so they are
never run concurrently. Execution stops at the first failing statement.
"""

import logging
from typing import List, Optional

from .backend import AsyncMySQLBackend, MySQLBackend
from .errors import MySQLDumpError, RestoreError
from .splitter import split_statements

logger = logging.getLogger("rhosocial.mysqldump.restore")


def read_script(path: str) -> str:
    """Read a SQL script from ``path``.

    Undecodable bytes are kept as surrogate escapes, the same way the dump
    writer stores them.
    """
    with open(path, "r", encoding="utf-8", errors="surrogateescape", newline="") as f:
        return f.read()


def _failure(statements: List[str], index: int, error: Exception) -> RestoreError:
    message = (f"Statement {index + 1} of {len(statements)} failed after "
               f"{index} executed: {error}")
    logger.error(message)
    return RestoreError(message, executed=index, index=index, statement=statements[index])


def restore_sql(backend: MySQLBackend, sql: str, database: Optional[str] = None) -> int:
    """Execute every statement of ``sql`` in order.

    Args:
        backend: Connected (or connectable) synchronous backend
        sql: SQL script text
        database: Database to select with ``USE`` first; skipped when empty

    Returns:
        int: Number of statements executed

    Raises:
        RestoreError: On the first failing statement
    """
    statements = split_statements(sql)
    if database:
        backend.use_database(database)

    logger.info(f"Restoring {len(statements)} statements")
    for index, statement in enumerate(statements):
        try:
            backend.execute(statement)
        except MySQLDumpError as e:
            raise _failure(statements, index, e) from e
    logger.info(f"Restore completed, {len(statements)} statements executed")
    return len(statements)


def restore_file(backend: MySQLBackend, path: str, database: Optional[str] = None) -> int:
    """Read the script at ``path`` and restore it; see :func:`restore_sql`."""
    logger.info(f"Importing {path}")
    return restore_sql(backend, read_script(path), database)


async def restore_sql_async(backend: AsyncMySQLBackend, sql: str,
                            database: Optional[str] = None) -> int:
    """Asynchronous counterpart of :func:`restore_sql`."""
    statements = split_statements(sql)
    if database:
        await backend.use_database(database)

    logger.info(f"Restoring {len(statements)} statements")
    for index, statement in enumerate(statements):
        try:
            await backend.execute(statement)
        except MySQLDumpError as e:
            raise _failure(statements, index, e) from e
    logger.info(f"Restore completed, {len(statements)} statements executed")
    return len(statements)


async def restore_file_async(backend: AsyncMySQLBackend, path: str,
                             database: Optional[str] = None) -> int:
    """Asynchronous counterpart of :func:`restore_file`."""
    logger.info(f"Importing {path}")
    return await restore_sql_async(backend, read_script(path), database)
