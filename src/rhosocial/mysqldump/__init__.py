# src/rhosocial/mysqldump/__init__.py
"""
MySQL dump and restore toolkit.

This package provides:
- A statement splitter that turns a multi-statement SQL script into
  individually executable statements
- A value codec that renders typed row values as MySQL literals and parses
  them back
- Synchronous and asynchronous execution backends built on
  mysql-connector-python
- A dump writer and a restorer composing the pieces above

Architecture:
- splitter and codec are pure and independent of each other
- MySQLBackend / AsyncMySQLBackend share common logic through MySQLBackendMixin
- Everything talking to the server goes through the backends
"""

__version__ = "1.0.0.dev1"

from .adapters import AdapterRegistry, to_typed_value
from .backend import MySQLBackend, AsyncMySQLBackend, QueryResult
from .codec import decode_literal, encode_value, escape_string, format_float, format_row, format_rows
from .config import DumpOptions, MySQLConnectionConfig
from .converters import MySQLDumpConverter
from .dialect import InsertMode, MySQLDialect
from .dump import AsyncDumpWriter, DumpFormatter, DumpWriter
from .errors import (
    ConnectionError,
    DatabaseError,
    DeadlockError,
    IntegrityError,
    LiteralDecodeError,
    MySQLDumpError,
    OperationalError,
    QueryError,
    RestoreError,
)
from .restore import restore_file, restore_file_async, restore_sql, restore_sql_async
from .splitter import LexerState, StatementSplitter, split_statements
from .types import (
    NULL,
    ByteString,
    DateTime,
    Double,
    Float,
    Integer,
    Null,
    Time,
    TypedValue,
    ValueKind,
)


__all__ = [
    # Splitter
    'split_statements',
    'StatementSplitter',
    'LexerState',

    # Codec
    'encode_value',
    'decode_literal',
    'escape_string',
    'format_float',
    'format_row',
    'format_rows',

    # Typed values
    'TypedValue',
    'ValueKind',
    'Null',
    'NULL',
    'Integer',
    'Float',
    'Double',
    'ByteString',
    'DateTime',
    'Time',
    'AdapterRegistry',
    'to_typed_value',

    # Backends
    'MySQLBackend',
    'AsyncMySQLBackend',
    'QueryResult',
    'MySQLDumpConverter',

    # Configuration
    'MySQLConnectionConfig',
    'DumpOptions',

    # Dialect
    'MySQLDialect',
    'InsertMode',

    # Dump / restore
    'DumpWriter',
    'AsyncDumpWriter',
    'DumpFormatter',
    'restore_sql',
    'restore_file',
    'restore_sql_async',
    'restore_file_async',

    # Errors
    'MySQLDumpError',
    'ConnectionError',
    'DatabaseError',
    'QueryError',
    'IntegrityError',
    'OperationalError',
    'DeadlockError',
    'LiteralDecodeError',
    'RestoreError',
]
